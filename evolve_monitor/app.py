"""
Application wiring for Evolve Monitor.

Builds the component graph (session store -> client -> caches ->
dispatcher) once per process and exposes the job functions the
scheduler runs.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .alerts import MessageChannel, TelegramChannel
from .cache import CacheRegistry
from .config import get_app_config, get_upstream_config
from .models import Category
from .notifications import NotificationDispatcher
from .session import SessionStore
from .sources import MonitoringClient
from .subscriptions import SubscriptionRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass
class MonitoringApp:
    """All long-lived components of one monitor process."""
    session: SessionStore
    client: MonitoringClient
    caches: CacheRegistry
    registry: SubscriptionRegistry
    dispatcher: NotificationDispatcher

    def refresh_cache(self) -> dict:
        return self.caches.refresh_all()

    def check_auctions(self) -> dict:
        return self.dispatcher.check_auctions()

    def check_businesses(self) -> dict:
        return self.dispatcher.check_businesses()

    def run_once(self) -> dict:
        """
        Run every job once, in schedule order.

        Returns:
            Summary dict keyed by job name
        """
        start_time = datetime.now()
        logger.info(f"Starting single run at {start_time}")

        summary = {
            "refresh_cache": self.refresh_cache(),
            "check_auctions": self.check_auctions(),
            "check_businesses": self.check_businesses(),
        }

        duration = (datetime.now() - start_time).total_seconds()
        summary["duration_seconds"] = duration
        logger.info(f"Single run complete in {duration:.1f}s")
        return summary


def build_app(
    channel: Optional[MessageChannel] = None,
    registry: Optional[SubscriptionRegistry] = None,
) -> MonitoringApp:
    """
    Build the application from environment configuration.

    Args:
        channel: Outbound channel (defaults to the Telegram Bot API)
        registry: Subscription registry (defaults to the process-wide one)
    """
    upstream = get_upstream_config()
    if not upstream.cookies:
        logger.error("EVOLVE_COOKIES is not set; every fetch will fail until it is configured")

    session = SessionStore()
    client = MonitoringClient(session, config=upstream)
    caches = CacheRegistry(client)
    registry = registry or get_registry()
    dispatcher = NotificationDispatcher(
        caches,
        registry,
        channel or TelegramChannel(),
        config=get_app_config(),
    )

    return MonitoringApp(
        session=session,
        client=client,
        caches=caches,
        registry=registry,
        dispatcher=dispatcher,
    )


# =============================================================================
# SUBSCRIPTION SEEDING
# =============================================================================

def parse_auction_spec(spec: str) -> tuple[int, list[Category]]:
    """
    Parse "CHAT_ID:cat1,cat2" into a recipient and category list.

    Raises:
        ValueError: On a malformed chat id or unknown category
    """
    chat_id, _, categories = spec.partition(":")
    if not categories:
        raise ValueError(f"Expected CHAT_ID:categories, got '{spec}'")
    parsed = [Category.parse(c) for c in categories.split(",") if c.strip()]
    if not parsed:
        raise ValueError(f"No categories given in '{spec}'")
    return int(chat_id), parsed


def parse_business_spec(spec: str) -> tuple[int, str, bool, bool]:
    """
    Parse "CHAT_ID:NAME[:hourly][:low]" into a business subscription.

    With neither flag given, both notification kinds are enabled.
    """
    parts = spec.split(":")
    if len(parts) < 2 or not parts[1]:
        raise ValueError(f"Expected CHAT_ID:NAME[:hourly][:low], got '{spec}'")

    chat_id, name, flags = int(parts[0]), parts[1], {p.strip().lower() for p in parts[2:]}
    unknown = flags - {"hourly", "low"}
    if unknown:
        raise ValueError(f"Unknown business flags: {', '.join(sorted(unknown))}")
    if not flags:
        return chat_id, name, True, True
    return chat_id, name, "hourly" in flags, "low" in flags


def seed_subscriptions(
    registry: SubscriptionRegistry,
    auction_specs: list[str],
    business_specs: list[str],
) -> None:
    """Load subscriptions given on the command line into the registry."""
    for spec in auction_specs:
        chat_id, categories = parse_auction_spec(spec)
        registry.add_auction_subscription(chat_id, categories)

    for spec in business_specs:
        chat_id, name, hourly, low = parse_business_spec(spec)
        registry.add_business_subscription(chat_id, name, hourly=hourly, low_products=low)
