"""
Notification dispatch for Evolve Monitor.

Turns cached category snapshots into per-recipient messages:
- check_auctions: one combined message per recipient listing every entity
  of their subscribed categories that is up for auction
- check_businesses: per subscribed business, a low-products alert or
  (if that does not apply) an hourly report

A failure for one recipient is logged and never stops the rest of the batch.
"""

import logging
import time
from typing import Callable, Optional

from .alerts import (
    CATEGORY_TITLES,
    LISTING_COUNT_HEADER,
    MessageChannel,
    format_auction_alert,
    format_auction_line,
    format_business_alert,
    format_entity,
    split_messages,
)
from .cache import CacheRegistry
from .config import AppConfig, get_app_config
from .models import Business, Category
from .subscriptions import SubscriptionRegistry

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Evaluates subscriptions against current snapshots and sends messages.

    Usage:
        dispatcher = NotificationDispatcher(caches, registry, channel)
        dispatcher.check_auctions()
        dispatcher.check_businesses()
    """

    def __init__(
        self,
        caches: CacheRegistry,
        registry: SubscriptionRegistry,
        channel: MessageChannel,
        config: Optional[AppConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.caches = caches
        self.registry = registry
        self.channel = channel
        self.config = config or get_app_config()
        self._sleep = sleep

    # =========================================================================
    # AUCTION JOB
    # =========================================================================

    def check_auctions(self) -> dict:
        """
        Send auction alerts to every auction subscriber.

        Returns:
            Summary dict with counts of recipients checked, messages sent and failures
        """
        logger.info("Checking auctions...")
        summary = {"recipients": 0, "sent": 0, "failed": 0}

        for subscription in self.registry.auction_subscriptions():
            summary["recipients"] += 1
            recipient_id = subscription.recipient_id

            try:
                lines = self._auction_lines(subscription.categories)
                if not lines:
                    continue

                self.channel.send(recipient_id, format_auction_alert(lines), rich_text=True)
                summary["sent"] += 1
                logger.info(f"Sent auction alert to {recipient_id} ({len(lines)} entries)")
            except Exception as e:
                summary["failed"] += 1
                logger.error(f"Auction check failed for {recipient_id}: {e}")

        logger.info(f"Auction check complete: {summary}")
        return summary

    def _auction_lines(self, categories: frozenset) -> list[str]:
        lines = []
        # Category order, not subscription order, keeps messages stable
        for category in Category:
            if category not in categories:
                continue
            for entity in self.caches.get(category):
                if entity.is_on_auction:
                    lines.append(format_auction_line(category, entity))
        return lines

    # =========================================================================
    # BUSINESS JOB
    # =========================================================================

    def check_businesses(self) -> dict:
        """
        Send low-products alerts and hourly reports for subscribed businesses.

        The business snapshot is read once per run and shared by every
        recipient. A low-products alert replaces the hourly report for the
        same record. Businesses missing from the snapshot are skipped.

        Returns:
            Summary dict with counts of low-products alerts, hourly reports and failures
        """
        logger.info("Checking businesses...")
        summary = {"low_products": 0, "hourly": 0, "skipped": 0, "failed": 0}

        subscriptions = self.registry.business_subscriptions()
        if not subscriptions:
            logger.info("No business subscriptions")
            return summary

        businesses = self.caches.get(Category.BUSINESS)
        if not businesses:
            logger.warning("Could not get the business list, skipping business check")
            return summary

        by_name: dict[str, Business] = {}
        for business in businesses:
            by_name.setdefault(business.name, business)

        threshold = self.config.low_products_threshold

        for recipient_id, records in subscriptions:
            for record in records:
                business = by_name.get(record.business_name)
                if business is None:
                    summary["skipped"] += 1
                    continue

                count = business.product_count
                is_low = count is not None and count < threshold

                if record.low_products and is_low:
                    kind = "low_products"
                elif record.hourly:
                    kind = "hourly"
                else:
                    continue

                message = format_business_alert(business, low_products=(kind == "low_products"), threshold=threshold)
                try:
                    self.channel.send(recipient_id, message, rich_text=True)
                    summary[kind] += 1
                except Exception as e:
                    summary["failed"] += 1
                    logger.error(f"Failed to send {kind} notification for {record.business_name} to {recipient_id}: {e}")

        logger.info(f"Business check complete: {summary}")
        return summary

    # =========================================================================
    # LISTING
    # =========================================================================

    def render_listing(self, category: Category) -> list[str]:
        """Return the split messages listing every entity of a category."""
        entities = self.caches.get(category)
        if not entities:
            return []

        header = LISTING_COUNT_HEADER.format(category=CATEGORY_TITLES[category], count=len(entities))
        cards = split_messages(
            (format_entity(entity) for entity in entities),
            max_length=self.config.message_max_length,
        )
        return [header] + cards

    def list_category(self, category: Category, recipient_id: int) -> int:
        """
        Send the full listing of a category to one recipient.

        Returns:
            Number of messages sent (0 if the category could not be loaded)
        """
        messages = self.render_listing(category)
        if not messages:
            logger.warning(f"No {category.value} entries to list for {recipient_id}")
            return 0

        for index, message in enumerate(messages):
            if index:
                self._sleep(self.config.list_send_delay)
            self.channel.send(recipient_id, message, rich_text=True)

        return len(messages)
