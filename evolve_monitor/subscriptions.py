"""
In-memory subscription registry.

Two independent tables, both keyed by recipient (Telegram chat id):
- auction alerts: recipient -> set of categories (replace on insert)
- business alerts: recipient -> ordered records keyed by business name

Nothing is persisted; subscriptions are lost on restart. Reads return
copies and never mutate the tables.
"""

import logging
from typing import Iterable, Optional

from .models import AuctionSubscription, BusinessSubscription, Category

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Holds auction and business subscriptions for all recipients."""

    def __init__(self):
        self._auctions: dict[int, frozenset] = {}
        self._businesses: dict[int, list[BusinessSubscription]] = {}

    # =========================================================================
    # AUCTION SUBSCRIPTIONS
    # =========================================================================

    def add_auction_subscription(self, recipient_id: int, categories: Iterable[Category]) -> AuctionSubscription:
        """Subscribe a recipient to auction alerts, replacing any previous category set."""
        selected = frozenset(categories)
        self._auctions[recipient_id] = selected
        names = ", ".join(c.value for c in Category if c in selected)
        logger.info(f"Auction subscription set for {recipient_id}: {names}")
        return AuctionSubscription(recipient_id=recipient_id, categories=selected)

    def remove_auction_subscription(self, recipient_id: int) -> bool:
        """Remove a recipient's auction subscription. Returns False if there was none."""
        removed = self._auctions.pop(recipient_id, None) is not None
        if removed:
            logger.info(f"Auction subscription removed for {recipient_id}")
        return removed

    def get_auction_subscription(self, recipient_id: int) -> Optional[AuctionSubscription]:
        categories = self._auctions.get(recipient_id)
        if categories is None:
            return None
        return AuctionSubscription(recipient_id=recipient_id, categories=categories)

    def has_auction_subscription(self, recipient_id: int) -> bool:
        return recipient_id in self._auctions

    def auction_subscriptions(self) -> list[AuctionSubscription]:
        """All auction subscriptions in insertion order."""
        return [
            AuctionSubscription(recipient_id=recipient_id, categories=categories)
            for recipient_id, categories in list(self._auctions.items())
        ]

    # =========================================================================
    # BUSINESS SUBSCRIPTIONS
    # =========================================================================

    def add_business_subscription(
        self,
        recipient_id: int,
        business_name: str,
        hourly: bool,
        low_products: bool,
    ) -> BusinessSubscription:
        """
        Subscribe a recipient to alerts for one business.

        An existing record for the same business name is replaced; the new
        record goes to the end of the recipient's list.
        """
        record = BusinessSubscription(
            recipient_id=recipient_id,
            business_name=business_name,
            hourly=hourly,
            low_products=low_products,
        )
        records = [r for r in self._businesses.get(recipient_id, []) if r.business_name != business_name]
        records.append(record)
        self._businesses[recipient_id] = records
        logger.info(f"Business subscription added for {recipient_id}: {business_name}")
        return record

    def remove_business_subscription(self, recipient_id: int, business_name: str) -> bool:
        """Remove one business record. Returns False if it did not exist."""
        records = self._businesses.get(recipient_id)
        if not records:
            return False

        remaining = [r for r in records if r.business_name != business_name]
        if len(remaining) == len(records):
            return False

        self._businesses[recipient_id] = remaining
        logger.info(f"Business subscription removed for {recipient_id}: {business_name}")
        return True

    def get_business_subscriptions(self, recipient_id: int) -> list[BusinessSubscription]:
        return list(self._businesses.get(recipient_id, []))

    def business_subscriptions(self) -> list[tuple[int, list[BusinessSubscription]]]:
        """All business subscriptions grouped by recipient, in insertion order."""
        return [(recipient_id, list(records)) for recipient_id, records in list(self._businesses.items())]


# Global registry instance (lazy loaded)
_registry: Optional[SubscriptionRegistry] = None


def get_registry() -> SubscriptionRegistry:
    """Get the process-wide subscription registry."""
    global _registry
    if _registry is None:
        _registry = SubscriptionRegistry()
    return _registry
