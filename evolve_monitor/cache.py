"""
Hour-aligned category cache.

Each category keeps one snapshot slot. A snapshot is valid while the
wall-clock hour it was captured in is still the current hour; after that
the next read refetches. When a refetch fails, the previous snapshot is
served unchanged so subscribers keep seeing the last known state.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from .models import Category, CategorySnapshot, Entity
from .sources.monitoring import MonitoringClient

logger = logging.getLogger(__name__)


class CategoryCache:
    """Cache slot for a single category."""

    def __init__(
        self,
        category: Category,
        client: MonitoringClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.category = category
        self.client = client
        self._clock = clock
        self._snapshot: Optional[CategorySnapshot] = None
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Optional[CategorySnapshot]:
        return self._snapshot

    def _current_hour(self) -> int:
        return self._clock().hour

    def get(self) -> list[Entity]:
        """
        Return the entities of this category.

        - Snapshot from the current hour: returned without a network call
        - Otherwise refetch; any well-formed reply replaces the snapshot,
          including one without content (cached as empty for the hour)
        - Failed fetch: the previous snapshot (if any) is served stale
        """
        with self._lock:
            current_hour = self._current_hour()
            snapshot = self._snapshot

            if snapshot is not None and snapshot.is_valid(current_hour):
                logger.info(f"Using cached {self.category.value} (hour {snapshot.capture_hour}:00)")
                return list(snapshot.entities)

            logger.info(f"Refreshing {self.category.value} (hour {current_hour}:00)")
            result = self.client.fetch(self.category)

            if result.failed:
                if snapshot is not None:
                    logger.warning(
                        f"Fetch failed for {self.category.value} ({result.error}), "
                        f"serving stale cache from {snapshot.capture_hour}:00"
                    )
                    return list(snapshot.entities)
                logger.error(f"Fetch failed for {self.category.value} and no cache is available")
                return []

            self._snapshot = CategorySnapshot(
                category=self.category,
                entities=result.entities,
                capture_hour=current_hour,
            )
            if result.ok:
                logger.info(f"Cached {len(result.entities)} {self.category.value} entries")
            else:
                logger.info(f"Cached empty {self.category.value} list until the next hour")
            return list(result.entities)


class CacheRegistry:
    """
    One CategoryCache per category.

    Usage:
        caches = CacheRegistry(client)
        farms = caches.get(Category.FARMS)
    """

    def __init__(
        self,
        client: MonitoringClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._caches = {category: CategoryCache(category, client, clock) for category in Category}

    def __getitem__(self, category: Category) -> CategoryCache:
        return self._caches[category]

    def get(self, category: Category) -> list[Entity]:
        return self._caches[category].get()

    def refresh_all(self, categories: Optional[list[Category]] = None) -> dict:
        """
        Warm the caches ahead of the notification jobs.

        Returns:
            Mapping of category value to number of entities available
        """
        logger.info("Refreshing monitoring cache...")
        summary = {}
        for category in categories or list(Category):
            summary[category.value] = len(self.get(category))
        logger.info(f"Cache refresh complete: {summary}")
        return summary
