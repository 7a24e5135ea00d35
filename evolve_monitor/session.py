"""
Session cookie store.

Holds the cookie header sent with every monitoring request. The value is
read lazily from configuration, replaced after a solved challenge, and
cleared when the upstream rejects it (401/403). Once cleared it stays
empty until a new cookie is supplied with replace(); the configured
cookie is never silently reused after the upstream has rejected it.
"""

import logging
import threading
from typing import Optional

from .config import get_upstream_config

logger = logging.getLogger(__name__)


class SessionStore:
    """Single owner of the mutable cookie string."""

    def __init__(self, initial_cookies: Optional[str] = None):
        """
        Args:
            initial_cookies: Cookie header to start from. Defaults to
                EVOLVE_COOKIES from configuration, read on first use.
        """
        self._initial = initial_cookies
        self._cookies: Optional[str] = None
        self._loaded = False
        self._lock = threading.Lock()

    def get(self) -> str:
        """Return the current cookie header ("" when there is no usable session)."""
        with self._lock:
            if not self._loaded:
                if self._initial is None:
                    self._initial = get_upstream_config().cookies
                self._cookies = self._initial
                self._loaded = True
            return self._cookies or ""

    def replace(self, cookies: str) -> None:
        """Install a new cookie header (after a solved challenge or from an operator)."""
        with self._lock:
            self._cookies = cookies
            self._loaded = True
        logger.debug("Session cookies replaced")

    def invalidate(self) -> None:
        """Drop the current cookies after the upstream rejected them."""
        with self._lock:
            self._cookies = ""
            self._loaded = True
        logger.warning("Session cookies cleared; fetches will fail until new cookies are supplied")

    @property
    def is_empty(self) -> bool:
        return not self.get()
