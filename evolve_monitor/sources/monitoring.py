"""
Monitoring panel client.

Fetches one category of listings from the panel's getMonitoring endpoint
and survives the anti-bot challenge the site sometimes serves instead of
JSON. Each fetch runs a small state machine:

    UNAUTHENTICATED -> CHALLENGE_PENDING -> RECOVERED | FAILED

CHALLENGE_PENDING is entered at most once per fetch, so a session that keeps
getting challenged costs exactly one retry per call. Coarser backoff is
left to the cache's hourly refresh cadence.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

import requests

from ..challenge import is_challenge_response, patch_session_token, try_extract_token
from ..config import UpstreamConfig
from ..models import Category, Entity, FetchResult, entity_from_dict
from ..session import SessionStore
from .base import BaseClient, RedirectError

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES = (401, 403)


class FetchState(str, Enum):
    """Protocol state of a single fetch call."""
    UNAUTHENTICATED = "unauthenticated"
    CHALLENGE_PENDING = "challenge_pending"
    RECOVERED = "recovered"
    FAILED = "failed"


class MonitoringClient(BaseClient):
    """
    Client for the monitoring endpoint.

    Usage:
        client = MonitoringClient(SessionStore())
        result = client.fetch(Category.FARMS)
        if result.ok:
            ...
    """

    def __init__(
        self,
        session_store: SessionStore,
        config: Optional[UpstreamConfig] = None,
        http: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(config=config, http=http)
        self.session_store = session_store
        self._sleep = sleep
        self.last_state: Optional[FetchState] = None
        # One fetch at a time keeps at most one challenge retry in flight
        self._lock = threading.Lock()

    def fetch_category(self, category: Category) -> list[Entity]:
        """Fetch a category and return its entities ([] on any failure)."""
        return list(self.fetch(category).entities)

    def fetch(self, category: Category) -> FetchResult:
        """
        Fetch a category, resolving at most one challenge.

        Returns:
            FetchResult with status OK (entities present), EMPTY (well-formed
            reply without content) or FAILED (transport, auth, or challenge
            failure)
        """
        with self._lock:
            return self._fetch(category)

    def _fetch(self, category: Category) -> FetchResult:
        self.last_state = FetchState.UNAUTHENTICATED
        cookies = self.session_store.get()
        if not cookies:
            logger.error("EVOLVE_COOKIES is not configured or the session was cleared")
            return self._fail(category, "no session cookies")

        while True:
            try:
                response = self._post({"categ": category.value}, cookies)
            except RedirectError as e:
                logger.error(f"Fetch {category.value} redirected, session expired: {e}")
                return self._fail(category, str(e))
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                logger.error(f"Fetch {category.value} failed with HTTP {status}: {e}")
                if status in AUTH_FAILURE_STATUSES:
                    self.session_store.invalidate()
                return self._fail(category, f"HTTP {status}")
            except requests.RequestException as e:
                logger.error(f"Fetch {category.value} transport error: {e}")
                return self._fail(category, str(e))

            body = self._decode(response)

            if is_challenge_response(body):
                if self.last_state is FetchState.CHALLENGE_PENDING:
                    logger.error(f"Challenge served again for {category.value} after retry, giving up")
                    return self._fail(category, "challenge persisted after retry")

                logger.warning(f"Anti-bot challenge received for {category.value}, extracting token...")
                token = try_extract_token(body)
                if not token:
                    logger.error("Could not extract session token from challenge page")
                    return self._fail(category, "challenge unresolvable")

                cookies = patch_session_token(cookies, token)
                self.session_store.replace(cookies)
                self.last_state = FetchState.CHALLENGE_PENDING
                logger.info("Session token refreshed, retrying once")

                self._sleep(self.config.challenge_retry_delay)
                continue

            if self.last_state is FetchState.CHALLENGE_PENDING:
                self.last_state = FetchState.RECOVERED
                logger.info(f"Recovered from challenge for {category.value}")

            return self._parse_payload(category, body)

    def _fail(self, category: Category, reason: str) -> FetchResult:
        self.last_state = FetchState.FAILED
        return FetchResult.failure(category, reason)

    def _parse_payload(self, category: Category, body: Any) -> FetchResult:
        """Map a decoded response body to a FetchResult."""
        if not isinstance(body, dict):
            logger.error(f"Unexpected non-JSON response for {category.value}: {str(body)[:200]!r}")
            return self._fail(category, "unexpected response body")

        content = body.get("content")
        if not body.get("success") or not isinstance(content, list):
            logger.warning(f"API returned success=false or no content for {category.value}")
            return FetchResult.empty(category, "success=false or no content")

        entities = [entity_from_dict(category, row) for row in content if isinstance(row, dict)]
        logger.info(f"Fetched {len(entities)} {category.value} entries")
        return FetchResult.success(category, entities)
