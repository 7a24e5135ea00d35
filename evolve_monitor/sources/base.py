"""
Base HTTP client for the monitoring panel.

Provides the pieces every panel request shares:
- A requests.Session with browser-like headers
- Cookie header per request (the session store owns the value)
- No redirect following; a redirect means the session boundary was hit
"""

import logging
from typing import Any, Optional

import requests

from ..config import UpstreamConfig, get_upstream_config

logger = logging.getLogger(__name__)


class RedirectError(requests.RequestException):
    """The panel answered with a redirect (usually to the login page)."""


class BaseClient:
    """
    Thin wrapper around requests.Session for panel API calls.

    Subclasses build the protocol on top of _post() and _decode().
    """

    def __init__(
        self,
        config: Optional[UpstreamConfig] = None,
        http: Optional[requests.Session] = None,
    ):
        """
        Args:
            config: Upstream configuration (defaults to the environment)
            http: Session to send requests with (injectable for tests)
        """
        self.config = config or get_upstream_config()
        self.http = http or requests.Session()

        self.http.headers.update({
            "Accept": "application/json",
            "Accept-Language": "ru,en;q=0.9,en-GB;q=0.8,en-US;q=0.7",
            "Content-Type": "application/json",
            "Origin": self.config.origin,
            "Referer": self.config.referer,
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
            ),
        })

    def _post(self, payload: dict, cookies: str) -> requests.Response:
        """
        POST a JSON payload to the panel endpoint.

        Raises:
            requests.HTTPError: For 4xx/5xx responses (response attached)
            RedirectError: For 3xx responses
            requests.RequestException: For transport failures
        """
        response = self.http.post(
            self.config.api_url,
            json=payload,
            headers={"Cookie": cookies},
            timeout=self.config.request_timeout,
            allow_redirects=False,
        )
        if 300 <= response.status_code < 400:
            location = response.headers.get("Location", "")
            raise RedirectError(
                f"Redirected ({response.status_code}) to '{location}'",
                response=response,
            )
        response.raise_for_status()
        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        """Return the decoded JSON body, or the raw text if it is not JSON."""
        try:
            return response.json()
        except ValueError:
            return response.text
