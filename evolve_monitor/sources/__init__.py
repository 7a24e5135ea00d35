"""
Sources package - Clients for the upstream monitoring panel.

The base client owns HTTP concerns (headers, cookies, redirects); the
monitoring client runs the fetch and challenge-retry protocol.
"""

from .base import BaseClient, RedirectError
from .monitoring import FetchState, MonitoringClient

__all__ = [
    "BaseClient",
    "RedirectError",
    "FetchState",
    "MonitoringClient",
]
