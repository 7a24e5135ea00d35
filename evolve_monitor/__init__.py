"""
Evolve Monitor - listing monitor and alert bot core

Polls the Evolve RP monitoring panel for businesses, farms, service
stations, realty agencies and the car market, caches each category per
hour, and notifies Telegram subscribers about auctions and low stock.

Modules:
- config: Configuration and environment variables
- models: Entity variants, snapshots, fetch results, subscriptions
- crypto: AES-128-CBC helper for the anti-bot token
- challenge: Anti-bot challenge detection and cookie patching
- session: Session cookie store
- sources: Monitoring panel HTTP client
- cache: Hour-aligned per-category cache with stale fallback
- subscriptions: In-memory subscription registry
- alerts: Message formatting and delivery channels
- notifications: Auction and business notification jobs
- app: Component wiring
- scheduler: APScheduler setup and CLI
"""

__version__ = "0.1.0"

# Convenient imports
from .models import (
    Category,
    FetchStatus,
    FetchResult,
    CategorySnapshot,
    Business,
    Farm,
    ServiceStation,
    Realty,
    MarketplaceLot,
    AuctionSubscription,
    BusinessSubscription,
)
from .crypto import decrypt_hex
from .challenge import is_challenge_response, try_extract_token, patch_session_token
from .session import SessionStore
from .sources import MonitoringClient
from .cache import CategoryCache, CacheRegistry
from .subscriptions import SubscriptionRegistry, get_registry
from .alerts import DeliveryError, MessageChannel, TelegramChannel, RecordingChannel
from .notifications import NotificationDispatcher
from .app import MonitoringApp, build_app

__all__ = [
    # Models
    "Category",
    "FetchStatus",
    "FetchResult",
    "CategorySnapshot",
    "Business",
    "Farm",
    "ServiceStation",
    "Realty",
    "MarketplaceLot",
    "AuctionSubscription",
    "BusinessSubscription",
    # Challenge handling
    "decrypt_hex",
    "is_challenge_response",
    "try_extract_token",
    "patch_session_token",
    "SessionStore",
    # Fetching and caching
    "MonitoringClient",
    "CategoryCache",
    "CacheRegistry",
    # Subscriptions and delivery
    "SubscriptionRegistry",
    "get_registry",
    "DeliveryError",
    "MessageChannel",
    "TelegramChannel",
    "RecordingChannel",
    "NotificationDispatcher",
    # Wiring
    "MonitoringApp",
    "build_app",
]
