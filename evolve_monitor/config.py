"""
Configuration module for Evolve Monitor.

Loads environment variables and provides configuration constants.
The session cookie is the only secret and should live in .env (never commit to git).
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


DEFAULT_API_URL = "https://evolve-rp.ru/api/userPanel.php?method=getMonitoring"


@dataclass
class UpstreamConfig:
    """Monitoring API connection configuration."""
    api_url: str
    cookies: str  # Initial cookie header value copied from a logged-in browser
    origin: str
    referer: str
    request_timeout: int = 30
    challenge_retry_delay: float = 1.0  # Seconds to wait before the post-challenge retry

    @classmethod
    def from_env(cls) -> "UpstreamConfig":
        return cls(
            api_url=os.getenv("EVOLVE_API_URL", DEFAULT_API_URL),
            cookies=os.getenv("EVOLVE_COOKIES", ""),
            origin=os.getenv("EVOLVE_ORIGIN", "https://evolve-rp.ru"),
            referer=os.getenv("EVOLVE_REFERER", "https://evolve-rp.ru/dashboard/monitoring"),
            request_timeout=int(os.getenv("EVOLVE_REQUEST_TIMEOUT", "30")),
            challenge_retry_delay=float(os.getenv("EVOLVE_CHALLENGE_RETRY_DELAY", "1.0")),
        )


@dataclass
class TelegramConfig:
    """Telegram Bot API configuration."""
    bot_token: str
    api_base: str = "https://api.telegram.org"
    request_timeout: int = 15

    @classmethod
    def from_env(cls) -> "TelegramConfig":
        return cls(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org"),
            request_timeout=int(os.getenv("TELEGRAM_REQUEST_TIMEOUT", "15")),
        )


@dataclass
class AppConfig:
    """Main application configuration."""
    # Businesses with fewer products than this trigger a low-products alert
    low_products_threshold: int = 2000

    # Telegram rejects messages above 4096 characters
    message_max_length: int = 4000

    # Minute of every hour each job fires at (kept apart to spread upstream load)
    refresh_minute: int = 2
    auction_minute: int = 3
    business_minute: int = 5

    # Pause between consecutive messages of a split listing
    list_send_delay: float = 0.1

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            low_products_threshold=int(os.getenv("LOW_PRODUCTS_THRESHOLD", "2000")),
            message_max_length=int(os.getenv("MESSAGE_MAX_LENGTH", "4000")),
            refresh_minute=int(os.getenv("REFRESH_MINUTE", "2")),
            auction_minute=int(os.getenv("AUCTION_MINUTE", "3")),
            business_minute=int(os.getenv("BUSINESS_MINUTE", "5")),
            list_send_delay=float(os.getenv("LIST_SEND_DELAY", "0.1")),
        )


# Global configuration instances (lazy loaded)
_upstream_config: Optional[UpstreamConfig] = None
_telegram_config: Optional[TelegramConfig] = None
_app_config: Optional[AppConfig] = None


def get_upstream_config() -> UpstreamConfig:
    """Get upstream configuration (cached)."""
    global _upstream_config
    if _upstream_config is None:
        _upstream_config = UpstreamConfig.from_env()
    return _upstream_config


def get_telegram_config() -> TelegramConfig:
    """Get Telegram configuration (cached)."""
    global _telegram_config
    if _telegram_config is None:
        _telegram_config = TelegramConfig.from_env()
    return _telegram_config


def get_app_config() -> AppConfig:
    """Get app configuration (cached)."""
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config
