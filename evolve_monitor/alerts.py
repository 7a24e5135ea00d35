"""
Alert formatting and delivery for Evolve Monitor.

Renders entities as Telegram HTML cards and sends messages through a
MessageChannel. The Telegram Bot API channel is the production channel;
RecordingChannel keeps messages in memory for dry runs.
"""

import html
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

import requests

from .config import TelegramConfig, get_telegram_config
from .models import (
    STATUS_ACTIVE,
    STATUS_ON_AUCTION,
    Business,
    Category,
    Entity,
    Farm,
    MarketplaceLot,
    Realty,
    ServiceStation,
    split_panel_list,
)

logger = logging.getLogger(__name__)


# =============================================================================
# MESSAGE TEMPLATES
# =============================================================================

AUCTION_ALERT_HEADER = "🚨 <b>Heads up!</b>\n\nUp for auction:\n\n"

AUCTION_LINE_TEMPLATES = {
    Category.BUSINESS: "🏢 {key} is up for auction",
    Category.FARMS: "🌾 Farm {key} is up for auction",
    Category.STO: "🔧 {key} is up for auction",
    Category.REALTOR: "🏠 {key} is up for auction",
    Category.CARMARKET: "🚘 Car market is up for auction",
}

HOURLY_REPORT_HEADER = "🕐 Hourly business report"

LOW_PRODUCTS_HEADER = "⚠️ Low product count!"

LOW_PRODUCTS_WARNING = (
    "\n❗️<b>Warning! This business has fewer than {threshold} products. "
    "Restock it!</b>"
)

LISTING_COUNT_HEADER = "📊 {category} entries found: {count}"

CATEGORY_TITLES = {
    Category.BUSINESS: "Business",
    Category.FARMS: "Farm",
    Category.STO: "Service station",
    Category.REALTOR: "Realty",
    Category.CARMARKET: "Car market",
}


# =============================================================================
# FORMATTING
# =============================================================================

def _e(value: str) -> str:
    return html.escape(value or "", quote=False)


def status_marker(status: str) -> str:
    """Colored marker for a status: green active, red on auction, white otherwise."""
    if status == STATUS_ACTIVE:
        return "🟢"
    if status == STATUS_ON_AUCTION:
        return "🔴"
    return "⚪"


def _bullets(value: str) -> str:
    items = split_panel_list(value)
    if not items:
        return "  none"
    return "\n".join(f"  • {_e(item)}" for item in items)


def format_business(business: Business) -> str:
    return (
        f"🏢 <b>Name:</b> {_e(business.name)}\n"
        f"{status_marker(business.status)} <b>Status:</b> {_e(business.status)}\n"
        f"💀 <b>Control:</b> {_e(business.controller)}\n"
        f"👤 <b>Owner:</b> {_e(business.owner)}\n"
        f"📦 <b>Products:</b> {_e(business.products)}\n"
        f"💰 <b>Prices:</b> {_e(business.price)}\n"
    )


def format_farm(farm: Farm) -> str:
    return (
        f"🌾 <b>Name:</b> Farm {_e(farm.number)}\n"
        f"{status_marker(farm.status)} <b>Status:</b> {_e(farm.status)}\n"
        f"👤 <b>Owner:</b> {_e(farm.owner)}\n"
        f"👥 <b>Deputies:</b>\n{_bullets(farm.vice)}\n"
        f"🧑‍🌾 <b>Farmers:</b>\n{_bullets(farm.workers)}\n"
    )


def format_service_station(station: ServiceStation) -> str:
    return (
        f"🔧 <b>Name:</b> {_e(station.number)}\n"
        f"{status_marker(station.status)} <b>Status:</b> {_e(station.status)}\n"
        f"👤 <b>Owner:</b> {_e(station.owner)}\n"
        f"👥 <b>Deputies:</b>\n{_bullets(station.vice)}\n"
        f"👨‍🔧 <b>Mechanics:</b>\n{_bullets(station.mechanics)}\n"
    )


def format_realty(realty: Realty) -> str:
    return (
        f"🏠 <b>Name:</b> {_e(realty.name)}\n"
        f"{status_marker(realty.status)} <b>Status:</b> {_e(realty.status)}\n"
        f"👤 <b>Owner:</b> {_e(realty.owner)}\n"
        f"📦 <b>Products:</b> {_e(realty.products)}\n"
    )


def format_marketplace_lot(lot: MarketplaceLot) -> str:
    return (
        "🚘 <b>Name:</b> Car market\n"
        f"👤 <b>Owner:</b> {_e(lot.owner)}\n"
        f"👥 <b>Deputies:</b>\n{_bullets(lot.vice)}\n"
        f"💰 <b>Rent per hour:</b> {_e(lot.per_hour)}\n"
        f"💸 <b>Exit price:</b> {_e(lot.out_price)}\n"
    )


_FORMATTERS = {
    Business: format_business,
    Farm: format_farm,
    ServiceStation: format_service_station,
    Realty: format_realty,
    MarketplaceLot: format_marketplace_lot,
}


def format_entity(entity: Entity) -> str:
    """Render any entity as an HTML card."""
    return _FORMATTERS[type(entity)](entity)


def format_auction_line(category: Category, entity: Entity) -> str:
    return AUCTION_LINE_TEMPLATES[category].format(key=_e(entity.key))


def format_auction_alert(lines: list[str]) -> str:
    return AUCTION_ALERT_HEADER + "\n".join(lines)


def format_business_alert(business: Business, low_products: bool, threshold: int) -> str:
    """Build the low-products alert or the hourly report for a business."""
    header = LOW_PRODUCTS_HEADER if low_products else HOURLY_REPORT_HEADER
    message = f"{header}\n\n{format_business(business)}"
    if low_products:
        message += LOW_PRODUCTS_WARNING.format(threshold=threshold)
    return message


def split_messages(parts: Iterable[str], max_length: int = 4000) -> list[str]:
    """
    Pack formatted cards into as few messages as possible.

    Cards are separated by a blank line and never split; a card longer
    than max_length is sent on its own.
    """
    messages = []
    current = ""

    for part in parts:
        chunk = part + "\n"
        if len(current) + len(chunk) > max_length:
            if current:
                messages.append(current.strip())
            current = chunk
        else:
            current += chunk

    if current.strip():
        messages.append(current.strip())

    return messages


# =============================================================================
# CHANNELS
# =============================================================================

class DeliveryError(Exception):
    """A message could not be delivered to a recipient."""


class MessageChannel(Protocol):
    def send(self, recipient_id: int, text: str, rich_text: bool = False) -> None:
        ...


class TelegramChannel:
    """
    Sends messages through the Telegram Bot API.

    Usage:
        channel = TelegramChannel()
        channel.send(chat_id, "<b>hi</b>", rich_text=True)
    """

    def __init__(
        self,
        config: Optional[TelegramConfig] = None,
        http: Optional[requests.Session] = None,
    ):
        self.config = config or get_telegram_config()
        self.http = http or requests.Session()

    def send(self, recipient_id: int, text: str, rich_text: bool = False) -> None:
        """
        Send a text message.

        Raises:
            DeliveryError: If the bot token is missing or Telegram rejects the message
        """
        if not self.config.bot_token:
            raise DeliveryError("TELEGRAM_BOT_TOKEN is not configured")

        url = f"{self.config.api_base}/bot{self.config.bot_token}/sendMessage"
        payload = {
            "chat_id": recipient_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if rich_text:
            payload["parse_mode"] = "HTML"

        try:
            response = self.http.post(url, json=payload, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"Telegram request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok or not data.get("ok", False):
            description = data.get("description") or response.text[:200]
            raise DeliveryError(f"Telegram error {response.status_code}: {description}")


@dataclass(frozen=True)
class SentMessage:
    recipient_id: int
    text: str
    rich_text: bool


class RecordingChannel:
    """Keeps messages in memory instead of sending them (dry runs)."""

    def __init__(self, echo: bool = False):
        self.sent: list[SentMessage] = []
        self.echo = echo

    def send(self, recipient_id: int, text: str, rich_text: bool = False) -> None:
        self.sent.append(SentMessage(recipient_id, text, rich_text))
        if self.echo:
            logger.info(f"[dry-run] to {recipient_id}:\n{text}")
