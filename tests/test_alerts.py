import pytest
import requests

from evolve_monitor.alerts import (
    DeliveryError,
    TelegramChannel,
    format_business_alert,
    format_entity,
    split_messages,
    status_marker,
)
from evolve_monitor.config import TelegramConfig
from evolve_monitor.models import Business, Farm, MarketplaceLot, ServiceStation

from conftest import FakeHTTP, make_response


def test_status_markers():
    assert status_marker("Активен") == "🟢"
    assert status_marker("На аукционе") == "🔴"
    assert status_marker("Закрыт") == "⚪"


def test_farm_card_lists_people_and_drops_none():
    card = format_entity(Farm(number="7", status="Активен", owner="Ivan", vice="Anna<br/>None<br/>Oleg", workers="None"))

    assert "Farm 7" in card
    assert "  • Anna\n  • Oleg" in card
    assert "None" not in card
    assert "<b>Farmers:</b>\n  none" in card


def test_service_station_card_uses_mechanics():
    card = format_entity(ServiceStation(number="STO #2", mechanics="Petr"))
    assert "<b>Mechanics:</b>\n  • Petr" in card


def test_car_market_card():
    card = format_entity(MarketplaceLot(owner="none", per_hour="500", out_price="50"))
    assert "Car market" in card
    assert "500" in card and "50" in card


def test_cards_escape_html():
    card = format_entity(Business(name="Bar <Tom & Jerry>"))
    assert "Bar &lt;Tom &amp; Jerry&gt;" in card


def test_low_products_alert_names_threshold():
    text = format_business_alert(Business(name="Alpha", products="100"), low_products=True, threshold=2500)
    assert "fewer than 2500 products" in text


def test_split_messages_packs_without_exceeding_limit():
    cards = ["a" * 30, "b" * 30, "c" * 30]

    messages = split_messages(cards, max_length=70)

    assert messages == ["a" * 30 + "\n" + "b" * 30, "c" * 30]
    assert all(len(m) <= 70 for m in messages)


def test_split_messages_oversized_card_goes_alone():
    messages = split_messages(["x" * 10, "y" * 100, "z" * 10], max_length=50)
    assert messages == ["x" * 10, "y" * 100, "z" * 10]


def test_split_messages_empty():
    assert split_messages([]) == []


def _channel(*replies, token="123:abc"):
    http = FakeHTTP(*replies)
    return TelegramChannel(TelegramConfig(bot_token=token, api_base="https://tg.test"), http=http), http


def test_telegram_send_rich_text():
    channel, http = _channel(make_response(json_body={"ok": True, "result": {}}))

    channel.send(42, "<b>hi</b>", rich_text=True)

    call = http.calls[0]
    assert call["url"] == "https://tg.test/bot123:abc/sendMessage"
    assert call["json"]["chat_id"] == 42
    assert call["json"]["parse_mode"] == "HTML"


def test_telegram_send_plain_text_has_no_parse_mode():
    channel, http = _channel(make_response(json_body={"ok": True}))

    channel.send(42, "hi")

    assert "parse_mode" not in http.calls[0]["json"]


def test_telegram_rejection_raises():
    channel, _ = _channel(make_response(status=400, json_body={"ok": False, "description": "chat not found"}))

    with pytest.raises(DeliveryError, match="chat not found"):
        channel.send(42, "hi")


def test_telegram_transport_error_raises():
    channel, _ = _channel(requests.ConnectionError("down"))

    with pytest.raises(DeliveryError):
        channel.send(42, "hi")


def test_telegram_without_token_raises():
    channel, http = _channel(token="")

    with pytest.raises(DeliveryError):
        channel.send(42, "hi")
    assert http.calls == []
