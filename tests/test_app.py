import pytest
from apscheduler.triggers.cron import CronTrigger

from evolve_monitor.alerts import RecordingChannel
from evolve_monitor.app import (
    MonitoringApp,
    build_app,
    parse_auction_spec,
    parse_business_spec,
    seed_subscriptions,
)
from evolve_monitor.cache import CacheRegistry
from evolve_monitor.models import Business, Category, Farm, FetchResult
from evolve_monitor.notifications import NotificationDispatcher
from evolve_monitor.scheduler import create_scheduler
from evolve_monitor.session import SessionStore
from evolve_monitor.subscriptions import SubscriptionRegistry

from conftest import FakeClock, StubClient


def test_parse_auction_spec():
    assert parse_auction_spec("123:farms, STO") == (123, [Category.FARMS, Category.STO])


@pytest.mark.parametrize("spec", ["123", "abc:farms", "123:farms,boats", "123:,", "123: , "])
def test_parse_auction_spec_rejects_bad_input(spec):
    with pytest.raises(ValueError):
        parse_auction_spec(spec)


def test_parse_business_spec_defaults_to_both_flags():
    assert parse_business_spec("5:Alpha") == (5, "Alpha", True, True)
    assert parse_business_spec("5:Alpha:low") == (5, "Alpha", False, True)
    assert parse_business_spec("5:Alpha:hourly") == (5, "Alpha", True, False)


@pytest.mark.parametrize("spec", ["5", "5:", "5:Alpha:daily"])
def test_parse_business_spec_rejects_bad_input(spec):
    with pytest.raises(ValueError):
        parse_business_spec(spec)


def test_seed_subscriptions():
    registry = SubscriptionRegistry()

    seed_subscriptions(registry, ["1:business", "1:farms"], ["2:Alpha:low"])

    assert registry.get_auction_subscription(1).categories == frozenset({Category.FARMS})
    assert registry.get_business_subscriptions(2)[0].low_products


def test_build_app_wires_components():
    registry = SubscriptionRegistry()
    channel = RecordingChannel()

    app = build_app(channel=channel, registry=registry)

    assert app.registry is registry
    assert app.dispatcher.channel is channel
    assert app.client.session_store is app.session


def test_scheduler_has_three_cron_jobs():
    app = build_app(channel=RecordingChannel(), registry=SubscriptionRegistry())

    scheduler = create_scheduler(app)

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"refresh_cache", "check_auctions", "check_businesses"}
    assert all(isinstance(job.trigger, CronTrigger) for job in jobs.values())


def test_run_once_runs_every_job(app_config):
    client = StubClient(*[
        FetchResult.success(c, [Business(name="Alpha", products="100")] if c is Category.BUSINESS
                            else [Farm(number="9", status="На аукционе")] if c is Category.FARMS else [])
        for c in Category
    ])
    registry = SubscriptionRegistry()
    registry.add_auction_subscription(1, [Category.FARMS])
    registry.add_business_subscription(2, "Alpha", hourly=True, low_products=True)
    channel = RecordingChannel()
    caches = CacheRegistry(client, FakeClock())
    app = MonitoringApp(
        session=SessionStore(initial_cookies="sid=1"),
        client=client,
        caches=caches,
        registry=registry,
        dispatcher=NotificationDispatcher(caches, registry, channel, config=app_config),
    )

    summary = app.run_once()

    assert summary["refresh_cache"]["farms"] == 1
    assert summary["check_auctions"]["sent"] == 1
    assert summary["check_businesses"]["low_products"] == 1
    assert len(client.calls) == len(Category)
    assert [m.recipient_id for m in channel.sent] == [1, 2]
