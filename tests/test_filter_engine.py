from __future__ import annotations

from datetime import timezone
from decimal import Decimal

from market_feed.core.connection.frame_decoder import decode_frame
from market_feed.core.query.filter_engine import (
    EventQueryEngine,
    event_matches,
    searchable_fields,
)
from market_feed.core.store.event_store import EventStore
from market_feed.core.types import ALL_FEEDS
from tests.factory_builders import build_event_domain, build_event_frame


def _store_with(*events) -> EventStore:
    store = EventStore(capacity=10)
    # 삽입 역순이 최신순이므로 나열 순서대로 보이도록 뒤에서부터 삽입
    for event in reversed(events):
        store.insert(event)
    return store


def _btc_eth_store(eth_quantity: str = "2") -> EventStore:
    return _store_with(
        build_event_domain(id="1", feed="BTC-USD", price=100, quantity=1, description="buy wall"),
        build_event_domain(
            id="2", feed="ETH-USD", price=50, quantity=eth_quantity, description="sell wall"
        ),
    )


def _ids(events) -> list[str]:
    return [event.id for event in events]


def test_feed_filter_selects_single_feed() -> None:
    store = _btc_eth_store()
    engine = EventQueryEngine(tz=timezone.utc)

    assert _ids(engine.project(store.snapshot(), "BTC-USD", "")) == ["1"]


def test_total_search_matches_two_decimal_total() -> None:
    store = _btc_eth_store(eth_quantity="3")
    engine = EventQueryEngine(tz=timezone.utc)

    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "100.00")) == ["1"]


def test_total_search_matches_every_event_with_same_total() -> None:
    # 50 x 2 도 100.00 이므로 두 이벤트 모두 매칭
    store = _btc_eth_store(eth_quantity="2")
    engine = EventQueryEngine(tz=timezone.utc)

    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "100.00")) == ["1", "2"]
    assert _ids(engine.project(store.snapshot(), "BTC-USD", "100.00")) == ["1"]


def test_search_is_case_insensitive_across_fields() -> None:
    store = _btc_eth_store()
    engine = EventQueryEngine(tz=timezone.utc)

    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "eth")) == ["2"]
    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "WALL")) == ["1", "2"]
    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "TRADE")) == ["1", "2"]
    assert _ids(engine.project(store.snapshot(), ALL_FEEDS, "no-such-thing")) == []


def test_numeric_price_and_quantity_use_plain_number_text() -> None:
    event = build_event_domain(price=Decimal("65000.50"), quantity=Decimal("0.1250"))

    fields = searchable_fields(event, timezone.utc)

    assert "65000.5" in fields
    assert "0.125" in fields
    assert "8125.06" in fields  # 65000.5 * 0.125 = 8125.0625


def test_string_quantity_is_searched_as_received() -> None:
    event = decode_frame(build_event_frame(id="q", quantity="0.1250"))
    snapshot = _store_with(event).snapshot()
    engine = EventQueryEngine(tz=timezone.utc)

    assert "0.1250" in searchable_fields(event, timezone.utc)
    assert _ids(engine.project(snapshot, ALL_FEEDS, "0.1250")) == ["q"]
    # 원문의 부분 문자열도 매칭
    assert _ids(engine.project(snapshot, ALL_FEEDS, "0.125")) == ["q"]


def test_clock_text_is_searchable() -> None:
    # 2023-11-14 22:13:20.123 UTC
    event = build_event_domain(timestamp=1_700_000_000_123)

    assert event_matches(event, ALL_FEEDS, "22:13:20.123", timezone.utc)
    assert not event_matches(event, ALL_FEEDS, "22:13:21", timezone.utc)


def test_unfiltered_projection_returns_snapshot_itself() -> None:
    store = _btc_eth_store()
    engine = EventQueryEngine()
    snapshot = store.snapshot()

    assert engine.project(snapshot) is snapshot


def test_projection_is_memoized_until_inputs_change() -> None:
    store = _btc_eth_store()
    engine = EventQueryEngine(tz=timezone.utc)

    first = engine.project(store.snapshot(), "ETH-USD", "")
    second = engine.project(store.snapshot(), "ETH-USD", "")
    assert second is first
    assert (engine.hits, engine.misses) == (1, 1)

    engine.project(store.snapshot(), "ETH-USD", "sell")
    assert engine.misses == 2

    store.insert(build_event_domain(id="3", feed="ETH-USD"))
    third = engine.project(store.snapshot(), "ETH-USD", "sell")
    assert engine.misses == 3
    assert _ids(third) == ["2"]


def test_invalidate_forces_recompute() -> None:
    store = _btc_eth_store()
    engine = EventQueryEngine()
    snapshot = store.snapshot()

    engine.project(snapshot, "BTC-USD")
    engine.invalidate()
    engine.project(snapshot, "BTC-USD")

    assert engine.misses == 2
    assert engine.hits == 0
