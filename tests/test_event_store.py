from __future__ import annotations

import pytest

from market_feed.core.connection.frame_decoder import decode_frame
from market_feed.core.store.event_store import EMPTY_SNAPSHOT, EventStore
from tests.factory_builders import build_event_domain, build_event_frame


def test_insert_prepends_newest_first() -> None:
    store = EventStore(capacity=10)
    first = build_event_domain(id="1")
    second = build_event_domain(id="2")

    assert store.insert(first) is True
    assert store.insert(second) is True

    assert [event.id for event in store.snapshot()] == ["2", "1"]
    assert len(store) == 2
    assert "1" in store and "2" in store


def test_duplicate_id_is_noop() -> None:
    store = EventStore(capacity=10)
    store.insert(build_event_domain(id="a", description="original"))
    before = store.snapshot()
    version = store.version

    inserted = store.insert(build_event_domain(id="a", description="replayed"))

    assert inserted is False
    assert store.snapshot() is before
    assert store.version == version
    assert store.snapshot()[0].description == "original"
    assert store.duplicate_count == 1


def test_capacity_evicts_exactly_one_oldest() -> None:
    store = EventStore(capacity=3)
    for index in range(3):
        store.insert(build_event_domain(id=str(index)))

    store.insert(build_event_domain(id="3"))

    assert len(store) == 3
    assert [event.id for event in store.snapshot()] == ["3", "2", "1"]
    assert "0" not in store
    assert store.evicted_count == 1


def test_evicted_id_can_be_inserted_again() -> None:
    store = EventStore(capacity=2)
    store.insert(build_event_domain(id="x"))
    store.insert(build_event_domain(id="y"))
    store.insert(build_event_domain(id="z"))

    assert store.insert(build_event_domain(id="x")) is True
    assert [event.id for event in store.snapshot()] == ["x", "z"]


def test_default_capacity_bound_holds_over_long_stream() -> None:
    store = EventStore()
    assert store.capacity == 2000

    for index in range(2500):
        store.insert(build_event_domain(id=f"evt-{index}"))

    snapshot = store.snapshot()
    assert len(snapshot) == 2000
    assert snapshot[0].id == "evt-2499"
    assert snapshot[-1].id == "evt-500"
    assert store.evicted_count == 500


def test_clear_empties_sequence_and_index() -> None:
    store = EventStore(capacity=5)
    store.insert(build_event_domain(id="1"))
    store.insert(build_event_domain(id="2"))

    store.clear()

    assert len(store) == 0
    assert store.snapshot() == EMPTY_SNAPSHOT
    assert "1" not in store
    assert store.insert(build_event_domain(id="1")) is True


def test_clear_on_empty_store_does_not_bump_version() -> None:
    store = EventStore(capacity=5)
    store.clear()
    assert store.version == 0


def test_snapshot_identity_is_stable_until_mutation() -> None:
    store = EventStore(capacity=5)
    store.insert(build_event_domain(id="1"))

    first = store.snapshot()
    assert store.snapshot() is first

    store.insert(build_event_domain(id="2"))
    assert store.snapshot() is not first
    # 이전 스냅샷은 변경되지 않음
    assert [event.id for event in first] == ["1"]


def test_subscribers_receive_snapshot_after_mutation() -> None:
    store = EventStore(capacity=5)
    received: list[tuple[str, ...]] = []

    unsubscribe = store.subscribe(lambda snap: received.append(tuple(e.id for e in snap)))
    store.insert(build_event_domain(id="1"))
    store.insert(build_event_domain(id="1"))
    store.insert(build_event_domain(id="2"))
    unsubscribe()
    store.insert(build_event_domain(id="3"))

    assert received == [("1",), ("2", "1")]


def test_invalid_capacity_is_rejected() -> None:
    with pytest.raises(ValueError):
        EventStore(capacity=0)


def test_ids_differing_only_by_whitespace_are_distinct() -> None:
    store = EventStore(capacity=10)

    assert store.insert(decode_frame(build_event_frame(id="abc"))) is True
    assert store.insert(decode_frame(build_event_frame(id=" abc "))) is True

    assert len(store) == 2
    assert store.duplicate_count == 0
