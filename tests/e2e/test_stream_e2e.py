from __future__ import annotations

import asyncio
import socket
from datetime import timezone

import pytest
import websockets

from dev.mock_source import MockSource, parse_args
from market_feed.application.feed_session import FeedSession
from market_feed.core.query.filter_engine import EventQueryEngine
from market_feed.core.store.event_store import EventStore
from market_feed.core.types import ConnectionState, ErrorDomain
from tests.factory_builders import (
    RecordingSleep,
    build_connection_policy_domain,
    wait_until,
)


def _build_session(url: str, sleep: RecordingSleep, **policy_overrides) -> FeedSession:
    return FeedSession(
        EventStore(capacity=100),
        EventQueryEngine(tz=timezone.utc),
        url,
        policy=build_connection_policy_domain(**policy_overrides),
        sleep=sleep,
    )


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_live_stream_ingests_and_survives_garbage_frames() -> None:
    source = MockSource(
        parse_args(["--burst", "5", "--interval", "0.01", "--max-batch", "2", "--garbage-every", "4"])
    )

    async with websockets.serve(source.handler, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = _build_session(f"ws://127.0.0.1:{port}", RecordingSleep())

        async with session:
            await wait_until(lambda: len(session.store) >= 10, timeout=5.0)

            assert session.status is ConnectionState.CONNECTED
            assert session.manager.error_handler.drop_counts[ErrorDomain.DESERIALIZATION] >= 1
            ids = [event.id for event in session.all_events]
            assert len(ids) == len(set(ids))

        assert session.status is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_server_drop_triggers_reconnect() -> None:
    source = MockSource(parse_args(["--burst", "3", "--interval", "0.02", "--drop-after", "0.1"]))
    sleep = RecordingSleep()

    async with websockets.serve(source.handler, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = _build_session(f"ws://127.0.0.1:{port}", sleep)
        states: list[ConnectionState] = []
        session.subscribe_status(states.append)

        session.connect()
        await wait_until(
            lambda: states.count(ConnectionState.CONNECTED) >= 2, timeout=5.0
        )

        assert sleep.delays[0] == 1.0
        assert ConnectionState.RECONNECTING in states
        # 재연결 후에도 스토어는 유지됨
        assert len(session.store) >= 3
        await session.aclose()


@pytest.mark.asyncio
async def test_unreachable_source_gives_up_after_budget() -> None:
    sleep = RecordingSleep()
    session = _build_session(f"ws://127.0.0.1:{_free_port()}", sleep, max_attempts=2)

    session.connect()
    await wait_until(
        lambda: len(sleep.delays) == 2
        and not session.manager.reconnect_pending
        and session.status is ConnectionState.DISCONNECTED,
        timeout=5.0,
    )
    await asyncio.sleep(0.05)

    assert sleep.delays == [1.0, 2.0]
    assert session.status is ConnectionState.DISCONNECTED
    await session.aclose()
