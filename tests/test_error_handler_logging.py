from __future__ import annotations

import orjson
import pytest

from market_feed.common.events import ErrorEvent, EventBus
from market_feed.core.connection.error_handler import RAW_PREVIEW_LIMIT, ConnectionErrorHandler
from market_feed.core.types import ErrorCode, ErrorDomain
from tests.factory_builders import build_scope_domain


def test_error_handler_scope_log_extra_has_standard_keys() -> None:
    scope = build_scope_domain()
    handler = ConnectionErrorHandler(scope=scope)

    payload = handler._scope_log_extra("connection_error", attempt=1, backoff=None)

    assert payload["url"] == "ws://example.invalid:8080"
    assert payload["stream"] == "market"
    assert payload["phase"] == "connection_error"
    assert payload["attempt"] == 1
    # None 값은 제거
    assert "backoff" not in payload


@pytest.mark.asyncio
async def test_frame_error_is_counted_and_published_with_preview() -> None:
    handler = ConnectionErrorHandler(scope=build_scope_domain())
    published: list[ErrorEvent] = []
    EventBus.on(ErrorEvent, published.append)

    raw = "{" + "x" * 1000
    try:
        orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        await handler.emit_frame_error(e, raw)

    assert handler.drop_counts[ErrorDomain.DESERIALIZATION] == 1
    assert len(published) == 1
    event = published[0]
    assert event.kind == "frame"
    assert event.code is ErrorCode.DESERIALIZATION_ERROR
    assert event.context is not None
    assert len(event.context["raw_message"]) == RAW_PREVIEW_LIMIT


@pytest.mark.asyncio
async def test_sink_error_carries_event_id() -> None:
    handler = ConnectionErrorHandler(scope=build_scope_domain())
    published: list[ErrorEvent] = []

    async def _handler(event: ErrorEvent) -> None:
        published.append(event)

    EventBus.on(ErrorEvent, _handler)

    await handler.emit_sink_error(RuntimeError("boom"), "evt-9")

    assert handler.drop_counts[ErrorDomain.SINK] == 1
    assert published[0].context == {"event_id": "evt-9"}
    assert published[0].scope == build_scope_domain()
