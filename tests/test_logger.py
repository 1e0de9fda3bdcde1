from __future__ import annotations

import logging

import pytest

from market_feed.common.logger import PipelineLogger, ScopeFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("feed", logging.INFO, __file__, 1, "WS Connected", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_scope_formatter_appends_structured_extra() -> None:
    formatter = ScopeFormatter("[%(component)s] %(message)s")

    line = formatter.format(_record(component="connection", url="ws://h:1", phase="open"))

    assert line == "[connection] WS Connected | url=ws://h:1 phase=open"


def test_logger_is_cached_per_name_and_component() -> None:
    first = PipelineLogger.get_logger("cache_probe", "test", log_to_file=False)

    assert PipelineLogger.get_logger("cache_probe", "test") is first
    first.close()
    assert PipelineLogger.get_logger("cache_probe", "test") is not first
    PipelineLogger.get_logger("cache_probe", "test").close()


def test_reserved_extra_keys_are_prefixed_and_context_is_merged() -> None:
    probe = PipelineLogger.get_logger("extra_probe", "test", log_to_file=False)
    probe.set_context(url="ws://h:1")

    extra = probe._build_extra({"name": "shadow", "phase": "open"})

    assert extra["x_name"] == "shadow"
    assert extra["url"] == "ws://h:1"
    assert extra["component"] == "test"
    probe.close()


@pytest.mark.asyncio
async def test_async_variant_emits_record() -> None:
    probe = PipelineLogger.get_logger("async_probe", "test", log_to_file=False)
    seen: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            seen.append(record)

    probe.logger.addHandler(_Collect())
    await probe.ainfo("hello", extra={"phase": "status"})

    assert seen[0].getMessage() == "hello"
    assert seen[0].phase == "status"
    probe.close()
