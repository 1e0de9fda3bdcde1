from __future__ import annotations

from collections import Counter
from typing import Any

from market_feed.common.events import ErrorEvent, EventBus
from market_feed.common.exceptions.exception_rule import classify_exception
from market_feed.common.logger import PipelineLogger
from market_feed.core.connection.utils.logging.log_phases import (
    PHASE_CLOSE,
    PHASE_PARSE,
    PHASE_SINK,
    PHASE_VALIDATE,
)
from market_feed.core.connection.utils.logging.logging_mixin import (
    ScopedConnectionLoggingMixin,
)
from market_feed.core.dto.internal.common import ConnectionScopeDomain
from market_feed.core.types import ErrorDomain

logger = PipelineLogger.get_logger("error_handler", "connection")

# 진단 로그에 남길 원본 프레임 최대 길이
RAW_PREVIEW_LIMIT = 200


class ConnectionErrorHandler(ScopedConnectionLoggingMixin):
    """연결/프레임 에러 처리 전담 클래스

    책임:
    - 예외 분류 (classify_exception)
    - 도메인별 폐기/실패 카운트
    - ErrorEvent 발행 (EventBus)
    """

    _logger = logger

    def __init__(self, scope: ConnectionScopeDomain) -> None:
        self.scope = scope
        self.drop_counts: Counter[ErrorDomain] = Counter()

    async def _publish(
        self,
        err: BaseException,
        kind: str,
        context: dict[str, Any],
    ) -> ErrorEvent:
        domain, code, retryable = classify_exception(err, kind)
        self.drop_counts[domain] += 1
        event = ErrorEvent(
            exc=err if isinstance(err, Exception) else Exception(str(err)),
            kind=kind,
            scope=self.scope,
            domain=domain,
            code=code,
            retryable=retryable,
            context=context,
        )
        await EventBus.emit(event)
        return event

    async def emit_ws_error(
        self,
        err: BaseException,
        observed_key: str = "",
        raw_context: dict | None = None,
    ) -> ErrorEvent:
        """웹소켓 경계 에러 발행(kind='ws')"""
        self._log_debug(
            "웹소켓 에러 발행",
            phase=PHASE_CLOSE,
            error_type=type(err).__name__,
            error_message=str(err),
            observed_key=observed_key or None,
        )
        return await self._publish(
            err, "ws", {"observed_key": observed_key, **(raw_context or {})}
        )

    async def emit_connection_error(
        self,
        err: BaseException,
        attempt: int,
        backoff: float | None,
        **additional_context: Any,
    ) -> ErrorEvent:
        """연결 종료/실패 에러 발행(kind='ws')"""
        raw_context = {
            "url": self.scope.url,
            "attempt": attempt,
            "backoff": backoff,
            **additional_context,
        }
        self._log_debug(
            "연결 에러 발행",
            phase=PHASE_CLOSE,
            error_type=type(err).__name__,
            error_message=str(err),
            attempt=attempt,
            backoff=backoff,
        )
        return await self._publish(err, "ws", raw_context)

    async def emit_frame_error(self, err: BaseException, raw: Any) -> ErrorEvent:
        """프레임 디코딩/형태 검증 실패 발행(kind='frame'). 연결은 유지됩니다."""
        preview = repr(raw)[:RAW_PREVIEW_LIMIT]
        domain, _, _ = classify_exception(err, "frame")
        if domain is ErrorDomain.DESERIALIZATION:
            self._log_error(
                "Failed to parse frame (invalid JSON)",
                phase=PHASE_PARSE,
                error=str(err),
                raw_message=preview,
            )
        else:
            self._log_warning(
                "Received malformed frame structure",
                phase=PHASE_VALIDATE,
                error=str(err),
                raw_message=preview,
            )
        return await self._publish(err, "frame", {"raw_message": preview})

    async def emit_sink_error(self, err: BaseException, event_id: str) -> ErrorEvent:
        """이벤트 싱크 실패 발행(kind='sink')"""
        self._log_error(
            "Event sink failed",
            phase=PHASE_SINK,
            error=str(err),
            event_id=event_id,
        )
        return await self._publish(err, "sink", {"event_id": event_id})
