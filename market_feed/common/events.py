"""이벤트 정의 및 Event Bus (EDA 패턴)

모든 레이어가 순환 import 없이 진단 이벤트를 발행할 수 있도록 지원합니다.
이벤트는 순수 데이터 객체로, 의존성이 없습니다.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from market_feed.common.logger import PipelineLogger
from market_feed.core.dto.internal.common import ConnectionScopeDomain
from market_feed.core.types import ErrorCode, ErrorDomain

logger = PipelineLogger.get_logger("event_bus", "common")


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """에러/진단 이벤트 (순수 데이터)

    발행 지점:
    - 연결: 전송 실패, 재시도 한도 초과
    - 프레임: 디코딩 실패, 형태 검증 실패
    - 싱크: 이벤트 전달 실패
    """

    exc: Exception
    kind: str  # "ws", "frame", "sink"
    scope: ConnectionScopeDomain
    domain: ErrorDomain = ErrorDomain.UNKNOWN
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    retryable: bool = False
    context: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.now)


class EventBus:
    """전역 이벤트 버스 (의존성 없음)

    특징:
    - 타입 기반 핸들러 등록
    - 동기/비동기 핸들러 모두 허용
    - 핸들러 실패는 로그만 남기고 전파하지 않음
    """

    _handlers: dict[type, list[Callable[[Any], Any]]] = {}

    @classmethod
    async def emit(cls, event: Any) -> None:
        """이벤트 발행 (비동기)

        Args:
            event: 발행할 이벤트 객체
        """
        event_type = type(event)
        handlers = list(cls._handlers.get(event_type, []))

        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Event handler failed: {e}",
                    exc_info=True,
                    extra={
                        "event_type": event_type.__name__,
                        "handler": getattr(handler, "__name__", repr(handler)),
                    },
                )

    @classmethod
    def on(cls, event_type: type, handler: Callable[[Any], Any]) -> None:
        """핸들러 등록

        Args:
            event_type: 이벤트 타입 (클래스)
            handler: 핸들러 함수 (def / async def)
        """
        cls._handlers.setdefault(event_type, []).append(handler)

    @classmethod
    def off(cls, event_type: type, handler: Callable[[Any], Any]) -> None:
        """핸들러 해제 (등록되지 않은 핸들러는 무시)"""
        handlers = cls._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    @classmethod
    def clear(cls) -> None:
        """모든 핸들러 제거 (테스트용)"""
        cls._handlers.clear()


__all__ = ["ErrorEvent", "EventBus"]
