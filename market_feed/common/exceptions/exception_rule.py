from __future__ import annotations

import asyncio
from typing import TypeAlias

from market_feed.core.dto.internal.common import RuleDomain
from market_feed.core.types import (
    CONNECTION_EXCEPTIONS,
    DECODE_EXCEPTIONS,
    SHAPE_EXCEPTIONS,
    ErrorCategory,
    ErrorCode,
    ErrorDomain,
)

# 소켓/웹소켓 경계 (연결 루프에서 close로 변환되는 예외)
SOCKET_EXCEPTIONS = CONNECTION_EXCEPTIONS


class RetryBudgetExhausted(RuntimeError):
    """자동 재연결 한도 초과 (진단용, 소비자에게 raise 하지 않음)"""


class FrameShapeError(ValueError):
    """파싱은 되었으나 객체가 아니거나 id가 없는 프레임"""


# 1) asyncio 규칙 (ws)
RULES_ASYNCIO: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws",),
        exc=asyncio.TimeoutError,
        result=(ErrorDomain.CONNECTION, ErrorCode.CONNECT_FAILED, True),
    ),
]

# 2) 재시도 한도 (ws)
RULES_BUDGET: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws",),
        exc=RetryBudgetExhausted,
        result=(ErrorDomain.CONNECTION, ErrorCode.RETRY_EXHAUSTED, False),
    ),
]

# 3) 프레임 디코딩/형태 규칙 (frame)
# 주의: FrameShapeError는 ValueError 하위이므로 디코딩 규칙보다 먼저 선언
RULES_FRAME: list[RuleDomain] = [
    RuleDomain(
        kinds=("frame",),
        exc=FrameShapeError,
        result=(ErrorDomain.PAYLOAD, ErrorCode.MISSING_FIELD, False),
    ),
    RuleDomain(
        kinds=("frame",),
        exc=DECODE_EXCEPTIONS,
        result=(ErrorDomain.DESERIALIZATION, ErrorCode.DESERIALIZATION_ERROR, False),
    ),
    RuleDomain(
        kinds=("frame",),
        exc=SHAPE_EXCEPTIONS,
        result=(ErrorDomain.PAYLOAD, ErrorCode.INVALID_SHAPE, False),
    ),
]

# 4) 소켓/웹소켓 규칙 (ws)
RULES_OTHERS: list[RuleDomain] = [
    RuleDomain(
        kinds=("ws",),
        exc=SOCKET_EXCEPTIONS,
        result=(ErrorDomain.CONNECTION, ErrorCode.CONNECTION_LOST, True),
    ),
]

# 5) 싱크 규칙: 싱크 내부 예외는 종류와 무관하게 SINK로 분류
RULES_SINK: list[RuleDomain] = [
    RuleDomain(
        kinds=("sink",),
        exc=Exception,
        result=(ErrorDomain.SINK, ErrorCode.SINK_FAILED, False),
    ),
]

# 전체 규칙 (구체 -> 포괄 순서를 유지하며 결합)
RULES_FOR_WS: list[RuleDomain] = [
    *RULES_ASYNCIO,
    *RULES_BUDGET,
    *RULES_OTHERS,
]

RuleDict: TypeAlias = dict[str, list[RuleDomain]]
RULES_BY_KIND: RuleDict = {
    "ws": RULES_FOR_WS,
    "frame": RULES_FRAME,
    "sink": RULES_SINK,
}


def classify_exception(err: BaseException, kind: str) -> ErrorCategory:
    """예외 → (ErrorDomain, ErrorCode, retryable) 분류기 (규칙 테이블 기반)

    - 규칙은 "구체 → 포괄" 순서로 선언되어 가장 특수한 규칙이 먼저 매칭됩니다.
    - 알 수 없는 kind는 빈 규칙으로 폴백합니다.
    """
    rules: list[RuleDomain] = RULES_BY_KIND.get(kind, [])
    for rule in rules:
        if isinstance(err, rule.exc):
            return rule.result

    return (ErrorDomain.UNKNOWN, ErrorCode.UNKNOWN_ERROR, False)
