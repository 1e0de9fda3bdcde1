"""트라이/캐치 블록에서 사용할 예외 타입 정의 모듈.

광범위한 Exception 사용을 지양하고, 의도한 예외만 명시적으로 처리하기 위해 사용합니다.
"""

import asyncio
from enum import StrEnum
from typing import Final, TypeAlias

import orjson
import websockets
from pydantic import ValidationError


class ErrorDomain(StrEnum):
    """에러 도메인 분류"""

    CONNECTION = "connection"
    DESERIALIZATION = "deserialization"
    PAYLOAD = "payload"
    SINK = "sink"
    UNKNOWN = "unknown"


class ErrorCode(StrEnum):
    """에러 코드 분류"""

    CONNECT_FAILED = "connect_failed"
    CONNECTION_LOST = "connection_lost"
    RETRY_EXHAUSTED = "retry_exhausted"
    DESERIALIZATION_ERROR = "deserialization_error"
    INVALID_SHAPE = "invalid_shape"
    MISSING_FIELD = "missing_field"
    SINK_FAILED = "sink_failed"
    UNKNOWN_ERROR = "unknown_error"


# ----------------------------------------------------------------------------
# Exception Constants
# ----------------------------------------------------------------------------

# 1. 네트워크/연결 관련 예외 (재시도 대상)
# - websockets.ConnectionClosed: 정상/비정상 종료
# - websockets.InvalidURI/InvalidHandshake: 핸드셰이크 실패
# - asyncio.TimeoutError: 시간 초과
# - OSError: 소켓 레벨 에러 (ConnectionRefusedError 포함)
CONNECTION_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    websockets.ConnectionClosed,
    websockets.InvalidHandshake,
    websockets.WebSocketException,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
    TimeoutError,
)

# 2. 프레임 디코딩 예외 (프레임 단위 폐기)
DECODE_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    orjson.JSONDecodeError,
    UnicodeDecodeError,
)

# 3. 프레임 형태(shape) 검증 예외 (프레임 단위 폐기)
SHAPE_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    ValidationError,
    KeyError,
    TypeError,
)


ErrorCategory: TypeAlias = tuple[ErrorDomain, ErrorCode, bool]
ExceptionGroup: TypeAlias = type[BaseException] | tuple[type[BaseException], ...]
RuleKind: TypeAlias = tuple[str, ...]
