"""수신 프레임 디코딩 + 형태 검증.

프레임 1건 → MarketEventDomain. 실패 시 예외를 그대로 올려 호출 측(연결 매니저)이
프레임만 폐기하고 연결은 유지하도록 합니다.
"""

from __future__ import annotations

from typing import Any, Final

from market_feed.common.exceptions.exception_rule import FrameShapeError
from market_feed.common.serde import loads_frame
from market_feed.core.dto.internal.event import MarketEventDomain
from market_feed.core.dto.io.market_event import MarketEventDTO
from market_feed.core.types import DECODE_EXCEPTIONS, SHAPE_EXCEPTIONS

# 프레임 단위로 폐기되는 예외 전체
FRAME_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    *DECODE_EXCEPTIONS,
    *SHAPE_EXCEPTIONS,
    FrameShapeError,
)


def validate_shape(parsed: Any) -> dict[str, Any]:
    """파싱 결과가 id를 가진 객체인지 확인합니다."""
    match parsed:
        case dict() as payload if "id" in payload:
            return payload
        case dict():
            raise FrameShapeError("frame object has no 'id' field")
        case _:
            raise FrameShapeError(
                f"unsupported payload type: {type(parsed).__name__}"
            )


def decode_frame(frame: str | bytes | bytearray | memoryview) -> MarketEventDomain:
    """원본 프레임을 MarketEventDomain으로 변환.

    Raises:
        orjson.JSONDecodeError: JSON 문법 오류
        FrameShapeError: 객체가 아니거나 id 누락
        pydantic.ValidationError: price/quantity 누락·비숫자·음수 등
    """
    payload = validate_shape(loads_frame(frame))
    return MarketEventDTO.model_validate(payload).to_domain()
