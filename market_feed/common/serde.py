from collections import deque
from decimal import Decimal
from typing import Any, Callable

import orjson

JSONDefault = Callable[[Any], Any]


def default_json_encoder(obj: Any) -> Any:
    """JSON 직렬화 헬퍼.

    - Decimal -> float (와이어 계약은 number)
    - deque/tuple -> list
    - 그 외: str(obj)
    """
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (deque, tuple)):
        return list(obj)
    return str(obj)


def to_bytes(value: Any, default: JSONDefault | None = default_json_encoder) -> bytes:
    """객체를 UTF-8 JSON bytes(orjson)로 직렬화."""
    return orjson.dumps(value, default=default)


def to_text(value: Any, default: JSONDefault | None = default_json_encoder) -> str:
    """웹소켓 텍스트 프레임용 JSON 문자열."""
    return to_bytes(value, default).decode("utf-8")


def loads_frame(frame: str | bytes | bytearray | memoryview) -> Any:
    """텍스트/바이너리 프레임을 파싱합니다.

    Raises:
        orjson.JSONDecodeError: 문법 오류
        UnicodeDecodeError: memoryview 등 비 UTF-8 입력
    """
    if isinstance(frame, memoryview):
        frame = frame.tobytes()
    return orjson.loads(frame)
