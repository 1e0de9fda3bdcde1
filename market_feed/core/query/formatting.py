"""검색/표시용 문자열 변환 유틸리티."""

from __future__ import annotations

from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from market_feed.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("formatting", "query")

_CENT = Decimal("0.01")


def format_plain_number(value: Decimal) -> str:
    """정수면 소수부 없이, 아니면 뒤쪽 0을 제거한 고정소수 표기.

    Examples:
        >>> format_plain_number(Decimal("100"))
        '100'
        >>> format_plain_number(Decimal("65000.50"))
        '65000.5'
    """
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def format_fixed2(value: Decimal) -> str:
    """소수 둘째 자리 반올림(half-up) 표기 (예: 100 → '100.00')."""
    try:
        return format(value.quantize(_CENT, rounding=ROUND_HALF_UP), "f")
    except InvalidOperation:
        return format(value, ".2f")


def format_clock(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """ms epoch → 'HH:MM:SS.mmm' (tz 미지정 시 로컬 시각).

    표현 범위를 벗어난 타임스탬프는 빈 문자열을 반환합니다.
    """
    try:
        moment = datetime.fromtimestamp(timestamp_ms // 1000, tz=tz)
    except (OverflowError, OSError, ValueError):
        return ""
    return f"{moment:%H:%M:%S}.{timestamp_ms % 1000:03d}"


def resolve_display_timezone(name: str | None) -> tzinfo | None:
    """설정된 타임존 이름 → tzinfo. 없거나 알 수 없으면 None(로컬)."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"unknown display timezone '{name}', falling back to local time")
        return None
