"""와이어 프레임 → MarketEvent 검증 DTO.

{ id, feed, type, description, side, price, quantity, timestamp }
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator, model_validator

from market_feed.core.dto.internal.event import MarketEventDomain
from market_feed.core.dto.io._base import BaseInboundDTO
from market_feed.core.types import EventType, TradeSide


def _wire_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class MarketEventDTO(BaseInboundDTO):
    """수신 이벤트 프레임 DTO.

    - id: 필수 (없으면 프레임 폐기)
    - price/quantity: 필수, 0 이상의 숫자 (숫자 문자열 허용)
    - 그 외 필드는 누락 시 기본값
    """

    id: str = Field(..., min_length=1, description="소스 부여 고유 ID")
    feed: str = Field("", description="심볼 (BTC-USD 등)")
    type: str = Field(EventType.TRADE.value, description="이벤트 분류 태그")
    description: str = Field("", description="자유 텍스트")
    side: TradeSide | None = Field(None, description="표시 극성 (buy/sell)")
    price: Decimal = Field(..., ge=0, allow_inf_nan=False, description="가격")
    quantity: Decimal = Field(..., ge=0, allow_inf_nan=False, description="수량")
    timestamp: int = Field(0, description="ms epoch")
    # 문자열로 수신된 숫자의 원문 (검색 표기용, 숫자로 수신되면 None)
    price_text: str | None = Field(None, description="가격 원문")
    quantity_text: str | None = Field(None, description="수량 원문")

    @model_validator(mode="before")
    @classmethod
    def _capture_number_text(cls, data: Any) -> Any:
        # 와이어에서 온 원문만 사용 (같은 이름의 수신 필드는 덮어씀)
        if isinstance(data, dict):
            return {
                **data,
                "price_text": _wire_text(data.get("price")),
                "quantity_text": _wire_text(data.get("quantity")),
            }
        return data

    @field_validator("side", mode="before")
    @classmethod
    def _tolerate_side(cls, value: Any) -> Any:
        # 알 수 없는 극성은 None으로 (프레임 폐기 대상 아님)
        if isinstance(value, str) and value.lower() in ("buy", "sell"):
            return value.lower()
        return None

    @field_validator("description", "feed", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _none_as_trade(cls, value: Any) -> Any:
        return EventType.TRADE.value if value is None else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _truncate_timestamp(cls, value: Any) -> Any:
        if value is None:
            return 0
        # 소수점 ms(예: performance.now 기반)는 정수 ms로 절삭
        if isinstance(value, float) and not value.is_integer():
            return int(value)
        return value

    def to_domain(self) -> MarketEventDomain:
        return MarketEventDomain(
            id=self.id,
            feed=self.feed,
            event_type=self.type,
            side=self.side,
            description=self.description,
            price=self.price,
            quantity=self.quantity,
            timestamp=self.timestamp,
            price_text=self.price_text,
            quantity_text=self.quantity_text,
        )
