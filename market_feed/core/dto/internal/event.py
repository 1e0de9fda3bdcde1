"""시장 이벤트 내부 도메인 모델.

내부 처리용 불변 도메인 객체 (dataclass 기반).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from market_feed.core.types import TradeSide


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class MarketEventDomain:
    """시장 이벤트 도메인 (체결/센티먼트 틱 1건).

    특징:
    - 불변 객체 (frozen=True), 생성 후 변경 없음 (갱신은 새 이벤트로 표현)
    - I/O DTO(MarketEventDTO)에서 검증을 마친 값만 담음

    필드:
    - id: 소스가 부여한 고유 ID (스토어 중복 제거 키)
    - feed: 심볼 (BTC-USD 등, 알 수 없는 값도 허용)
    - event_type: 분류 태그 (trade, sentiment, ...)
    - side: 표시 극성 (buy/sell), event_type과 독립
    - timestamp: 소스 부여 ms epoch (단조/고유 보장 없음)
    - price_text/quantity_text: 문자열로 수신된 숫자의 원문 (숫자로 수신되면 None)
    """

    id: str
    feed: str
    event_type: str
    side: TradeSide | None
    description: str
    price: Decimal
    quantity: Decimal
    timestamp: int
    price_text: str | None = None
    quantity_text: str | None = None

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity
