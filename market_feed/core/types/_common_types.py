from __future__ import annotations

from enum import StrEnum
from typing import Any, Awaitable, Callable, Final, Literal, TypeAlias


class ConnectionState(StrEnum):
    """스트림 연결 상태 (한 시점에 정확히 하나만 활성)"""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"


class EventType(StrEnum):
    """알려진 이벤트 분류 태그 (알 수 없는 값도 그대로 통과)"""

    TRADE = "trade"
    SENTIMENT = "sentiment"


# 소스가 발행하는 알려진 심볼 (검증용이 아닌 참고용)
KNOWN_FEEDS: Final[tuple[str, ...]] = ("BTC-USD", "ETH-USD", "SOL-USD", "DOGE-USD")

# "전체 피드" 센티널
ALL_FEEDS: Final[str] = "ALL"

TradeSide: TypeAlias = Literal["buy", "sell"]
FeedFilter: TypeAlias = str

# 수신 이벤트 싱크 (동기/비동기 모두 허용)
EventSink: TypeAlias = Callable[[Any], Awaitable[None] | None]
StatusListener: TypeAlias = Callable[[ConnectionState], Any]
Unsubscribe: TypeAlias = Callable[[], None]
