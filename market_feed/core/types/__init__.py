from market_feed.core.types._common_types import (
    ALL_FEEDS,
    KNOWN_FEEDS,
    ConnectionState,
    EventSink,
    EventType,
    FeedFilter,
    StatusListener,
    TradeSide,
    Unsubscribe,
)
from market_feed.core.types._exception_types import (
    CONNECTION_EXCEPTIONS,
    DECODE_EXCEPTIONS,
    SHAPE_EXCEPTIONS,
    ErrorCategory,
    ErrorCode,
    ErrorDomain,
    ExceptionGroup,
    RuleKind,
)

__all__ = [
    "ALL_FEEDS",
    "KNOWN_FEEDS",
    "ConnectionState",
    "EventSink",
    "EventType",
    "FeedFilter",
    "StatusListener",
    "TradeSide",
    "Unsubscribe",
    "CONNECTION_EXCEPTIONS",
    "DECODE_EXCEPTIONS",
    "SHAPE_EXCEPTIONS",
    "ErrorCategory",
    "ErrorCode",
    "ErrorDomain",
    "ExceptionGroup",
    "RuleKind",
]
