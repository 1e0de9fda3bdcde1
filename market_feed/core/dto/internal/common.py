from __future__ import annotations

from dataclasses import dataclass

from market_feed.core.types import ErrorCategory, ExceptionGroup, RuleKind


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class ConnectionScopeDomain:
    """연결 식별 스코프 (로그/에러 컨텍스트용)

    - url: 이벤트 소스 엔드포인트 (ws://host:port)
    - stream: 논리 스트림 이름 (로그 구분용)
    """

    url: str
    stream: str = "market"

    def to_key(self) -> str:
        return f"{self.stream}|{self.url}"


@dataclass(slots=True, eq=False, repr=True, match_args=False, kw_only=True)
class ConnectionPolicyDomain:
    """재연결 정책 (단위: 초)

    지연(n) = min(initial_backoff * backoff_multiplier**n, max_backoff) ± jitter
    """

    max_attempts: int = 5
    initial_backoff: float = 1.0
    max_backoff: float = 5.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.0


@dataclass(slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True)
class RuleDomain:
    """예외 분류 규칙 (kind 범위 + 예외 타입 → 분류 결과)"""

    kinds: RuleKind
    exc: ExceptionGroup
    result: ErrorCategory
