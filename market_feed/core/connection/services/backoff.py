from __future__ import annotations

import random

from market_feed.core.dto.internal.common import ConnectionPolicyDomain


def compute_next_backoff(policy: ConnectionPolicyDomain, attempt: int) -> float:
    """재연결 대기 시간(초).

    지수 증가 후 max_backoff로 상한, jitter > 0 이면 ±(지연 * jitter) 범위로 흔듭니다.
    기본 정책(1s, x2, 상한 5s, 지터 0): 1.0, 2.0, 4.0, 5.0, 5.0 ...

    Args:
        policy: 재연결 정책
        attempt: 0부터 시작하는 재시도 인덱스
    """
    try:
        growth = policy.initial_backoff * policy.backoff_multiplier ** max(attempt, 0)
    except OverflowError:
        growth = policy.max_backoff
    delay = min(growth, policy.max_backoff)
    if policy.jitter <= 0:
        return delay
    spread = delay * policy.jitter
    return max(0.0, delay + random.uniform(-spread, spread))
