from __future__ import annotations

from market_feed.core.connection.services.backoff import compute_next_backoff
from tests.factory_builders import build_connection_policy_domain


def test_default_schedule_doubles_and_caps() -> None:
    policy = build_connection_policy_domain()

    delays = [compute_next_backoff(policy, attempt) for attempt in range(6)]

    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0, 5.0]


def test_jitter_stays_within_range() -> None:
    policy = build_connection_policy_domain(jitter=0.2)

    for _ in range(50):
        delay = compute_next_backoff(policy, 1)
        assert 1.6 - 1e-9 <= delay <= 2.4 + 1e-9


def test_custom_policy_is_respected() -> None:
    policy = build_connection_policy_domain(initial_backoff=0.5, backoff_multiplier=3.0, max_backoff=10.0)

    assert compute_next_backoff(policy, 0) == 0.5
    assert compute_next_backoff(policy, 2) == 4.5
    assert compute_next_backoff(policy, 3) == 10.0


def test_very_large_attempt_is_capped() -> None:
    policy = build_connection_policy_domain()

    assert compute_next_backoff(policy, 5000) == 5.0
