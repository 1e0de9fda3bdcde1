from __future__ import annotations

import os

# 로거는 import 시점에 설정을 읽으므로 market_feed import 전에 지정
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402

from market_feed.common.events import EventBus  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_event_bus():
    EventBus.clear()
    yield
    EventBus.clear()
