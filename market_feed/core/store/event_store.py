"""최근 이벤트 보관소 (중복 제거 + 최신순 + 용량 제한).

스토어는 생성한 컨텍스트가 소유하며, 다른 컴포넌트는 아래 연산으로만 접근합니다.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Final

from market_feed.common.logger import PipelineLogger
from market_feed.common.observable import Observable
from market_feed.config.settings import stream_settings
from market_feed.core.dto.internal.event import MarketEventDomain
from market_feed.core.types import Unsubscribe

logger = PipelineLogger.get_logger("event_store", "store")

Snapshot = tuple[MarketEventDomain, ...]
EMPTY_SNAPSHOT: Final[Snapshot] = ()


class EventStore:
    """최신순 이벤트 시퀀스 + id 멤버십 인덱스.

    불변 조건:
    - 같은 id는 스토어에 최대 1건
    - len(store) <= capacity, 초과 시 가장 오래 삽입된 1건 제거
    - 시퀀스와 인덱스는 항상 일치 (단일 이벤트 루프, 변경 완료 후에만 통지)

    정렬은 삽입 순서 기준입니다 (timestamp는 단조 증가가 보장되지 않음).
    """

    def __init__(self, capacity: int | None = None) -> None:
        capacity = stream_settings.store_capacity if capacity is None else capacity
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        # 왼쪽이 최신
        self._events: deque[MarketEventDomain] = deque()
        self._ids: set[str] = set()
        self._version = 0
        self._snapshot: Observable[Snapshot] = Observable(EMPTY_SNAPSHOT, name="event_store")
        self._snapshot_dirty = False
        self.evicted_count = 0
        self.duplicate_count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def version(self) -> int:
        """변경(삽입/퇴출/초기화)마다 증가하는 카운터"""
        return self._version

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._ids

    def insert(self, event: MarketEventDomain) -> bool:
        """이벤트 삽입. 이미 있는 id면 no-op.

        Returns:
            삽입되었으면 True, 중복이면 False
        """
        if event.id in self._ids:
            self.duplicate_count += 1
            logger.debug(f"duplicate event dropped: {event.id}")
            return False

        self._events.appendleft(event)
        self._ids.add(event.id)

        if len(self._events) > self._capacity:
            evicted = self._events.pop()
            self._ids.discard(evicted.id)
            self.evicted_count += 1

        self._commit()
        return True

    def clear(self) -> None:
        """시퀀스와 인덱스를 모두 비웁니다 (명시적 초기화 전용)."""
        if not self._events:
            return
        self._events.clear()
        self._ids.clear()
        logger.info("event store cleared")
        self._commit()

    def snapshot(self) -> Snapshot:
        """현재 시퀀스의 읽기 전용 뷰 (최신순 tuple).

        다음 변경 전까지는 같은 tuple 객체를 반환합니다.
        """
        if self._snapshot_dirty:
            self._snapshot_dirty = False
            self._snapshot.set(tuple(self._events), force=True)
        return self._snapshot.value

    def subscribe(self, listener: Callable[[Snapshot], object]) -> Unsubscribe:
        """변경 후 새 스냅샷을 받을 구독자 등록."""
        return self._snapshot.subscribe(listener)

    def _commit(self) -> None:
        self._version += 1
        self._snapshot_dirty = True
        if self._snapshot.has_listeners:
            # 구독자가 있을 때만 즉시 스냅샷 생성 및 통지
            self.snapshot()
