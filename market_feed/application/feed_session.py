"""
소비자(표시 계층)용 피드 세션

ConnectionManager → EventStore → EventQueryEngine을 하나의 인터페이스로 묶습니다.
- 관찰 가능한 연결 상태 + connect()
- 필터/검색이 적용된 이벤트 뷰 (구독 가능)
- 피드 필터/검색어 설정, clear(), 일시정지/재개
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from market_feed.common.logger import PipelineLogger
from market_feed.common.observable import Observable
from market_feed.core.connection.connection_manager import (
    ConnectFactory,
    SleepFn,
    StreamConnectionManager,
)
from market_feed.core.connection.error_handler import ConnectionErrorHandler
from market_feed.core.dto.internal.common import ConnectionPolicyDomain
from market_feed.core.dto.internal.event import MarketEventDomain
from market_feed.core.query.filter_engine import EventQueryEngine, Snapshot
from market_feed.core.store.event_store import EventStore
from market_feed.core.types import (
    ALL_FEEDS,
    ConnectionState,
    FeedFilter,
    StatusListener,
    Unsubscribe,
)

logger = PipelineLogger.get_logger("feed_session", "app")


class FeedSession:
    """피드 세션 (스토어 소유 컨텍스트)

    책임:
    - 스토어/쿼리 엔진/연결 매니저 조립
    - 필터 상태 보관 및 투영 결과 통지
    - 일시정지 중에는 수집은 계속하되 뷰는 정지 시점 스냅샷에 고정
    """

    def __init__(
        self,
        store: EventStore,
        query_engine: EventQueryEngine,
        url: str,
        *,
        policy: ConnectionPolicyDomain | None = None,
        error_handler: ConnectionErrorHandler | None = None,
        connect_factory: ConnectFactory | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """
        Args:
            store: 이벤트 스토어 (세션이 유일한 writer)
            query_engine: 투영기
            url: 이벤트 소스 엔드포인트
            policy: 재연결 정책
            error_handler: 진단 발행기
            connect_factory: 전송 계층 팩토리 (테스트 주입용)
            sleep: 백오프 대기 함수 (테스트 주입용)
        """
        self._store = store
        self._engine = query_engine
        self._manager = StreamConnectionManager(
            url,
            on_event=self._ingest,
            policy=policy,
            error_handler=error_handler,
            connect_factory=connect_factory,
            sleep=sleep,
        )

        self._feed_filter: FeedFilter = ALL_FEEDS
        self._search_query: str = ""
        self._paused_snapshot: Snapshot | None = None

        self._view: Observable[Snapshot] = Observable((), name="feed_view")
        self._store_unsubscribe: Unsubscribe | None = None

    # ------------------------------------------------------------------
    # 연결
    # ------------------------------------------------------------------

    @property
    def manager(self) -> StreamConnectionManager:
        return self._manager

    @property
    def status(self) -> ConnectionState:
        return self._manager.status

    def subscribe_status(self, listener: StatusListener) -> Unsubscribe:
        return self._manager.subscribe_status(listener)

    def connect(self) -> bool:
        """수동 (재)연결. 이미 연결/연결 중이면 no-op."""
        return self._manager.connect()

    async def aclose(self) -> None:
        if self._store_unsubscribe is not None:
            self._store_unsubscribe()
            self._store_unsubscribe = None
        await self._manager.aclose()

    async def __aenter__(self) -> FeedSession:
        self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    def _ingest(self, event: MarketEventDomain) -> None:
        self._store.insert(event)

    # ------------------------------------------------------------------
    # 뷰
    # ------------------------------------------------------------------

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def feed_filter(self) -> FeedFilter:
        return self._feed_filter

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def is_paused(self) -> bool:
        return self._paused_snapshot is not None

    @property
    def all_events(self) -> Snapshot:
        """필터 미적용 스토어 스냅샷 (최신순)"""
        return self._store.snapshot()

    @property
    def events(self) -> Snapshot:
        """필터/검색이 적용된 이벤트 (최신순, 메모이제이션)"""
        source = self._paused_snapshot if self._paused_snapshot is not None else self._store.snapshot()
        return self._engine.project(source, self._feed_filter, self._search_query)

    @property
    def count(self) -> int:
        return len(self.events)

    def subscribe(self, listener: Callable[[Snapshot], Any]) -> Unsubscribe:
        """뷰 변경 구독 (스토어 변경, 필터 변경, 일시정지/재개 시 통지)"""
        if self._store_unsubscribe is None:
            self._store_unsubscribe = self._store.subscribe(self._on_store_changed)
        unsubscribe_view = self._view.subscribe(listener)

        def _unsubscribe() -> None:
            unsubscribe_view()
            if not self._view.has_listeners and self._store_unsubscribe is not None:
                self._store_unsubscribe()
                self._store_unsubscribe = None

        return _unsubscribe

    def _on_store_changed(self, _snapshot: Snapshot) -> None:
        if self.is_paused:
            return
        self._publish_view()

    def _publish_view(self) -> None:
        if not self._view.has_listeners:
            return
        view = self.events
        # 메모이제이션 적중(동일 객체)이면 통지 생략
        if view is not self._view.value:
            self._view.set(view, force=True)

    def set_feed_filter(self, feed: FeedFilter | None) -> None:
        self._feed_filter = feed or ALL_FEEDS
        logger.debug(f"feed filter set: {self._feed_filter}")
        self._publish_view()

    def set_search_query(self, query: str | None) -> None:
        self._search_query = query or ""
        self._publish_view()

    def reset_filters(self) -> None:
        self._feed_filter = ALL_FEEDS
        self._search_query = ""
        self._publish_view()

    def clear(self) -> None:
        """누적 이벤트 초기화 (일시정지 중이면 고정 뷰도 비움)"""
        self._store.clear()
        if self._paused_snapshot is not None:
            self._paused_snapshot = ()
            self._publish_view()

    def pause(self) -> None:
        if self.is_paused:
            return
        self._paused_snapshot = self._store.snapshot()
        logger.info(f"view paused at {len(self._paused_snapshot)} events")

    def resume(self) -> None:
        if not self.is_paused:
            return
        self._paused_snapshot = None
        logger.info("view resumed")
        self._publish_view()
