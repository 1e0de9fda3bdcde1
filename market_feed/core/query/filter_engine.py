"""스토어 스냅샷 위의 필터/검색 투영.

피드 필터와 검색어는 AND로 결합되며, 검색어는 여러 필드 중 하나라도 포함하면 통과(OR)합니다.
"""

from __future__ import annotations

from datetime import tzinfo
from decimal import Decimal

from market_feed.common.logger import PipelineLogger
from market_feed.core.dto.internal.event import MarketEventDomain
from market_feed.core.query.formatting import (
    format_clock,
    format_fixed2,
    format_plain_number,
)
from market_feed.core.types import ALL_FEEDS, FeedFilter

logger = PipelineLogger.get_logger("filter_engine", "query")

Snapshot = tuple[MarketEventDomain, ...]


def matches_feed(event: MarketEventDomain, feed_filter: FeedFilter) -> bool:
    return feed_filter == ALL_FEEDS or event.feed == feed_filter


def _number_text(wire_text: str | None, value: Decimal) -> str:
    # 문자열로 수신된 숫자는 원문 그대로 ("0.1250" 유지)
    return wire_text if wire_text is not None else format_plain_number(value)


def searchable_fields(event: MarketEventDomain, tz: tzinfo | None = None) -> tuple[str, ...]:
    """검색 대상 필드 (피드, 타입, 설명, 가격, 수량, 합계, 시각)"""
    return (
        event.feed,
        event.event_type,
        event.description,
        _number_text(event.price_text, event.price),
        _number_text(event.quantity_text, event.quantity),
        format_fixed2(event.total),
        format_clock(event.timestamp, tz),
    )


def matches_search(event: MarketEventDomain, search_query: str, tz: tzinfo | None = None) -> bool:
    if not search_query:
        return True
    needle = search_query.lower()
    return any(needle in field.lower() for field in searchable_fields(event, tz))


def event_matches(
    event: MarketEventDomain,
    feed_filter: FeedFilter = ALL_FEEDS,
    search_query: str = "",
    tz: tzinfo | None = None,
) -> bool:
    return matches_feed(event, feed_filter) and matches_search(event, search_query, tz)


class EventQueryEngine:
    """메모이제이션된 순수 투영기.

    (스냅샷 객체, 피드 필터, 검색어)가 직전 호출과 같으면 필터링 없이 캐시를 반환합니다.
    EventStore.snapshot()은 변경 전까지 같은 tuple을 반환하므로 동일성 비교로 충분합니다.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz
        self._last_snapshot: Snapshot | None = None
        self._last_criteria: tuple[FeedFilter, str] | None = None
        self._last_result: Snapshot = ()
        self.hits = 0
        self.misses = 0

    @property
    def tz(self) -> tzinfo | None:
        return self._tz

    def project(
        self,
        snapshot: Snapshot,
        feed_filter: FeedFilter = ALL_FEEDS,
        search_query: str = "",
    ) -> Snapshot:
        criteria = (feed_filter, search_query)
        if snapshot is self._last_snapshot and criteria == self._last_criteria:
            self.hits += 1
            return self._last_result

        self.misses += 1
        if feed_filter == ALL_FEEDS and not search_query:
            result = snapshot
        else:
            result = tuple(
                event
                for event in snapshot
                if event_matches(event, feed_filter, search_query, self._tz)
            )

        self._last_snapshot = snapshot
        self._last_criteria = criteria
        self._last_result = result
        logger.debug(
            f"projection recomputed: {len(result)}/{len(snapshot)} events",
            extra={"feed_filter": feed_filter, "search_query": search_query},
        )
        return result

    def invalidate(self) -> None:
        self._last_snapshot = None
        self._last_criteria = None
        self._last_result = ()
