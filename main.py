"""애플리케이션 진입점 (DI Container 기반)

시장 이벤트 스트림 수집기
- 이벤트 소스(웹소켓)에 연결하고 끊기면 자동 재연결
- 수신 이벤트를 중복 제거/용량 제한 스토어에 보관
- 상태 전이와 스토어 현황을 주기적으로 로깅

Usage:
    python main.py                              # FEED_URL (기본 ws://localhost:8080)
    python main.py --url ws://10.0.0.5:9000     # 엔드포인트 지정
    python main.py --feed BTC-USD --search whale
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
from typing import Sequence

from dependency_injector import providers

from market_feed.application.feed_session import FeedSession
from market_feed.common.events import ErrorEvent, EventBus
from market_feed.common.logger import PipelineLogger
from market_feed.config.containers import ApplicationContainer
from market_feed.core.types import ALL_FEEDS, ConnectionState, ErrorCode

logger = PipelineLogger.get_logger("main", "app")

# 스토어 현황 보고 주기 (초)
REPORT_INTERVAL = 5.0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Market event stream collector")
    parser.add_argument("--url", default=None, help="event source endpoint (default: FEED_URL)")
    parser.add_argument("--feed", default=ALL_FEEDS, help="feed filter (default: ALL)")
    parser.add_argument("--search", default="", help="search query (default: none)")
    parser.add_argument(
        "--report-interval",
        type=float,
        default=REPORT_INTERVAL,
        dest="report_interval",
        help="seconds between store reports (default: 5)",
    )
    return parser.parse_args(argv)


class Application:
    """애플리케이션 메인 클래스

    책임:
    - DI Container 관리
    - Event Bus 리스너 등록
    - 세션 연결 및 주기 보고
    - Graceful Shutdown
    """

    def __init__(self, args: argparse.Namespace) -> None:
        self.args = args
        self.container = ApplicationContainer()
        self.session: FeedSession | None = None
        self._gave_up = asyncio.Event()

    async def _setup_event_bus(self) -> None:
        """ErrorEvent 리스너 등록 (진단 요약 로그)"""

        async def handle_error_event(event: ErrorEvent) -> None:
            logger.debug(
                f"diagnostic: {event.kind}/{event.domain}/{event.code}",
                extra={"retryable": event.retryable, "error": str(event.exc)},
            )
            if event.code is ErrorCode.RETRY_EXHAUSTED:
                self._gave_up.set()

        EventBus.on(ErrorEvent, handle_error_event)

    def _on_status(self, state: ConnectionState) -> None:
        logger.info(f"connection status: {state}")

    async def initialize(self) -> None:
        if self.args.url:
            self.container.url.override(providers.Object(self.args.url))

        await self._setup_event_bus()

        self.session = self.container.feed_session()
        self.session.set_feed_filter(self.args.feed)
        self.session.set_search_query(self.args.search)
        self.session.subscribe_status(self._on_status)
        logger.set_context(url=self.session.manager.scope.url)
        logger.info("✅ 세션 준비 완료")

    async def run(self) -> None:
        """연결 후 주기 보고 (재시도 한도 초과 시 종료)"""
        assert self.session is not None
        self.session.connect()

        while not self._gave_up.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._gave_up.wait(), timeout=self.args.report_interval)
            store = self.session.store
            drops = dict(self.session.manager.error_handler.drop_counts)
            await logger.ainfo(
                f"status={self.session.status} stored={len(store)}/{store.capacity} "
                f"visible={self.session.count} evicted={store.evicted_count} "
                f"duplicates={store.duplicate_count} diagnostics={drops}"
            )

        logger.warning("자동 재연결 한도 초과로 종료합니다")

    async def shutdown(self) -> None:
        logger.info("정리 작업 시작...")
        if self.session is not None:
            await self.session.aclose()
        EventBus.clear()
        logger.info("✅ 프로그램 종료 완료")


async def main(argv: Sequence[str] | None = None) -> None:
    app = Application(parse_args(argv))
    try:
        await app.initialize()
        await app.run()
    finally:
        await app.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n프로그램이 종료되었습니다.")
