from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Any, AsyncContextManager, Awaitable, Callable, TypeAlias

import websockets

from market_feed.common.exceptions.exception_rule import (
    SOCKET_EXCEPTIONS,
    RetryBudgetExhausted,
)
from market_feed.common.logger import PipelineLogger
from market_feed.common.observable import Observable
from market_feed.config.settings import stream_settings
from market_feed.core.connection.error_handler import ConnectionErrorHandler
from market_feed.core.connection.frame_decoder import FRAME_EXCEPTIONS, decode_frame
from market_feed.core.connection.services.backoff import compute_next_backoff
from market_feed.core.connection.utils.logging.log_phases import (
    PHASE_CLOSE,
    PHASE_CONNECT,
    PHASE_DISPOSE,
    PHASE_GIVE_UP,
    PHASE_OPEN,
    PHASE_RECONNECT,
    PHASE_STATUS,
)
from market_feed.core.connection.utils.logging.logging_mixin import (
    ScopedConnectionLoggingMixin,
)
from market_feed.core.dto.internal.common import (
    ConnectionPolicyDomain,
    ConnectionScopeDomain,
)
from market_feed.core.types import ConnectionState, EventSink, StatusListener, Unsubscribe

logger = PipelineLogger.get_logger("connection_manager", "connection")

# Constants
DEFAULT_PING_INTERVAL = 20
DEFAULT_OPEN_TIMEOUT = 10

ConnectFactory: TypeAlias = Callable[[str], AsyncContextManager[Any]]
SleepFn: TypeAlias = Callable[[float], Awaitable[Any]]


def default_connect_factory(url: str) -> AsyncContextManager[Any]:
    return websockets.connect(
        url,
        ping_interval=DEFAULT_PING_INTERVAL,
        open_timeout=DEFAULT_OPEN_TIMEOUT,
    )


def policy_from_settings() -> ConnectionPolicyDomain:
    return ConnectionPolicyDomain(
        max_attempts=stream_settings.max_retries,
        initial_backoff=stream_settings.initial_backoff,
        max_backoff=stream_settings.max_backoff,
        backoff_multiplier=stream_settings.backoff_multiplier,
        jitter=stream_settings.jitter,
    )


class StreamConnectionManager(ScopedConnectionLoggingMixin):
    """단일 스트림 연결의 생명주기/자동 복구 관리자

    상태 전이:
    - DISCONNECTED → CONNECTING: connect() (CONNECTED/CONNECTING이면 no-op)
    - CONNECTING → CONNECTED: 전송 계층 open, 재시도 카운터 0으로 리셋
    - CONNECTED → DISCONNECTED: 전송 종료 (전송 에러도 close로 변환, 전파하지 않음)
    - DISCONNECTED → RECONNECTING → CONNECTING: 비계획 종료 시 백오프 후 자동 재시도
    - RECONNECTING → DISCONNECTED: 재시도 한도 도달 시 포기, 수동 connect() 대기

    모든 상태 전이와 프레임 처리는 하나의 이벤트 루프에서 수행됩니다.
    """

    _logger = logger

    def __init__(
        self,
        url: str,
        on_event: EventSink,
        *,
        policy: ConnectionPolicyDomain | None = None,
        error_handler: ConnectionErrorHandler | None = None,
        connect_factory: ConnectFactory | None = None,
        sleep: SleepFn = asyncio.sleep,
        stream: str = "market",
    ) -> None:
        """
        Args:
            url: 이벤트 소스 엔드포인트 (ws://host:port)
            on_event: 검증된 이벤트를 받을 싱크 (동기/비동기)
            policy: 재연결 정책 (기본: 설정값)
            error_handler: 진단 발행기 (기본: 스코프 전용 인스턴스)
            connect_factory: url → async context manager(websocket) (기본: websockets.connect)
            sleep: 백오프 대기 함수 (테스트 주입용)
            stream: 로그 구분용 스트림 이름
        """
        self.scope = ConnectionScopeDomain(url=url, stream=stream)
        self.policy = policy or policy_from_settings()

        self._on_event = on_event
        self._error_handler = error_handler or ConnectionErrorHandler(self.scope)
        self._connect_factory = connect_factory or default_connect_factory
        self._sleep = sleep

        self._status: Observable[ConnectionState] = Observable(
            ConnectionState.DISCONNECTED, name="connection_status"
        )

        # 재시도/태스크 상태
        self._retry_attempts: int = 0
        self._gave_up: bool = False
        self._session_task: asyncio.Task[None] | None = None
        self._backoff_task: asyncio.Task[None] | None = None
        self._current_websocket: Any = None

        # False이면 종료 시 재연결하지 않음 (dispose 시 close 핸들러 분리에 해당)
        self._auto_reconnect: bool = True
        self._disposed: bool = False

        self.frames_received: int = 0
        self.events_delivered: int = 0

    # ------------------------------------------------------------------
    # 관찰 가능한 상태
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionState:
        return self._status.value

    def subscribe_status(self, listener: StatusListener) -> Unsubscribe:
        """상태 변경 구독. 반환된 콜러블로 해제."""
        return self._status.subscribe(listener)

    @property
    def retry_attempts(self) -> int:
        return self._retry_attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._backoff_task is not None and not self._backoff_task.done()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def error_handler(self) -> ConnectionErrorHandler:
        return self._error_handler

    def _set_status(self, state: ConnectionState) -> None:
        previous = self._status.value
        if self._status.set(state):
            self._log_debug(
                f"status {previous} -> {state}",
                phase=PHASE_STATUS,
                previous=str(previous),
                current=str(state),
            )

    # ------------------------------------------------------------------
    # 연결 제어
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """수동 (재)연결 트리거. 실행 중인 이벤트 루프 안에서 호출해야 합니다.

        Returns:
            새 연결 시도를 시작했으면 True
        """
        if self._disposed:
            self._log_warning("connect() ignored: manager disposed", phase=PHASE_CONNECT)
            return False

        if self.status in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            self._log_debug(
                "connect() ignored: already active",
                phase=PHASE_CONNECT,
                status=str(self.status),
            )
            return False

        backoff_task = self._backoff_task
        if backoff_task is not None and not backoff_task.done():
            # RECONNECTING 중 수동 요청: 대기 타이머를 버리고 즉시 연결
            backoff_task.cancel()
        self._backoff_task = None

        if self._gave_up:
            # 포기 후 수동 재시도는 새 재시도 예산으로 시작
            self._retry_attempts = 0
            self._gave_up = False

        self._open()
        return True

    def _open(self) -> None:
        self._auto_reconnect = True
        self._set_status(ConnectionState.CONNECTING)
        self._log_info("연결 시도 중...", phase=PHASE_CONNECT, attempt=self._retry_attempts)
        self._session_task = asyncio.create_task(
            self._run_session(), name=f"feed-session:{self.scope.url}"
        )

    async def _run_session(self) -> None:
        """연결 1회분: open → 수신 루프 → close 처리"""
        close_reason: BaseException | None = None
        opened = False
        try:
            async with self._connect_factory(self.scope.url) as websocket:
                self._current_websocket = websocket
                opened = True
                self._on_open()
                async for frame in websocket:
                    await self._handle_frame(frame)
        except asyncio.CancelledError:
            self._current_websocket = None
            raise
        except SOCKET_EXCEPTIONS as e:
            close_reason = e
        except Exception as e:
            # 예기치 못한 오류도 close로 변환하여 동일한 재시도 흐름 적용
            self._log_error(
                f"unexpected error in connection session - {e}", phase=PHASE_CLOSE
            )
            close_reason = e

        self._current_websocket = None
        await self._on_closed(close_reason, opened)

    def _on_open(self) -> None:
        self._retry_attempts = 0
        self._gave_up = False
        self._set_status(ConnectionState.CONNECTED)
        self._log_info("WS Connected", phase=PHASE_OPEN)

    async def _on_closed(self, reason: BaseException | None, opened: bool) -> None:
        if not self._auto_reconnect:
            # 의도적 종료 (dispose): 재연결 없음
            self._log_info("WS closed by manager", phase=PHASE_CLOSE)
            return

        # 수동 connect()로 이미 새 세션이 시작됐으면 상태를 건드리지 않음
        owns_session = asyncio.current_task() is self._session_task
        if owns_session:
            # 진단 발행 전에 DISCONNECTED로 전이 (핸들러의 connect()가 무시되지 않도록)
            self._session_task = None
            self._set_status(ConnectionState.DISCONNECTED)

        self._log_info(
            "WS Disconnected",
            phase=PHASE_CLOSE,
            reason=f"{type(reason).__name__}: {reason}" if reason else None,
            opened=opened,
        )
        if reason is not None:
            await self._error_handler.emit_connection_error(
                reason, attempt=self._retry_attempts, backoff=None, opened=opened
            )

        # 상태 구독자/에러 핸들러가 connect() 또는 aclose()를 호출했을 수 있음
        if not owns_session or self._session_task is not None or not self._auto_reconnect:
            return
        await self._schedule_reconnect()

    async def _schedule_reconnect(self) -> bool:
        """백오프 타이머 예약. 이미 대기 중이면 no-op.

        Returns:
            타이머를 새로 예약했으면 True
        """
        if self.reconnect_pending:
            return False

        if self._retry_attempts >= self.policy.max_attempts:
            self._gave_up = True
            self._set_status(ConnectionState.DISCONNECTED)
            self._log_warning(
                "Max retries reached. Giving up.",
                phase=PHASE_GIVE_UP,
                max_attempts=self.policy.max_attempts,
            )
            await self._error_handler.emit_ws_error(
                RetryBudgetExhausted("max reconnect attempts exceeded"),
                observed_key=f"{self.scope.to_key()}:retry_limit",
                raw_context={
                    "attempt": self._retry_attempts,
                    "max_reconnect_attempts": self.policy.max_attempts,
                },
            )
            return False

        delay = compute_next_backoff(self.policy, self._retry_attempts)
        self._set_status(ConnectionState.RECONNECTING)
        self._log_info(
            f"Reconnecting in {delay:.2f}s (attempt {self._retry_attempts + 1})",
            phase=PHASE_RECONNECT,
            delay=delay,
            attempt=self._retry_attempts + 1,
        )
        self._backoff_task = asyncio.create_task(
            self._reconnect_after(delay), name=f"feed-backoff:{self.scope.url}"
        )
        return True

    async def _reconnect_after(self, delay: float) -> None:
        try:
            await self._sleep(delay)
        except asyncio.CancelledError:
            self._log_info("재접속 대기 중단", phase=PHASE_RECONNECT)
            raise

        self._backoff_task = None
        if self._disposed or not self._auto_reconnect:
            return
        self._retry_attempts += 1
        self._open()

    # ------------------------------------------------------------------
    # 프레임 처리
    # ------------------------------------------------------------------

    async def _handle_frame(self, frame: Any) -> None:
        """프레임 1건 처리. 디코딩/형태 실패는 폐기하고 연결은 유지."""
        self.frames_received += 1
        try:
            event = decode_frame(frame)
        except FRAME_EXCEPTIONS as e:
            await self._error_handler.emit_frame_error(e, frame)
            return

        try:
            result = self._on_event(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            await self._error_handler.emit_sink_error(e, event.id)
            return
        self.events_delivered += 1

    # ------------------------------------------------------------------
    # 종료
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """매니저 종료 (멱등).

        1. 자동 재연결 비활성화 (의도적 close가 재연결을 유발하지 않음)
        2. 대기 중인 재시도 타이머 취소
        3. 열린 전송 계층 close, 진행 중인 세션 태스크 정리
        """
        if self._disposed:
            return
        self._disposed = True
        self._auto_reconnect = False
        self._log_info("disposing connection manager", phase=PHASE_DISPOSE)

        backoff_task = self._backoff_task
        self._backoff_task = None
        if backoff_task is not None and not backoff_task.done():
            backoff_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await backoff_task

        websocket = self._current_websocket
        if websocket is not None:
            try:
                await websocket.close()
            except Exception as close_error:
                self._log_warning(
                    f"websocket close failed during dispose - {close_error}",
                    phase=PHASE_DISPOSE,
                )

        session_task = self._session_task
        self._session_task = None
        if (
            session_task is not None
            and session_task is not asyncio.current_task()
            and not session_task.done()
        ):
            session_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await session_task

        self._current_websocket = None
        self._set_status(ConnectionState.DISCONNECTED)

    async def __aenter__(self) -> StreamConnectionManager:
        self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()
