from __future__ import annotations

import asyncio
import logging
import queue
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from market_feed.config.settings import logging_settings

# LogRecord 기본 속성 (extra 키로 쓰면 logging이 KeyError를 던짐)
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime"}

# 포맷 문자열에 이미 들어가는 extra 키
_FORMATTED_KEYS: frozenset[str] = frozenset({"component"})


class ScopeFormatter(logging.Formatter):
    """메시지 뒤에 구조화 extra를 key=value로 덧붙이는 포맷터

    예) ... [connection] WS Connected | url=ws://localhost:8080 stream=market phase=open
    """

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        pairs = [
            f"{key}={value}"
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in _FORMATTED_KEYS
        ]
        if not pairs:
            return base
        return f"{base} | {' '.join(pairs)}"


class PipelineLogger:
    """
    수집 파이프라인용 로깅 시스템

    - QueueHandler → QueueListener(별도 스레드)로 콘솔/파일 출력
    - 컴포넌트 단위 파일 분리 (logs/<component>/<name>_<date>.log)
    - set_context()로 지정한 값은 모든 레코드 extra에 병합
    - ainfo() 등 비동기 변형 제공
    """

    _default_level = logging.INFO
    _instances: ClassVar[dict[str, PipelineLogger]] = {}

    @classmethod
    def get_logger(cls, name: str, component: str | None = None, **kwargs: Any) -> PipelineLogger:
        """(name, component) 당 하나의 인스턴스를 반환합니다.

        같은 이름으로 여러 번 생성하면 리스너 스레드가 중복되므로 캐시합니다.
        """
        key = f"{name}.{component}" if component else name
        instance = cls._instances.get(key)
        if instance is None:
            instance = cls(name, component, **kwargs)
            cls._instances[key] = instance
        return instance

    def __init__(
        self,
        name: str,
        component: str | None = None,
        level: int | None = None,
        log_to_file: bool | None = None,
        log_to_console: bool = True,
        log_dir: str | None = None,
        rotation: str = "midnight",
    ):
        """
        Args:
            name: 로거 이름
            component: 컴포넌트 이름 (connection, store, query, app ...)
            level: 로깅 레벨 (기본: LOG_LEVEL)
            log_to_file: 파일 로깅 여부 (기본: LOG_TO_FILE)
            log_to_console: 콘솔 로깅 여부
            log_dir: 로그 디렉토리 (기본: LOG_DIR)
            rotation: 파일 로테이션 주기
        """
        self.name = name
        self.component = component
        self.level = level or self._resolve_level(logging_settings.level)
        self.log_to_file = logging_settings.to_file if log_to_file is None else log_to_file
        self.log_to_console = log_to_console
        self.log_dir = Path(log_dir or logging_settings.dir)
        self.rotation = rotation

        self.log_queue: queue.Queue = queue.Queue()
        self.context: dict[str, Any] = {}

        self.logger_name = f"{name}.{component}" if component else name
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(self.level)
        self.logger.propagate = False
        self.logger.handlers.clear()
        self.logger.addHandler(QueueHandler(self.log_queue))

        self.listener = QueueListener(
            self.log_queue, *self._build_handlers(), respect_handler_level=True
        )
        self.listener.start()

    @classmethod
    def _resolve_level(cls, name: str) -> int:
        level = logging.getLevelName(name.upper())
        return level if isinstance(level, int) else cls._default_level

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = ScopeFormatter("%(asctime)s %(levelname)s %(name)s [%(component)s] %(message)s")
        handlers: list[logging.Handler] = []

        if self.log_to_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            handlers.append(console)

        if self.log_to_file:
            log_file = self._log_file_path()
            log_file.parent.mkdir(parents=True, exist_ok=True)
            # 파일은 첫 기록 시점에 생성
            file_handler = TimedRotatingFileHandler(
                filename=log_file, when=self.rotation, backupCount=7, delay=True
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        return handlers

    def _log_file_path(self) -> Path:
        today = datetime.now().strftime("%Y-%m-%d")
        directory = self.log_dir / self.component if self.component else self.log_dir
        return directory / f"{self.name}_{today}.log"

    def set_context(self, **kwargs: Any) -> None:
        self.context.update(kwargs)

    def _build_extra(self, extra: dict[str, Any] | None) -> dict[str, Any]:
        merged: dict[str, Any] = {"component": self.component or "main", **self.context}
        if extra:
            merged.update(extra)
        # 예약 속성과 겹치는 키는 접두사를 붙여 보존
        return {
            (f"x_{key}" if key in _RESERVED_ATTRS else key): value
            for key, value in merged.items()
        }

    def _process_message(self, level: int, msg: str, kwargs: dict[str, Any]) -> None:
        exc_info = kwargs.pop("exc_info", None)
        stack_info = bool(kwargs.pop("stack_info", False))
        extra = kwargs.pop("extra", None)
        if isinstance(extra, dict):
            kwargs = {**extra, **kwargs}

        self.logger.log(
            level,
            msg,
            exc_info=exc_info,
            stack_info=stack_info,
            extra=self._build_extra(kwargs),
        )

    async def alog(self, level: int, msg: str, **kwargs: Any) -> None:
        """실행 중인 루프가 있으면 기본 executor로 위임, 없으면 동기 처리"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._process_message(level, msg, kwargs)
            return
        await loop.run_in_executor(None, self._process_message, level, msg, kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._process_message(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._process_message(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._process_message(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._process_message(logging.ERROR, msg, kwargs)

    async def ainfo(self, msg: str, **kwargs: Any) -> None:
        await self.alog(logging.INFO, msg, **kwargs)

    def close(self) -> None:
        self.listener.stop()
        self._instances.pop(self.logger_name, None)
