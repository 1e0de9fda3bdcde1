from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from market_feed.common.logger import PipelineLogger
from market_feed.core.dto.internal.common import ConnectionScopeDomain


class ScopeLogExtra(BaseModel):
    """연결 스코프 로그 extra. 직렬화 시 None 값은 제외됩니다."""

    model_config = ConfigDict(extra="allow")

    url: str
    stream: str
    phase: str

    def to_extra(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ScopedConnectionLoggingMixin:
    """url/stream/phase를 붙여 주는 구조화 로깅 헬퍼."""

    _logger: PipelineLogger
    scope: ConnectionScopeDomain

    def _scope_log_extra(self, phase: str, **extra: Any) -> dict[str, Any]:
        return ScopeLogExtra(
            url=self.scope.url, stream=self.scope.stream, phase=phase, **extra
        ).to_extra()

    def _scope_log(self, level: int, message: str, phase: str, **extra: Any) -> None:
        payload = self._scope_log_extra(phase, **extra)
        match level:
            case logging.DEBUG:
                self._logger.debug(message, extra=payload)
            case logging.WARNING:
                self._logger.warning(message, extra=payload)
            case logging.ERROR:
                self._logger.error(message, extra=payload)
            case _:
                self._logger.info(message, extra=payload)

    def _log_info(self, message: str, phase: str, **extra: Any) -> None:
        self._scope_log(logging.INFO, message, phase, **extra)

    def _log_debug(self, message: str, phase: str, **extra: Any) -> None:
        self._scope_log(logging.DEBUG, message, phase, **extra)

    def _log_warning(self, message: str, phase: str, **extra: Any) -> None:
        self._scope_log(logging.WARNING, message, phase, **extra)

    def _log_error(self, message: str, phase: str, **extra: Any) -> None:
        self._scope_log(logging.ERROR, message, phase, **extra)
