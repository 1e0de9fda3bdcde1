"""관찰 가능한 상태 컨테이너 (publish/subscribe)

값은 교체(replace-on-write) 방식으로만 갱신되며, 구독자는 교체가 끝난 뒤에 호출됩니다.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from market_feed.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("observable", "common")

T = TypeVar("T")
Listener = Callable[[T], Any]


class Observable(Generic[T]):
    def __init__(self, initial: T, *, name: str = "observable") -> None:
        self._value = initial
        self._name = name
        self._listeners: list[Listener[T]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T, *, force: bool = False) -> bool:
        """값 교체 후 구독자 통지. 동일 값이면 통지하지 않음 (force 제외)."""
        if not force and value == self._value:
            return False
        self._value = value
        self._notify(value)
        return True

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """구독 등록. 반환된 콜러블 호출 시 해제."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, value: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                # 구독자 오류는 발행 측으로 전파하지 않음
                logger.error(
                    f"{self._name}: listener failed - {e}",
                    exc_info=True,
                )
