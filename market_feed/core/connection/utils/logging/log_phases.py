"""구조화 로그의 phase 값 상수."""

from typing import Final

PHASE_CONNECT: Final[str] = "connect"
PHASE_OPEN: Final[str] = "open"
PHASE_CLOSE: Final[str] = "close"
PHASE_RECONNECT: Final[str] = "reconnect"
PHASE_GIVE_UP: Final[str] = "give_up"
PHASE_DISPOSE: Final[str] = "dispose"
PHASE_PARSE: Final[str] = "parse"
PHASE_VALIDATE: Final[str] = "validate"
PHASE_SINK: Final[str] = "sink"
PHASE_STATUS: Final[str] = "status"
