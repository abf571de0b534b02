"""Session orchestration."""

from .controller import (
    FileReadResult,
    PointerEvent,
    PointerResult,
    SessionController,
    SessionEvent,
    SessionSnapshot,
    SessionState,
    Tooltip,
)

__all__ = [
    "FileReadResult",
    "PointerEvent",
    "PointerResult",
    "SessionController",
    "SessionEvent",
    "SessionSnapshot",
    "SessionState",
    "Tooltip",
]
