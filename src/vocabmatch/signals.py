import logging
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class Signal(str, Enum):
    FLIPPED = "flipped"
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    COMPLETED = "completed"
    HINT_READY = "hint_ready"


class SignalBus:
    """Synchronous fan-out of game signals to the presentation/audio side."""

    def __init__(self):
        self._handlers: Dict[Signal, List[Callable[..., Any]]] = {}

    def connect(self, signal: Signal, handler: Callable[..., Any]):
        self._handlers.setdefault(signal, []).append(handler)

    def emit(self, signal: Signal, *args: Any):
        logger.debug(f"Signal {signal.value} {args}")
        for handler in list(self._handlers.get(signal, [])):
            handler(*args)
