"""Event system for Live Pitch components."""

from typing import Dict, List, Callable, Any
from enum import Enum, auto

from ..logger import get_logger
from ..note_types import TunerReading

logger = get_logger(__name__)


class TunerEventType(Enum):
    """Event types emitted by the tuner."""

    READING = auto()
    ERROR = auto()


class EventEmitter:
    """Minimal synchronous event emitter."""

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Remove a previously registered callback, if present."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        Listeners run on the caller's thread, in registration order. A
        listener that raises is logged and skipped; the others still run.

        Args:
            event_type: Event type to emit
            *args: Positional arguments to pass to listeners
            **kwargs: Keyword arguments to pass to listeners
        """
        for callback in list(self._listeners.get(event_type, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}", exc_info=True)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")


class TunerEvents:
    """Event emitter specifically for tuner readings."""

    def __init__(self):
        """Initialize the tuner events."""
        self._emitter = EventEmitter()

    def on_reading(self, callback: Callable[[TunerReading], None]) -> None:
        """Register a callback for readings.

        Args:
            callback: Function to call with each TunerReading
        """
        self._emitter.on(TunerEventType.READING, callback)

    def off_reading(self, callback: Callable[[TunerReading], None]) -> None:
        self._emitter.off(TunerEventType.READING, callback)

    def emit_reading(self, reading: TunerReading) -> None:
        """Emit a reading event.

        Args:
            reading: The reading to hand to every listener
        """
        self._emitter.emit(TunerEventType.READING, reading)

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        """Register a callback for audio source failures."""
        self._emitter.on(TunerEventType.ERROR, callback)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(TunerEventType.ERROR, error)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()
