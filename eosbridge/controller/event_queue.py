"""
Event Queue – hands transport events over to the bridge's dispatch loop.

The MIDI callback thread and the OSC server thread only ``post`` events; the
bridge drains them via ``EventQueue.process_all`` so that every handler runs
to completion on one thread before the next event is looked at.
"""

import enum
import queue
import typing as t
from dataclasses import dataclass


class EventType(enum.Enum):
    """Kinds of events the transports can post."""

    FADER_LEVEL = "fader_level"
    CONTROL_CHANGE = "control_change"
    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"


@dataclass(frozen=True)
class FaderLevelEvent:
    """Console reported a level for one of its faders."""

    fader: int
    percent: float


@dataclass(frozen=True)
class ControlChangeEvent:
    controller: int
    value: int


@dataclass(frozen=True)
class NoteEvent:
    note: int


EventData = t.Union[FaderLevelEvent, ControlChangeEvent, NoteEvent]


@dataclass(frozen=True)
class BridgeEvent:
    """A single event destined for the dispatch loop."""

    event_type: EventType
    data: EventData


class EventQueue:
    """Thread-safe event queue wrapping :class:`queue.Queue`."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[BridgeEvent]" = queue.Queue()

    def post(self, event: BridgeEvent) -> None:
        """Enqueue an event (safe to call from any thread)."""
        self._queue.put(event)

    def process_all(self, handler: t.Callable[[BridgeEvent], None]) -> int:
        """Drain the queue, calling *handler* for every pending event.

        Returns:
            Number of events handled
        """
        handled = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            handler(event)
            handled += 1
        return handled

    def wait(self, timeout: float) -> t.Optional[BridgeEvent]:
        """Block up to *timeout* seconds for the next event."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def empty(self) -> bool:
        return self._queue.empty()
