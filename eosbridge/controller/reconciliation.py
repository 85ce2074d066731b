"""
Reconciliation Engine

Keeps physical fader positions and console fader levels in agreement:

- Console level notifications overwrite the fader's stored console level.
- Controller movements go through soft takeover before they are forwarded.
- Bump buttons send full level on press and restore the stored level on
  release, bypassing soft takeover.
"""

import logging
import math
import typing as t

from eosbridge.common.constants import DEFAULT_BANK, NOTE_OFFSET
from eosbridge.console.console_protocol import ConsoleProtocol
from eosbridge.controller.event_queue import (
    BridgeEvent,
    ControlChangeEvent,
    EventType,
    FaderLevelEvent,
    NoteEvent,
)
from eosbridge.faders.addressing import construct_fader_path
from eosbridge.faders.models import Id
from eosbridge.faders.profile_store import FaderProfileStore
from eosbridge.faders.takeover import TakeoverDecision, decide_takeover, normalize_midi

logger = logging.getLogger(__name__)


def is_valid_level(level: t.Any) -> bool:
    """A console level must be a finite real number within [0, 1]."""
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return False
    return math.isfinite(level) and 0.0 <= level <= 1.0


class ReconciliationEngine:
    """Applies console and controller events to the fader profile store."""

    def __init__(
        self,
        store: FaderProfileStore,
        console: ConsoleProtocol,
        bank: int = DEFAULT_BANK,
    ):
        self.store = store
        self.console = console
        self.bank = bank

    def dispatch(self, event: BridgeEvent) -> None:
        """Route one queued event to its handler."""
        if event.event_type == EventType.FADER_LEVEL:
            self.handle_fader_level(t.cast(FaderLevelEvent, event.data))
        elif event.event_type == EventType.CONTROL_CHANGE:
            self.handle_control_change(t.cast(ControlChangeEvent, event.data))
        elif event.event_type == EventType.NOTE_ON:
            self.handle_note_on(t.cast(NoteEvent, event.data))
        elif event.event_type == EventType.NOTE_OFF:
            self.handle_note_off(t.cast(NoteEvent, event.data))

    # ============================================================================
    # CONSOLE -> LOCAL
    # ============================================================================

    def handle_fader_level(self, event: FaderLevelEvent) -> None:
        fader = self.store.get_fader_by_eos(event.fader)
        if fader is None:
            return
        if not is_valid_level(event.percent):
            logger.warning(f"[EOS] Ignoring level {event.percent} for Eos fader {event.fader}")
            return
        self.store.update_fader_values(fader.id, eos_value=event.percent)

    # ============================================================================
    # CONTROLLER -> CONSOLE
    # ============================================================================

    def handle_control_change(self, event: ControlChangeEvent) -> t.Optional[TakeoverDecision]:
        """
        Forward a fader movement if soft takeover allows it.

        Returns:
            The takeover decision, or None if no fader is bound to the controller
        """
        fader = self.store.get_fader_by_midi(event.controller)
        if fader is None:
            return None

        midi_norm = normalize_midi(event.value)
        decision = decide_takeover(
            eos_value=fader.eos_value,
            last_midi_norm=normalize_midi(fader.midi_value),
            midi_norm=midi_norm,
        )

        if decision == TakeoverDecision.FORWARD:
            self.send_fader_level(fader.id, midi_norm)
            self.store.update_fader_values(fader.id, eos_value=midi_norm, midi_value=event.value)
        else:
            logger.debug(
                f"Holding fader {fader.id}: controller at {midi_norm:.3f}, "
                f"console at {fader.eos_value:.3f}"
            )
        return decision

    def handle_note_on(self, event: NoteEvent) -> None:
        fader = self.store.get_fader_by_midi(event.note + NOTE_OFFSET)
        if fader is None:
            return
        self.send_bump_on(fader.id)

    def handle_note_off(self, event: NoteEvent) -> None:
        fader = self.store.get_fader_by_midi(event.note + NOTE_OFFSET)
        if fader is None:
            return
        self.send_bump_off(fader.id)

    # ============================================================================
    # OUTBOUND
    # ============================================================================

    def send_fader_level(self, fader_id: Id, level: t.Any, bank: t.Optional[int] = None) -> bool:
        """Send a level for a fader; invalid levels are logged and dropped."""
        fader = self.store.get_fader(fader_id)
        if fader is None:
            logger.warning(f"Fader {fader_id} not found")
            return False

        if not is_valid_level(level):
            logger.error(f"[EOS] Invalid fader level for fader {fader_id}: {level}")
            return False

        path = construct_fader_path(fader.config.eos_fader, self.bank if bank is None else bank)
        return self.console.send_message(path, [float(level)])

    def send_bump_on(self, fader_id: Id, bank: t.Optional[int] = None) -> bool:
        return self.send_fader_level(fader_id, 1.0, bank)

    def send_bump_off(self, fader_id: Id, bank: t.Optional[int] = None) -> bool:
        """Restore the level the console had before the bump (0 if never reported)."""
        fader = self.store.get_fader(fader_id)
        if fader is None:
            logger.warning(f"Fader {fader_id} not found")
            return False
        return self.send_fader_level(fader_id, fader.eos_value, bank)
