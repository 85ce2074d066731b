"""
Eos Console Simulator for Testing

Stands in for the console without any network I/O. Sent messages are
recorded, and level notifications can be injected as if the console had
sent them (e.g. after a cue recall).
"""

import logging
import typing as t

from eosbridge.common.constants import DEFAULT_BANK
from eosbridge.controller.event_queue import BridgeEvent, EventQueue, EventType, FaderLevelEvent
from eosbridge.faders.addressing import construct_bank_config_path

logger = logging.getLogger(__name__)


class ConsoleSim:
    """
    Simulates the Eos console.

    ``sent_messages`` holds every ``(path, values)`` pair in send order.
    """

    def __init__(self, event_queue: t.Optional[EventQueue] = None):
        self.event_queue = event_queue
        self.connection_good = False
        self.sent_messages: t.List[t.Tuple[str, t.List[float]]] = []
        self.fader_banks: t.Dict[int, int] = {}

    def connect(self) -> bool:
        self.connection_good = True
        logger.info("✅ [SIM] Console simulator connected")
        return True

    def create_fader_bank(self, fader_count: int, bank: int = DEFAULT_BANK) -> bool:
        self.fader_banks[bank] = fader_count
        return self.send_message(construct_bank_config_path(fader_count, bank), [])

    def send_message(self, path: str, values: t.Sequence[float]) -> bool:
        if not self.connection_good:
            return False
        self.sent_messages.append((path, list(values)))
        logger.debug("[SIM] Console received %s %s", path, list(values))
        return True

    def inject_fader_level(self, fader: int, percent: float) -> None:
        """Queue a level notification as the console would send it."""
        if self.event_queue is None:
            logger.warning("[SIM] No event queue attached, level notification dropped")
            return
        self.event_queue.post(
            BridgeEvent(EventType.FADER_LEVEL, FaderLevelEvent(fader=fader, percent=percent))
        )

    def get_last_message(self) -> t.Optional[t.Tuple[str, t.List[float]]]:
        return self.sent_messages[-1] if self.sent_messages else None

    def clear(self) -> None:
        self.sent_messages.clear()

    def close(self) -> None:
        if self.connection_good:
            logger.info("✅ [SIM] Console simulator closed")
        self.connection_good = False
