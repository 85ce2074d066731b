"""
MIDI control surface input.

Converts control changes and note on/off messages from the configured
device into bridge events. Messages arrive on the backend's callback
thread and are only queued here.
"""

import logging
import typing as t

import mido

from eosbridge.common.device_state import DeviceManager, DeviceType
from eosbridge.controller.event_queue import (
    BridgeEvent,
    ControlChangeEvent,
    EventQueue,
    EventType,
    NoteEvent,
)
from eosbridge.midi.midi_manager import MidiManager

if t.TYPE_CHECKING:
    from eosbridge.common.config import ConfigManager

logger = logging.getLogger(__name__)


class MidiInput:
    def __init__(
        self,
        config: "ConfigManager",
        event_queue: EventQueue,
        midi_manager: t.Optional[MidiManager] = None,
        device_manager: t.Optional[DeviceManager] = None,
    ):
        self.config = config
        self.event_queue = event_queue
        self.midi_manager = midi_manager or MidiManager()
        self.device_manager = device_manager

        self.port = None  # type: t.Any
        self.device_name: t.Optional[str] = None

    def initialize(self) -> None:
        """Open the configured device, or close the input if MIDI is disabled."""
        midi_config = self.config.data["midi"]
        if midi_config["active"] and self.port is None:
            self.open(midi_config["device"])
        else:
            self.close()

    def get_available_devices(self) -> t.List[str]:
        return self.midi_manager.get_input_names()

    def change_device(self, device: str) -> bool:
        self.close()
        return self.open(device)

    def open(self, device: t.Optional[str]) -> bool:
        if not device:
            logger.info("[MIDI] No input device configured")
            return False

        if self.device_manager:
            self.device_manager.set_connecting(DeviceType.MIDI_INPUT)

        port = self.midi_manager.open_input(device, callback=self._handle_message)
        if port is None:
            logger.error(f'[MIDI] Failed to open input with device "{device}"')
            self.config.set_midi_device("")
            self.config.set_midi_active(False)
            if self.device_manager:
                self.device_manager.set_error(DeviceType.MIDI_INPUT, f"Cannot open {device}")
            return False

        self.port = port
        self.device_name = device
        self.config.set_midi_device(device)
        self.config.set_midi_active(True)
        if self.device_manager:
            self.device_manager.set_connected(DeviceType.MIDI_INPUT)
        logger.info(f'✅ [MIDI] Input opened with device "{device}"')
        return True

    def close(self, persist: bool = True) -> None:
        """Close the open port.

        With ``persist`` the input is also marked inactive in the configuration;
        shutdown passes ``False`` and leaves the setting untouched.
        """
        if self.port is None:
            return
        self.midi_manager.close_port(self.port)
        self.port = None
        self.device_name = None
        if persist:
            self.config.set_midi_active(False)
        if self.device_manager:
            self.device_manager.set_disconnected(DeviceType.MIDI_INPUT)

    def _handle_message(self, msg: mido.Message) -> None:
        """Backend callback: translate and queue one message."""
        logger.debug(f"[MIDI] Received message: {msg}")

        event = self.translate_message(msg)
        if event is not None:
            self.event_queue.post(event)

    @staticmethod
    def translate_message(msg: mido.Message) -> t.Optional[BridgeEvent]:
        """Map a mido message to a bridge event, None for anything else."""
        if msg.type == "control_change":
            return BridgeEvent(
                EventType.CONTROL_CHANGE,
                ControlChangeEvent(controller=msg.control, value=msg.value),
            )
        if msg.type == "note_on" and msg.velocity > 0:
            return BridgeEvent(EventType.NOTE_ON, NoteEvent(note=msg.note))
        # Running-status controllers send note_on with velocity 0 for release
        if msg.type in ("note_off", "note_on"):
            return BridgeEvent(EventType.NOTE_OFF, NoteEvent(note=msg.note))
        return None
