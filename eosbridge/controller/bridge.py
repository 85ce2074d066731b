"""
Eos Bridge - Orchestrator

Wires the subsystems together and owns their lifecycle:
- ConfigManager: persisted settings
- FaderProfileStore: loaded profile and page-scoped lookups
- ReconciliationEngine: soft takeover and bump handling
- Console transport (EosConsole or ConsoleSim)
- MidiInput: control surface
"""

import logging
import typing as t
from pathlib import Path

from eosbridge.common.config import ConfigManager, get_app_data_dir
from eosbridge.common.constants import DEFAULT_BANK, PROFILES_DIR_NAME
from eosbridge.common.device_state import DeviceManager, DeviceState, DeviceType
from eosbridge.console.console_protocol import ConsoleProtocol
from eosbridge.console.console_sim import ConsoleSim
from eosbridge.console.eos_console import EosConsole
from eosbridge.controller.event_queue import EventQueue
from eosbridge.controller.reconciliation import ReconciliationEngine
from eosbridge.faders.profile_store import FaderProfileStore
from eosbridge.midi.midi_input import MidiInput
from eosbridge.midi.midi_manager import MidiManager

logger = logging.getLogger(__name__)


class EosBridge:
    """Coordinates the MIDI surface, the fader store and the console."""

    def __init__(
        self,
        config: ConfigManager,
        store: FaderProfileStore,
        console: ConsoleProtocol,
        event_queue: EventQueue,
        midi_input: t.Optional[MidiInput] = None,
        midi_manager: t.Optional[MidiManager] = None,
        device_manager: t.Optional[DeviceManager] = None,
    ):
        self.config = config
        self.store = store
        self.console = console
        self.event_queue = event_queue
        self.midi_input = midi_input
        self.midi_manager = midi_manager
        self.device_manager = device_manager or DeviceManager()

        self.engine = ReconciliationEngine(store, console)
        self.device_manager.register_state_change_callback(self._on_device_state_changed)

    @classmethod
    def create(cls, app_dir: t.Optional[Path] = None, simulation: bool = False) -> "EosBridge":
        """Build a bridge with the default collaborators."""
        app_dir = app_dir or get_app_data_dir()
        config = ConfigManager(app_dir / "config.json")
        store = FaderProfileStore(app_dir / PROFILES_DIR_NAME, config)
        event_queue = EventQueue()
        device_manager = DeviceManager()

        console: ConsoleProtocol
        if simulation:
            logger.info("🔧 Using simulated Eos console")
            console = ConsoleSim(event_queue)
        else:
            console = EosConsole(config, event_queue, device_manager)

        midi_manager = MidiManager()
        midi_input = MidiInput(config, event_queue, midi_manager, device_manager)

        return cls(
            config,
            store,
            console,
            event_queue,
            midi_input=midi_input,
            midi_manager=midi_manager,
            device_manager=device_manager,
        )

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    def initialize(self) -> None:
        self.store.initialize()
        self.initialize_console()
        if self.midi_input is not None:
            self.midi_input.initialize()
        logger.info("✅ Eos bridge initialized")

    def initialize_console(self) -> None:
        """Connect to the console if enabled and size its fader bank."""
        if not self.config.data["eos"]["active"]:
            self.console.close()
            return

        if not self.console.connect():
            self.config.set_eos_active(False)
            return

        self.console.create_fader_bank(self.store.get_max_eos_fader(), DEFAULT_BANK)

    def teardown(self) -> None:
        if self.midi_input is not None:
            self.midi_input.close(persist=False)
        self.console.close()
        self.store.teardown()
        if self.midi_manager is not None:
            self.midi_manager.shutdown()
        logger.info("Teardown complete")

    # ============================================================================
    # EVENT LOOP
    # ============================================================================

    def process_events(self) -> int:
        """Handle every pending event on the calling thread."""
        return self.event_queue.process_all(self.engine.dispatch)

    def run_main_loop(self, poll_interval: float = 0.05) -> None:
        self.initialize()
        self.serve_forever(poll_interval)

    def serve_forever(self, poll_interval: float = 0.05) -> None:
        """Dispatch events until interrupted, then tear everything down."""
        logger.info("Eos bridge running. Press Ctrl+C to exit.")

        try:
            while True:
                event = self.event_queue.wait(poll_interval)
                if event is not None:
                    self.engine.dispatch(event)
                    self.process_events()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self.teardown()

    # ============================================================================
    # EXTERNAL INTERFACE
    # ============================================================================

    def set_page(self, page: int) -> None:
        self.store.set_page(page)

    def load_profile(self, profile_id) -> bool:
        """Switch profile and resize the console's fader bank to match."""
        if not self.store.load_profile(profile_id):
            return False
        if self.console.connection_good:
            self.console.create_fader_bank(self.store.get_max_eos_fader(), DEFAULT_BANK)
        return True

    def change_midi_device(self, device: str) -> bool:
        if self.midi_input is None:
            return False
        return self.midi_input.change_device(device)

    def get_available_midi_devices(self) -> t.List[str]:
        if self.midi_input is None:
            return []
        return self.midi_input.get_available_devices()

    def _on_device_state_changed(self, device_type: DeviceType, new_state: DeviceState) -> None:
        logger.debug(f"Device {device_type.value} -> {new_state.value}")
