"""
Eos Console Communication  (python-osc, UDP)

Sends fader levels to an ETC Eos console and listens for the level
notifications it sends back for the bridge's fader bank. Incoming
notifications are posted to the bridge's event queue; nothing here touches
fader state directly.
"""

import logging
import threading
import typing as t

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import ThreadingOSCUDPServer
from pythonosc.udp_client import SimpleUDPClient

from eosbridge.common.constants import DEFAULT_BANK, FADER_LEVEL_PREFIX
from eosbridge.common.device_state import DeviceManager, DeviceType
from eosbridge.controller.event_queue import BridgeEvent, EventQueue, EventType, FaderLevelEvent
from eosbridge.faders.addressing import construct_bank_config_path, parse_fader_level_address

if t.TYPE_CHECKING:
    from eosbridge.common.config import ConfigManager

logger = logging.getLogger(__name__)


class EosConsole:
    def __init__(
        self,
        config: "ConfigManager",
        event_queue: EventQueue,
        device_manager: t.Optional[DeviceManager] = None,
        bank: int = DEFAULT_BANK,
    ):
        self.config = config
        self.event_queue = event_queue
        self.device_manager = device_manager
        self.bank = bank

        self.client: t.Optional[SimpleUDPClient] = None
        self.server: t.Optional[ThreadingOSCUDPServer] = None
        self._server_thread: t.Optional[threading.Thread] = None

        self.connection_good = False

        self.dispatcher = Dispatcher()
        self.dispatcher.map(f"{FADER_LEVEL_PREFIX}/*/*", self._handle_fader_level)

    def connect(self) -> bool:
        """
        Open the OSC client and start the notification listener.

        Returns:
            True if both directions are up
        """
        eos_config = self.config.data["eos"]
        address = eos_config["address"]
        port = eos_config["port"]
        listen_port = eos_config["listen_port"]

        # Drop any stale client/listener before reopening
        self.close()

        if self.device_manager:
            self.device_manager.set_connecting(DeviceType.EOS_CONSOLE)

        try:
            self.client = SimpleUDPClient(address, port)
            self.server = ThreadingOSCUDPServer(("0.0.0.0", listen_port), self.dispatcher)
        except OSError as e:
            logger.error("[EOS] Connection to %s:%s failed: %s", address, port, e)
            self.client = None
            if self.device_manager:
                self.device_manager.set_error(DeviceType.EOS_CONSOLE, str(e))
            return False

        self._server_thread = threading.Thread(
            target=self.server.serve_forever, name="eos-osc-server", daemon=True
        )
        self._server_thread.start()

        self.connection_good = True
        if self.device_manager:
            self.device_manager.set_connected(DeviceType.EOS_CONSOLE)
        logger.info(
            "✅ [EOS] Connected to Eos console at %s:%s (listening on %s)",
            address,
            port,
            listen_port,
        )
        return True

    def create_fader_bank(self, fader_count: int, bank: int = DEFAULT_BANK) -> bool:
        """Ask the console to set up a fader bank of ``fader_count`` faders."""
        ok = self.send_message(construct_bank_config_path(fader_count, bank), [])
        if ok:
            logger.info("[EOS] Requested fader bank %s with %s faders", bank, fader_count)
        return ok

    def send_message(self, path: str, values: t.Sequence[float]) -> bool:
        if not self.connection_good or self.client is None:
            logger.debug("[EOS] Not connected, dropping %s %s", path, list(values))
            return False

        try:
            self.client.send_message(path, list(values))
        except OSError as e:
            logger.error("[EOS] Send error on %s: %s", path, e)
            self._mark_disconnected(f"Send error: {e}")
            return False

        logger.debug("[EOS] Sent %s %s", path, list(values))
        return True

    def _handle_fader_level(self, address: str, *args: t.Any) -> None:
        """OSC server thread: turn a level notification into a queued event."""
        parsed = parse_fader_level_address(address)
        if parsed is None:
            return

        bank, fader = parsed
        if bank != self.bank:
            return

        if len(args) != 1 or not isinstance(args[0], (int, float)) or isinstance(args[0], bool):
            logger.warning("[EOS] Ignoring malformed fader level %s %s", address, args)
            return

        self.event_queue.post(
            BridgeEvent(EventType.FADER_LEVEL, FaderLevelEvent(fader=fader, percent=float(args[0])))
        )

    def _mark_disconnected(self, reason: str) -> None:
        if not self.connection_good:
            return
        self.connection_good = False
        logger.warning("[EOS] Connection lost: %s", reason)
        if self.device_manager:
            self.device_manager.set_error(DeviceType.EOS_CONSOLE, reason)

    def close(self) -> None:
        """Stop the listener and drop the client. Idempotent."""
        was_open = self.client is not None or self.server is not None
        if self.server is not None:
            self.server.shutdown()
            self.server.server_close()
        if self._server_thread is not None:
            self._server_thread.join(timeout=1.0)

        self.server = None
        self._server_thread = None
        self.client = None
        self.connection_good = False

        if was_open:
            logger.info("[EOS] Connection closed")
            if self.device_manager:
                self.device_manager.set_disconnected(DeviceType.EOS_CONSOLE)
