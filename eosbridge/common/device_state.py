"""
Device State Management

Tracks the connection state of the two external collaborators: the MIDI
control surface and the Eos console.
"""

import logging
import time
import typing as t
from dataclasses import dataclass
from enum import Enum
from threading import Lock

logger = logging.getLogger(__name__)


class DeviceState(str, Enum):
    """Device connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class DeviceType(str, Enum):
    """External endpoints the bridge talks to."""

    MIDI_INPUT = "midi_input"
    EOS_CONSOLE = "eos_console"


@dataclass
class DeviceStatus:
    """Status information for a device."""

    device_type: DeviceType
    state: DeviceState = DeviceState.DISCONNECTED
    last_connected: t.Optional[float] = None
    last_error: t.Optional[str] = None
    connect_attempts: int = 0

    def is_connected(self) -> bool:
        return self.state == DeviceState.CONNECTED


StateCallback = t.Callable[[DeviceType, DeviceState], None]


class DeviceManager:
    """
    Thread-safe connection state for every DeviceType.

    Transports run their I/O on background threads, so every state change
    goes through the lock and listeners are notified outside of it.
    """

    def __init__(self):
        self._devices: t.Dict[DeviceType, DeviceStatus] = {
            device_type: DeviceStatus(device_type) for device_type in DeviceType
        }
        self._lock = Lock()
        self._state_change_callbacks: t.List[StateCallback] = []

    def get_status(self, device_type: DeviceType) -> DeviceStatus:
        with self._lock:
            return self._devices[device_type]

    def get_state(self, device_type: DeviceType) -> DeviceState:
        with self._lock:
            return self._devices[device_type].state

    def is_connected(self, device_type: DeviceType) -> bool:
        with self._lock:
            return self._devices[device_type].is_connected()

    def get_last_error(self, device_type: DeviceType) -> t.Optional[str]:
        with self._lock:
            return self._devices[device_type].last_error

    def set_connecting(self, device_type: DeviceType) -> None:
        self._transition(device_type, DeviceState.CONNECTING)

    def set_connected(self, device_type: DeviceType) -> None:
        self._transition(device_type, DeviceState.CONNECTED)

    def set_disconnected(self, device_type: DeviceType) -> None:
        self._transition(device_type, DeviceState.DISCONNECTED)

    def set_error(self, device_type: DeviceType, error_msg: str) -> None:
        self._transition(device_type, DeviceState.ERROR, error_msg)

    def _transition(
        self,
        device_type: DeviceType,
        new_state: DeviceState,
        error_msg: t.Optional[str] = None,
    ) -> None:
        with self._lock:
            status = self._devices[device_type]
            old_state = status.state
            status.state = new_state
            if new_state == DeviceState.CONNECTING:
                status.connect_attempts += 1
            elif new_state == DeviceState.CONNECTED:
                status.last_connected = time.time()
                status.connect_attempts = 0
                status.last_error = None
            elif new_state == DeviceState.DISCONNECTED:
                status.last_error = None
            else:
                status.last_error = error_msg

        if old_state == new_state:
            return

        if new_state == DeviceState.ERROR:
            logger.error(f"⚠️ {device_type.value} error: {error_msg}")
        elif new_state == DeviceState.DISCONNECTED:
            logger.warning(f"{device_type.value} disconnected")
        else:
            logger.info(f"{device_type.value} {new_state.value}")
        self._notify_state_change(device_type, new_state)

    def register_state_change_callback(self, callback: StateCallback) -> None:
        self._state_change_callbacks.append(callback)

    def unregister_state_change_callback(self, callback: StateCallback) -> None:
        if callback in self._state_change_callbacks:
            self._state_change_callbacks.remove(callback)

    def _notify_state_change(self, device_type: DeviceType, new_state: DeviceState) -> None:
        for callback in self._state_change_callbacks:
            try:
                callback(device_type, new_state)
            except Exception as e:
                logger.error(f"Error in state change callback: {e}")
