"""
MIDI Port Manager  (mido + python-rtmidi)

All MIDI input ports are opened and closed through this manager so that
port tracking, error handling and logging stay in one place.

Usage::

    from eosbridge.midi.midi_manager import MidiManager

    manager = MidiManager()
    port = manager.open_input("X-Touch Compact", callback=on_message)
    manager.close_port(port)
    manager.shutdown()
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import mido
import mido.ports

mido.set_backend("mido.backends.rtmidi")

logger = logging.getLogger(__name__)

MessageCallback = Callable[[mido.Message], None]


class MidiManager:
    """Thread-safe MIDI input port manager built on *mido* + *python-rtmidi*."""

    def __init__(self) -> None:
        self._open_ports: List[mido.ports.BaseInput] = []
        self._ports_lock = threading.Lock()

    @staticmethod
    def get_input_names() -> List[str]:
        """Return available MIDI input port names."""
        try:
            return mido.get_input_names()
        except (IOError, OSError, ImportError) as exc:
            logger.error("[MIDI] Failed to list input ports: %s", exc)
            return []

    @staticmethod
    def find_port_name(keyword: str, names: List[str]) -> Optional[str]:
        """First port name containing *keyword*, case-insensitive."""
        keyword_lower = keyword.lower()
        for name in names:
            if keyword_lower in name.lower():
                return name
        return None

    def open_input(
        self, name: str, callback: Optional[MessageCallback] = None
    ) -> Optional[mido.ports.BaseInput]:
        """Open an input port by exact *name*.

        With a *callback* the backend delivers messages on its own thread.
        """
        try:
            port = mido.open_input(name, callback=callback)
        except (IOError, OSError) as exc:
            logger.error("[MIDI] Failed to open input '%s': %s", name, exc)
            return None

        with self._ports_lock:
            self._open_ports.append(port)
        logger.info("[MIDI] Opened input: %s", name)
        return port

    def open_input_by_keyword(
        self, keyword: str, callback: Optional[MessageCallback] = None
    ) -> Optional[mido.ports.BaseInput]:
        name = self.find_port_name(keyword, self.get_input_names())
        if name is None:
            logger.warning("[MIDI] No input port matching '%s'", keyword)
            return None
        return self.open_input(name, callback=callback)

    @staticmethod
    def is_port_alive(port) -> bool:
        if port is None:
            return False
        return not getattr(port, "closed", True)

    def close_port(self, port) -> None:
        if port is None:
            return
        try:
            if not getattr(port, "closed", True):
                port.close()
                logger.debug("[MIDI] Closed port: %s", getattr(port, "name", "?"))
        except (IOError, OSError) as exc:
            logger.debug("[MIDI] Error closing port: %s", exc)
        finally:
            with self._ports_lock:
                if port in self._open_ports:
                    self._open_ports.remove(port)

    def shutdown(self) -> None:
        """Close every tracked port."""
        with self._ports_lock:
            ports_to_close = list(self._open_ports)
        for port in ports_to_close:
            self.close_port(port)
        logger.info("[MIDI] Manager shut down (all ports closed)")
