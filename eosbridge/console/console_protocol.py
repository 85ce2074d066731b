"""
Console Protocol

Structural interface shared by ``EosConsole`` (real console over OSC) and
``ConsoleSim`` (in-process simulator). Uses ``typing.Protocol`` so both
conform without inheritance.
"""

from typing import Protocol, Sequence, runtime_checkable

from eosbridge.common.constants import DEFAULT_BANK


@runtime_checkable
class ConsoleProtocol(Protocol):
    """Structural protocol for console backends."""

    connection_good: bool

    def connect(self) -> bool: ...

    def create_fader_bank(self, fader_count: int, bank: int = DEFAULT_BANK) -> bool: ...

    def send_message(self, path: str, values: Sequence[float]) -> bool: ...

    def close(self) -> None: ...
