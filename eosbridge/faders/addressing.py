"""
Eos OSC addressing for fader banks.

Outgoing levels go to the user-scoped fader bank path
``/eos/user/0/fader/<bank>/<fader>``; the console reports levels back on
``/eos/fader/<bank>/<fader>``.
"""

import typing as t

from eosbridge.common.constants import BASE_FADER_PATH, DEFAULT_BANK, FADER_LEVEL_PREFIX


def construct_fader_path(eos_fader: int, bank: int = DEFAULT_BANK) -> str:
    return f"{BASE_FADER_PATH}/{bank}/{eos_fader}"


def construct_bank_config_path(fader_count: int, bank: int = DEFAULT_BANK) -> str:
    """Path that asks the console to create ``bank`` with ``fader_count`` faders."""
    return f"{BASE_FADER_PATH}/{bank}/config/{fader_count}"


def parse_fader_level_address(address: str) -> t.Optional[t.Tuple[int, int]]:
    """
    Extract ``(bank, fader)`` from a level notification address.

    Returns None for anything that is not ``/eos/fader/<int>/<int>``, for
    example the bank's name or config replies.
    """
    prefix = FADER_LEVEL_PREFIX + "/"
    if not address.startswith(prefix):
        return None

    parts = address[len(prefix):].split("/")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        return None

    return int(parts[0]), int(parts[1])
