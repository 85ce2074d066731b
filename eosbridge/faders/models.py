"""
Fader Entities

Faders, fader groups and fader profiles, plus the structural checks applied
to profile documents read from disk. JSON keys keep the camelCase names used
by the profile files (``groupId``, ``faderGroups``, ``currentPage``...).
"""

from __future__ import annotations

import math
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from eosbridge.common.constants import DEFAULT_PAGE, MIDI_MAX

Id = Union[str, int]

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def new_id() -> str:
    """Opaque unique id: millisecond timestamp plus a random tail, base 36."""
    stamp = _to_base36(int(time.time() * 1000))
    tail = "".join(random.choices(_BASE36, k=11))
    return stamp + tail


def _is_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_in_range(value: Any, low: float, high: float) -> bool:
    return _is_number(value) and math.isfinite(value) and low <= value <= high


@dataclass
class FaderConfig:
    """Bindings of a fader: MIDI controller number and Eos fader number."""

    midi_controller: int = 1
    eos_fader: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"midiController": self.midi_controller, "eosFader": self.eos_fader}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FaderConfig:
        return cls(
            midi_controller=data["midiController"],
            eos_fader=data["eosFader"],
        )


@dataclass
class Fader:
    """
    A logical fader.

    ``eos_value`` is the last level reported by (or forwarded to) the
    console, 0.0-1.0. ``midi_value`` is the last raw controller reading,
    0-127.
    """

    id: Id
    group_id: Id
    eos_value: float = 0.0
    midi_value: int = 0
    config: FaderConfig = field(default_factory=FaderConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "groupId": self.group_id,
            "eos": self.eos_value,
            "midi": self.midi_value,
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Fader:
        return cls(
            id=data["id"],
            group_id=data["groupId"],
            eos_value=float(data.get("eos", 0.0)),
            midi_value=int(data.get("midi", 0)),
            config=FaderConfig.from_dict(data["config"]),
        )


@dataclass
class FaderGroup:
    """A named set of faders that is addressable on one page."""

    id: Id
    name: str = "New Group"
    page: int = DEFAULT_PAGE

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "page": self.page}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FaderGroup:
        return cls(id=data["id"], name=data["name"], page=data["page"])


@dataclass
class FaderProfile:
    """A complete fader layout. Only one profile is loaded at a time."""

    id: Id
    name: str = "New Profile"
    fader_groups: List[FaderGroup] = field(default_factory=list)
    faders: List[Fader] = field(default_factory=list)
    current_page: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "faderGroups": [group.to_dict() for group in self.fader_groups],
            "faders": [fader.to_dict() for fader in self.faders],
        }
        if self.current_page is not None:
            data["currentPage"] = self.current_page
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FaderProfile:
        return cls(
            id=data["id"],
            name=data["name"],
            fader_groups=[FaderGroup.from_dict(g) for g in data["faderGroups"]],
            faders=[Fader.from_dict(f) for f in data["faders"]],
            current_page=data.get("currentPage"),
        )


@dataclass
class FaderProfileMetadata:
    """Directory entry for a profile file, readable without loading it."""

    id: Id
    name: str
    filename: str


def build_fader(group_id: Id, eos_fader: int = 1, midi_controller: int = 1) -> Fader:
    return Fader(
        id=new_id(),
        group_id=group_id,
        config=FaderConfig(midi_controller=midi_controller, eos_fader=eos_fader),
    )


def build_fader_group(name: str = "New Group", page: int = DEFAULT_PAGE) -> FaderGroup:
    return FaderGroup(id=new_id(), name=name, page=page)


def is_fader_profile(obj: Any) -> bool:
    """Structural check for a profile document (members are not inspected)."""
    return (
        isinstance(obj, dict)
        and _is_id(obj.get("id"))
        and isinstance(obj.get("name"), str)
        and (obj.get("currentPage") is None or _is_int(obj.get("currentPage")))
        and isinstance(obj.get("faderGroups"), list)
        and isinstance(obj.get("faders"), list)
    )


def is_fader_group(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and _is_id(obj.get("id"))
        and isinstance(obj.get("name"), str)
        and _is_int(obj.get("page"))
    )


def is_fader(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    config = obj.get("config")
    return (
        _is_id(obj.get("id"))
        and _is_id(obj.get("groupId"))
        and _is_in_range(obj.get("eos", 0), 0.0, 1.0)
        and _is_in_range(obj.get("midi", 0), 0, MIDI_MAX)
        and isinstance(config, dict)
        and _is_int(config.get("midiController"))
        and _is_int(config.get("eosFader"))
    )


def is_complete_fader_profile(obj: Any) -> bool:
    """Profile check that also validates every group and fader."""
    return (
        is_fader_profile(obj)
        and all(is_fader_group(group) for group in obj["faderGroups"])
        and all(is_fader(fader) for fader in obj["faders"])
    )
