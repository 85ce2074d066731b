"""
Soft Takeover

Decides whether a physical fader movement may be forwarded to the console.
A fader that was moved while its page was inactive (or after a cue recalled
a different level) has to reach the console's current level before it takes
over, otherwise the console level would jump.
"""

from enum import Enum

from eosbridge.common.constants import ATTACH_TOLERANCE, MIDI_MAX


class TakeoverDecision(str, Enum):
    """Outcome of a soft takeover check."""

    FORWARD = "forward"
    HOLD = "hold"


def normalize_midi(value: int) -> float:
    """Map a raw 0-127 controller value onto 0.0-1.0."""
    return value / MIDI_MAX


def decide_takeover(
    eos_value: float,
    last_midi_norm: float,
    midi_norm: float,
    tolerance: float = ATTACH_TOLERANCE,
) -> TakeoverDecision:
    """
    Compare the console level against the previous and the new fader position.

    Args:
        eos_value: Level the console currently holds for this fader (0-1)
        last_midi_norm: Previous controller position, normalized
        midi_norm: New controller position, normalized
        tolerance: Crossover slack for controller jitter

    Returns:
        FORWARD when the fader is attached (or just crossed the console
        level), HOLD while it is still outside the pickup window.
    """
    if eos_value == last_midi_norm or midi_norm == eos_value:
        return TakeoverDecision.FORWARD

    # Approaching from above: moving down past the console level
    if eos_value < last_midi_norm + tolerance and midi_norm < eos_value:
        return TakeoverDecision.FORWARD

    # Approaching from below: moving up past the console level
    if eos_value > last_midi_norm - tolerance and midi_norm > eos_value:
        return TakeoverDecision.FORWARD

    return TakeoverDecision.HOLD
