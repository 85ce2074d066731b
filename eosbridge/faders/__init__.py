"""
Faders Module

Fader entities, the page-scoped profile store, soft takeover and Eos addressing.
"""

from eosbridge.faders.models import Fader, FaderConfig, FaderGroup, FaderProfile
from eosbridge.faders.profile_store import FaderProfileStore
from eosbridge.faders.takeover import TakeoverDecision, decide_takeover

__all__ = [
    "Fader",
    "FaderConfig",
    "FaderGroup",
    "FaderProfile",
    "FaderProfileStore",
    "TakeoverDecision",
    "decide_takeover",
]
