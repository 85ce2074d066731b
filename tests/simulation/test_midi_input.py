"""Test MIDI message translation and device handling"""
import mido
import pytest

from eosbridge.common.device_state import DeviceManager, DeviceType
from eosbridge.controller.event_queue import EventQueue, EventType
from eosbridge.midi.midi_input import MidiInput
from eosbridge.midi.midi_manager import MidiManager


class FakePort:
    def __init__(self, name):
        self.name = name
        self.closed = False

    def close(self):
        self.closed = True


class FakeMidiManager(MidiManager):
    """Port manager that never touches the MIDI backend"""

    def __init__(self, available):
        super().__init__()
        self.available = available
        self.callbacks = {}

    def get_input_names(self):
        return list(self.available)

    def open_input(self, name, callback=None):
        if name not in self.available:
            return None
        self.callbacks[name] = callback
        return FakePort(name)


@pytest.fixture
def events():
    return EventQueue()


@pytest.fixture
def midi_input(config, events):
    return MidiInput(config, events, FakeMidiManager(["X-Touch Compact"]), DeviceManager())


def test_translate_control_change():
    event = MidiInput.translate_message(mido.Message("control_change", control=7, value=64))
    assert event.event_type == EventType.CONTROL_CHANGE
    assert event.data.controller == 7
    assert event.data.value == 64


def test_translate_notes():
    on = MidiInput.translate_message(mido.Message("note_on", note=10, velocity=100))
    off = MidiInput.translate_message(mido.Message("note_off", note=10))
    zero_velocity = MidiInput.translate_message(mido.Message("note_on", note=10, velocity=0))

    assert on.event_type == EventType.NOTE_ON
    assert on.data.note == 10
    assert off.event_type == EventType.NOTE_OFF
    assert zero_velocity.event_type == EventType.NOTE_OFF


def test_translate_ignores_other_messages():
    assert MidiInput.translate_message(mido.Message("pitchwheel", pitch=100)) is None
    assert MidiInput.translate_message(mido.Message("program_change", program=1)) is None


def test_open_configured_device(midi_input, config):
    config.set_midi_device("X-Touch Compact")
    midi_input.initialize()

    assert midi_input.device_name == "X-Touch Compact"
    assert midi_input.device_manager.is_connected(DeviceType.MIDI_INPUT)
    assert config.data["midi"]["active"] is True


def test_messages_are_queued(midi_input, events):
    midi_input.open("X-Touch Compact")
    callback = midi_input.midi_manager.callbacks["X-Touch Compact"]

    callback(mido.Message("control_change", control=1, value=5))
    callback(mido.Message("clock"))

    received = []
    events.process_all(received.append)
    assert [e.event_type for e in received] == [EventType.CONTROL_CHANGE]


def test_open_failure_clears_device(midi_input, config):
    assert midi_input.open("Missing Device") is False
    assert config.data["midi"]["device"] == ""
    assert config.data["midi"]["active"] is False
    assert midi_input.device_manager.get_last_error(DeviceType.MIDI_INPUT) is not None


def test_change_device_and_close(midi_input, config):
    assert midi_input.change_device("X-Touch Compact") is True
    port = midi_input.port

    midi_input.close()

    assert port.closed is True
    assert midi_input.port is None
    assert config.data["midi"]["active"] is False


def test_available_devices(midi_input):
    assert midi_input.get_available_devices() == ["X-Touch Compact"]


def test_no_device_configured(midi_input):
    midi_input.initialize()
    assert midi_input.port is None
