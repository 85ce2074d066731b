"""Test fader profile store: creation, CRUD, persistence and page-scoped lookups"""
import json
import pytest

from eosbridge.faders.profile_store import FaderProfileStore


@pytest.fixture
def profile(store):
    """Two groups with four faders, all on page 1"""
    return store.create_fader_profile("X", 2, 4)


def test_create_fader_profile_distribution(store, profile):
    """Faders are spread evenly over the groups with contiguous bindings"""
    assert len(profile.fader_groups) == 2
    assert len(profile.faders) == 4

    group_1, group_2 = profile.fader_groups
    assert [f.group_id for f in profile.faders] == [group_1.id, group_1.id, group_2.id, group_2.id]
    assert [f.config.eos_fader for f in profile.faders] == [1, 2, 3, 4]
    assert [f.config.midi_controller for f in profile.faders] == [1, 2, 3, 4]
    assert all(g.page == 1 for g in profile.fader_groups)


def test_create_fader_profile_uneven_distribution(store):
    """Ten faders over three groups fill groups with four, four, two"""
    profile = store.create_fader_profile("Uneven", 3, 10)
    counts = [
        sum(1 for f in profile.faders if f.group_id == g.id) for g in profile.fader_groups
    ]
    assert counts == [4, 4, 2]


def test_create_fader_profile_without_groups_rejected(store):
    """Faders without any group to hold them is a configuration error"""
    with pytest.raises(ValueError):
        store.create_fader_profile("Broken", 0, 4)
    assert store.get_profile() is None


def test_create_empty_profile(store):
    """An empty profile is valid and has no Eos faders"""
    profile = store.create_fader_profile("Empty", 0, 0)
    assert profile.faders == []
    assert store.get_max_eos_fader() == 0


def test_get_max_eos_fader(store, profile):
    assert store.get_max_eos_fader() == 4
    fader = profile.faders[0]
    store.update_fader_config(fader.id, eos_fader=40)
    assert store.get_max_eos_fader() == 40


def test_lookup_by_midi_and_eos(store, profile):
    fader = profile.faders[2]
    assert store.get_fader_by_midi(3) is fader
    assert store.get_fader_by_eos(3) is fader
    assert store.get_fader_by_midi(99) is None
    assert store.get_fader_by_eos(99) is None


def test_page_isolation(store, profile):
    """A fader on page 2 is only reachable while page 2 is active"""
    group = store.create_fader_group("Page two", page=2)
    fader = store.create_fader(group.id, eos_fader=5, midi_controller=5)

    assert store.get_page() == 1
    assert store.get_fader_by_midi(5) is None
    assert store.get_fader_by_eos(5) is None

    store.set_page(2)
    assert store.get_fader_by_midi(5) is fader
    assert store.get_fader_by_eos(5) is fader
    # Page 1 bindings no longer leak through
    assert store.get_fader_by_midi(1) is None

    store.set_page(1)
    assert store.get_fader_by_midi(5) is None
    assert store.get_fader_by_midi(1) is profile.faders[0]


def test_get_pages(store, profile):
    store.create_fader_group("Three", page=3)
    store.create_fader_group("Two", page=2)
    assert store.get_pages() == [1, 2, 3]


def test_update_fader_group_page_moves_faders(store, profile):
    group = profile.fader_groups[1]
    assert store.update_fader_group_page(group.id, 2) is True
    assert store.get_fader_by_midi(3) is None
    store.set_page(2)
    assert store.get_fader_by_midi(3) is profile.faders[2]


def test_update_fader_group_name(store, profile):
    group = profile.fader_groups[0]
    assert store.update_fader_group_name(group.id, "Front wash") is True
    assert store.get_fader_group(group.id).name == "Front wash"
    assert store.update_fader_group_name("missing", "Nope") is False


def test_delete_fader_group_cascades(store, profile):
    """Deleting a group removes its faders from the store and both indices"""
    group = profile.fader_groups[0]
    member_ids = [f.id for f in profile.faders if f.group_id == group.id]

    assert store.delete_fader_group(group.id) is True

    for fader_id in member_ids:
        assert store.get_fader(fader_id) is None
    by_midi, by_eos = store.get_index_snapshot()
    assert set(by_midi) == {3, 4}
    assert set(by_eos) == {3, 4}
    assert not set(member_ids) & set(by_midi.values())
    assert len(store.get_faders()) == 2


def test_delete_missing_group_is_noop(store, profile):
    assert store.delete_fader_group("missing") is False
    assert len(store.get_faders()) == 4


def test_create_fader_requires_group(store, profile):
    assert store.create_fader("missing", eos_fader=9, midi_controller=9) is None
    assert store.get_fader_by_midi(9) is None


def test_update_fader_config_partial_merge(store, profile):
    """Only the given binding changes and the index follows it"""
    fader = profile.faders[0]
    assert store.update_fader_config(fader.id, midi_controller=20) is True

    assert fader.config.midi_controller == 20
    assert fader.config.eos_fader == 1
    assert store.get_fader_by_midi(20) is fader
    assert store.get_fader_by_midi(1) is None
    assert store.get_fader_by_eos(1) is fader


def test_update_missing_fader(store, profile):
    assert store.update_fader_config("missing", midi_controller=3) is False
    assert store.update_fader_values("missing", eos_value=0.5) is False


def test_delete_fader(store, profile):
    fader = profile.faders[1]
    assert store.delete_fader(fader.id) is True
    assert store.get_fader(fader.id) is None
    assert store.get_fader_by_midi(2) is None
    assert store.delete_fader(fader.id) is False


def test_duplicate_binding_last_registered_wins(store, profile):
    """Two faders on one page bound to the same controller: the later one resolves"""
    group = profile.fader_groups[0]
    duplicate = store.create_fader(group.id, eos_fader=1, midi_controller=1)
    assert store.get_fader_by_midi(1) is duplicate
    assert store.get_fader_by_eos(1) is duplicate


def test_save_and_load_profile(app_dir, config, store, profile):
    """A saved profile is found by a fresh store through the config"""
    profile.faders[0].eos_value = 0.75
    store.set_page(2)
    assert store.save_profile() is True

    other = FaderProfileStore(app_dir / "faderProfiles", config)
    other.initialize()

    loaded = other.get_profile()
    assert loaded is not None
    assert loaded.id == profile.id
    assert loaded.name == "X"
    assert other.get_page() == 2
    assert len(other.get_faders()) == 4
    assert other.get_fader(profile.faders[0].id).eos_value == 0.75


def test_load_same_profile_twice_yields_same_indices(store, profile):
    store.save_profile()

    assert store.load_profile(profile.id) is True
    first = store.get_index_snapshot()
    assert store.load_profile(profile.id) is True
    second = store.get_index_snapshot()

    assert first == second
    assert set(first[0]) == {1, 2, 3, 4}


def test_load_profile_defaults_to_page_one(app_dir, store):
    """Profiles saved without currentPage load on page 1"""
    data = {
        "id": "legacy",
        "name": "Legacy",
        "faderGroups": [{"id": "g1", "name": "Group", "page": 1}],
        "faders": [
            {
                "id": "f1",
                "groupId": "g1",
                "eos": 0,
                "midi": 0,
                "config": {"midiController": 7, "eosFader": 8},
            }
        ],
    }
    (app_dir / "faderProfiles" / "legacy.json").write_text(json.dumps(data))
    store.load_metadata()

    assert store.load_profile("legacy") is True
    assert store.get_page() == 1
    assert store.get_fader_by_midi(7).id == "f1"
    assert store.get_fader_by_eos(8).id == "f1"


def test_load_unknown_profile_keeps_state(store, profile):
    assert store.load_profile("does-not-exist") is False
    assert store.get_profile() is profile
    assert store.get_fader_by_midi(1) is profile.faders[0]


def test_load_malformed_profile_keeps_state(app_dir, store, profile):
    """A file that looks like a profile but has broken members is rejected"""
    bad = {"id": "bad", "name": "Bad", "faderGroups": [{"id": "g"}], "faders": []}
    (app_dir / "faderProfiles" / "bad.json").write_text(json.dumps(bad))
    store.load_metadata()

    assert store.load_profile("bad") is False
    assert store.get_profile().id == profile.id
    assert store.get_fader_by_midi(1) is profile.faders[0]


def test_load_profile_with_nan_level_keeps_state(app_dir, store, profile):
    """A stored level of NaN is rejected instead of freezing takeover"""
    text = (
        '{"id": "nan", "name": "NaN", '
        '"faderGroups": [{"id": "g1", "name": "Group", "page": 1}], '
        '"faders": [{"id": "f1", "groupId": "g1", "eos": NaN, "midi": 0, '
        '"config": {"midiController": 1, "eosFader": 1}}]}'
    )
    (app_dir / "faderProfiles" / "nan.json").write_text(text)
    store.load_metadata()

    assert store.load_profile("nan") is False
    assert store.get_profile().id == profile.id
    assert store.get_fader_by_midi(1) is profile.faders[0]


def test_unreadable_files_are_not_listed(app_dir, store, profile):
    store.save_profile()
    (app_dir / "faderProfiles" / "garbage.json").write_text("{not json")
    (app_dir / "faderProfiles" / "other.json").write_text(json.dumps({"hello": "world"}))
    store.load_metadata()

    metadata = store.get_profile_metadata()
    assert [m.id for m in metadata] == [profile.id]
    assert metadata[0].name == "X"


def test_delete_active_profile_clears_state(app_dir, config, store, profile):
    store.save_profile()
    profile_file = app_dir / "faderProfiles" / f"{profile.id}.json"
    assert profile_file.exists()

    store.delete_fader_profile(profile.id)

    assert not profile_file.exists()
    assert store.get_profile() is None
    assert store.get_faders() == []
    assert store.get_index_snapshot() == ({}, {})
    assert store.get_profile_metadata() == []
    assert config.get_fader_profile_id() is None


def test_teardown_persists_profile(app_dir, store, profile):
    store.teardown()

    assert (app_dir / "faderProfiles" / f"{profile.id}.json").exists()
    assert store.get_profile() is None
    assert store.get_fader_by_midi(1) is None


def test_get_profile_syncs_member_lists(store, profile):
    group = profile.fader_groups[0]
    store.create_fader(group.id, eos_fader=9, midi_controller=9)
    store.delete_fader_group(profile.fader_groups[1].id)

    synced = store.get_profile()
    assert len(synced.fader_groups) == 1
    assert sorted(f.config.eos_fader for f in synced.faders) == [1, 2, 9]
