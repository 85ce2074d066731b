"""
Fader Profile Store

Owns the loaded fader profile, its groups and faders, and the page-scoped
reverse indices used to resolve incoming MIDI controller numbers and Eos
fader numbers to faders.

The indices are derived data. They are recomputed from scratch whenever the
profile, group membership, bindings or active page change, and swapped in
under a lock so a lookup never sees a half-built index.
"""

import json
import logging
import math
import os
import tempfile
import threading
import typing as t
from pathlib import Path

from eosbridge.common.config import ConfigManager
from eosbridge.common.constants import DEFAULT_PAGE
from eosbridge.faders.models import (
    Fader,
    FaderGroup,
    FaderProfile,
    FaderProfileMetadata,
    Id,
    build_fader,
    build_fader_group,
    is_complete_fader_profile,
    is_fader_profile,
    new_id,
)

logger = logging.getLogger(__name__)


class FaderProfileStore:
    """Loaded-profile state plus the MIDI/Eos lookup indices for the active page."""

    def __init__(self, profiles_dir: Path, config: ConfigManager):
        self.profiles_dir = profiles_dir
        self.config = config

        self._profile: t.Optional[FaderProfile] = None
        self._page: int = DEFAULT_PAGE

        self._fader_groups: t.Dict[Id, FaderGroup] = {}
        self._faders: t.Dict[Id, Fader] = {}
        self._metadata: t.Dict[Id, FaderProfileMetadata] = {}

        self._fader_ids_by_midi: t.Dict[int, Id] = {}
        self._fader_ids_by_eos: t.Dict[int, Id] = {}
        self._index_lock = threading.Lock()

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    def initialize(self) -> None:
        """Prepare the profiles directory and load the configured profile."""
        self.profiles_dir.mkdir(parents=True, exist_ok=True)
        self.load_metadata()
        if self.config.get_fader_profile_id() is not None:
            self.load_profile()

    def teardown(self) -> None:
        """Persist the loaded profile and drop all in-memory state."""
        if self._profile is not None:
            self.save_profile()
        self._profile = None
        self._rebuild_fader_maps()

    # ============================================================================
    # PERSISTENCE
    # ============================================================================

    def load_metadata(self) -> None:
        """Scan the profiles directory for valid profile files."""
        if not self.profiles_dir.exists():
            logger.error("Fader profile directory missing.")
            return

        self._metadata.clear()
        for path in sorted(self.profiles_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    content = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.error(f"Failed to read fader profile file {path.name}: {e}")
                continue

            if not is_fader_profile(content):
                logger.warning(f"Skipping invalid fader profile file {path.name}")
                continue

            self._metadata[content["id"]] = FaderProfileMetadata(
                id=content["id"], name=content["name"], filename=path.name
            )

        logger.debug(f"Fader profile metadata loaded: {list(self._metadata)}")

    def get_profile_metadata(self) -> t.List[FaderProfileMetadata]:
        return list(self._metadata.values())

    def load_profile(self, profile_id: t.Optional[Id] = None) -> bool:
        """
        Load a profile by id, or the one named in the configuration.

        On any failure the error is logged and the current state is kept.

        Returns:
            True if the profile was loaded
        """
        if not self.profiles_dir.exists():
            logger.error("Fader profile directory missing.")
            return False

        if profile_id is None:
            profile_id = self.config.get_fader_profile_id()

        metadata = self._metadata.get(profile_id) if profile_id is not None else None
        if metadata is None:
            logger.error(f"Fader profile file not found with Id {profile_id}")
            return False

        path = self.profiles_dir / metadata.filename
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read fader profile file {metadata.filename}: {e}")
            return False

        if not is_complete_fader_profile(content):
            logger.error(f"Malformed fader profile file {metadata.filename}, keeping current profile")
            return False

        self._profile = FaderProfile.from_dict(content)
        self._page = self._profile.current_page or DEFAULT_PAGE
        self._rebuild_fader_maps()
        self.config.set_fader_profile_id(self._profile.id)

        logger.info(
            f"Loaded fader profile '{self._profile.name}' "
            f"({len(self._fader_groups)} groups, {len(self._faders)} faders, page {self._page})"
        )
        return True

    def save_profile(self) -> bool:
        """Write the loaded profile to disk atomically."""
        profile = self.get_profile()
        if profile is None:
            logger.warning("No fader profile loaded, nothing to save")
            return False

        metadata = self._metadata.get(profile.id)
        filename = metadata.filename if metadata else f"{profile.id}.json"
        target = self.profiles_dir / filename
        tmp_path: t.Optional[Path] = None
        try:
            self.profiles_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                delete=False,
                dir=str(self.profiles_dir),
                prefix=f"{target.stem}_",
                suffix=".tmp",
            ) as tmp_file:
                json.dump(profile.to_dict(), tmp_file, indent=2)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
                tmp_path = Path(tmp_file.name)

            tmp_path.replace(target)
        except OSError as e:
            logger.error(f"Failed to save fader profile '{profile.name}': {e}")
            if tmp_path and tmp_path.exists():
                tmp_path.unlink()
            return False

        self._metadata[profile.id] = FaderProfileMetadata(
            id=profile.id, name=profile.name, filename=filename
        )
        self.config.set_fader_profile_id(profile.id)
        logger.info(f"Saved fader profile '{profile.name}' to {target}")
        return True

    # ============================================================================
    # PROFILES
    # ============================================================================

    def get_profile(self) -> t.Optional[FaderProfile]:
        """The loaded profile with its member lists synced from the store."""
        if self._profile is None:
            return None
        self._profile.fader_groups = list(self._fader_groups.values())
        self._profile.faders = list(self._faders.values())
        self._profile.current_page = self._page
        return self._profile

    def _build_fader_profile(
        self, name: str, group_count: int, fader_count: int
    ) -> FaderProfile:
        if fader_count > 0 and group_count <= 0:
            raise ValueError(
                f"Cannot distribute {fader_count} faders across {group_count} groups"
            )

        groups = [build_fader_group() for _ in range(group_count)]
        faders = []
        if fader_count > 0:
            faders_per_group = math.ceil(fader_count / group_count)
            for index in range(fader_count):
                group = groups[index // faders_per_group]
                faders.append(
                    build_fader(group.id, eos_fader=index + 1, midi_controller=index + 1)
                )

        return FaderProfile(id=new_id(), name=name, fader_groups=groups, faders=faders)

    def create_fader_profile(
        self, name: str = "New Profile", group_count: int = 0, fader_count: int = 0
    ) -> FaderProfile:
        """
        Build a fresh profile and make it the loaded one.

        Fader ``i`` goes to group ``i // ceil(fader_count / group_count)`` and
        is bound to Eos fader and MIDI controller ``i + 1``.

        Raises:
            ValueError: if faders are requested without any group to hold them
        """
        profile = self._build_fader_profile(name, group_count, fader_count)
        self._profile = profile
        self._page = DEFAULT_PAGE
        self._rebuild_fader_maps()
        logger.info(
            f"Created fader profile '{name}' with {group_count} groups and {fader_count} faders"
        )
        return profile

    def delete_fader_profile(self, profile_id: Id) -> None:
        metadata = self._metadata.pop(profile_id, None)
        if metadata is not None:
            try:
                (self.profiles_dir / metadata.filename).unlink()
            except FileNotFoundError:
                logger.warning(f"Fader profile file {metadata.filename} already removed")
        else:
            logger.warning(f"No fader profile file with Id {profile_id}")

        if self._profile is not None and self._profile.id == profile_id:
            self._profile = None
            self._rebuild_fader_maps()
            self.config.set_fader_profile_id(None)

        self.load_metadata()

    # ============================================================================
    # GROUPS
    # ============================================================================

    def get_fader_groups(self) -> t.List[FaderGroup]:
        return list(self._fader_groups.values())

    def get_fader_group(self, group_id: Id) -> t.Optional[FaderGroup]:
        return self._fader_groups.get(group_id)

    def create_fader_group(self, name: str = "New Group", page: int = DEFAULT_PAGE) -> FaderGroup:
        group = build_fader_group(name, page)
        self._fader_groups[group.id] = group
        self._rebuild_fader_id_maps()
        return group

    def update_fader_group_name(self, group_id: Id, name: str) -> bool:
        group = self._fader_groups.get(group_id)
        if group is None:
            logger.warning(f"Fader group {group_id} not found")
            return False
        group.name = name
        return True

    def update_fader_group_page(self, group_id: Id, page: int) -> bool:
        """Move a group to another page."""
        group = self._fader_groups.get(group_id)
        if group is None:
            logger.warning(f"Fader group {group_id} not found")
            return False
        group.page = page
        self._rebuild_fader_id_maps()
        return True

    def delete_fader_group(self, group_id: Id) -> bool:
        """Delete a group together with all of its faders."""
        if self._fader_groups.pop(group_id, None) is None:
            logger.warning(f"Fader group {group_id} not found")
            return False

        members = [fid for fid, fader in self._faders.items() if fader.group_id == group_id]
        for fader_id in members:
            del self._faders[fader_id]

        self._rebuild_fader_id_maps()
        logger.debug(f"Deleted fader group {group_id} and {len(members)} faders")
        return True

    # ============================================================================
    # FADERS
    # ============================================================================

    def get_faders(self) -> t.List[Fader]:
        """Faders whose group still exists."""
        return [f for f in self._faders.values() if f.group_id in self._fader_groups]

    def get_fader(self, fader_id: Id) -> t.Optional[Fader]:
        return self._faders.get(fader_id)

    def create_fader(
        self, group_id: Id, eos_fader: int = 1, midi_controller: int = 1
    ) -> t.Optional[Fader]:
        if group_id not in self._fader_groups:
            logger.warning(f"Cannot create fader, group {group_id} not found")
            return None

        fader = build_fader(group_id, eos_fader, midi_controller)
        self._faders[fader.id] = fader
        self._rebuild_fader_id_maps()
        return fader

    def update_fader_config(
        self,
        fader_id: Id,
        midi_controller: t.Optional[int] = None,
        eos_fader: t.Optional[int] = None,
    ) -> bool:
        """Change a fader's bindings; omitted values are kept."""
        fader = self._faders.get(fader_id)
        if fader is None:
            logger.warning(f"Fader {fader_id} not found")
            return False

        if midi_controller is not None:
            fader.config.midi_controller = midi_controller
        if eos_fader is not None:
            fader.config.eos_fader = eos_fader

        self._rebuild_fader_id_maps()
        return True

    def update_fader_values(
        self,
        fader_id: Id,
        eos_value: t.Optional[float] = None,
        midi_value: t.Optional[int] = None,
    ) -> bool:
        """Record the last known console level and/or controller position."""
        fader = self._faders.get(fader_id)
        if fader is None:
            logger.warning(f"Fader {fader_id} not found")
            return False

        if eos_value is not None:
            fader.eos_value = eos_value
        if midi_value is not None:
            fader.midi_value = midi_value
        return True

    def delete_fader(self, fader_id: Id) -> bool:
        if self._faders.pop(fader_id, None) is None:
            logger.warning(f"Fader {fader_id} not found")
            return False
        self._rebuild_fader_id_maps()
        return True

    def get_max_eos_fader(self) -> int:
        """Highest bound Eos fader number, 0 when there are no faders."""
        return max((f.config.eos_fader for f in self._faders.values()), default=0)

    # ============================================================================
    # PAGES & LOOKUPS
    # ============================================================================

    def set_page(self, page: int) -> None:
        self._page = page
        if self._profile is not None:
            self._profile.current_page = page
        self._rebuild_fader_id_maps()
        logger.info(f"Switched to page {page}")

    def get_page(self) -> int:
        return self._page

    def get_pages(self) -> t.List[int]:
        return sorted({group.page for group in self._fader_groups.values()})

    def get_fader_by_midi(self, midi_controller: int) -> t.Optional[Fader]:
        with self._index_lock:
            fader_id = self._fader_ids_by_midi.get(midi_controller)
        return self._faders.get(fader_id) if fader_id is not None else None

    def get_fader_by_eos(self, eos_fader: int) -> t.Optional[Fader]:
        with self._index_lock:
            fader_id = self._fader_ids_by_eos.get(eos_fader)
        return self._faders.get(fader_id) if fader_id is not None else None

    def get_index_snapshot(self) -> t.Tuple[t.Dict[int, Id], t.Dict[int, Id]]:
        """Copies of the (midi, eos) reverse indices."""
        with self._index_lock:
            return dict(self._fader_ids_by_midi), dict(self._fader_ids_by_eos)

    # ============================================================================
    # INDEX REBUILD
    # ============================================================================

    def _rebuild_fader_maps(self) -> None:
        """Reload group and fader maps from the profile, then the indices."""
        groups = self._profile.fader_groups if self._profile else []
        faders = self._profile.faders if self._profile else []

        self._fader_groups = {group.id: group for group in groups}
        self._faders = {fader.id: fader for fader in faders}

        logger.debug(f"Fader groups: {list(self._fader_groups)}")
        logger.debug(f"Faders: {list(self._faders)}")
        self._rebuild_fader_id_maps()

    def _rebuild_fader_id_maps(self) -> None:
        by_midi: t.Dict[int, Id] = {}
        by_eos: t.Dict[int, Id] = {}

        for fader in self._faders.values():
            group = self._fader_groups.get(fader.group_id)
            if group is None or group.page != self._page:
                continue

            midi_controller = fader.config.midi_controller
            eos_fader = fader.config.eos_fader
            if midi_controller in by_midi:
                logger.warning(
                    f"MIDI controller {midi_controller} bound twice on page {self._page}, "
                    f"fader {fader.id} wins"
                )
            if eos_fader in by_eos:
                logger.warning(
                    f"Eos fader {eos_fader} bound twice on page {self._page}, "
                    f"fader {fader.id} wins"
                )
            by_midi[midi_controller] = fader.id
            by_eos[eos_fader] = fader.id

        with self._index_lock:
            self._fader_ids_by_midi = by_midi
            self._fader_ids_by_eos = by_eos

        logger.debug(f"Fader IDs by MIDI: {by_midi}")
        logger.debug(f"Fader IDs by Eos: {by_eos}")
