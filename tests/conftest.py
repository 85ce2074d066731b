"""Pytest configuration and shared fixtures"""
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from eosbridge.common.config import ConfigManager
from eosbridge.faders.profile_store import FaderProfileStore


@pytest.fixture
def app_dir(tmp_path):
    """Isolated application data directory"""
    return tmp_path / "eos-bridge"


@pytest.fixture
def config(app_dir):
    """Config manager writing into the temporary app directory"""
    return ConfigManager(app_dir / "config.json")


@pytest.fixture
def store(app_dir, config):
    """Initialized profile store with no profile loaded"""
    profile_store = FaderProfileStore(app_dir / "faderProfiles", config)
    profile_store.initialize()
    return profile_store
