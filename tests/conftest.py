"""Shared fixtures for pipeline tests."""

import os

# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from core import verbose
from core.config import Settings
from orchestration.tracker import ProgressTracker
from storage.store import FileJobStore, FileSignalStore


@pytest.fixture(autouse=True)
def quiet_verbose():
    """Keep the console trace off between tests."""
    verbose.configure(0)
    yield
    verbose.configure(0)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and writing under tmp_path."""
    return Settings(
        _env_file=None,
        lunarcrush_api_key="test-key",
        data_dir=str(tmp_path / "data"),
        telegram_bot_token="",
        telegram_chat_id="",
        scoring_timeout_seconds=5.0,
    )


@pytest.fixture
def job_store(settings):
    return FileJobStore(settings.jobs_dir)


@pytest.fixture
def signal_store(settings):
    return FileSignalStore(settings.signals_dir)


@pytest.fixture
def tracker(job_store):
    return ProgressTracker(job_store)
