from datetime import datetime, timedelta, timezone

import pytest

from server_logger.config import StoreConfig
from server_logger.store import LogStore


class Clock:
    """Manually advanced time source for deterministic timestamps."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return Clock(datetime(2025, 6, 3, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def log_dir(tmp_path):
    return str(tmp_path / "server_logs")


@pytest.fixture
def make_store(log_dir, clock):
    def _make(**overrides):
        config = StoreConfig(log_dir=overrides.pop("log_dir", log_dir), **overrides)
        return LogStore(config, time_func=clock)
    return _make


@pytest.fixture
def store(make_store):
    return make_store()
