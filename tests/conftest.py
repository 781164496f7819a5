import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from contract_watch.alerts import AlertSink
from contract_watch.config import Config, MonitorMode
from contract_watch.db import StateStore


class RecordingSink(AlertSink):
    """Keeps every publish call for assertions."""

    def __init__(self):
        self.calls = []

    def publish(self, alerts, timestamp):
        self.calls.append((list(alerts), timestamp))

    @property
    def last_alerts(self):
        return self.calls[-1][0]


class FakeSource:
    """Observation source returning a scripted observation or raising."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.entered = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    async def fetch(self):
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "previous_data.json")


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def page_config(tmp_path):
    return Config(
        mode=MonitorMode.PAGE,
        data_file=tmp_path / "previous_data.json",
        output_file=tmp_path / "github_output",
    )


@pytest.fixture
def supply_config(tmp_path):
    return Config(
        mode=MonitorMode.SUPPLY,
        data_file=tmp_path / "previous_data.json",
        output_file=tmp_path / "github_output",
    )
