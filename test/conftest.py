import sys
from pathlib import Path

import pytest

# Add src to sys.path to ensure local package is used during tests
root_path = Path(__file__).parent.parent
src_path = str(root_path / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

# Make test/mocks importable as "mocks"
test_path = str(Path(__file__).parent)
if test_path not in sys.path:
    sys.path.insert(0, test_path)


@pytest.fixture(autouse=True)
def reset_telemetry(monkeypatch):
    """Tests never write to an event log unless they configure one."""
    from run_long_command import telemetry

    monkeypatch.setattr(telemetry, "_telemetry_instance", None)


@pytest.fixture
def fast_config():
    """A NotifierConfig with every delay removed."""
    from run_long_command.config import NotifierConfig

    return NotifierConfig(
        poll_interval=0,
        max_idle_wait=60,
        escape_delay=0,
        clear_delay=0,
        key_delay=0,
        submit_delay=0,
    )


@pytest.fixture
def fake_tmux():
    from mocks.fake_tmux import FakeTmux

    return FakeTmux()


@pytest.fixture
def no_sleep():
    """An async sleep that returns immediately and records requested delays."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
