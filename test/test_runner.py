import errno
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mocks.fake_tmux import FakeTmux
from run_long_command.runner import CommandRunner, LaunchResult
from run_long_command.telemetry import Telemetry


@pytest.fixture
def injector():
    mock = MagicMock()
    mock.inject = AsyncMock(return_value=True)
    return mock


def make_runner(tmux, injector, fast_config, **kwargs):
    return CommandRunner(config=fast_config, tmux=tmux, injector=injector, **kwargs)


def notices(injector):
    return [c.args[0] for c in injector.inject.await_args_list]


@pytest.mark.asyncio
async def test_missing_session_rejects_without_spawning(injector, fast_config):
    tmux = FakeTmux(sessions=())
    runner = make_runner(tmux, injector, fast_config)

    with patch("run_long_command.runner.spawn_detached", new_callable=AsyncMock) as mock_spawn:
        result = await runner.start("echo hi")

    assert isinstance(result, LaunchResult)
    assert result.is_error is True
    assert result.pid is None
    assert "Not running inside tmux session 'gemini-cli'" in result.text
    mock_spawn.assert_not_called()
    assert runner.pending == 0
    assert tmux.calls == [("has_session", "gemini-cli")]


@pytest.mark.asyncio
async def test_acknowledges_immediately(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)

    result = await runner.start("sleep 0.2")

    assert result.is_error is False
    assert isinstance(result.pid, int)
    assert result.text == (
        f'Command "sleep 0.2" started in the background '
        f"(PID: {result.pid}, CWD: {os.getcwd()}). I will notify you when it finishes."
    )
    # Nothing reported until the command exits
    injector.inject.assert_not_awaited()

    await runner.wait_all()
    assert runner.pending == 0
    injector.inject.assert_awaited_once()


@pytest.mark.asyncio
async def test_success_notice(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)

    await runner.start("echo hi")
    await runner.wait_all()

    assert notices(injector) == ['Cmd: "echo hi" (0) Out: [hi] (Warn: Instant Exit)']


@pytest.mark.asyncio
async def test_exit_code_and_stderr_are_reported(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)

    await runner.start("echo oops 1>&2; exit 3")
    await runner.wait_all()

    (notice,) = notices(injector)
    assert "(3)" in notice
    assert "Out: [oops]" in notice


@pytest.mark.asyncio
async def test_slow_command_has_no_warning(fake_tmux, injector, fast_config):
    clock = iter([100.0, 105.0]).__next__
    runner = make_runner(fake_tmux, injector, fast_config, clock=clock)

    await runner.start("true")
    await runner.wait_all()

    assert notices(injector) == ['Cmd: "true" (0) Out: []']


@pytest.mark.asyncio
async def test_large_output_is_bounded(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)

    # Far more than a pipe buffer; the child must not block on a full pipe
    await runner.start("yes abcdefgh | head -c 200000")
    await runner.wait_all()

    (notice,) = notices(injector)
    assert "(0)" in notice
    assert len(notice) <= 64


@pytest.mark.asyncio
async def test_each_command_owns_its_output(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)

    await runner.start("echo one")
    await runner.start("echo two")
    await runner.wait_all()

    sent = sorted(notices(injector))
    assert sent == [
        'Cmd: "echo one" (0) Out: [one] (Warn: Instant Exit)',
        'Cmd: "echo two" (0) Out: [two] (Warn: Instant Exit)',
    ]


@pytest.mark.asyncio
async def test_spawn_error_becomes_background_notice(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)
    error = FileNotFoundError(errno.ENOENT, "No such file or directory")

    with patch(
        "run_long_command.runner.spawn_detached",
        new_callable=AsyncMock,
        side_effect=error,
    ):
        result = await runner.start("doesnotexist")

    assert result.is_error is False
    assert "PID: unknown" in result.text

    await runner.wait_all()
    assert notices(injector) == ['Err: "doesnotexist" (ENOENT)']


@pytest.mark.asyncio
async def test_runtime_error_becomes_error_notice(fake_tmux, injector, fast_config):
    runner = make_runner(fake_tmux, injector, fast_config)
    process = MagicMock(pid=4242, stdout=None, stderr=None)
    process.wait = AsyncMock(side_effect=RuntimeError("pipe broke"))

    with patch(
        "run_long_command.runner.spawn_detached",
        new_callable=AsyncMock,
        return_value=process,
    ):
        result = await runner.start("sleep 100")

    assert result.pid == 4242
    await runner.wait_all()
    assert notices(injector) == ['Err: "sleep 100" (pipe broke)']


@pytest.mark.asyncio
async def test_delivery_failure_does_not_escape(fake_tmux, injector, fast_config, tmp_path):
    injector.inject.return_value = False
    telemetry = Telemetry(tmp_path / "events.jsonl")
    runner = make_runner(fake_tmux, injector, fast_config, telemetry=telemetry)

    await runner.start("true")
    await runner.wait_all()

    events = [e["event_type"] for e in telemetry.read_log()]
    assert events == ["started", "completed", "notify_failed"]


@pytest.mark.asyncio
async def test_lifecycle_is_logged(fake_tmux, injector, fast_config, tmp_path):
    telemetry = Telemetry(tmp_path / "events.jsonl")
    runner = make_runner(fake_tmux, injector, fast_config, telemetry=telemetry)

    result = await runner.start("exit 2")
    await runner.wait_all()

    events = telemetry.read_log()
    assert [e["event_type"] for e in events] == ["started", "completed", "notified"]
    assert all(e["pid"] == result.pid for e in events)
    assert events[0]["data"] == {"cwd": os.getcwd()}
    assert events[1]["data"]["exit_code"] == 2
    assert events[2]["data"] == 'Cmd: "exit 2" (2) Out: [] (Warn: Instant Exit)'


@pytest.mark.asyncio
async def test_end_to_end_with_fake_tmux(fast_config):
    tmux = FakeTmux(snapshots=["> "])
    runner = CommandRunner(config=fast_config, tmux=tmux)

    await runner.start("echo hi")
    await runner.wait_all()

    assert tmux.typed == 'Cmd: "echo hi" (0) Out: [hi] (Warn: Instant Exit)'
    assert [c[2] for c in tmux.key_calls][-2:] == ["Enter", "Enter"]
