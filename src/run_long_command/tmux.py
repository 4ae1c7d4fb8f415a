import subprocess
from typing import Any, Protocol, runtime_checkable

from run_long_command.errors import TmuxError


@runtime_checkable
class ProcessRunner(Protocol):
    def run(
        self, args: list[str], **kwargs: Any
    ) -> subprocess.CompletedProcess[Any]: ...


@runtime_checkable
class TmuxInterface(Protocol):
    def has_session(self, session: str) -> bool: ...

    def capture_pane(self, target: str) -> str: ...

    def send_keys(self, target: str, keys: str | list[str], literal: bool = False): ...


class SubprocessRunner:
    def run(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[Any]:
        return subprocess.run(args, **kwargs)


def escape_key(char: str) -> str:
    """Escapes a single character for use as a tmux send-keys argument.

    tmux splits its command line on a bare ``;``, so it has to be sent as ``\\;``.
    """
    if char == ";":
        return "\\;"
    return char


class TmuxManager:
    def __init__(self, runner: ProcessRunner | None = None):
        self.runner = runner or SubprocessRunner()

    def has_session(self, session: str) -> bool:
        try:
            result = self.runner.run(
                ["tmux", "has-session", "-t", session],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError:
            # tmux is not installed
            return False
        return result.returncode == 0

    def send_keys(self, target: str, keys: str | list[str], literal: bool = False):
        if isinstance(keys, str):
            keys = [keys]
        args = ["tmux", "send-keys", "-t", target]
        if literal:
            args.append("-l")
        args += keys
        result = self.runner.run(
            args,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise TmuxError(args, result.returncode, result.stderr)

    def capture_pane(self, target: str) -> str:
        args = ["tmux", "capture-pane", "-p", "-t", target]
        result = self.runner.run(
            args,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise TmuxError(args, result.returncode, result.stderr)
        return result.stdout
