import errno


class TmuxError(RuntimeError):
    """Raised when a tmux command exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(
            f"{' '.join(command)} exited with status {returncode}{detail}"
        )


def describe_error(exc: BaseException) -> str:
    """
    Short, human-readable reason for a failed command.

    OS-level failures are reported by their symbolic errno name (e.g. ENOENT),
    which keeps the notice short enough to fit the pane budget.
    """
    if isinstance(exc, OSError) and exc.errno in errno.errorcode:
        return errno.errorcode[exc.errno]

    message = str(exc).strip()
    return message or type(exc).__name__
