"""Builds the short status lines typed into the agent's pane."""

import re

from run_long_command.constants import (
    ELLIPSIS,
    INSTANT_EXIT_MS,
    INSTANT_EXIT_WARNING,
    MAX_COMMAND_LENGTH,
    MAX_NOTICE_LENGTH,
)

# Anything that would act as Enter or Tab when typed into the pane
LINE_BREAK_RE = re.compile(r"[\r\n\t]+")

# Fixed text around the variable parts of each notice
_SUCCESS_LITERALS = len('Cmd: "') + len('" ') + len(" Out: [") + len("]")
_ERROR_LITERALS = len('Err: "') + len('" (') + len(")")


def single_line(text) -> str:
    """Collapses line breaks into single spaces and trims the result."""
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return LINE_BREAK_RE.sub(" ", text).strip()


def _fit(text: str, available: int) -> str:
    if len(text) <= available:
        return text
    keep = max(0, available - len(ELLIPSIS))
    return text[:keep] + ELLIPSIS


def truncate_command(command, max_length: int = MAX_COMMAND_LENGTH) -> str:
    """Shortens a command to ``max_length`` characters, ellipsis included."""
    return _fit(single_line(command), max_length)


def compose_success(
    command,
    exit_code,
    output,
    duration_ms: float | None,
    max_length: int = MAX_NOTICE_LENGTH,
) -> str:
    """
    Formats a finished command as ``Cmd: "<cmd>" (<code>) Out: [<out>]``.

    A warning suffix is added when the command finished in under a second,
    which usually means it failed to start properly. The suffix is counted
    against the budget, so the output is what gets shortened.
    """
    cmd = truncate_command(command)
    code = f"({exit_code})"
    instant = duration_ms is not None and duration_ms < INSTANT_EXIT_MS
    suffix = INSTANT_EXIT_WARNING if instant else ""

    available = max_length - _SUCCESS_LITERALS - len(cmd) - len(code) - len(suffix)
    out = _fit(single_line(output), available)

    message = f'Cmd: "{cmd}" {code} Out: [{out}]{suffix}'
    return message[:max_length]


def compose_error(command, error, max_length: int = MAX_NOTICE_LENGTH) -> str:
    """Formats a command that could not run as ``Err: "<cmd>" (<error>)``."""
    cmd = truncate_command(command)
    available = max_length - _ERROR_LITERALS - len(cmd)
    err = _fit(single_line(error), available)

    message = f'Err: "{cmd}" ({err})'
    return message[:max_length]
