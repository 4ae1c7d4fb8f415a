"""Run long shell commands in the background and wake a tmux-hosted agent when they finish."""

from run_long_command.config import NotifierConfig
from run_long_command.runner import CommandRunner

__version__ = "1.0.0"

__all__ = ["CommandRunner", "NotifierConfig"]
