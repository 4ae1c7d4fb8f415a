from dataclasses import dataclass

from run_long_command.constants import (
    CLEAR_DELAY,
    ESCAPE_DELAY,
    KEY_DELAY,
    MAX_IDLE_WAIT,
    MAX_NOTICE_LENGTH,
    MAX_OUTPUT_LENGTH,
    PANE_INDEX,
    POLL_INTERVAL,
    REQUIRED_STABLE_CHECKS,
    SESSION_NAME,
    SUBMIT_DELAY,
    WINDOW_INDEX,
)


@dataclass(frozen=True)
class NotifierConfig:
    """Where completion notices go and how they are paced."""

    session_name: str = SESSION_NAME
    window_index: int = WINDOW_INDEX
    pane_index: int = PANE_INDEX
    poll_interval: float = POLL_INTERVAL
    required_stable_checks: int = REQUIRED_STABLE_CHECKS
    max_idle_wait: float = MAX_IDLE_WAIT
    escape_delay: float = ESCAPE_DELAY
    clear_delay: float = CLEAR_DELAY
    key_delay: float = KEY_DELAY
    submit_delay: float = SUBMIT_DELAY
    max_output_length: int = MAX_OUTPUT_LENGTH
    max_notice_length: int = MAX_NOTICE_LENGTH

    def __post_init__(self):
        if not self.session_name or not self.session_name.strip():
            raise ValueError("session_name must not be empty")
        if self.window_index < 0 or self.pane_index < 0:
            raise ValueError("window_index and pane_index must be non-negative")
        delays = (
            self.poll_interval,
            self.max_idle_wait,
            self.escape_delay,
            self.clear_delay,
            self.key_delay,
            self.submit_delay,
        )
        if any(d < 0 for d in delays):
            raise ValueError("delays must be non-negative")
        if self.required_stable_checks < 1:
            raise ValueError("required_stable_checks must be at least 1")
        if self.max_output_length < 1 or self.max_notice_length < 1:
            raise ValueError("length budgets must be positive")

    @property
    def target(self) -> str:
        """The tmux pane address, e.g. ``gemini-cli:0.0``."""
        return f"{self.session_name}:{self.window_index}.{self.pane_index}"
