# Target tmux session and pane that receives completion notices.
# The agent CLI is expected to run in the first pane of the first window.
SESSION_NAME = "gemini-cli"
WINDOW_INDEX = 0
PANE_INDEX = 0

# Idle detection: poll the pane every second and require ten identical
# captures in a row before typing into it.
POLL_INTERVAL = 1.0
REQUIRED_STABLE_CHECKS = 10

# Give up waiting for the pane to settle after 10 minutes and send anyway.
MAX_IDLE_WAIT = 600

# Delays (seconds) between the key-send steps of a notice.
ESCAPE_DELAY = 0.1
CLEAR_DELAY = 0.2
KEY_DELAY = 0.02
SUBMIT_DELAY = 0.5

# Max combined stdout/stderr characters kept per command
MAX_OUTPUT_LENGTH = 200

# Notice budget in characters
MAX_NOTICE_LENGTH = 64

# Commands are shortened to this many characters inside a notice
MAX_COMMAND_LENGTH = 15

# Commands finishing faster than this (milliseconds) get a warning suffix
INSTANT_EXIT_MS = 1000

ELLIPSIS = "..."
INSTANT_EXIT_WARNING = " (Warn: Instant Exit)"
