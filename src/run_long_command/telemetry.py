import atexit
import concurrent.futures
import json
from datetime import datetime
from pathlib import Path


class Telemetry:
    """Appends the lifecycle of each background command to a .jsonl file."""

    def __init__(self, log_file: str | Path):
        self.log_file = Path(log_file).expanduser()
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        atexit.register(self._executor.shutdown)

    def flush(self):
        """Waits for all pending log writes to complete."""
        self._executor.submit(lambda: None).result()

    def log(self, pid: int | None, command: str, event_type: str, data: str | dict):
        """Logs an event for the command running as ``pid``."""
        event = {
            "timestamp": datetime.now().isoformat(),
            "pid": pid,
            "command": command,
            "event_type": event_type,
            "data": data,
        }
        self._executor.submit(self._write_event, event)

    def _write_event(self, event: dict):
        """Writes an event to disk. Called by the thread executor."""
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(event) + "\n")

    def log_started(self, pid: int | None, command: str, cwd: str):
        self.log(pid, command, "started", {"cwd": cwd})

    def log_completed(self, pid: int | None, command: str, exit_code, duration_ms: float):
        self.log(
            pid,
            command,
            "completed",
            {"exit_code": exit_code, "duration_ms": round(duration_ms)},
        )

    def log_failed(self, pid: int | None, command: str, error: str):
        self.log(pid, command, "failed", error)

    def log_notified(self, pid: int | None, command: str, notice: str):
        self.log(pid, command, "notified", notice)

    def log_notify_failed(self, pid: int | None, command: str, notice: str):
        self.log(pid, command, "notify_failed", notice)

    def read_log(self) -> list[dict]:
        """Reads all events from the log file."""
        self.flush()
        if not self.log_file.exists():
            return []

        events = []
        with open(self.log_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    try:
                        events.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        return events


_telemetry_instance = None


def configure_telemetry(log_file: str | Path | None) -> Telemetry | None:
    """Sets up the process-wide event log; ``None`` turns it off."""
    global _telemetry_instance
    _telemetry_instance = Telemetry(log_file) if log_file else None
    return _telemetry_instance


def get_telemetry() -> Telemetry | None:
    """Returns the event log configured at startup, if any."""
    return _telemetry_instance
