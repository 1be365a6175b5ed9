import threading
from datetime import datetime
from pathlib import Path

import settings

_EVENT_LOG_PATH = Path(settings.get_event_log_path())
_event_log_lock = threading.Lock()


def reset_event_log() -> None:
    with _event_log_lock:
        _EVENT_LOG_PATH.write_text("", encoding="utf-8")


def log_tree_event(action: str, detail: str | None = None) -> None:
    timestamp = datetime.now().isoformat(timespec="seconds")
    message = detail.strip() if detail else ""
    line = f"{timestamp}\t{action.upper()}"
    if message:
        line = f"{line}\t{message}"
    with _event_log_lock:
        with _EVENT_LOG_PATH.open("a", encoding="utf-8") as log:
            log.write(line + "\n")


def read_event_log() -> list[str]:
    if not _EVENT_LOG_PATH.exists():
        return []
    return _EVENT_LOG_PATH.read_text(encoding="utf-8").splitlines()
