import os

DEFAULT_LAZY_DELAY = 0.8
DEFAULT_LAZY_NAME = "Lazy Loaded Item"
DEFAULT_EVENT_LOG = "tree_events.log"


def get_lazy_delay() -> float:
    """Seconds between a lazy expand request and the fetched child appearing."""
    raw = os.getenv("TR33_LAZY_DELAY")
    if raw is None:
        return DEFAULT_LAZY_DELAY
    try:
        delay = float(raw)
    except ValueError:
        return DEFAULT_LAZY_DELAY
    return delay if delay >= 0 else DEFAULT_LAZY_DELAY


def get_lazy_name() -> str:
    name = os.getenv("TR33_LAZY_NAME", DEFAULT_LAZY_NAME).strip()
    return name or DEFAULT_LAZY_NAME


def get_event_log_path() -> str:
    return os.getenv("TR33_EVENT_LOG", DEFAULT_EVENT_LOG)
