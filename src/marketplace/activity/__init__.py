"""Activity log factory.

Provides get_activity_log() / set_activity_log(). The adapter is chosen
with the ACTIVITY_LOG_ADAPTER environment variable.
"""

import os

from marketplace.activity.port import ActivityLogPort

_current_log: ActivityLogPort | None = None


def get_activity_log() -> ActivityLogPort:
    """Return the current activity log. Defaults to FakeActivityLog."""
    global _current_log
    if _current_log is None:
        adapter = os.environ.get("ACTIVITY_LOG_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.activity.fake_adapter import FakeActivityLog

            _current_log = FakeActivityLog()
        else:
            raise ValueError(f"Unknown activity log adapter: {adapter}")
    return _current_log


def set_activity_log(activity_log: ActivityLogPort) -> None:
    global _current_log
    _current_log = activity_log


def reset_activity_log() -> None:
    global _current_log
    _current_log = None
