"""
markrig Logging Utility

Provides timestamped console logging for all markrig components.
"""

from datetime import datetime
from typing import Optional


LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

_min_level = LEVELS["INFO"]


def set_log_level(level: str) -> None:
    """
    Set the minimum level that gets printed.

    Args:
        level: One of DEBUG, INFO, WARN, ERROR
    """
    global _min_level
    if level not in LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    _min_level = LEVELS[level]


def get_log_level() -> str:
    """Name of the current minimum level."""
    for name, value in LEVELS.items():
        if value == _min_level:
            return name
    return "INFO"


def log(message: str, level: str = "INFO", component: Optional[str] = None) -> None:
    """
    Print a timestamped log message.

    Args:
        message: The message to log
        level: Log level (INFO, WARN, ERROR, DEBUG)
        component: Optional component name (e.g., "Calibration", "Tracking")
    """
    if LEVELS.get(level, LEVELS["INFO"]) < _min_level:
        return

    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]  # HH:MM:SS.mmm

    if component:
        prefix = f"[{timestamp}] [{level}] [{component}]"
    else:
        prefix = f"[{timestamp}] [{level}]"

    print(f"{prefix} {message}")


class ComponentLogger:
    """Logger bound to a specific component."""

    def __init__(self, component: str):
        self.component = component

    def info(self, message: str) -> None:
        log(message, "INFO", self.component)

    def warn(self, message: str) -> None:
        log(message, "WARN", self.component)

    def debug(self, message: str) -> None:
        log(message, "DEBUG", self.component)


calibration_log = ComponentLogger("Calibration")
tracking_log = ComponentLogger("Tracking")
capture_log = ComponentLogger("Capture")
