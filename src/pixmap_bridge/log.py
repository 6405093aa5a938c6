"""Line logging to stderr

Log lines look like ``[WARN] [Shim] message``. The threshold comes from
PIXMAP_BRIDGE_LOG_LEVEL (debug, info, warn, error) and defaults to warn.
"""

import os
import sys

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}

DEFAULT_LEVEL = "warn"


def threshold() -> int:
    name = os.getenv("PIXMAP_BRIDGE_LOG_LEVEL", DEFAULT_LEVEL).lower()
    return LEVELS.get(name, LEVELS[DEFAULT_LEVEL])


def emit_log(level: str, component: str, message: str) -> None:
    """Write one log line to stderr if level passes the threshold"""
    if LEVELS.get(level, LEVELS["error"]) < threshold():
        return
    print(f"[{level.upper()}] [{component}] {message}", file=sys.stderr)


def debug(component: str, message: str) -> None:
    emit_log("debug", component, message)


def info(component: str, message: str) -> None:
    emit_log("info", component, message)


def warn(component: str, message: str) -> None:
    emit_log("warn", component, message)


def error(component: str, message: str) -> None:
    emit_log("error", component, message)
