"""
debug_trace.py

Opt-in tracing of board activity.

Each line is ``[HH:MM:SS.mmm] [CATEGORY] message``. Categories in use:

    MAIN       window lifecycle, project switches
    DASHBOARD  project list actions
    SESSION    project open/close, saves
    STORE      snapshot and index reads/writes
    ENGINE     pointer down/up, item edits
    MOVE       every pointer-move sample (needs ``trace_move``)
    SCENE      nodes added/removed
    VIEW       input forwarded from Qt
    ERROR      failures inside traced calls
    CRASH      unhandled exceptions

Tracing is off unless ``PLANBOARD_TRACE`` is set to something other than
``0``, or ``[debug] trace = true`` is applied through :func:`configure`.
"""

import os
import sys
import traceback
from datetime import datetime
from functools import wraps
from typing import Optional, TextIO

ENABLED = os.environ.get("PLANBOARD_TRACE", "") not in ("", "0")
TRACE_MOVE = False
LOG_FILE: Optional[str] = None

_sink: Optional[TextIO] = None


def configure(enabled: bool, log_file: Optional[str] = None, trace_move: bool = False):
    """Apply the ``[debug]`` settings. The environment switch cannot be turned off here."""
    global ENABLED, LOG_FILE, TRACE_MOVE
    close_log()
    ENABLED = ENABLED or enabled
    LOG_FILE = log_file or None
    TRACE_MOVE = trace_move


def is_enabled(category: str = "INFO") -> bool:
    if not ENABLED:
        return False
    return category != "MOVE" or TRACE_MOVE


def _file_sink() -> Optional[TextIO]:
    global _sink
    if LOG_FILE and _sink is None:
        try:
            _sink = open(LOG_FILE, "w", encoding="utf-8")
        except OSError as e:
            print(f"debug_trace: cannot open {LOG_FILE}: {e}", file=sys.stderr)
            return None
    return _sink


def trace(msg: str, category: str = "INFO"):
    if not is_enabled(category):
        return
    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{stamp}] [{category}] {msg}"
    print(line, file=sys.stderr, flush=True)
    sink = _file_sink()
    if sink is not None:
        try:
            sink.write(line + "\n")
            sink.flush()
        except OSError:
            close_log()


def trace_exception(msg: str = "Exception"):
    """Trace the exception currently being handled, with its traceback."""
    if is_enabled("CRASH"):
        trace(f"{msg}: {traceback.format_exc()}", "CRASH")


def trace_call(category: str):
    """Decorator tracing entry, exit and exceptions of a method.

    Example:
        @trace_call("SESSION")
        def open(self, project_id): ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            name = func.__qualname__
            trace(f">>> {name}", category)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                trace(f"!!! {name} raised {type(e).__name__}: {e}", "ERROR")
                raise
            trace(f"<<< {name}", category)
            return result
        return wrapper
    return decorator


def close_log():
    global _sink
    if _sink is not None:
        try:
            _sink.close()
        except OSError:
            pass
        _sink = None
