# logging_setup.py
"""
Application logging for the eye detection viewer.
- Every module logs through get_logger(__name__), a child of the 'eye_detection' logger.
- start_logging() installs a QueueHandler so the frame loop never blocks on disk I/O;
  a QueueListener thread owns the rotating log file and the console handler.
- install_crash_hooks() mirrors uncaught exceptions (main and worker threads) to the log.
"""

from __future__ import annotations
import atexit
import logging
import queue
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler, QueueHandler, QueueListener

# ------------------------- Paths & constants -------------------------

LOG_DIR = Path.home() / "EyeDetectionLogs"

timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
LOG_PATH = LOG_DIR / f"eye_detection_{timestamp}.log"

# Last-resort traceback mirror
CRASH_PATH = LOG_DIR / f"crash_{timestamp}.log"

# Main logger name used across the app
LOGGER_NAME = "eye_detection"

logging_fmt_console = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
logging_fmt_file = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(threadName)s %(message)s")

# ------------------------- Module-level state -------------------------

_queue: queue.Queue | None = None
_listener: QueueListener | None = None


# ------------------------- Public API -------------------------

def start_logging(level: int = logging.INFO, log_to_file: bool = True) -> None:
    """
    Install the QueueHandler on the app logger and start the listener thread.
    Call once from the entry point. Safe to call twice (second call is a no-op).
    """
    global _queue, _listener

    if _queue is not None:
        return

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.setFormatter(logging_fmt_console)
    handlers.append(console)

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(LOG_PATH, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
        fh.setFormatter(logging_fmt_file)
        handlers.append(fh)

    _queue = queue.Queue(-1)
    _listener = QueueListener(_queue, *handlers, respect_handler_level=True)
    _listener.start()

    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.propagate = False
    _install_queue_handler()

    atexit.register(shutdown_logging)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return the app logger ('eye_detection') or a child under it,
    so all children inherit the QueueHandler attached to 'eye_detection'.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)

    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)

    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def shutdown_logging() -> None:
    """
    Flush pending records and stop the listener. Safe to call multiple times.
    """
    global _queue, _listener

    _remove_queue_handlers()

    if _listener is not None:
        _listener.stop()
        for h in _listener.handlers:
            h.flush()
            h.close()

    _listener = None
    _queue = None


def install_crash_hooks() -> None:
    """
    Mirrors uncaught exceptions to the main logger and also to CRASH_PATH.
    Call this once in the entry point after start_logging().
    """
    import sys, threading, traceback, faulthandler

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    crash_file = open(CRASH_PATH, "a", buffering=1, encoding="utf-8")
    # Low-level tracebacks on hard crashes (e.g. inside compiled kernels)
    faulthandler.enable(crash_file)

    def _excepthook(exc_type, exc, tb):
        log = get_logger()
        log.critical("UNCAUGHT EXCEPTION", exc_info=(exc_type, exc, tb))
        traceback.print_exception(exc_type, exc, tb, file=crash_file)

    def _thread_excepthook(args):
        _excepthook(args.exc_type, args.exc_value, args.exc_traceback)

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook


# ------------------------- Internal helpers -------------------------

def _install_queue_handler() -> None:
    if _queue is None:
        return
    lg = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(h, QueueHandler) for h in lg.handlers):
        lg.addHandler(QueueHandler(_queue))


def _remove_queue_handlers() -> None:
    lg = logging.getLogger(LOGGER_NAME)
    for h in list(lg.handlers):
        if isinstance(h, QueueHandler):
            lg.removeHandler(h)
            h.close()
