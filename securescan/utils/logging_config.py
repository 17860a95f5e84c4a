"""
Logging and metrics for SecureScan.

Production logs are one JSON object per line (see JSONFormatter); development
logs are plain text. Classifier calls are counted by the track_analysis
decorator into the process-wide `metrics` collector, which GET /metrics
exposes.
"""

import json
import logging
import sys
import threading
import time
import traceback
from collections import defaultdict, deque
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Deque, Dict, Optional

from securescan.config import settings


# Set per request by the HTTP middleware
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "python_multipart": logging.WARNING,
    "multipart": logging.WARNING,
    "uvicorn.access": logging.INFO,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with request id and structured data when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
            "environment": settings.environment,
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        data = getattr(record, "extra_data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Logger that takes key-value context instead of formatted strings.

    Usage:
        logger = StructuredLogger("securescan.api")
        logger.info("URL scanned", result_type="safe", category="none")
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **data):
        # stacklevel 3 points location fields at the caller, not this wrapper
        self._logger.log(level, message, exc_info=exc_info, extra={"extra_data": data}, stacklevel=3)

    def debug(self, message: str, **data):
        self._log(logging.DEBUG, message, **data)

    def info(self, message: str, **data):
        self._log(logging.INFO, message, **data)

    def warning(self, message: str, **data):
        self._log(logging.WARNING, message, **data)

    def error(self, message: str, exc_info: bool = False, **data):
        self._log(logging.ERROR, message, exc_info=exc_info, **data)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
):
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        json_format: JSON lines on stdout when True, plain text otherwise
        log_file: Also write JSON lines to this file (parent dirs are created)
    """
    log_level = getattr(logging, level.upper())
    handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    for handler in handlers:
        handler.setLevel(log_level)
        root.addHandler(handler)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


def init_logging():
    """Configure logging from settings: JSON at INFO in prod, text at DEBUG otherwise."""
    if settings.is_production:
        setup_logging(level="INFO", json_format=True, log_file="logs/securescan.log")
    else:
        setup_logging(level="DEBUG", json_format=False)


# ============== METRICS ==============


class MetricsCollector:
    """
    Thread-safe counters and latency samples.

    Classifiers run on the batch extractor's worker threads, so every update
    takes the lock.
    """

    MAX_SAMPLES = 1000

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = defaultdict(int)
        self._timings: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=self.MAX_SAMPLES))
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] += value

    def timing(self, name: str, seconds: float):
        with self._lock:
            self._timings[name].append(seconds)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            samples = {name: sorted(values) for name, values in self._timings.items() if values}

        timings = {}
        for name, values in samples.items():
            count = len(values)
            timings[name] = {
                "count": count,
                "min": values[0],
                "max": values[-1],
                "avg": sum(values) / count,
                "p50": values[count // 2],
                "p95": values[int(count * 0.95)] if count >= 20 else None,
            }

        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": counters,
            "timings": timings,
        }

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = MetricsCollector()


def _outcome(result: Any) -> str:
    level = getattr(result, "result_type", None) or getattr(result, "risk_level", None)
    return level.value if level is not None else "unknown"


def track_analysis(kind: str):
    """
    Count calls, errors, latency and outcomes of a classifier.

    Single results are counted under analysis.<kind>.risk.<level>; list
    results under analysis.<kind>.items.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            metrics.increment(f"analysis.{kind}.total")
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                metrics.increment(f"analysis.{kind}.errors")
                raise
            metrics.timing(f"analysis.{kind}.latency", time.perf_counter() - start)

            if isinstance(result, list):
                metrics.increment(f"analysis.{kind}.items", len(result))
            else:
                metrics.increment(f"analysis.{kind}.risk.{_outcome(result)}")
            return result

        return wrapper

    return decorator
