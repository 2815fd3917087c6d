from __future__ import annotations

import json
import logging
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

from . import config

LOGGER = logging.getLogger("mediasheet")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE

_FORMATTER = logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def _build_handlers(log_path: Path) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setFormatter(_FORMATTER)
    return handlers


def _configure_logger(log_path: Path) -> None:
    """Point the shared ``mediasheet`` logger at stdout and ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    log_path.parent.mkdir(parents=True, exist_ok=True)

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(log_path):
        LOGGER.addHandler(handler)

    LOGGER.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    if not _LOGGER_INITIALISED:
        _configure_logger(config.LOG_FILE)


def prune_run_logs(keep: int) -> List[Path]:
    """Delete all but the newest ``keep`` per-run log files; return the removed paths."""

    logs = sorted(config.LOG_DIR.glob("sync_*.log"))
    stale = logs[: max(0, len(logs) - max(keep, 0))]
    removed: List[Path] = []
    for path in stale:
        if path == _CURRENT_LOG_FILE:
            continue
        try:
            path.unlink()
        except OSError:
            continue
        removed.append(path)
    return removed


def setup_run_logger() -> Path:
    """Switch to a fresh ``sync_<timestamp>.log`` for the current run."""

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_path = config.LOG_DIR / f"sync_{timestamp}.log"
    _configure_logger(log_path)
    removed = prune_run_logs(config.LOG_KEEP_MAX)
    LOGGER.info("Logging to %s", log_path)
    if removed:
        LOGGER.info("Removed %d old run logs", len(removed))
    return log_path


def ensure_dirs() -> None:
    config.DATA_DIR.mkdir(parents=True, exist_ok=True)
    config.LOG_DIR.mkdir(parents=True, exist_ok=True)
    config.RUNS_DIR.mkdir(parents=True, exist_ok=True)


def log_line(message: str, level: int = logging.INFO) -> None:
    """Write a timestamped line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.log(level, message)


def disk_has_room(min_free_mb: int, path: Path) -> bool:
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return False
    return usage.free >= min_free_mb * 1024 * 1024


def load_json_file(path: Path, default: Any = None) -> Any:
    """Load JSON from ``path``; ``default`` when it is missing or unreadable."""

    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        log_line(f"[UTILS][WARN] Unable to read {path}: {exc}", logging.WARNING)
        return default


def save_json_file(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, default=str),
        encoding="utf-8",
    )


__all__ = [
    "LOGGER",
    "setup_run_logger",
    "prune_run_logs",
    "ensure_dirs",
    "log_line",
    "disk_has_room",
    "load_json_file",
    "save_json_file",
]
