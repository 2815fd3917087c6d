"""Structured ``[SYNC][LABEL] key=value`` event lines.

Events go through ``log_line`` so they land in the same run log as the plain
progress messages. While a run is bound with :func:`bound_run`, every event
emitted from that thread carries its ``run_id``.
"""
from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .utils import log_line

_RUN_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "mediasheet_run_id", default=None
)


@contextmanager
def bound_run(run_id: str) -> Iterator[str]:
    token = _RUN_ID.set(run_id)
    try:
        yield run_id
    finally:
        _RUN_ID.reset(token)


def current_run_id() -> Optional[str]:
    return _RUN_ID.get()


def sync_event(label: str = "", /, *, phase: str | None = None, **fields: Any) -> None:
    """Emit one structured event line.

    ``phase`` names the event when ``label`` is empty; with both given, the
    phase is kept as a field. Fields are sorted by name so lines diff cleanly
    between runs.
    """

    if phase and label:
        fields.setdefault("phase", phase)
    run_id = _RUN_ID.get()
    if run_id is not None:
        fields.setdefault("run_id", run_id)

    name = (label or phase or "event").upper()
    payload = ", ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
    try:
        log_line(f"[SYNC][{name}] {payload}".rstrip())
    except OSError:
        # A full disk or closed log file must not abort the sync.
        return


__all__ = ["sync_event", "bound_run", "current_run_id"]
