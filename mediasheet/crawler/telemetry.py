"""Per-run telemetry: what happened to each listing and how long each stage took."""

from __future__ import annotations

import time
import uuid
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from . import config
from .utils import save_json_file


def new_run_id() -> str:
    return f"{time.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


class RunTelemetry:
    """Collect listing outcomes and stage timings for one sync run.

    Outcomes used by the sync are ``admitted``, ``dropped`` (over the admit
    cap), ``known`` (already stored) and ``skipped`` (incomplete item).
    """

    def __init__(self, trigger: str, run_id: Optional[str] = None) -> None:
        self.run_id = run_id or new_run_id()
        self.trigger = trigger
        self.started_at = time.time()
        self.outcomes: List[Dict[str, Any]] = []
        self.counts: Counter[str] = Counter()
        self.stages: Dict[str, float] = {}

    def record(self, outcome: str, original_title: str, **meta: Any) -> None:
        self.outcomes.append({"outcome": outcome, "original_title": original_title, **meta})
        self.counts[outcome] += 1

    def count(self, outcome: str, amount: int) -> None:
        """Add to an outcome counter without per-listing entries."""

        if amount:
            self.counts[outcome] += amount

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block; failed stages are timed too."""

        started = time.monotonic()
        try:
            yield
        finally:
            self.stages[name] = round(time.monotonic() - started, 3)

    def finalize(self, status: str, **extra: Any) -> Path:
        payload = {
            "run_id": self.run_id,
            "trigger": self.trigger,
            "status": status,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "counts": dict(self.counts),
            "stages": dict(self.stages),
            "outcomes": self.outcomes,
            **extra,
        }
        path = config.RUNS_DIR / f"run_{self.run_id}.json"
        save_json_file(path, payload)
        return path


__all__ = ["RunTelemetry", "new_run_id"]
