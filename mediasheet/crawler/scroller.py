"""Infinite-scroll driver that decides when a lazily loaded list is complete.

The listing has no end marker and no total count, so completion is inferred:
the item count must stay unchanged across ``stability_threshold`` consecutive
scroll cycles. A single stable read is not enough because a slow page can
plateau briefly between batches.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from playwright.sync_api import TimeoutError as PWTimeout

from . import config
from .error_codes import ErrorCode
from .logging_utils import sync_event
from .utils import log_line


class ScrollSurface(Protocol):
    def count_items(self) -> int: ...

    def scroll_to_bottom(self) -> None: ...

    def wait_for_count_above(self, previous: int, timeout_ms: int) -> None: ...


@dataclass(frozen=True)
class ScrollResult:
    item_count: int
    cycles: int


class ScrollController:
    """Scroll ``surface`` until its item count is stable.

    One controller drives one crawl session; it cannot be reused.
    """

    def __init__(
        self,
        stability_threshold: int = config.STABILITY_THRESHOLD,
        wait_timeout_ms: int = config.SCROLL_WAIT_MS,
        log: Callable[[str], None] = log_line,
    ) -> None:
        if stability_threshold < 1:
            raise ValueError("stability_threshold must be at least 1")
        self.stability_threshold = stability_threshold
        self.wait_timeout_ms = wait_timeout_ms
        self.previous_count = 0
        self.no_change_streak = 0
        self.cycles = 0
        self._log = log
        self._used = False

    def _observe(self, current_count: int) -> None:
        if current_count == self.previous_count:
            self.no_change_streak += 1
            self._log(
                f"[SCROLL] No new content found. Attempt "
                f"{self.no_change_streak}/{self.stability_threshold}"
            )
        else:
            self.no_change_streak = 0
        self.previous_count = current_count

    def _wait_for_growth(self, surface: ScrollSurface) -> None:
        try:
            surface.wait_for_count_above(self.previous_count, self.wait_timeout_ms)
        except PWTimeout:
            # No growth this cycle; the stability counter handles it.
            sync_event(
                "scroll",
                step="wait_timeout",
                cycle=self.cycles,
                count=self.previous_count,
                error_code=ErrorCode.SCROLL_WAIT_TIMEOUT,
            )

    def is_quiescent(self) -> bool:
        return self.no_change_streak >= self.stability_threshold

    def exhaust(self, surface: ScrollSurface) -> ScrollResult:
        if self._used:
            raise RuntimeError("ScrollController instances drive a single session")
        self._used = True

        while not self.is_quiescent():
            self.cycles += 1
            current_count = surface.count_items()
            self._log(f"[SCROLL] Content loaded: {current_count} items")
            self._observe(current_count)
            surface.scroll_to_bottom()
            self._wait_for_growth(surface)

        self._log(
            f"[SCROLL] Reached end of content: {self.previous_count} items "
            f"after {self.cycles} cycles"
        )
        sync_event(
            "scroll",
            step="quiescent",
            count=self.previous_count,
            cycles=self.cycles,
        )
        return ScrollResult(item_count=self.previous_count, cycles=self.cycles)


def exhaust_scroll(
    surface: ScrollSurface,
    stability_threshold: int = config.STABILITY_THRESHOLD,
    *,
    wait_timeout_ms: int = config.SCROLL_WAIT_MS,
    log: Callable[[str], None] = log_line,
) -> ScrollResult:
    """Scroll ``surface`` to quiescence with a fresh controller."""

    controller = ScrollController(stability_threshold, wait_timeout_ms, log=log)
    return controller.exhaust(surface)


__all__ = ["ScrollSurface", "ScrollResult", "ScrollController", "exhaust_scroll"]
