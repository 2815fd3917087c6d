from __future__ import annotations

from typing import List, Literal, Tuple
from urllib.parse import urlparse

from . import config
from .error_codes import ErrorCode
from .logging_utils import sync_event
from .utils import log_line

Entrypoint = Literal["ui", "cli", "tests"]

# (error id, message) pairs for every blocking problem found.
Problem = Tuple[str, str]


def is_http_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _blocking_problems(sheet_id: str | None) -> List[Problem]:
    problems: List[Problem] = []

    if not (sheet_id or config.SHEET_ID).strip():
        problems.append(("sheet_id_missing", "SHEET_ID must be set to the target spreadsheet id."))

    if not is_http_url(config.LISTING_URL):
        problems.append(
            ("listing_url_invalid", "MEDIASHEET_LISTING_URL must be an http(s) URL.")
        )

    if config.LOGIN_USERNAME and not is_http_url(config.LOGIN_URL):
        problems.append(
            (
                "login_url_missing",
                "MEDIASHEET_LOGIN_URL must be an http(s) URL when login credentials are set.",
            )
        )

    if config.ADMIT_CAP < 0:
        problems.append(("admit_cap_invalid", "MEDIASHEET_ADMIT_CAP must be non-negative."))

    for name, value in (
        ("MEDIASHEET_READ_RANGE", config.SHEET_READ_RANGE),
        ("MEDIASHEET_CLEAR_RANGE", config.SHEET_CLEAR_RANGE),
        ("MEDIASHEET_WRITE_RANGE", config.SHEET_WRITE_RANGE),
    ):
        if not value.strip():
            problems.append(("sheet_range_missing", f"{name} must not be empty."))

    for name, value in (
        ("MEDIASHEET_SCROLL_WAIT_MS", config.SCROLL_WAIT_MS),
        ("MEDIASHEET_NAV_TIMEOUT_SECONDS", config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS),
        ("MEDIASHEET_SELECTOR_TIMEOUT_SECONDS", config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS),
    ):
        if value <= 0:
            problems.append(("invalid_timeout", f"{name} must be greater than zero."))

    return problems


def _clamp_stability_threshold(entrypoint: Entrypoint) -> None:
    if config.STABILITY_THRESHOLD >= 1:
        return
    sync_event(
        "state",
        phase="config",
        kind="config_adjustment",
        field="STABILITY_THRESHOLD",
        value=config.STABILITY_THRESHOLD,
        adjusted=1,
        entrypoint=entrypoint,
    )
    log_line("[CONFIG] STABILITY_THRESHOLD < 1; clamping to 1.")
    config.STABILITY_THRESHOLD = 1


def _override_problems(
    *,
    listing_url: str | None,
    admit_cap: int | None,
    stability_threshold: int | None,
) -> List[Problem]:
    """Problems in per-run values passed on the command line or in a request.

    Unlike the environment settings, an explicit stability threshold below 1
    is rejected rather than clamped.
    """

    problems: List[Problem] = []
    if listing_url is not None and not is_http_url(listing_url):
        problems.append(
            ("listing_url_invalid", f"listing_url must be an http(s) URL, got {listing_url!r}.")
        )
    if admit_cap is not None and admit_cap < 0:
        problems.append(("admit_cap_invalid", f"admit_cap must be non-negative, got {admit_cap}."))
    if stability_threshold is not None and stability_threshold < 1:
        problems.append(
            (
                "stability_threshold_invalid",
                f"stability_threshold must be at least 1, got {stability_threshold}.",
            )
        )
    return problems


def _report(entrypoint: Entrypoint, problems: List[Problem]) -> None:
    for error, message in problems:
        sync_event(
            "error",
            phase="config",
            error=error,
            error_code=ErrorCode.CONFIG_INVALID,
            entrypoint=entrypoint,
        )
        log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(" ".join(message for _, message in problems))


def check_run_arguments(
    entrypoint: Entrypoint,
    *,
    listing_url: str | None = None,
    admit_cap: int | None = None,
    stability_threshold: int | None = None,
) -> None:
    """Raise ``ValueError`` when a per-run override is unusable."""

    problems = _override_problems(
        listing_url=listing_url,
        admit_cap=admit_cap,
        stability_threshold=stability_threshold,
    )
    if problems:
        _report(entrypoint, problems)


def validate_runtime_config(
    entrypoint: Entrypoint,
    *,
    sheet_id: str | None = None,
    listing_url: str | None = None,
    admit_cap: int | None = None,
    stability_threshold: int | None = None,
) -> None:
    """Validate runtime configuration for the given entrypoint.

    The keyword arguments are per-run overrides; ``sheet_id`` satisfies the
    ``SHEET_ID`` requirement. Raises ``ValueError`` naming every blocking
    problem; an environment stability threshold below 1 is clamped and logged
    instead.
    """

    problems = _blocking_problems(sheet_id) + _override_problems(
        listing_url=listing_url,
        admit_cap=admit_cap,
        stability_threshold=stability_threshold,
    )
    if problems:
        _report(entrypoint, problems)

    _clamp_stability_threshold(entrypoint)


__all__ = ["validate_runtime_config", "check_run_arguments", "is_http_url", "Entrypoint"]
