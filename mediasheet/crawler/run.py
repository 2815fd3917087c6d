"""Crawl the file listing and sync it into the Google Sheet.

Workflow:

- Authorize against Google Sheets (fail fast before a browser is started).
- Open the listing in Playwright, logging in first when credentials are set.
- Scroll until the lazily loaded list stops growing.
- Read title, download link and size from every list item.
- Sanitize each title into display title, year, quality and keywords.
- Merge with the stored table: at most ``admit_cap`` new rows on top, every
  stored row kept below in its existing order.
- Clear the sheet and write the merged table back in one update.

Either the whole pipeline completes and exactly one write happens, or the run
fails and the sheet is left untouched.
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from . import browser, config, sheets_client
from .config_validation import check_run_arguments, validate_runtime_config
from .error_codes import error_code_for
from .extractor import RawListing, extract_listings
from .logging_utils import bound_run, sync_event
from .reconcile import ReconcileResult, build_records, reconcile, records_from_rows, table_rows
from .scroller import ScrollController, ScrollResult
from .telemetry import RunTelemetry
from .utils import ensure_dirs, log_line, save_json_file, setup_run_logger


def _short_error_message(exc: Exception, max_length: int = 200) -> str:
    message = f"{type(exc).__name__}: {exc}"
    if len(message) > max_length:
        return message[: max_length - 3] + "..."
    return message


def crawl_listings(
    *,
    listing_url: str,
    stability_threshold: int,
    headless: bool,
) -> tuple[List[RawListing], ScrollResult]:
    """Load the full listing and extract it; the browser is always closed.

    Returns the extracted listings and the scroll outcome, whose
    ``item_count`` is the number of rendered items.
    """

    session = browser.BrowserSession(headless=headless)
    try:
        page = session.open()
        browser.open_listing(
            page,
            listing_url=listing_url,
            login_url=config.LOGIN_URL,
            username=config.LOGIN_USERNAME,
            password=config.LOGIN_PASSWORD,
        )
        log_line("[RUN] Starting infinite scroll...")
        scroll = ScrollController(stability_threshold, config.SCROLL_WAIT_MS).exhaust(page)

        handles = page.item_handles()
        log_line(f"[RUN] Found {len(handles)} listing items")
        if len(handles) != scroll.item_count:
            scroll = ScrollResult(item_count=len(handles), cycles=scroll.cycles)
        return extract_listings(handles), scroll
    finally:
        session.close()


def _record_outcomes(telemetry: RunTelemetry, result: ReconcileResult) -> None:
    for record in result.admitted:
        telemetry.record("admitted", record.original_title, size=record.size)
    for record in result.dropped:
        telemetry.record("dropped", record.original_title, reason="admit_cap")
    telemetry.count("known", result.already_known)
    telemetry.count("duplicate", result.duplicates + result.prior_duplicates)


def _sync(
    telemetry: RunTelemetry,
    summary: Dict[str, Any],
    *,
    listing_url: str,
    sheet_id: str,
    cap: int,
    threshold: int,
    headless: bool,
) -> None:
    check_run_arguments(
        "ui" if summary["trigger"] == "ui" else "cli",
        listing_url=listing_url,
        admit_cap=cap,
        stability_threshold=threshold,
    )

    with telemetry.stage("authorize"):
        client = sheets_client.authorize()

    with telemetry.stage("crawl"):
        listings, scroll = crawl_listings(
            listing_url=listing_url,
            stability_threshold=threshold,
            headless=headless,
        )
    rendered = scroll.item_count
    summary["scroll_cycles"] = scroll.cycles
    summary["items_found"] = rendered
    summary["items_skipped"] = rendered - len(listings)
    summary["listings"] = len(listings)
    telemetry.count("skipped", rendered - len(listings))

    with telemetry.stage("reconcile"):
        fresh = build_records(listings)
        log_line("[RUN] Fetching existing sheet data...")
        prior = records_from_rows(client.read_range(sheet_id, config.SHEET_READ_RANGE))
        result = reconcile(fresh, prior, cap)
    _record_outcomes(telemetry, result)
    log_line(
        f"[RUN] Found {len(result.admitted) + len(result.dropped)} new listings, "
        f"admitting {len(result.admitted)}; {result.already_known} already stored"
    )

    with telemetry.stage("write"):
        rows = table_rows(result.records)
        log_line("[RUN] Clearing existing sheet data...")
        client.clear_range(sheet_id, config.SHEET_CLEAR_RANGE)
        log_line("[RUN] Writing merged data to sheet...")
        client.write_range(sheet_id, config.SHEET_WRITE_RANGE, rows)

    summary.update(
        {
            "status": "completed",
            "prior_rows": len(prior),
            "admitted": len(result.admitted),
            "dropped": len(result.dropped),
            "already_known": result.already_known,
            "duplicates": result.duplicates,
            "prior_duplicates": result.prior_duplicates,
            "rows_written": len(result.records),
        }
    )


def run_sync(
    *,
    listing_url: Optional[str] = None,
    sheet_id: Optional[str] = None,
    admit_cap: Optional[int] = None,
    stability_threshold: Optional[int] = None,
    headless: Optional[bool] = None,
    trigger: str = "cli",
) -> Dict[str, Any]:
    """Run one full crawl-and-sync pass and return its summary.

    The summary is also saved to ``SUMMARY_FILE`` whether the run completes
    or fails; failures are re-raised after it is written.
    """

    ensure_dirs()
    log_path = setup_run_logger()

    listing_url = (listing_url or config.LISTING_URL).strip()
    sheet_id = (sheet_id or config.SHEET_ID).strip()
    cap = config.ADMIT_CAP if admit_cap is None else admit_cap
    threshold = config.STABILITY_THRESHOLD if stability_threshold is None else stability_threshold
    headless = config.HEADLESS if headless is None else headless

    telemetry = RunTelemetry(trigger)
    summary: Dict[str, Any] = {
        "run_id": telemetry.run_id,
        "trigger": trigger,
        "listing_url": listing_url,
        "admit_cap": cap,
        "log_file": str(log_path),
        "started_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
    }

    with bound_run(telemetry.run_id):
        sync_event("plan", trigger=trigger, admit_cap=cap, listing_url=listing_url)
        try:
            _sync(
                telemetry,
                summary,
                listing_url=listing_url,
                sheet_id=sheet_id,
                cap=cap,
                threshold=threshold,
                headless=headless,
            )
        except Exception as exc:  # noqa: BLE001
            summary.update(
                {
                    "status": "failed",
                    "error": _short_error_message(exc),
                    "error_code": error_code_for(exc),
                }
            )
            sync_event("error", error=summary["error"], error_code=summary["error_code"])
            _finalize(telemetry, summary)
            raise

        sync_event("summary", **{k: v for k, v in summary.items() if k not in ("log_file", "run_id")})
        log_line("[RUN] Sheet update complete")
        _finalize(telemetry, summary)
    return summary


def _finalize(telemetry: RunTelemetry, summary: Dict[str, Any]) -> None:
    try:
        summary["telemetry_file"] = str(
            telemetry.finalize(summary.get("status", "failed"), error_code=summary.get("error_code"))
        )
    except OSError as exc:
        log_line(f"[RUN][WARN] Unable to write run telemetry: {exc}", logging.WARNING)
    try:
        save_json_file(config.SUMMARY_FILE, summary)
    except OSError as exc:
        log_line(f"[RUN][WARN] Unable to write summary: {exc}", logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl the media listing and sync it to Google Sheets")
    parser.add_argument("--listing-url", default=None)
    parser.add_argument("--sheet-id", default=None)
    parser.add_argument("--admit-cap", type=int, default=None)
    parser.add_argument("--stability-threshold", type=int, default=None)
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint; returns a process exit code."""

    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    ensure_dirs()
    try:
        validate_runtime_config(
            "cli",
            sheet_id=args.sheet_id,
            listing_url=args.listing_url,
            admit_cap=args.admit_cap,
            stability_threshold=args.stability_threshold,
        )
    except ValueError as exc:
        log_line(f"[RUN] Invalid configuration: {exc}", logging.ERROR)
        return 1

    try:
        run_sync(
            listing_url=args.listing_url,
            sheet_id=args.sheet_id,
            admit_cap=args.admit_cap,
            stability_threshold=args.stability_threshold,
            headless=False if args.headful else None,
            trigger="cli",
        )
    except Exception as exc:  # noqa: BLE001
        log_line(f"[RUN] Sync failed: {_short_error_message(exc)}", logging.ERROR)
        return 1
    log_line("[RUN] Process completed successfully")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

__all__ = ["run_sync", "crawl_listings", "main"]
