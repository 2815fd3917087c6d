from __future__ import annotations

import threading
from typing import Any, Dict

from flask import Flask, Response, jsonify, request

from mediasheet.crawler import config
from mediasheet.crawler.config_validation import validate_runtime_config
from mediasheet.crawler.healthcheck import run_health_checks
from mediasheet.crawler.logging_utils import sync_event
from mediasheet.crawler.run import run_sync
from mediasheet.crawler.utils import ensure_dirs, load_json_file, log_line

app = Flask(__name__)

# Only one crawl session may own the browser and the sheet at a time.
_SYNC_LOCK = threading.Lock()

ensure_dirs()


def _parse_int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


@app.get("/")
def index() -> Response:
    """Return the last sync summary and the defaults a new sync would use."""

    return jsonify(
        {
            "running": _SYNC_LOCK.locked(),
            "last_summary": app.config.get("LAST_SUMMARY"),
            "defaults": {
                "listing_url": config.LISTING_URL,
                "admit_cap": config.ADMIT_CAP,
                "stability_threshold": config.STABILITY_THRESHOLD,
            },
        }
    )


@app.post("/sync")
def start_sync() -> Response:
    """Start a crawl-and-sync run in a background thread."""

    payload: Dict[str, Any] = request.get_json(silent=True) or dict(request.form)
    admit_cap = max(0, _parse_int(payload.get("admit_cap"), config.ADMIT_CAP))
    threshold = max(1, _parse_int(payload.get("stability_threshold"), config.STABILITY_THRESHOLD))
    listing_url = str(payload.get("listing_url") or config.LISTING_URL).strip()

    try:
        validate_runtime_config("ui", listing_url=listing_url)
    except ValueError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400

    if not _SYNC_LOCK.acquire(blocking=False):
        sync_event("state", phase="trigger", kind="sync_rejected", reason="already_running")
        return jsonify({"ok": False, "error": "sync_already_running"}), 409

    def _run() -> None:
        try:
            summary = run_sync(
                listing_url=listing_url,
                admit_cap=admit_cap,
                stability_threshold=threshold,
                trigger="ui",
            )
            app.config["LAST_SUMMARY"] = summary
        except Exception as exc:  # noqa: BLE001
            log_line(f"Sync thread failed: {exc}")
            app.config["LAST_SUMMARY"] = load_json_file(config.SUMMARY_FILE)
        finally:
            _SYNC_LOCK.release()

    threading.Thread(target=_run, daemon=True).start()
    return jsonify({"ok": True, "admit_cap": admit_cap, "listing_url": listing_url}), 202


@app.get("/api/health")
def api_health() -> Response:
    """Return a JSON health summary for configuration, filesystem and credentials."""

    result = run_health_checks(entrypoint="ui")
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status


@app.get("/api/runs/latest")
def api_runs_latest() -> Response:
    """Return the summary persisted by the most recent sync run."""

    summary = load_json_file(config.SUMMARY_FILE)
    if not summary:
        return jsonify({"ok": False, "error": "no runs"}), 404
    return jsonify({"ok": True, "run": summary})


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8080)
