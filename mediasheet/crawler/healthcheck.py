"""Readiness checks: configuration, data directory and the Sheets key file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

from . import config
from .config_validation import validate_runtime_config
from .logging_utils import sync_event
from .utils import disk_has_room, ensure_dirs, load_json_file, log_line

Check = Dict[str, Any]

# Fields google-auth needs to sign requests with a service account.
_REQUIRED_KEY_FIELDS = ("client_email", "private_key", "token_uri")


@dataclass
class HealthResult:
    ok: bool
    checks: Dict[str, Check] = field(default_factory=dict)

    @property
    def failed(self) -> list[str]:
        return [name for name, check in self.checks.items() if not check.get("ok")]


def _check_config(entrypoint: str) -> Check:
    try:
        validate_runtime_config(entrypoint)
    except ValueError as exc:
        return {"ok": False, "error": str(exc)}
    return {"ok": True}


def _check_filesystem(_entrypoint: str) -> Check:
    check: Check = {"ok": False, "data_dir": str(config.DATA_DIR), "min_free_mb": config.MIN_FREE_MB}
    try:
        ensure_dirs()
    except OSError as exc:
        check["error"] = str(exc)
        return check
    check["ok"] = disk_has_room(config.MIN_FREE_MB, config.DATA_DIR)
    return check


def _check_credentials(_entrypoint: str) -> Check:
    """Check the service-account key without contacting Google.

    Only the account e-mail is reported back; the key itself never is.
    """

    path = config.GOOGLE_CREDENTIALS_FILE
    check: Check = {"ok": False, "path": str(path)}
    if not path.is_file():
        check["error"] = "credentials file not found"
        return check

    key = load_json_file(path)
    if not isinstance(key, dict):
        check["error"] = "credentials file is not a JSON object"
        return check

    missing = [name for name in _REQUIRED_KEY_FIELDS if not key.get(name)]
    if missing:
        check["error"] = f"missing fields: {', '.join(missing)}"
        return check

    check["ok"] = True
    check["client_email"] = key["client_email"]
    return check


_CHECKS: Tuple[Tuple[str, Callable[[str], Check]], ...] = (
    ("config", _check_config),
    ("filesystem", _check_filesystem),
    ("credentials", _check_credentials),
)


def run_health_checks(entrypoint: str = "cli") -> HealthResult:
    checks = {name: check(entrypoint or "cli") for name, check in _CHECKS}
    result = HealthResult(ok=all(check["ok"] for check in checks.values()), checks=checks)

    sync_event(
        "state" if result.ok else "error",
        phase="health",
        ok=result.ok,
        failed=result.failed,
        entrypoint=entrypoint,
    )
    return result


def main() -> int:
    result = run_health_checks(entrypoint="cli")
    for name, info in result.checks.items():
        status = "OK" if info.get("ok") else "FAIL"
        log_line(f"[HEALTH] {name}: {status} {info}")
    return 0 if result.ok else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
