from __future__ import annotations

"""Centralised error code taxonomy for sync failures.

Codes are attached to raised exceptions and included in structured logs and
run telemetry so a failed or partially skipped run can be explained.
"""


class ErrorCode:
    EXTRACTION_FIELD_MISSING = "extraction_field_missing"
    SCROLL_WAIT_TIMEOUT = "scroll_wait_timeout"
    CREDENTIAL_FAILURE = "credential_failure"
    STORAGE_CALL_FAILURE = "storage_call_failure"
    NAVIGATION_FAILURE = "navigation_failure"
    CONFIG_INVALID = "config_invalid"
    INTERNAL = "internal_error"


def error_code_for(exc: BaseException) -> str:
    """Return the taxonomy code carried by ``exc`` or ``internal_error``."""

    code = getattr(exc, "error_code", None)
    if isinstance(code, str) and code:
        return code
    if isinstance(exc, ValueError):
        return ErrorCode.CONFIG_INVALID
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "error_code_for"]
