from __future__ import annotations

"""Google Sheets storage backend for the persisted listing table.

Reads, clears and writes are issued one after another with no concurrency
check, so an external edit made between the read and the write is lost.
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from . import config
from .error_codes import ErrorCode
from .logging_utils import sync_event
from .utils import log_line


class CredentialError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.error_code = ErrorCode.CREDENTIAL_FAILURE


class StorageError(Exception):
    def __init__(self, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.error_code = ErrorCode.STORAGE_CALL_FAILURE
        self.http_status = http_status


def _http_status(exc: HttpError) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _http_reason(exc: HttpError) -> str:
    details = getattr(exc, "error_details", None)
    if details:
        return str(details)
    content = getattr(exc, "content", b"") or b""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")[:300] or str(exc)
    return str(exc)


class SheetsClient:
    """Range-based access to spreadsheet values."""

    def __init__(self, service: Any) -> None:
        self._values = service.spreadsheets().values()

    def _execute(self, request: Any, *, operation: str, range_name: str) -> Any:
        sync_event("sheets", step=operation, range=range_name)
        try:
            return request.execute()
        except HttpError as exc:
            status = _http_status(exc)
            reason = _http_reason(exc)
            log_line(f"[SYNC][ERROR][SHEETS] {operation} {range_name} failed: HTTP {status} {reason}")
            raise StorageError(f"Sheets {operation} failed: {reason}", http_status=status) from exc
        except GoogleAuthError as exc:
            log_line(f"[SYNC][ERROR][SHEETS] {operation} {range_name} rejected credentials: {exc}")
            raise CredentialError(f"Sheets credentials rejected: {exc}") from exc
        except OSError as exc:
            log_line(f"[SYNC][ERROR][SHEETS] {operation} {range_name} transport error: {exc}")
            raise StorageError(f"Sheets {operation} failed: {exc}") from exc

    def read_range(self, sheet_id: str, range_name: str) -> List[List[str]]:
        response = self._execute(
            self._values.get(spreadsheetId=sheet_id, range=range_name),
            operation="read",
            range_name=range_name,
        )
        return [list(row) for row in (response or {}).get("values", [])]

    def clear_range(self, sheet_id: str, range_name: str) -> None:
        self._execute(
            self._values.clear(spreadsheetId=sheet_id, range=range_name, body={}),
            operation="clear",
            range_name=range_name,
        )

    def write_range(self, sheet_id: str, range_name: str, rows: Sequence[Sequence[str]]) -> int:
        """Write ``rows`` starting at ``range_name``; returns the updated row count."""

        response = self._execute(
            self._values.update(
                spreadsheetId=sheet_id,
                range=range_name,
                valueInputOption="RAW",
                body={"values": [list(row) for row in rows]},
            ),
            operation="write",
            range_name=range_name,
        )
        return int((response or {}).get("updatedRows", len(rows)))


def authorize(
    credentials_file: Optional[Path] = None,
    scopes: Sequence[str] = config.SHEETS_SCOPES,
) -> SheetsClient:
    """Build an authenticated Sheets client from a service-account key file."""

    path = Path(credentials_file or config.GOOGLE_CREDENTIALS_FILE)
    log_line("[SHEETS] Authorizing Google Sheets access...")
    if not path.is_file():
        raise CredentialError(f"Credentials file not found: {path}")
    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(path), scopes=list(scopes)
        )
    except (ValueError, OSError, GoogleAuthError) as exc:
        raise CredentialError(f"Invalid credentials file {path}: {exc}") from exc

    service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    return SheetsClient(service)


__all__ = ["SheetsClient", "StorageError", "CredentialError", "authorize"]
