from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httplib2
import pytest
from googleapiclient.errors import HttpError

from mediasheet.crawler import sheets_client
from mediasheet.crawler.error_codes import ErrorCode
from mediasheet.crawler.sheets_client import CredentialError, SheetsClient, StorageError


class _Request:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error

    def execute(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


class _Values:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.results: dict[str, Any] = {}
        self.errors: dict[str, Exception] = {}

    def _request(self, name: str, kwargs: dict[str, Any]) -> _Request:
        self.calls.append((name, kwargs))
        return _Request(self.results.get(name), self.errors.get(name))

    def get(self, **kwargs: Any) -> _Request:
        return self._request("get", kwargs)

    def clear(self, **kwargs: Any) -> _Request:
        return self._request("clear", kwargs)

    def update(self, **kwargs: Any) -> _Request:
        return self._request("update", kwargs)


class _Service:
    def __init__(self, values: _Values) -> None:
        self._values = values

    def spreadsheets(self) -> "_Service":
        return self

    def values(self) -> _Values:
        return self._values


def _http_error(status: int, message: str = "denied") -> HttpError:
    resp = httplib2.Response({"status": status})
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(resp, content)


def test_read_range_returns_rows() -> None:
    values = _Values()
    values.results["get"] = {"values": [["original-title"], ["Heat.mkv", "u", "s"]]}
    client = SheetsClient(_Service(values))

    rows = client.read_range("sheet-1", "Sheet1!A:G")

    assert rows == [["original-title"], ["Heat.mkv", "u", "s"]]
    assert values.calls == [("get", {"spreadsheetId": "sheet-1", "range": "Sheet1!A:G"})]


def test_read_range_of_empty_sheet() -> None:
    values = _Values()
    values.results["get"] = {"range": "Sheet1!A1:G1000"}

    assert SheetsClient(_Service(values)).read_range("sheet-1", "Sheet1!A:G") == []


def test_clear_and_write_use_raw_values() -> None:
    values = _Values()
    values.results["update"] = {"updatedRows": 2}
    client = SheetsClient(_Service(values))

    client.clear_range("sheet-1", "Sheet1!A:G")
    updated = client.write_range("sheet-1", "Sheet1!A1", [("a", "b"), ("c", "d")])

    assert updated == 2
    assert values.calls[0] == ("clear", {"spreadsheetId": "sheet-1", "range": "Sheet1!A:G", "body": {}})
    name, kwargs = values.calls[1]
    assert name == "update"
    assert kwargs["valueInputOption"] == "RAW"
    assert kwargs["range"] == "Sheet1!A1"
    assert kwargs["body"] == {"values": [["a", "b"], ["c", "d"]]}


def test_http_errors_become_storage_errors() -> None:
    values = _Values()
    values.errors["get"] = _http_error(403)
    client = SheetsClient(_Service(values))

    with pytest.raises(StorageError) as excinfo:
        client.read_range("sheet-1", "Sheet1!A:G")

    assert excinfo.value.http_status == 403
    assert excinfo.value.error_code == ErrorCode.STORAGE_CALL_FAILURE


def test_transport_errors_become_storage_errors() -> None:
    values = _Values()
    values.errors["update"] = ConnectionResetError("connection reset")
    client = SheetsClient(_Service(values))

    with pytest.raises(StorageError):
        client.write_range("sheet-1", "Sheet1!A1", [["a"]])


def test_authorize_requires_credentials_file(tmp_path: Path) -> None:
    with pytest.raises(CredentialError) as excinfo:
        sheets_client.authorize(tmp_path / "missing.json")

    assert excinfo.value.error_code == ErrorCode.CREDENTIAL_FAILURE


def test_authorize_rejects_malformed_credentials(tmp_path: Path) -> None:
    path = tmp_path / "credentials.json"
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(CredentialError):
        sheets_client.authorize(path)


def test_authorize_builds_sheets_service(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "credentials.json"
    path.write_text("{}", encoding="utf-8")
    calls: dict[str, Any] = {}

    def fake_from_file(filename: str, scopes: list[str]) -> str:
        calls["file"] = filename
        calls["scopes"] = scopes
        return "creds"

    def fake_build(name: str, version: str, credentials: Any, cache_discovery: bool) -> _Service:
        calls["build"] = (name, version, credentials, cache_discovery)
        return _Service(_Values())

    monkeypatch.setattr(
        sheets_client.service_account.Credentials, "from_service_account_file", fake_from_file
    )
    monkeypatch.setattr(sheets_client, "build", fake_build)

    client = sheets_client.authorize(path)

    assert isinstance(client, SheetsClient)
    assert calls["file"] == str(path)
    assert calls["scopes"] == ["https://www.googleapis.com/auth/spreadsheets"]
    assert calls["build"] == ("sheets", "v4", "creds", False)
