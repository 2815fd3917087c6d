from mediasheet.crawler import config
from mediasheet.crawler.config_validation import check_run_arguments, validate_runtime_config
import pytest


@pytest.fixture(autouse=True)
def _valid_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SHEET_ID", "sheet-1")
    monkeypatch.setattr(config, "LISTING_URL", "https://example.com/0:/")
    monkeypatch.setattr(config, "LOGIN_URL", "https://example.com/")
    monkeypatch.setattr(config, "LOGIN_USERNAME", "")
    monkeypatch.setattr(config, "ADMIT_CAP", 10)
    monkeypatch.setattr(config, "STABILITY_THRESHOLD", 5)


def test_valid_config_passes() -> None:
    validate_runtime_config("cli")


def test_missing_sheet_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SHEET_ID", "  ")
    with pytest.raises(ValueError):
        validate_runtime_config("ui")


def test_sheet_id_argument_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SHEET_ID", "")
    validate_runtime_config("cli", sheet_id="from-flag")


def test_empty_listing_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "LISTING_URL", "")
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_login_requires_login_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "LOGIN_USERNAME", "admin")
    monkeypatch.setattr(config, "LOGIN_URL", "")
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_negative_admit_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ADMIT_CAP", -1)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


@pytest.mark.parametrize(
    "field",
    ["SCROLL_WAIT_MS", "PLAYWRIGHT_NAV_TIMEOUT_SECONDS", "PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS"],
)
def test_invalid_timeout(monkeypatch: pytest.MonkeyPatch, field: str) -> None:
    monkeypatch.setattr(config, field, 0)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_stability_threshold_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "STABILITY_THRESHOLD", 0)

    validate_runtime_config("tests")

    assert config.STABILITY_THRESHOLD == 1


def test_listing_url_must_be_http(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "LISTING_URL", "file:///tmp/listing.html")
    with pytest.raises(ValueError, match="MEDIASHEET_LISTING_URL"):
        validate_runtime_config("cli")


def test_empty_sheet_range(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SHEET_WRITE_RANGE", " ")
    with pytest.raises(ValueError, match="MEDIASHEET_WRITE_RANGE"):
        validate_runtime_config("cli")


def test_all_problems_reported_together(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SHEET_ID", "")
    monkeypatch.setattr(config, "ADMIT_CAP", -3)

    with pytest.raises(ValueError) as excinfo:
        validate_runtime_config("ui")

    assert "SHEET_ID" in str(excinfo.value)
    assert "MEDIASHEET_ADMIT_CAP" in str(excinfo.value)


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"admit_cap": -1}, "admit_cap"),
        ({"stability_threshold": 0}, "stability_threshold"),
        ({"listing_url": "file:///etc/passwd"}, "listing_url"),
    ],
)
def test_invalid_run_overrides_rejected(overrides: dict, field: str) -> None:
    with pytest.raises(ValueError, match=field):
        validate_runtime_config("cli", **overrides)

    with pytest.raises(ValueError, match=field):
        check_run_arguments("cli", **overrides)


def test_explicit_threshold_is_not_clamped() -> None:
    with pytest.raises(ValueError):
        validate_runtime_config("cli", stability_threshold=0)

    assert config.STABILITY_THRESHOLD == 5


def test_valid_run_overrides_pass() -> None:
    validate_runtime_config(
        "ui", listing_url="http://example.com/1:/", admit_cap=0, stability_threshold=1
    )
    check_run_arguments("cli", listing_url="https://example.com/", admit_cap=3, stability_threshold=2)
