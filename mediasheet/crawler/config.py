"""Configuration constants for the media listing sync application."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR: Path = Path(os.getenv("MEDIASHEET_DATA_DIR", "data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
RUNS_DIR: Path = DATA_DIR / "runs"
SUMMARY_FILE: Path = DATA_DIR / "last_summary.json"
MIN_FREE_MB: int = int(os.getenv("MIN_FREE_MB", "50"))
LOG_LEVEL: str = os.getenv("MEDIASHEET_LOG_LEVEL", "INFO").upper()
# Older sync_*.log files beyond this many are deleted when a run starts.
LOG_KEEP_MAX: int = int(os.getenv("MEDIASHEET_LOG_KEEP_MAX", "20"))

LOGIN_URL: str = os.getenv("MEDIASHEET_LOGIN_URL", "https://leech.saulie077.workers.dev/")
LISTING_URL: str = os.getenv("MEDIASHEET_LISTING_URL", "https://leech.saulie077.workers.dev/0:/")
# Login runs only when a username is set; LOGIN_URL is ignored otherwise.
LOGIN_USERNAME: str = os.getenv("MEDIASHEET_LOGIN_USERNAME", "")
LOGIN_PASSWORD: str = os.getenv("MEDIASHEET_LOGIN_PASSWORD", "")
HEADLESS: bool = os.getenv("MEDIASHEET_HEADLESS", "true").strip().lower() != "false"
USER_AGENT: str = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

SHEET_ID: str = os.getenv("SHEET_ID", "")
GOOGLE_CREDENTIALS_FILE: Path = Path(os.getenv("GOOGLE_CREDENTIALS_FILE", "credentials.json"))
SHEETS_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/spreadsheets",)
SHEET_READ_RANGE: str = os.getenv("MEDIASHEET_READ_RANGE", "Sheet1!A:G")
SHEET_CLEAR_RANGE: str = os.getenv("MEDIASHEET_CLEAR_RANGE", "Sheet1!A:G")
SHEET_WRITE_RANGE: str = os.getenv("MEDIASHEET_WRITE_RANGE", "Sheet1!A1")

ADMIT_CAP: int = int(os.getenv("MEDIASHEET_ADMIT_CAP", "10"))
STABILITY_THRESHOLD: int = int(os.getenv("MEDIASHEET_STABILITY_THRESHOLD", "5"))
# Growth wait after each scroll stays in milliseconds to match Playwright.
SCROLL_WAIT_MS: int = int(os.getenv("MEDIASHEET_SCROLL_WAIT_MS", "2000"))


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _parse_list(env_var: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a comma separated vocabulary, keeping declaration order."""

    raw = os.getenv(env_var)
    if raw is None:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default


# Navigation timeout for page.goto and login waits.
PLAYWRIGHT_NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "MEDIASHEET_NAV_TIMEOUT_SECONDS", 30
)
# Wait for the first listing item to become visible.
PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "MEDIASHEET_SELECTOR_TIMEOUT_SECONDS", 20
)

QUALITY_TAGS: tuple[str, ...] = _parse_list(
    "MEDIASHEET_QUALITY_TAGS", ("1080p", "720p", "2160p")
)
KEYWORD_TAGS: tuple[str, ...] = _parse_list(
    "MEDIASHEET_KEYWORD_TAGS",
    ("REMUX", "BluRay", "UNTOUCHED", "HDR10", "IMAX", "Hallowed", "REMASTERED"),
)
MEDIA_EXTENSIONS: tuple[str, ...] = _parse_list(
    "MEDIASHEET_MEDIA_EXTENSIONS", ("mkv", "mp4", "mov", "avi", "wmv", "flv", "webm")
)
