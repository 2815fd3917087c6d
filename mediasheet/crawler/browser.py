"""Playwright automation surface for the file listing page."""
from __future__ import annotations

from typing import Any, List, Optional

from playwright.sync_api import (
    Browser,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .error_codes import ErrorCode
from .logging_utils import sync_event
from .selectors_listing import LISTING_SELECTORS, ListingSelectors
from .utils import log_line

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]

# Hide the most common automation fingerprint before any page script runs.
_STEALTH_INIT_SCRIPT = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"

_COUNT_JS = "(selector) => document.querySelectorAll(selector).length"
_GROWTH_JS = "([selector, previous]) => document.querySelectorAll(selector).length > previous"
_SCROLL_JS = "window.scrollTo(0, document.body.scrollHeight)"


class NavigationError(Exception):
    """Raised when the source page cannot be reached or logged into."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.error_code = ErrorCode.NAVIGATION_FAILURE
        self.url = url


class ListingPage:
    """Capability wrapper around one Playwright page showing the listing."""

    def __init__(self, page: Page, selectors: ListingSelectors = LISTING_SELECTORS) -> None:
        self.page = page
        self.selectors = selectors

    def navigate(self, url: str, *, label: str, wait_until: str = "networkidle") -> None:
        """Navigate to ``url`` with bounded timeouts, raising ``NavigationError``."""

        sync_event("nav", step="goto", label=label, url=url)
        try:
            self.page.goto(
                url,
                wait_until=wait_until,
                timeout=config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS * 1000,
            )
        except PWTimeout as exc:
            log_line(f"[SYNC][ERROR][NAV] goto({url!r}) timed out: {exc}")
            raise NavigationError(f"Timed out loading {label}: {exc}", url=url) from exc
        except PWError as exc:
            log_line(f"[SYNC][ERROR][NAV] goto({url!r}) failed: {exc}")
            raise NavigationError(f"Failed to load {label}: {exc}", url=url) from exc

    def login(self, username: str, password: str) -> None:
        """Submit the login form and wait for the post-login navigation."""

        sel = self.selectors
        try:
            with self.page.expect_navigation(
                wait_until="networkidle",
                timeout=config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS * 1000,
            ):
                self.page.fill(sel.login_username_selector, username)
                self.page.fill(sel.login_password_selector, password)
                self.page.click(sel.login_submit_selector)
        except PWError as exc:
            log_line(f"[SYNC][ERROR][NAV] Login failed: {exc}")
            raise NavigationError(f"Login failed: {exc}", url=self.page.url) from exc
        sync_event("nav", step="login", url=self.page.url)

    def wait_for_listing(self) -> None:
        """Wait until at least one listing item is visible."""

        try:
            self.page.wait_for_selector(
                self.selectors.item_selector,
                state="visible",
                timeout=config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS * 1000,
            )
        except PWError as exc:
            log_line(f"[SYNC][ERROR][NAV] Listing never became visible: {exc}")
            raise NavigationError(f"Listing not visible: {exc}", url=self.page.url) from exc

    def count_items(self) -> int:
        return int(self.page.evaluate(_COUNT_JS, self.selectors.item_selector) or 0)

    def scroll_to_bottom(self) -> None:
        self.page.evaluate(_SCROLL_JS)

    def wait_for_count_above(self, previous: int, timeout_ms: int) -> None:
        """Block until more than ``previous`` items render; Playwright raises on timeout."""

        self.page.wait_for_function(
            _GROWTH_JS,
            arg=[self.selectors.item_selector, previous],
            timeout=timeout_ms,
        )

    def item_handles(self) -> List[Any]:
        return self.page.query_selector_all(self.selectors.item_selector)


class BrowserSession:
    """Owns the Playwright driver, browser and page for one sync run.

    ``close()`` is safe to call more than once and never raises.
    """

    def __init__(
        self,
        *,
        headless: bool = config.HEADLESS,
        user_agent: str = config.USER_AGENT,
        selectors: ListingSelectors = LISTING_SELECTORS,
    ) -> None:
        self.headless = headless
        self.user_agent = user_agent
        self.selectors = selectors
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    def open(self) -> ListingPage:
        log_line("[BROWSER] Starting browser...")
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless, args=LAUNCH_ARGS
        )
        context = self._browser.new_context(user_agent=self.user_agent, locale="en-US")
        context.add_init_script(_STEALTH_INIT_SCRIPT)
        page = context.new_page()
        return ListingPage(page, self.selectors)

    def close(self) -> None:
        if self._browser is not None:
            log_line("[BROWSER] Closing browser...")
            try:
                self._browser.close()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[BROWSER][WARN] Error closing browser: {exc}")
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[BROWSER][WARN] Error stopping Playwright: {exc}")
            self._playwright = None


def open_listing(
    listing: ListingPage,
    *,
    listing_url: str,
    login_url: str = "",
    username: str = "",
    password: str = "",
) -> None:
    """Log in when credentials are configured, then open the listing."""

    if username and login_url:
        log_line("[BROWSER] Logging in...")
        listing.navigate(login_url, label="login")
        listing.login(username, password)
        log_line("[BROWSER] Login successful")

    listing.navigate(listing_url, label="listing")
    listing.wait_for_listing()


__all__ = [
    "BrowserSession",
    "ListingPage",
    "NavigationError",
    "open_listing",
]
