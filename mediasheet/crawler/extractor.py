"""Turn rendered listing items into raw records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from playwright.sync_api import Error as PWError

from .error_codes import ErrorCode
from .logging_utils import sync_event
from .selectors_listing import LISTING_SELECTORS, ListingSelectors
from .utils import log_line

_TEXT_JS = "el => (el.textContent || '').trim()"
_VALUE_JS = "el => el.value"


@dataclass(frozen=True)
class RawListing:
    title: str
    url: str
    size: str


def is_target_closed_error(exc: Exception) -> bool:
    """Return ``True`` if *exc* indicates the Playwright target is gone."""

    message = str(exc)
    return any(
        marker in message
        for marker in (
            "Target closed",
            "Target crashed",
            "has been closed",
            "Execution context was destroyed",
        )
    )


def _read_field(handle: Any, selector: str, expression: str) -> Optional[str]:
    """Evaluate ``expression`` on the first ``selector`` match inside ``handle``.

    A missing element makes Playwright raise; that and empty values are
    reported as ``None``.
    """

    try:
        value = handle.eval_on_selector(selector, expression)
    except PWError as exc:
        if is_target_closed_error(exc):
            raise
        return None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_listing(handle: Any, selectors: ListingSelectors = LISTING_SELECTORS) -> Optional[RawListing]:
    title = _read_field(handle, selectors.title_selector, _TEXT_JS)
    url = _read_field(handle, selectors.locator_selector, _VALUE_JS)
    size = _read_field(handle, selectors.size_selector, _TEXT_JS)
    if title and url and size:
        return RawListing(title=title, url=url, size=size)
    return None


def extract_listings(
    item_handles: Iterable[Any],
    selectors: ListingSelectors = LISTING_SELECTORS,
    log: Callable[[str], None] = log_line,
) -> List[RawListing]:
    """Read title, download link and size from each listing item.

    Items missing any of the three fields are skipped; output keeps the order
    of ``item_handles`` and is not de-duplicated.
    """

    listings: List[RawListing] = []
    skipped = 0
    for index, handle in enumerate(item_handles):
        listing = extract_listing(handle, selectors)
        if listing is None:
            skipped += 1
            sync_event(
                "extract",
                step="skip",
                index=index,
                error_code=ErrorCode.EXTRACTION_FIELD_MISSING,
            )
            continue
        listings.append(listing)

    log(f"[EXTRACT] Gathered {len(listings)} listings ({skipped} incomplete items skipped)")
    return listings


__all__ = ["RawListing", "extract_listing", "extract_listings", "is_target_closed_error"]
