from __future__ import annotations

"""Selectors for the file listing page and its login form."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ListingSelectors:
    """Selector hints for the lazily-rendered file listing.

    Each list item carries the file name in a ``.countitems`` element, the
    download link as the ``value`` of its selection checkbox and the file size
    in a badge.
    """

    item_selector: str = ".list-group-item.list-group-item-action"
    title_selector: str = ".countitems"
    locator_selector: str = ".form-check-input"
    size_selector: str = ".badge"
    login_username_selector: str = "#email"
    login_password_selector: str = "#password"
    login_submit_selector: str = "#btn-login"


LISTING_SELECTORS = ListingSelectors()

__all__ = [
    "ListingSelectors",
    "LISTING_SELECTORS",
]
