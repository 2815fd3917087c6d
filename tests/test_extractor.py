from __future__ import annotations

import pytest
from playwright.sync_api import Error as PWError

from mediasheet.crawler import extractor
from mediasheet.crawler.extractor import RawListing, extract_listings


class _FakeHandle:
    """Stands in for an ElementHandle; ``fields`` maps selector -> value."""

    def __init__(self, fields: dict[str, object], *, error: Exception | None = None) -> None:
        self.fields = fields
        self.error = error

    def eval_on_selector(self, selector: str, expression: str) -> object:
        if self.error is not None:
            raise self.error
        if selector not in self.fields:
            raise PWError(f'Error: failed to find element matching selector "{selector}"')
        return self.fields[selector]


def _item(title: object = "Heat.1995.mkv", url: object = "https://dl/heat", size: object = "4.2 GB"):
    fields: dict[str, object] = {}
    if title is not None:
        fields[".countitems"] = title
    if url is not None:
        fields[".form-check-input"] = url
    if size is not None:
        fields[".badge"] = size
    return _FakeHandle(fields)


def test_complete_items_become_listings() -> None:
    handles = [
        _item(" Heat.1995.mkv \n"),
        _item("Alien.1979.mkv", "https://dl/alien", "3 GB"),
    ]

    listings = extract_listings(handles, log=lambda _m: None)

    assert listings == [
        RawListing(title="Heat.1995.mkv", url="https://dl/heat", size="4.2 GB"),
        RawListing(title="Alien.1979.mkv", url="https://dl/alien", size="3 GB"),
    ]


@pytest.mark.parametrize(
    "handle",
    [
        _item(title=None),
        _item(url=None),
        _item(size=None),
        _item(title="   "),
        _item(url=""),
        _item(size=None, url=None),
    ],
)
def test_incomplete_items_are_skipped(handle: _FakeHandle) -> None:
    assert extract_listings([handle], log=lambda _m: None) == []


def test_order_preserved_and_duplicates_kept() -> None:
    handles = [
        _item("B.mkv"),
        _item(title=None),
        _item("A.mkv"),
        _item("B.mkv"),
    ]

    listings = extract_listings(handles, log=lambda _m: None)

    assert [item.title for item in listings] == ["B.mkv", "A.mkv", "B.mkv"]


def test_skips_are_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[dict] = []
    messages: list[str] = []
    monkeypatch.setattr(extractor, "sync_event", lambda label, **fields: events.append(fields))

    extract_listings([_item(), _item(size=None)], log=messages.append)

    assert events == [
        {"step": "skip", "index": 1, "error_code": "extraction_field_missing"}
    ]
    assert "1 incomplete items skipped" in messages[-1]


def test_closed_page_is_not_treated_as_missing_field() -> None:
    handle = _FakeHandle({}, error=PWError("Target page, context or browser has been closed"))

    with pytest.raises(PWError):
        extract_listings([handle], log=lambda _m: None)
