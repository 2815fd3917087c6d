"""Merge freshly crawled listings into the previously persisted table.

The persisted table is a header row followed by one seven-column row per
record. ``original-title`` is the identity of a record: the written table never
holds two rows with the same value. After a sync the table reads as the newly
admitted records (at most ``admit_cap``, in the order they were crawled)
followed by every previously stored record in its previous order. Stored rows
always win over freshly crawled duplicates.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .extractor import RawListing
from .sanitizer import SanitizedTitle, TitleVocabulary, sanitize_title

HEADER: tuple[str, ...] = (
    "original-title",
    "url",
    "size",
    "sanitized-title",
    "year",
    "quality",
    "keywords",
)


@dataclass(frozen=True)
class Record:
    original_title: str
    url: str
    size: str
    sanitized_title: str = ""
    year: str = ""
    quality: str = ""
    keywords: str = ""

    def to_row(self) -> List[str]:
        return [
            self.original_title,
            self.url,
            self.size,
            self.sanitized_title,
            self.year,
            self.quality,
            self.keywords,
        ]

    @classmethod
    def from_row(cls, row: Sequence[object]) -> "Record":
        """Build a record from a stored row.

        The Sheets API drops trailing empty cells, so short rows are padded.
        """

        cells = ["" if cell is None else str(cell) for cell in list(row)[: len(HEADER)]]
        cells.extend([""] * (len(HEADER) - len(cells)))
        return cls(*cells)


@dataclass
class ReconcileResult:
    records: List[Record]
    admitted: List[Record] = field(default_factory=list)
    dropped: List[Record] = field(default_factory=list)
    already_known: int = 0
    duplicates: int = 0
    prior_duplicates: int = 0


def build_record(listing: RawListing, sanitized: Optional[SanitizedTitle]) -> Record:
    if sanitized is None:
        return Record(listing.title, listing.url, listing.size)
    return Record(
        original_title=listing.title,
        url=listing.url,
        size=listing.size,
        sanitized_title=sanitized.title,
        year=sanitized.year,
        quality=sanitized.quality,
        keywords=sanitized.keywords,
    )


def build_records(
    listings: Iterable[RawListing], vocabulary: Optional[TitleVocabulary] = None
) -> List[Record]:
    return [build_record(item, sanitize_title(item.title, vocabulary)) for item in listings]


def records_from_rows(rows: Optional[Sequence[Sequence[object]]]) -> List[Record]:
    """Convert stored rows (header first) into records, skipping blank rows."""

    records: List[Record] = []
    for row in list(rows or [])[1:]:
        key = row[0] if row else None
        if key is None or not str(key).strip():
            continue
        records.append(Record.from_row(row))
    return records


def table_rows(records: Iterable[Record]) -> List[List[str]]:
    return [list(HEADER)] + [record.to_row() for record in records]


def _unique_prior(prior_records: Iterable[Record]) -> tuple[List[Record], int]:
    seen: set[str] = set()
    unique: List[Record] = []
    duplicates = 0
    for record in prior_records:
        if record.original_title in seen:
            duplicates += 1
            continue
        seen.add(record.original_title)
        unique.append(record)
    return unique, duplicates


def reconcile(
    fresh_records: Iterable[Record],
    prior_records: Iterable[Record],
    admit_cap: int,
) -> ReconcileResult:
    """Return the merged table body for one sync.

    Fresh records whose ``original_title`` already exists are discarded in
    favour of the stored row. New records beyond ``admit_cap`` are dropped for
    this run; the next crawl will discover them again.
    """

    if admit_cap < 0:
        raise ValueError("admit_cap must be non-negative")

    prior, prior_duplicates = _unique_prior(prior_records)
    known = {record.original_title for record in prior}

    new_records: List[Record] = []
    seen_new: set[str] = set()
    already_known = 0
    duplicates = 0
    for record in fresh_records:
        key = record.original_title
        if key in known:
            already_known += 1
        elif key in seen_new:
            duplicates += 1
        else:
            seen_new.add(key)
            new_records.append(record)

    admitted = new_records[:admit_cap]
    return ReconcileResult(
        records=admitted + prior,
        admitted=admitted,
        dropped=new_records[admit_cap:],
        already_known=already_known,
        duplicates=duplicates,
        prior_duplicates=prior_duplicates,
    )


__all__ = [
    "HEADER",
    "Record",
    "ReconcileResult",
    "build_record",
    "build_records",
    "records_from_rows",
    "table_rows",
    "reconcile",
]
