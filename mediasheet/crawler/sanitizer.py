"""Heuristic decomposition of release file names into structured fields.

A listing entry such as ``The.Thing.2011.1080p.BluRay.REMUX.mkv`` becomes a
display title (``The Thing``), a year, a resolution tag and the matched
release keywords. Each field is extracted by an independent pass over the raw
name, so the year reported and the point where the title is cut can disagree:
``Movie.1234.2010.mkv`` yields title ``Movie`` and year ``2010``, and
``Movie.2160p.mkv`` yields title ``Movie`` with no year at all.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from . import config

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b", re.ASCII)
_SEPARATORS_RE = re.compile(r"[\[\]()\-_/]")
_WHITESPACE_RE = re.compile(r"\s+")
_FOUR_DIGITS_RE = re.compile(r"\d{4}", re.ASCII)


@dataclass(frozen=True)
class TitleVocabulary:
    """Enumerated tag sets the sanitizer matches against.

    Order matters: quality tags are tried as one alternation and keywords are
    reported in declaration order.
    """

    quality_tags: tuple[str, ...] = field(default_factory=lambda: config.QUALITY_TAGS)
    keyword_tags: tuple[str, ...] = field(default_factory=lambda: config.KEYWORD_TAGS)
    media_extensions: tuple[str, ...] = field(default_factory=lambda: config.MEDIA_EXTENSIONS)

    def quality_pattern(self) -> Optional[re.Pattern[str]]:
        if not self.quality_tags:
            return None
        alternation = "|".join(re.escape(tag) for tag in self.quality_tags)
        return re.compile(rf"\b(?:{alternation})\b")

    def extension_pattern(self) -> Optional[re.Pattern[str]]:
        if not self.media_extensions:
            return None
        alternation = "|".join(re.escape(ext) for ext in self.media_extensions)
        return re.compile(rf"\.(?:{alternation})$", re.IGNORECASE)


@dataclass(frozen=True)
class SanitizedTitle:
    title: str
    year: str = ""
    quality: str = ""
    keywords: str = ""

    def as_dict(self) -> Dict[str, str]:
        return {
            "sanitized-title": self.title,
            "year": self.year,
            "quality": self.quality,
            "keywords": self.keywords,
        }


def extract_year(raw: str) -> str:
    """Return the first 19xx/20xx token in ``raw`` or an empty string."""

    match = _YEAR_RE.search(raw)
    return match.group(0) if match else ""


def extract_quality(raw: str, vocabulary: TitleVocabulary) -> str:
    pattern = vocabulary.quality_pattern()
    if pattern is None:
        return ""
    match = pattern.search(raw)
    return match.group(0) if match else ""


def extract_keywords(raw: str, vocabulary: TitleVocabulary) -> str:
    """Return the comma-joined keyword tags found in ``raw``.

    Matching is a case-insensitive substring test; duplicates in the
    vocabulary are reported once.
    """

    upper = raw.upper()
    found: list[str] = []
    for keyword in vocabulary.keyword_tags:
        if keyword in found:
            continue
        if keyword.upper() in upper:
            found.append(keyword)
    return ",".join(found)


def clean_title(raw: str, vocabulary: TitleVocabulary) -> str:
    """Turn a raw file name into a display title.

    The title is cut at the first run of four digits, which normally drops the
    year and the release noise that follows it.
    """

    cleaned = raw
    extension = vocabulary.extension_pattern()
    if extension is not None:
        cleaned = extension.sub("", cleaned)
    cleaned = cleaned.replace(".", " ")
    cleaned = _SEPARATORS_RE.sub(" ", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned.strip())
    return _FOUR_DIGITS_RE.split(cleaned, maxsplit=1)[0].strip()


def sanitize_title(
    raw_title: Any, vocabulary: Optional[TitleVocabulary] = None
) -> Optional[SanitizedTitle]:
    """Decompose ``raw_title`` into title, year, quality and keywords.

    Returns ``None`` only for missing or empty input. Anything else yields a
    result, with empty strings for fields that could not be found.
    """

    if raw_title is None:
        return None
    raw = raw_title if isinstance(raw_title, str) else str(raw_title)
    if not raw:
        return None

    vocab = vocabulary or TitleVocabulary()
    return SanitizedTitle(
        title=clean_title(raw, vocab),
        year=extract_year(raw),
        quality=extract_quality(raw, vocab),
        keywords=extract_keywords(raw, vocab),
    )


__all__ = [
    "TitleVocabulary",
    "SanitizedTitle",
    "sanitize_title",
    "clean_title",
    "extract_year",
    "extract_quality",
    "extract_keywords",
]
