"""Date parsing and serialization for the supported formats."""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Tuple

from .models import DateSpec

MONTH_NAMES = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

MONTH_MACROS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

SEASONS = {"spring": 1, "summer": 2, "autumn": 3, "fall": 3, "winter": 4}

RIS_PATTERN = re.compile(r"^(\d{4})/(\d{1,2})(?:/(\d{1,2}))?$")
ISO_PATTERN = re.compile(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$")
NATURAL_PATTERN = re.compile(
    r"^(?:(\d{1,2})\s+)?([A-Za-z]+)\.?(?:\s+(\d{1,2})(?:st|nd|rd|th)?,?)?,?\s+(\d{4})$"
)
CIRCA_PATTERN = re.compile(r"^(?:circa|ca\.|c\.)\s*", re.IGNORECASE)


class SplitDate(NamedTuple):
    year: str
    month: str
    day: str


def month_number(value: str) -> Optional[int]:
    """Return the month for a number, full name, abbreviation or BibTeX macro."""

    text = value.strip().rstrip(".").lower()
    if text.isdigit():
        return int(text)
    return MONTH_NAMES.get(text)


def _components(*values: Optional[str]) -> List[int]:
    parts = []
    for value in values:
        if value is None:
            break
        parts.append(int(value))
    return parts


def _parse_calendar(text: str) -> Optional[List[int]]:
    match = ISO_PATTERN.match(text)
    if match:
        return _components(*match.groups())
    match = NATURAL_PATTERN.match(text)
    if match:
        leading_day, name, trailing_day, year = match.groups()
        month = MONTH_NAMES.get(name.lower())
        if month is None:
            return None
        day = leading_day or trailing_day
        return [int(year), month, int(day)] if day else [int(year), month]
    return None


def _parse_components(text: str) -> Tuple[Optional[List[List[int]]], Optional[int]]:
    match = RIS_PATTERN.match(text)
    if match:
        return [_components(*match.groups())], None

    if "/" in text:
        left, right = text.split("/", 1)
        start = _parse_calendar(left.strip())
        end = _parse_calendar(right.strip())
        if start and end:
            return [start, end], None
        return None, None

    parts = _parse_calendar(text)
    if parts:
        return [parts], None

    words = text.split()
    if len(words) == 2 and words[0].lower() in SEASONS and re.fullmatch(r"\d{4}", words[1]):
        return [[int(words[1])]], SEASONS[words[0].lower()]
    return None, None


def parse_date(text: Optional[str]) -> DateSpec:
    """Parse free-form date text.

    Grammar tried in order, first match wins: RIS ``YYYY/MM[/DD]``, a range
    split on the first ``/`` whose halves are both calendar dates, ISO
    ``YYYY[-MM[-DD]]`` (which covers a bare year), then natural language such
    as ``15 March 2024`` or ``Spring 2024``. Anything else is kept as ``raw``.
    """

    if text is None:
        return DateSpec()
    original = text.strip()
    if not original:
        return DateSpec()

    value = original
    circa = None
    match = CIRCA_PATTERN.match(value)
    if match:
        circa = True
        value = value[match.end():].strip()

    parts, season = _parse_components(value)
    if parts is None:
        return DateSpec(raw=original)
    return DateSpec(date_parts=parts, circa=circa, season=season)


def parse_split_date(
    year: Optional[str], month: Optional[str] = None, day: Optional[str] = None
) -> Optional[DateSpec]:
    """Build a date from BibTeX-style ``year``/``month``/``day`` fields."""

    year_text = (year or "").strip()
    if not year_text:
        return None
    if not re.fullmatch(r"\d{1,4}", year_text):
        return DateSpec(raw=year_text)

    parts = [int(year_text)]
    month_value = month_number(month) if month else None
    if month_value is not None:
        parts.append(month_value)
        day_text = (day or "").strip()
        if day_text.isdigit():
            parts.append(int(day_text))
    return DateSpec(date_parts=[parts])


def _join(parts: List[int], separator: str) -> str:
    pieces = [str(parts[0])]
    pieces.extend(f"{part:02d}" for part in parts[1:])
    return separator.join(pieces)


def to_iso(date: Optional[DateSpec]) -> str:
    if date is None:
        return ""
    if date.date_parts:
        text = _join(date.start, "-")
        if date.is_range:
            text = f"{text}/{_join(date.end, '-')}"
        return text
    return date.raw or ""


def to_ris_slash(date: Optional[DateSpec]) -> str:
    if date is None:
        return ""
    if date.date_parts:
        return _join(date.start, "/")
    return date.raw or ""


def to_split_fields(date: Optional[DateSpec]) -> SplitDate:
    if date is None:
        return SplitDate("", "", "")
    if not date.date_parts:
        return SplitDate(date.raw or "", "", "")
    start = date.start
    month = ""
    if len(start) > 1:
        month = MONTH_MACROS[start[1] - 1] if 1 <= start[1] <= 12 else f"{start[1]:02d}"
    day = f"{start[2]:02d}" if len(start) > 2 else ""
    return SplitDate(str(start[0]), month, day)
