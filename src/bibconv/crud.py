"""Filter, create, update, delete, merge and sort canonical entries.

Every function returns new lists or entries; inputs are never mutated.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from . import converter
from .models import Entry, field_attribute

FILTER_KEYS = ("id", "author", "year", "type", "keyword")
SORT_KEYS = ("id", "author", "year")
DEDUPE_KEYS = ("id", "doi")


def normalize_doi(doi: str) -> str:
    doi = doi.strip().lower()
    doi = re.sub(r"^https?://(dx\.)?doi\.org/", "", doi)
    doi = doi.replace("doi:", "")
    return doi.strip()


def _matches(entry: Entry, criteria: Mapping[str, Any]) -> bool:
    if "id" in criteria and entry.id != criteria["id"]:
        return False
    if "type" in criteria and entry.type != criteria["type"]:
        return False
    if "year" in criteria:
        year = entry.issued.year if entry.issued is not None else None
        if year is None or str(year) != str(criteria["year"]).strip():
            return False
    if "author" in criteria:
        needle = str(criteria["author"]).lower()
        names = [
            part.lower()
            for person in entry.author or []
            for part in (person.family, person.given, person.literal)
            if part
        ]
        if not any(needle in name for name in names):
            return False
    if "keyword" in criteria:
        if str(criteria["keyword"]).lower() not in (entry.keyword or "").lower():
            return False
    return True


def filter_entries(
    entries: Iterable[Entry], criteria: Optional[Mapping[str, Any]] = None, **kwargs: Any
) -> List[Entry]:
    """Return entries matching every given criterion (id, author, year, type, keyword)."""

    merged = {**dict(criteria or {}), **kwargs}
    unknown = sorted(set(merged) - set(FILTER_KEYS))
    if unknown:
        raise ValueError(f"Unknown filter criteria: {', '.join(unknown)}")
    active = {key: value for key, value in merged.items() if value is not None}
    return [entry for entry in entries if _matches(entry, active)]


def create_entry(partial: Mapping[str, Any]) -> Entry:
    if not partial.get("id"):
        raise ValueError("Entry must have an id")
    if not partial.get("type"):
        raise ValueError("Entry must have a type")
    return Entry.from_dict(partial)


def update_entry(entry: Entry, patch: Mapping[str, Any]) -> Entry:
    """Overlay ``patch`` on a copy of ``entry``; the id never changes."""

    data: Dict[str, Any] = entry.model_dump(exclude_none=True)
    unknown = dict(data.pop("unknown_fields", {}))
    for key, value in patch.items():
        attribute = field_attribute(key)
        if attribute == "id":
            continue
        if attribute is None:
            if value is None:
                unknown.pop(key, None)
            else:
                unknown[key] = value
        elif value is None:
            data.pop(attribute, None)
        else:
            data[attribute] = value
    data["unknown_fields"] = unknown
    return Entry.from_dict(data)


def delete_entries(entries: Iterable[Entry], ids: Iterable[str]) -> List[Entry]:
    doomed = {ids} if isinstance(ids, str) else set(ids)
    return [entry for entry in entries if entry.id not in doomed]


def _dedupe_key(entry: Entry, dedupe_by: str) -> str:
    if dedupe_by == "doi" and entry.doi:
        return f"doi:{normalize_doi(entry.doi)}"
    return f"id:{entry.id}"


def merge_entries(entry_sets: Iterable[Sequence[Entry]], dedupe_by: str = "id") -> List[Entry]:
    """Concatenate sets in order, keeping the first entry seen for each key."""

    dedupe_by = dedupe_by.lower()
    if dedupe_by not in DEDUPE_KEYS:
        raise ValueError(f"dedupe_by must be one of {DEDUPE_KEYS}")
    merged: List[Entry] = []
    seen = set()
    for entries in entry_sets:
        for entry in entries:
            key = _dedupe_key(entry, dedupe_by)
            if key in seen:
                continue
            seen.add(key)
            merged.append(entry)
    return merged


def _author_key(entry: Entry) -> str:
    if not entry.author:
        return ""
    first = entry.author[0]
    return first.family or first.literal or ""


def _year_key(entry: Entry) -> int:
    if entry.issued is None or entry.issued.year is None:
        return 0
    return entry.issued.year


def sort_entries(entries: Iterable[Entry], by: str = "id") -> List[Entry]:
    if by == "id":
        return sorted(entries, key=lambda entry: entry.id)
    if by == "author":
        return sorted(entries, key=_author_key)
    if by == "year":
        return sorted(entries, key=_year_key, reverse=True)
    raise ValueError(f"Cannot sort by {by!r}; expected one of {SORT_KEYS}")


def read_entries(content: str, format_name: str) -> List[Entry]:
    return converter.parse(content, format_name).entries
