"""Field/tag mapping between canonical CSL fields and each format."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

TRANSFORMS = ("name", "date", "number", "page-range", "custom")


@dataclass(frozen=True)
class FieldMapping:
    canonical: str
    bibtex: str
    biblatex: str
    ris: str
    endnote: str
    transform: Optional[str] = None


FIELD_MAPPINGS: Tuple[FieldMapping, ...] = (
    FieldMapping("author", "author", "author", "AU", "author", "name"),
    FieldMapping("editor", "editor", "editor", "ED", "editor", "name"),
    FieldMapping("translator", "translator", "translator", "A3", "translator", "name"),
    FieldMapping("collection-editor", "", "", "", "tertiary-author", "name"),
    FieldMapping("title", "title", "title", "TI", "title"),
    FieldMapping("container-title", "journal", "journaltitle", "JO", "secondary-title"),
    FieldMapping("collection-title", "series", "series", "T3", "series"),
    FieldMapping("title-short", "shorttitle", "shorttitle", "ST", "short-title"),
    FieldMapping("issued", "year", "date", "PY", "year", "date"),
    FieldMapping("accessed", "urldate", "urldate", "Y2", "access-date", "date"),
    FieldMapping("event-date", "", "eventdate", "", "", "date"),
    FieldMapping("original-date", "", "origdate", "", "original-pub", "date"),
    FieldMapping("DOI", "doi", "doi", "DO", "doi"),
    FieldMapping("ISBN", "isbn", "isbn", "SN", "isbn"),
    FieldMapping("ISSN", "issn", "issn", "SN", "issn"),
    FieldMapping("URL", "url", "url", "UR", "url"),
    FieldMapping("PMID", "pmid", "eprint", "AN", "accession-number"),
    FieldMapping("publisher", "publisher", "publisher", "PB", "publisher"),
    FieldMapping("publisher-place", "address", "location", "CY", "place-published"),
    FieldMapping("volume", "volume", "volume", "VL", "volume", "number"),
    FieldMapping("issue", "number", "number", "IS", "number", "number"),
    FieldMapping("page", "pages", "pages", "SP", "pages", "page-range"),
    FieldMapping("number-of-pages", "pagetotal", "pagetotal", "", "number-of-pages", "number"),
    FieldMapping("edition", "edition", "edition", "ET", "edition"),
    FieldMapping("chapter-number", "chapter", "chapter", "CP", "section"),
    FieldMapping("abstract", "abstract", "abstract", "AB", "abstract"),
    FieldMapping("keyword", "keywords", "keywords", "KW", "keywords", "custom"),
    FieldMapping("note", "note", "note", "N1", "notes"),
    FieldMapping("annote", "annote", "annotation", "N2", "research-notes"),
    FieldMapping("event", "eventtitle", "eventtitle", "T2", "conference-name"),
    FieldMapping("event-place", "venue", "venue", "C1", "conference-location"),
    FieldMapping("call-number", "", "", "CN", "call-number"),
    FieldMapping("medium", "howpublished", "howpublished", "M1", "type-of-work"),
    FieldMapping("genre", "type", "type", "M3", "genre"),
    FieldMapping("language", "language", "language", "LA", "language"),
)

# keyed by the format's own entry type
TYPE_SPECIFIC_TAGS: Dict[str, Dict[str, Dict[str, str]]] = {
    "bibtex": {
        "article": {"container-title": "journal"},
        "inproceedings": {"container-title": "booktitle"},
        "incollection": {"container-title": "booktitle"},
        "inbook": {"container-title": "booktitle"},
        "phdthesis": {"publisher": "school"},
        "mastersthesis": {"publisher": "school"},
        "techreport": {"publisher": "institution"},
    },
    "biblatex": {
        "inproceedings": {"container-title": "booktitle"},
        "incollection": {"container-title": "booktitle"},
        "inreference": {"container-title": "booktitle"},
        "inbook": {"container-title": "booktitle"},
        "thesis": {"publisher": "institution"},
        "report": {"publisher": "institution"},
    },
}

VERBATIM_FIELDS = frozenset({"DOI", "URL"})

_BY_CANONICAL = {row.canonical: row for row in FIELD_MAPPINGS}

_BIBTEX_ALIASES = {
    "booktitle": "container-title",
    "journal": "container-title",
    "journaltitle": "container-title",
    "year": "issued",
    "month": "issued",
    "day": "issued",
    "date": "issued",
    "school": "publisher",
    "institution": "publisher",
    "organization": "publisher",
    "address": "publisher-place",
    "location": "publisher-place",
}

_RIS_ALIASES = {
    "A1": "author",
    "A2": "editor",
    "T1": "title",
    "JF": "container-title",
    "JA": "container-title",
    "BT": "container-title",
    "Y1": "issued",
    "DA": "issued",
}


def _reverse(column: str) -> Dict[str, str]:
    table: Dict[str, str] = {}
    for row in FIELD_MAPPINGS:
        tag = getattr(row, column)
        if tag:
            table.setdefault(tag, row.canonical)
    return table


_REVERSE = {
    "bibtex": {**_reverse("biblatex"), **_reverse("bibtex"), **_BIBTEX_ALIASES},
    "ris": {**_reverse("ris"), **_RIS_ALIASES},
    "endnote": _reverse("endnote"),
}
_REVERSE["biblatex"] = _REVERSE["bibtex"]


def get_tag(canonical: str, target: str, entry_type: Optional[str] = None) -> str:
    """Return the tag ``target`` uses for ``canonical``; never raises.

    Unmapped fields fall back to the upper-cased name for RIS and to the
    canonical name unchanged everywhere else.
    """

    if target == "csl-json":
        return canonical
    if entry_type:
        override = TYPE_SPECIFIC_TAGS.get(target, {}).get(entry_type.lower(), {}).get(canonical)
        if override:
            return override
    row = _BY_CANONICAL.get(canonical)
    tag = getattr(row, target, "") if row is not None else ""
    if tag:
        return tag
    if target == "ris":
        return canonical.upper()
    return canonical


def has_tag(canonical: str, target: str) -> bool:
    if target == "csl-json":
        return True
    row = _BY_CANONICAL.get(canonical)
    return row is not None and bool(getattr(row, target, ""))


def get_transform(canonical: str) -> Optional[str]:
    row = _BY_CANONICAL.get(canonical)
    return row.transform if row is not None else None


def field_from_tag(tag: str, source: str) -> Optional[str]:
    """Reverse lookup used by parsers; ``None`` when the tag has no canonical home."""

    table = _REVERSE.get(source)
    if table is None:
        return tag
    if source in ("bibtex", "biblatex"):
        return table.get(tag.lower())
    if source == "ris":
        return table.get(tag.upper())
    return table.get(tag)
