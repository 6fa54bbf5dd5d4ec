"""Item type mapping between the canonical CSL types and each format."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

FORMATS = ("bibtex", "biblatex", "csl-json", "ris", "endnote")

ITEM_TYPES = frozenset(
    {
        "article",
        "article-journal",
        "article-magazine",
        "article-newspaper",
        "bill",
        "book",
        "broadcast",
        "chapter",
        "dataset",
        "entry",
        "entry-dictionary",
        "entry-encyclopedia",
        "figure",
        "graphic",
        "interview",
        "legal_case",
        "legislation",
        "manuscript",
        "map",
        "motion_picture",
        "musical_score",
        "paper-conference",
        "patent",
        "personal_communication",
        "post",
        "post-weblog",
        "report",
        "review",
        "review-book",
        "song",
        "speech",
        "thesis",
        "treaty",
        "webpage",
        "software",
    }
)

FALLBACK_TYPES = {
    "bibtex": "misc",
    "biblatex": "misc",
    "ris": "GEN",
    "endnote": "Generic",
}

DEFAULT_TYPE = "article"


@dataclass(frozen=True)
class TypeMapping:
    canonical: str
    bibtex: str
    biblatex: str
    ris: str
    endnote: str
    lossy_to: FrozenSet[str] = frozenset()


_TO_BIBTEX = frozenset({"bibtex"})
_TO_BIBTEX_FAMILY = frozenset({"bibtex", "biblatex"})

TYPE_MAPPINGS: Tuple[TypeMapping, ...] = (
    TypeMapping("article-journal", "article", "article", "JOUR", "Journal Article"),
    TypeMapping("article", "article", "article", "JOUR", "Journal Article"),
    TypeMapping("book", "book", "book", "BOOK", "Book"),
    TypeMapping("chapter", "incollection", "incollection", "CHAP", "Book Section"),
    TypeMapping("paper-conference", "inproceedings", "inproceedings", "CONF", "Conference Paper"),
    TypeMapping("thesis", "phdthesis", "thesis", "THES", "Thesis"),
    TypeMapping("report", "techreport", "report", "RPRT", "Report"),
    TypeMapping("article-magazine", "article", "article", "MGZN", "Magazine Article"),
    TypeMapping("article-newspaper", "article", "article", "NEWS", "Newspaper Article"),
    TypeMapping("dataset", "misc", "dataset", "DATA", "Dataset", _TO_BIBTEX),
    TypeMapping("software", "misc", "software", "COMP", "Computer Program", _TO_BIBTEX),
    TypeMapping("webpage", "misc", "online", "ELEC", "Web Page", _TO_BIBTEX),
    TypeMapping("patent", "misc", "patent", "PAT", "Patent", _TO_BIBTEX),
    TypeMapping("entry-encyclopedia", "incollection", "inreference", "ENCYC", "Encyclopedia"),
    TypeMapping("entry-dictionary", "incollection", "inreference", "DICT", "Dictionary"),
    TypeMapping("legal_case", "misc", "jurisdiction", "CASE", "Legal Rule or Regulation", _TO_BIBTEX),
    TypeMapping("legislation", "misc", "legislation", "STAT", "Bill", _TO_BIBTEX),
    TypeMapping("motion_picture", "misc", "movie", "MPCT", "Film or Broadcast", _TO_BIBTEX),
    TypeMapping("broadcast", "misc", "audio", "MPCT", "Film or Broadcast", _TO_BIBTEX),
    TypeMapping("song", "misc", "music", "SOUND", "Music", _TO_BIBTEX),
    TypeMapping("graphic", "misc", "artwork", "ART", "Artwork", _TO_BIBTEX),
    TypeMapping("map", "misc", "misc", "MAP", "Map", _TO_BIBTEX_FAMILY),
    TypeMapping("manuscript", "unpublished", "unpublished", "UNPB", "Manuscript"),
    TypeMapping("review-book", "article", "review", "JOUR", "Journal Article"),
    TypeMapping("review", "article", "review", "JOUR", "Journal Article"),
    TypeMapping("speech", "misc", "misc", "HEAR", "Hearing", _TO_BIBTEX_FAMILY),
    TypeMapping("interview", "misc", "misc", "INPR", "Interview", _TO_BIBTEX_FAMILY),
    TypeMapping(
        "personal_communication", "misc", "letter", "PCOMM", "Personal Communication", _TO_BIBTEX
    ),
    TypeMapping("post", "misc", "online", "BLOG", "Blog", _TO_BIBTEX),
    TypeMapping("post-weblog", "misc", "online", "BLOG", "Blog", _TO_BIBTEX),
)

BIBTEX_TO_CSL: Dict[str, str] = {
    "article": "article-journal",
    "book": "book",
    "booklet": "book",
    "inbook": "chapter",
    "incollection": "chapter",
    "inproceedings": "paper-conference",
    "conference": "paper-conference",
    "manual": "book",
    "mastersthesis": "thesis",
    "phdthesis": "thesis",
    "proceedings": "book",
    "techreport": "report",
    "unpublished": "manuscript",
    "misc": "article",
}


def _reverse(column: str, extras: Dict[str, str]) -> Dict[str, str]:
    table: Dict[str, str] = {}
    for row in TYPE_MAPPINGS:
        value = getattr(row, column)
        if value and column not in row.lossy_to:
            table.setdefault(value, row.canonical)
    table.update(extras)
    return table


BIBLATEX_TO_CSL: Dict[str, str] = {
    **_reverse("biblatex", {}),
    **BIBTEX_TO_CSL,
    "mvbook": "book",
    "bookinbook": "chapter",
    "suppbook": "chapter",
    "collection": "book",
    "mvcollection": "book",
    "suppcollection": "chapter",
    "reference": "book",
    "mvreference": "book",
    "mvproceedings": "book",
    "periodical": "article-journal",
    "suppperiodical": "article-journal",
    "www": "webpage",
    "electronic": "webpage",
    "image": "graphic",
    "video": "motion_picture",
    "standard": "report",
}

RIS_TO_CSL: Dict[str, str] = _reverse(
    "ris",
    {
        "GEN": "article",
        "JFULL": "article-journal",
        "EJOUR": "article-journal",
        "ABST": "article-journal",
        "EBOOK": "book",
        "EDBOOK": "book",
        "ECHAP": "chapter",
        "CPAPER": "paper-conference",
        "VIDEO": "motion_picture",
        "MUSIC": "song",
        "STAND": "report",
        "WEB": "webpage",
    },
)

ENDNOTE_TO_CSL: Dict[str, str] = _reverse(
    "endnote",
    {
        "Generic": "article",
        "Electronic Article": "article-journal",
        "Edited Book": "book",
        "Electronic Book": "book",
        "Electronic Book Section": "chapter",
        "Conference Proceedings": "paper-conference",
        "Unpublished Work": "manuscript",
        "Government Document": "report",
        "Statute": "legislation",
        "Case": "legal_case",
        "Online Database": "dataset",
    },
)
_ENDNOTE_FOLDED = {name.lower(): canonical for name, canonical in ENDNOTE_TO_CSL.items()}

_BY_CANONICAL = {}
for _row in TYPE_MAPPINGS:
    _BY_CANONICAL.setdefault(_row.canonical, _row)


def is_item_type(value: str) -> bool:
    return value in ITEM_TYPES


def _check_format(name: str) -> None:
    if name not in FORMATS:
        raise ValueError(f"Unknown format: {name}")


def map_type_to_format(canonical: str, target: str) -> Tuple[str, bool]:
    """Return ``(format_type, lossy)`` for a canonical type in ``target``.

    Types without a row (or without a value for the target) get the format's
    generic fallback and are reported as lossy.
    """

    _check_format(target)
    if target == "csl-json":
        if canonical in ITEM_TYPES:
            return canonical, False
        return DEFAULT_TYPE, True

    row = _BY_CANONICAL.get(canonical)
    if row is None:
        return FALLBACK_TYPES[target], True
    value = getattr(row, target)
    if not value:
        return FALLBACK_TYPES[target], True
    return value, target in row.lossy_to


def map_type_from_format(format_type: str, source: str) -> Tuple[str, bool]:
    """Return ``(canonical_type, downgraded)`` for a type read from ``source``."""

    _check_format(source)
    value = (format_type or "").strip()
    canonical = None
    if source == "bibtex":
        canonical = BIBTEX_TO_CSL.get(value.lower())
    elif source == "biblatex":
        canonical = BIBLATEX_TO_CSL.get(value.lower())
    elif source == "ris":
        canonical = RIS_TO_CSL.get(value.upper())
    elif source == "endnote":
        canonical = ENDNOTE_TO_CSL.get(value) or _ENDNOTE_FOLDED.get(value.lower())
    else:
        lowered = value.lower()
        for candidate in (lowered, lowered.replace("_", "-"), lowered.replace("-", "_")):
            if candidate in ITEM_TYPES:
                canonical = candidate
                break

    if canonical is None:
        return DEFAULT_TYPE, True
    return canonical, False
