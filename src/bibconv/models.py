"""Data models for the canonical (CSL-JSON shaped) bibliography representation."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .entry_types import ITEM_TYPES

SEVERITIES = ("info", "warning", "error")
CATEGORIES = (
    "type-downgrade",
    "field-loss",
    "encoding-loss",
    "parse-error",
    "validation-error",
)

LINE_ENDINGS = ("\n", "\r\n")


class Person(BaseModel):
    """A structured person (or organization) name."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    family: Optional[str] = None
    given: Optional[str] = None
    literal: Optional[str] = None
    suffix: Optional[str] = None
    dropping_particle: Optional[str] = Field(None, alias="dropping-particle")
    non_dropping_particle: Optional[str] = Field(None, alias="non-dropping-particle")

    @model_validator(mode="after")
    def require_name(self) -> "Person":
        if not (self.literal or self.family or self.given):
            raise ValueError("A person needs a literal name or a family/given name")
        return self

    def to_csl(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DateSpec(BaseModel):
    """Date as CSL date-parts: one or two lists of [year, month, day] prefixes."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    date_parts: Optional[List[List[int]]] = Field(None, alias="date-parts")
    raw: Optional[str] = None
    circa: Optional[bool] = None
    season: Optional[Union[int, str]] = None

    @field_validator("date_parts", mode="before")
    @classmethod
    def drop_empty_parts(cls, value: Any) -> Any:
        if value is None or not isinstance(value, (list, tuple)):
            return value
        parts = []
        for part in value:
            if isinstance(part, (list, tuple)):
                part = [item for item in part if item not in (None, "")]
                if part:
                    parts.append(part)
            else:
                parts.append(part)
        return parts or None

    @field_validator("date_parts")
    @classmethod
    def check_shape(cls, value: Optional[List[List[int]]]) -> Optional[List[List[int]]]:
        if value is None:
            return value
        if len(value) > 2:
            raise ValueError("date-parts holds at most a start and an end date")
        for part in value:
            if len(part) > 3:
                raise ValueError("a date has at most year, month and day components")
        return value

    @property
    def start(self) -> List[int]:
        return list(self.date_parts[0]) if self.date_parts else []

    @property
    def end(self) -> List[int]:
        if self.date_parts and len(self.date_parts) > 1:
            return list(self.date_parts[1])
        return []

    @property
    def year(self) -> Optional[int]:
        start = self.start
        return start[0] if start else None

    @property
    def is_range(self) -> bool:
        return bool(self.date_parts) and len(self.date_parts) > 1

    def to_csl(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FormatMetadata(BaseModel):
    """Round-trip hints recorded by a parser; never required for correctness."""

    model_config = ConfigDict(frozen=True)

    source: Optional[str] = None
    original_type: Optional[str] = None
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    field_order: List[str] = Field(default_factory=list)
    conversion_warnings: List[str] = Field(default_factory=list)
    raw_entry: Optional[str] = None


DATE_FIELDS = ("issued", "accessed", "submitted", "event_date", "original_date")
NUMBER = Optional[Union[str, int]]


class Entry(BaseModel):
    """One bibliographic item in the canonical representation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    id: str
    type: str

    author: Optional[List[Person]] = None
    editor: Optional[List[Person]] = None
    translator: Optional[List[Person]] = None
    composer: Optional[List[Person]] = None
    director: Optional[List[Person]] = None
    illustrator: Optional[List[Person]] = None
    interviewer: Optional[List[Person]] = None
    collection_editor: Optional[List[Person]] = Field(None, alias="collection-editor")
    container_author: Optional[List[Person]] = Field(None, alias="container-author")

    title: Optional[str] = None
    container_title: Optional[str] = Field(None, alias="container-title")
    collection_title: Optional[str] = Field(None, alias="collection-title")
    title_short: Optional[str] = Field(None, alias="title-short")

    issued: Optional[DateSpec] = None
    accessed: Optional[DateSpec] = None
    submitted: Optional[DateSpec] = None
    event_date: Optional[DateSpec] = Field(None, alias="event-date")
    original_date: Optional[DateSpec] = Field(None, alias="original-date")

    doi: Optional[str] = Field(None, alias="DOI")
    isbn: Optional[str] = Field(None, alias="ISBN")
    issn: Optional[str] = Field(None, alias="ISSN")
    pmid: Optional[str] = Field(None, alias="PMID")
    pmcid: Optional[str] = Field(None, alias="PMCID")
    url: Optional[str] = Field(None, alias="URL")

    publisher: Optional[str] = None
    publisher_place: Optional[str] = Field(None, alias="publisher-place")
    volume: NUMBER = None
    issue: NUMBER = None
    page: NUMBER = None
    number_of_pages: NUMBER = Field(None, alias="number-of-pages")
    edition: NUMBER = None
    chapter_number: NUMBER = Field(None, alias="chapter-number")

    abstract: Optional[str] = None
    keyword: Optional[str] = None
    note: Optional[str] = None
    annote: Optional[str] = None

    event: Optional[str] = None
    event_place: Optional[str] = Field(None, alias="event-place")

    authority: Optional[str] = None
    jurisdiction: Optional[str] = None
    call_number: Optional[str] = Field(None, alias="call-number")

    medium: Optional[str] = None
    genre: Optional[str] = None
    status: Optional[str] = None
    language: Optional[str] = None

    metadata: Optional[FormatMetadata] = None
    unknown_fields: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type")
    @classmethod
    def known_type(cls, value: str) -> str:
        if value not in ITEM_TYPES:
            raise ValueError(f"Unknown item type: {value}")
        return value

    @field_validator(*DATE_FIELDS, mode="before")
    @classmethod
    def raw_date_strings(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"raw": value}
        return value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Entry":
        """Build an entry from CSL names or attribute names; unknown keys are kept aside."""

        known: Dict[str, Any] = {}
        unknown: Dict[str, Any] = dict(data.get("unknown_fields") or {})
        for key, value in data.items():
            if key == "unknown_fields":
                continue
            attribute = field_attribute(key)
            if attribute is None:
                unknown[key] = value
            else:
                known[attribute] = value
        if unknown:
            known["unknown_fields"] = unknown
        return cls(**known)

    def get(self, name: str, default: Any = None) -> Any:
        attribute = field_attribute(name)
        if attribute is not None:
            value = getattr(self, attribute)
            return default if value is None else value
        return self.unknown_fields.get(name, default)

    def populated_fields(self) -> List[str]:
        """CSL names of the typed fields holding a value, in declaration order."""

        names = []
        for attribute, info in type(self).model_fields.items():
            if attribute in ("id", "type", "metadata", "unknown_fields"):
                continue
            if getattr(self, attribute) in (None, "", []):
                continue
            names.append(info.alias or attribute)
        return names

    def to_csl(self) -> Dict[str, Any]:
        data = self.model_dump(
            by_alias=True, exclude_none=True, exclude={"metadata", "unknown_fields"}
        )
        for key, value in self.unknown_fields.items():
            data.setdefault(key, value)
        return data

    def to_dict(self, include_metadata: bool = False) -> Dict[str, Any]:
        data = self.to_csl()
        if include_metadata and self.metadata is not None:
            data["_formatMetadata"] = self.metadata.model_dump(exclude_none=True)
        return data

    def without_metadata(self) -> "Entry":
        return self.model_copy(update={"metadata": None})


def _attribute_index() -> Dict[str, str]:
    index: Dict[str, str] = {"_formatMetadata": "metadata"}
    for attribute, info in Entry.model_fields.items():
        index[attribute] = attribute
        if info.alias:
            index[info.alias] = attribute
    return index


_ATTRIBUTES = _attribute_index()


def field_attribute(name: str) -> Optional[str]:
    """Map a CSL field name (or attribute name) to the Entry attribute."""
    return _ATTRIBUTES.get(name)


def csl_name(attribute: str) -> str:
    info = Entry.model_fields.get(attribute)
    if info is None:
        return attribute
    return info.alias or attribute


@dataclass
class ConversionWarning:
    """A recoverable problem attached to a conversion result."""

    entry_id: str
    severity: str
    category: str
    message: str
    field_name: Optional[str] = None


@dataclass
class ConversionStats:
    total: int = 0
    successful: int = 0
    with_warnings: int = 0
    failed: int = 0


@dataclass
class ConversionResult:
    entries: List[Entry] = field(default_factory=list)
    warnings: List[ConversionWarning] = field(default_factory=list)
    stats: ConversionStats = field(default_factory=ConversionStats)


@dataclass
class ConvertOutcome:
    output: str
    result: ConversionResult


_OPTION_ALIASES = {
    "lineEnding": "line_ending",
    "preserveFieldOrder": "preserve_field_order",
    "includeMetadata": "include_metadata",
}


@dataclass(frozen=True)
class GeneratorOptions:
    """Output settings shared by every exporter."""

    indent: str = "  "
    line_ending: str = "\n"
    sort: bool = False
    preserve_field_order: bool = False
    include_metadata: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.indent, int) and not isinstance(self.indent, bool):
            object.__setattr__(self, "indent", " " * self.indent)
        if self.line_ending not in LINE_ENDINGS:
            raise ValueError(f"line_ending must be one of {LINE_ENDINGS!r}")

    @classmethod
    def coerce(cls, options: Union["GeneratorOptions", Mapping[str, Any], None] = None) -> "GeneratorOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        values = {_OPTION_ALIASES.get(key, key): value for key, value in dict(options).items()}
        unknown = sorted(set(values) - {option.name for option in fields(cls)})
        if unknown:
            raise ValueError(f"Unknown generator options: {', '.join(unknown)}")
        return cls(**values)


def build_result(
    entries: List[Entry], warnings: List[ConversionWarning], failed: int = 0
) -> ConversionResult:
    """Assemble a result; stats are derived from the entries and warnings."""

    entry_ids = {entry.id for entry in entries}
    flagged = {
        warning.entry_id
        for warning in warnings
        if warning.severity == "warning" and warning.entry_id in entry_ids
    }
    stats = ConversionStats(
        total=len(entries) + failed,
        successful=len(entries),
        with_warnings=len(flagged),
        failed=failed,
    )
    return ConversionResult(entries=list(entries), warnings=list(warnings), stats=stats)
