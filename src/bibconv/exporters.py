"""Exporters writing canonical entries out as BibTeX, BibLaTeX, RIS, EndNote XML or CSL-JSON."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

from .dates import to_iso, to_ris_slash, to_split_fields
from .entry_types import map_type_from_format, map_type_to_format
from .fields import VERBATIM_FIELDS, get_tag, get_transform, has_tag
from .latex import encode_latex, unencodable_characters
from .models import ConversionWarning, DateSpec, Entry, GeneratorOptions
from .names import serialize_name

logger = logging.getLogger(__name__)

PAGE_RANGE = re.compile(r"\s*[-–—]+\s*")


def _split_pages(pages: str) -> Tuple[Optional[str], Optional[str]]:
    parts = PAGE_RANGE.split(pages.strip(), maxsplit=1)
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    return pages.strip(), None


def _xml_escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\"", "&quot;")
        .replace("'", "&apos;")
    )


def _empty(value: Any) -> bool:
    return value is None or value == "" or value == []


class BaseExporter:
    """Option handling shared by every exporter."""

    format = ""

    def generate(self, entries: Iterable[Entry], options: Any = None) -> str:
        opts = GeneratorOptions.coerce(options)
        ordered = list(entries)
        if opts.sort:
            ordered = sorted(ordered, key=lambda entry: entry.id)
        output = self._render(ordered, opts)
        logger.debug("%s: wrote %d entries", self.format, len(ordered))
        return output

    def _render(self, entries: List[Entry], opts: GeneratorOptions) -> str:
        raise NotImplementedError

    def emitted_fields(self, entry: Entry) -> List[str]:
        return entry.populated_fields()

    def audit(self, entries: Iterable[Entry]) -> List[ConversionWarning]:
        """Report what writing ``entries`` in this format loses."""

        issues: List[ConversionWarning] = []
        for entry in entries:
            format_type, lossy = self._entry_type(entry)
            if lossy:
                issues.append(
                    ConversionWarning(
                        entry.id,
                        "warning",
                        "type-downgrade",
                        f"Type '{entry.type}' has no {self.format} equivalent; written as '{format_type}'",
                    )
                )
            emitted = set(self.emitted_fields(entry))
            lost = [name for name in entry.populated_fields() if name not in emitted]
            lost += list(entry.unknown_fields)
            for name in lost:
                issues.append(
                    ConversionWarning(
                        entry.id,
                        "warning",
                        "field-loss",
                        f"Field '{name}' cannot be written as {self.format}",
                        name,
                    )
                )
            for name in sorted(emitted):
                value = entry.get(name)
                if isinstance(value, DateSpec) and value.is_range and self._collapses_range(name):
                    issues.append(
                        ConversionWarning(
                            entry.id,
                            "warning",
                            "field-loss",
                            f"Date range in '{name}' is written as its start date in {self.format}",
                            name,
                        )
                    )
            issues.extend(self._encoding_issues(entry, emitted))
        return issues

    def _collapses_range(self, name: str) -> bool:
        return False

    def _encoding_issues(self, entry: Entry, emitted: Iterable[str]) -> List[ConversionWarning]:
        return []

    def _entry_type(self, entry: Entry) -> Tuple[str, bool]:
        return map_type_to_format(entry.type, self.format)


class CSLJSONExporter(BaseExporter):
    format = "csl-json"

    def _render(self, entries: List[Entry], opts: GeneratorOptions) -> str:
        if not entries:
            return "[]"
        text = json.dumps([entry.to_csl() for entry in entries], indent=opts.indent, ensure_ascii=False)
        if opts.line_ending != "\n":
            text = text.replace("\n", opts.line_ending)
        return text

    def audit(self, entries: Iterable[Entry]) -> List[ConversionWarning]:
        return []


class BibTeXExporter(BaseExporter):
    """``@type{id, field = {value}, ...}`` writer; BibLaTeX only swaps the tables."""

    format = "bibtex"
    FIELD_ORDER = (
        "author",
        "editor",
        "title",
        "container-title",
        "issued",
        "volume",
        "issue",
        "page",
        "publisher",
        "publisher-place",
        "DOI",
        "ISBN",
        "ISSN",
        "URL",
        "abstract",
        "keyword",
        "note",
    )

    def _entry_type(self, entry: Entry) -> Tuple[str, bool]:
        metadata = entry.metadata
        if metadata and metadata.original_type and metadata.source in ("bibtex", "biblatex"):
            canonical, downgraded = map_type_from_format(metadata.original_type, self.format)
            if not downgraded and canonical == entry.type:
                return metadata.original_type.lower(), False
        return map_type_to_format(entry.type, self.format)

    def emitted_fields(self, entry: Entry) -> List[str]:
        return [name for name in entry.populated_fields() if has_tag(name, self.format)]

    def _field_names(self, entry: Entry, opts: GeneratorOptions) -> List[str]:
        populated = self.emitted_fields(entry)
        names = [name for name in self.FIELD_ORDER if name in populated]
        names += [name for name in populated if name not in names]
        if opts.preserve_field_order and entry.metadata and entry.metadata.field_order:
            preferred = [name for name in entry.metadata.field_order if name in names]
            names = preferred + [name for name in names if name not in preferred]
        return names

    def _format_value(self, name: str, value: Any) -> str:
        transform = get_transform(name)
        if transform == "name":
            # organizations stay braced so BibTeX does not split them
            return " and ".join(
                "{%s}" % encode_latex(person.literal) if person.literal
                else encode_latex(serialize_name(person))
                for person in value
            )
        if transform == "date":
            return to_iso(value)
        text = str(value)
        if name in VERBATIM_FIELDS:
            return text
        if transform == "page-range":
            return PAGE_RANGE.sub("--", text.strip())
        return encode_latex(text)

    def _fields(self, entry: Entry, format_type: str, opts: GeneratorOptions) -> List[Tuple[str, str]]:
        fields: List[Tuple[str, str]] = []
        for name in self._field_names(entry, opts):
            value = entry.get(name)
            if _empty(value):
                continue
            if name == "issued":
                year, month, day = to_split_fields(value)
                if year:
                    fields.append(("year", "{%s}" % year))
                if month:
                    fields.append(("month", month if month.isalpha() else "{%s}" % month))
                if day:
                    fields.append(("day", "{%s}" % day))
                continue
            text = self._format_value(name, value)
            if text:
                fields.append((get_tag(name, self.format, format_type), "{%s}" % text))

        metadata = entry.metadata
        if opts.include_metadata and metadata and metadata.source in ("bibtex", "biblatex"):
            taken = {tag for tag, _ in fields}
            for tag, value in metadata.custom_fields.items():
                if tag not in taken:
                    fields.append((tag, "{%s}" % value))
        return fields

    def _render_entry(self, entry: Entry, opts: GeneratorOptions) -> str:
        format_type, _ = self._entry_type(entry)
        fields = self._fields(entry, format_type, opts)
        lines = [f"@{format_type}{{{entry.id},"]
        for position, (tag, value) in enumerate(fields, start=1):
            comma = "," if position < len(fields) else ""
            lines.append(f"{opts.indent}{tag} = {value}{comma}")
        lines.append("}")
        return opts.line_ending.join(lines)

    def _collapses_range(self, name: str) -> bool:
        # year/month/day hold a single date
        return name == "issued"

    def _render(self, entries: List[Entry], opts: GeneratorOptions) -> str:
        if not entries:
            return opts.line_ending
        records = [self._render_entry(entry, opts) for entry in entries]
        return (opts.line_ending * 2).join(records) + opts.line_ending

    def _encoding_issues(self, entry: Entry, emitted: Iterable[str]) -> List[ConversionWarning]:
        issues = []
        for name in emitted:
            if name in VERBATIM_FIELDS:
                continue
            value = entry.get(name)
            if get_transform(name) == "name":
                text = " ".join(serialize_name(person) for person in value)
            elif isinstance(value, str):
                text = value
            else:
                continue
            characters = unencodable_characters(text)
            if characters:
                issues.append(
                    ConversionWarning(
                        entry.id,
                        "info",
                        "encoding-loss",
                        f"Characters {''.join(characters)!r} have no LaTeX form; written as UTF-8",
                        name,
                    )
                )
        return issues


class BibLaTeXExporter(BibTeXExporter):
    format = "biblatex"


class RISExporter(BaseExporter):
    format = "ris"
    FIELD_ORDER = (
        "author",
        "editor",
        "translator",
        "title",
        "container-title",
        "issued",
        "volume",
        "issue",
        "page",
        "publisher",
        "publisher-place",
        "DOI",
        "ISBN",
        "ISSN",
        "URL",
        "accessed",
        "abstract",
        "keyword",
        "note",
    )

    def emitted_fields(self, entry: Entry) -> List[str]:
        return [name for name in entry.populated_fields() if name in self.FIELD_ORDER]

    def _collapses_range(self, name: str) -> bool:
        return get_transform(name) == "date"

    @staticmethod
    def _line(tag: str, value: Any) -> str:
        return f"{tag}  - {' '.join(str(value).split())}"

    def _render_entry(self, entry: Entry, opts: GeneratorOptions) -> str:
        format_type, _ = self._entry_type(entry)
        lines = [f"TY  - {format_type}"]
        for name in self.FIELD_ORDER:
            value = entry.get(name)
            if _empty(value):
                continue
            tag = get_tag(name, self.format)
            transform = get_transform(name)
            if transform == "name":
                lines.extend(self._line(tag, serialize_name(person)) for person in value)
            elif transform == "date":
                text = to_ris_slash(value)
                if text:
                    lines.append(self._line(tag, text))
            elif name == "page":
                start, end = _split_pages(str(value))
                lines.append(self._line("SP", start))
                if end:
                    lines.append(self._line("EP", end))
            elif name == "keyword":
                for keyword in re.split(r"[;,]", value):
                    if keyword.strip():
                        lines.append(self._line(tag, keyword.strip()))
            else:
                lines.append(self._line(tag, value))

        metadata = entry.metadata
        if opts.include_metadata and metadata and metadata.source == "ris":
            for tag, values in metadata.custom_fields.items():
                for value in values if isinstance(values, list) else [values]:
                    lines.append(self._line(tag, value))
        lines.append("ER  - ")
        return opts.line_ending.join(lines)

    def _render(self, entries: List[Entry], opts: GeneratorOptions) -> str:
        records = [self._render_entry(entry, opts) for entry in entries]
        return opts.line_ending.join(records) + opts.line_ending


class EndNoteExporter(BaseExporter):
    format = "endnote"
    CONTRIBUTORS = (
        ("author", "authors"),
        ("editor", "secondary-authors"),
        ("collection-editor", "tertiary-authors"),
        ("translator", "subsidiary-authors"),
    )
    TITLES = (
        ("title", "title"),
        ("container-title", "secondary-title"),
        ("collection-title", "tertiary-title"),
        ("title-short", "short-title"),
    )
    LEAVES = (
        ("volume", "volume"),
        ("issue", "number"),
        ("page", "pages"),
        ("edition", "edition"),
        ("chapter-number", "section"),
        ("publisher", "publisher"),
        ("publisher-place", "pub-location"),
        ("ISBN", "isbn"),
        ("DOI", "electronic-resource-num"),
    )
    TRAILING_LEAVES = (
        ("note", "notes"),
        ("annote", "research-notes"),
        ("language", "language"),
        ("PMID", "accession-num"),
        ("call-number", "call-num"),
        ("genre", "work-type"),
    )

    def emitted_fields(self, entry: Entry) -> List[str]:
        names = {name for name, _ in self.CONTRIBUTORS + self.TITLES + self.LEAVES + self.TRAILING_LEAVES}
        names.update({"issued", "URL", "abstract", "keyword"})
        if not entry.isbn:
            names.add("ISSN")
        return [name for name in entry.populated_fields() if name in names]

    def _record(self, entry: Entry, opts: GeneratorOptions) -> List[str]:
        one, two, three = opts.indent * 3, opts.indent * 4, opts.indent * 5
        format_type, _ = self._entry_type(entry)
        lines = [
            f"{opts.indent * 2}<record>",
            f"{one}<ref-type name=\"{_xml_escape(format_type)}\">0</ref-type>",
        ]

        groups = [(group, entry.get(name)) for name, group in self.CONTRIBUTORS if entry.get(name)]
        if groups:
            lines.append(f"{one}<contributors>")
            for group, people in groups:
                lines.append(f"{two}<{group}>")
                for person in people:
                    lines.append(f"{three}<author>{_xml_escape(serialize_name(person))}</author>")
                lines.append(f"{two}</{group}>")
            lines.append(f"{one}</contributors>")

        titles = [(tag, entry.get(name)) for name, tag in self.TITLES if entry.get(name)]
        if titles:
            lines.append(f"{one}<titles>")
            lines.extend(f"{two}<{tag}>{_xml_escape(value)}</{tag}>" for tag, value in titles)
            lines.append(f"{one}</titles>")

        if entry.issued is not None:
            year = str(entry.issued.year) if entry.issued.year is not None else (entry.issued.raw or "")
            if year:
                lines.append(f"{one}<dates>")
                lines.append(f"{two}<year>{_xml_escape(year)}</year>")
                if len(entry.issued.start) > 1:
                    lines.append(f"{two}<pub-dates>")
                    lines.append(f"{three}<date>{_xml_escape(to_iso(entry.issued))}</date>")
                    lines.append(f"{two}</pub-dates>")
                lines.append(f"{one}</dates>")

        leaves = list(self.LEAVES)
        if not entry.isbn:
            leaves[leaves.index(("ISBN", "isbn"))] = ("ISSN", "isbn")
        for name, tag in leaves:
            value = entry.get(name)
            if not _empty(value):
                lines.append(f"{one}<{tag}>{_xml_escape(str(value))}</{tag}>")

        if entry.url:
            lines.append(f"{one}<urls>")
            lines.append(f"{two}<related-urls>")
            lines.append(f"{three}<url>{_xml_escape(entry.url)}</url>")
            lines.append(f"{two}</related-urls>")
            lines.append(f"{one}</urls>")
        if entry.abstract:
            lines.append(f"{one}<abstract>{_xml_escape(entry.abstract)}</abstract>")
        if entry.keyword:
            keywords = [word.strip() for word in entry.keyword.split(";") if word.strip()]
            lines.append(f"{one}<keywords>")
            lines.extend(f"{two}<keyword>{_xml_escape(word)}</keyword>" for word in keywords)
            lines.append(f"{one}</keywords>")
        for name, tag in self.TRAILING_LEAVES:
            value = entry.get(name)
            if not _empty(value):
                lines.append(f"{one}<{tag}>{_xml_escape(str(value))}</{tag}>")
        lines.append(f"{one}<label>{_xml_escape(entry.id)}</label>")
        lines.append(f"{opts.indent * 2}</record>")
        return lines

    def _render(self, entries: List[Entry], opts: GeneratorOptions) -> str:
        lines = ['<?xml version="1.0" encoding="UTF-8"?>', "<xml>"]
        if not entries:
            lines.append(f"{opts.indent}<records></records>")
        else:
            lines.append(f"{opts.indent}<records>")
            for entry in entries:
                lines.extend(self._record(entry, opts))
            lines.append(f"{opts.indent}</records>")
        lines.append("</xml>")
        return opts.line_ending.join(lines) + opts.line_ending


EXPORTERS = {
    "bibtex": BibTeXExporter,
    "biblatex": BibLaTeXExporter,
    "csl-json": CSLJSONExporter,
    "ris": RISExporter,
    "endnote": EndNoteExporter,
}


def to_bibtex(entries: Iterable[Entry], options: Any = None) -> str:
    return BibTeXExporter().generate(entries, options)


def to_biblatex(entries: Iterable[Entry], options: Any = None) -> str:
    return BibLaTeXExporter().generate(entries, options)


def to_ris(entries: Iterable[Entry], options: Any = None) -> str:
    return RISExporter().generate(entries, options)


def to_endnote_xml(entries: Iterable[Entry], options: Any = None) -> str:
    return EndNoteExporter().generate(entries, options)


def to_csl_json(entries: Iterable[Entry], options: Any = None) -> str:
    return CSLJSONExporter().generate(entries, options)


__all__ = [
    "BaseExporter",
    "BibTeXExporter",
    "BibLaTeXExporter",
    "RISExporter",
    "EndNoteExporter",
    "CSLJSONExporter",
    "EXPORTERS",
    "to_bibtex",
    "to_biblatex",
    "to_ris",
    "to_endnote_xml",
    "to_csl_json",
]
