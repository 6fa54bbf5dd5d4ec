"""Parsers turning raw bibliography text into canonical entries."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from xml.etree import ElementTree

from pydantic import ValidationError

from .dates import parse_date, parse_split_date
from .entry_types import map_type_from_format
from .fields import VERBATIM_FIELDS, field_from_tag, get_transform
from .latex import decode_latex
from .models import ConversionResult, ConversionWarning, Entry, FormatMetadata, Person, build_result
from .names import parse_name, parse_names
from .validation import check_duplicates, check_entry

logger = logging.getLogger(__name__)

PAGE_DASHES = re.compile(r"\s*[-–—]+\s*")
ISSN_PATTERN = re.compile(r"^\d{4}-?\d{3}[\dXx]$")


def normalize_pages(value: str) -> str:
    return PAGE_DASHES.sub("-", value.strip())


def classify_serial_number(value: str) -> str:
    """Return ``ISSN`` or ``ISBN`` for a RIS ``SN`` / EndNote ``isbn`` value."""
    return "ISSN" if ISSN_PATTERN.match(value.strip()) else "ISBN"


def _first_word(text: str) -> str:
    for word in re.findall(r"[A-Za-z0-9]+", text or ""):
        return word.lower()
    return ""


class BaseParser:
    """Shared bookkeeping for the format parsers."""

    format = ""

    def parse(self, content: str) -> ConversionResult:
        raise NotImplementedError

    def validate(self, content: str) -> List[ConversionWarning]:
        return []

    @staticmethod
    def _warning(
        warnings: List[ConversionWarning],
        entry_id: str,
        severity: str,
        category: str,
        message: str,
        field_name: Optional[str] = None,
    ) -> None:
        warnings.append(ConversionWarning(entry_id, severity, category, message, field_name))

    def _map_type(self, raw_type: str, entry_id: str, warnings: List[ConversionWarning]) -> str:
        canonical, downgraded = map_type_from_format(raw_type, self.format)
        if downgraded:
            self._warning(
                warnings,
                entry_id,
                "warning",
                "type-downgrade",
                f"Unknown {self.format} type '{raw_type}' read as '{canonical}'",
            )
        return canonical

    def _build(
        self,
        values: Dict[str, Any],
        warnings: List[ConversionWarning],
        first_warning: int,
    ) -> Optional[Entry]:
        """Validate one record; a record pydantic rejects becomes a parse error."""

        entry_id = values["id"]
        metadata = values.get("metadata")
        if isinstance(metadata, FormatMetadata):
            messages = [w.message for w in warnings[first_warning:] if w.entry_id == entry_id]
            values["metadata"] = metadata.model_copy(update={"conversion_warnings": messages})
        try:
            entry = Entry.from_dict(values)
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error.get("loc", ()))
            self._warning(
                warnings,
                entry_id,
                "error",
                "parse-error",
                f"Record rejected: {location}: {error.get('msg')}",
            )
            return None
        warnings.extend(check_entry(entry))
        return entry

    def _finish(
        self, entries: List[Entry], warnings: List[ConversionWarning], failed: int
    ) -> ConversionResult:
        warnings.extend(check_duplicates(entries))
        result = build_result(entries, warnings, failed)
        logger.debug(
            "%s: parsed %d entries, %d failed, %d warnings",
            self.format,
            result.stats.successful,
            result.stats.failed,
            len(result.warnings),
        )
        return result


def _decode_person(person: Person) -> Person:
    values = {key: decode_latex(value) for key, value in person.model_dump(exclude_none=True).items()}
    return Person(**values)


class BibTeXParser(BaseParser):
    """Parser for ``@type{key, field = {value}, ...}`` databases."""

    format = "bibtex"
    ENTRY_START = re.compile(r"@\s*([A-Za-z]+)\s*([{(])")
    COMMENT_LINE = re.compile(r"^[ \t]*%.*$", re.MULTILINE)
    OPEN_BRACE = re.compile(r"(?<!\\)\{")
    CLOSE_BRACE = re.compile(r"(?<!\\)\}")
    SKIPPED = {"comment", "preamble"}

    def parse(self, content: str) -> ConversionResult:
        text = self.COMMENT_LINE.sub("", content or "")
        entries: List[Entry] = []
        warnings: List[ConversionWarning] = []
        failed = 0
        macros: Dict[str, str] = {}
        index = 0
        position = 0

        while True:
            match = self.ENTRY_START.search(text, position)
            if match is None:
                break
            kind = match.group(1).lower()
            end = self._find_closing(text, match.end() - 1)
            if end is None:
                position = match.end()
                if kind in self.SKIPPED or kind == "string":
                    continue
                index += 1
                failed += 1
                self._warning(
                    warnings,
                    self._guess_key(text[match.end():]) or f"entry{index}",
                    "error",
                    "parse-error",
                    f"Unbalanced braces in @{kind} entry at offset {match.start()}",
                )
                continue

            body = text[match.end():end]
            position = end + 1
            if kind in self.SKIPPED:
                continue
            if kind == "string":
                self._read_macros(body, macros)
                continue
            index += 1
            entry = self._parse_entry(kind, body, index, macros, warnings, text[match.start():end + 1])
            if entry is None:
                failed += 1
            else:
                entries.append(entry)

        return self._finish(entries, warnings, failed)

    def validate(self, content: str) -> List[ConversionWarning]:
        text = self.COMMENT_LINE.sub("", content or "")
        issues: List[ConversionWarning] = []
        opening = len(self.OPEN_BRACE.findall(text))
        closing = len(self.CLOSE_BRACE.findall(text))
        if opening != closing:
            self._warning(
                issues,
                "",
                "error",
                "parse-error",
                f"Unbalanced braces: {opening} opening vs {closing} closing",
            )
        found = 0
        for match in self.ENTRY_START.finditer(text):
            kind = match.group(1).lower()
            if kind in self.SKIPPED or kind == "string":
                continue
            found += 1
            if self._find_closing(text, match.end() - 1) is None:
                self._warning(
                    issues,
                    self._guess_key(text[match.end():]) or f"entry{found}",
                    "error",
                    "parse-error",
                    f"@{kind} entry at offset {match.start()} is never closed",
                )
        if not found:
            self._warning(issues, "", "warning", "validation-error", "No entries found")
        return issues

    @staticmethod
    def _guess_key(text: str) -> str:
        key = text.split(",", 1)[0].strip()
        if not key or "=" in key or re.search(r"[\s{}]", key):
            return ""
        return key

    @staticmethod
    def _find_closing(text: str, open_index: int) -> Optional[int]:
        opener = text[open_index]
        depth = 0
        index = open_index + 1
        while index < len(text):
            char = text[index]
            if char == "\\":
                index += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                if depth == 0:
                    return index if opener == "{" else None
                depth -= 1
            elif char == ")" and opener == "(" and depth == 0:
                return index
            index += 1
        return None

    @staticmethod
    def _split(text: str, separator: str) -> List[str]:
        """Split on ``separator`` outside braces and double quotes."""

        pieces: List[str] = []
        depth = 0
        quoted = False
        escaped = False
        start = 0
        for index, char in enumerate(text):
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth = max(depth - 1, 0)
            elif char == '"' and depth == 0:
                quoted = not quoted
            elif char == separator and depth == 0 and not quoted:
                pieces.append(text[start:index])
                start = index + 1
        pieces.append(text[start:])
        return pieces

    def _resolve(self, raw: str, macros: Dict[str, str]) -> str:
        """Resolve a field value: braces, quotes, numbers, macros and ``#`` joins."""

        parts = []
        for piece in self._split(raw, "#"):
            piece = piece.strip()
            if len(piece) >= 2 and piece[0] == "{" and piece[-1] == "}":
                parts.append(piece[1:-1])
            elif len(piece) >= 2 and piece[0] == '"' and piece[-1] == '"':
                parts.append(piece[1:-1])
            elif piece.isdigit():
                parts.append(piece)
            elif piece.lower() in macros:
                parts.append(macros[piece.lower()])
            else:
                # month macros and unknown macro names pass through
                parts.append(piece)
        return "".join(parts)

    def _read_fields(self, text: str, macros: Dict[str, str]) -> List[Tuple[str, str]]:
        fields = []
        for piece in self._split(text, ","):
            if not piece.strip():
                continue
            name, equals, value = piece.partition("=")
            if not equals:
                continue
            fields.append((name.strip().lower(), self._resolve(value, macros)))
        return fields

    def _read_macros(self, body: str, macros: Dict[str, str]) -> None:
        for name, value in self._read_fields(body, macros):
            macros[name] = value

    def _convert(self, canonical: str, value: str) -> Any:
        transform = get_transform(canonical)
        if transform == "name":
            return [_decode_person(person) for person in parse_names(value)]
        if transform == "date":
            return parse_date(value)
        text = value if canonical in VERBATIM_FIELDS else decode_latex(value)
        text = " ".join(text.split())
        if transform == "page-range":
            text = normalize_pages(text)
        return text

    def _parse_entry(
        self,
        kind: str,
        body: str,
        index: int,
        macros: Dict[str, str],
        warnings: List[ConversionWarning],
        raw: str,
    ) -> Optional[Entry]:
        first_warning = len(warnings)
        key, _, rest = body.partition(",")
        key = key.strip()
        if "=" in key:
            key, rest = "", body
        if not key:
            key = f"entry{index}"
            self._warning(
                warnings,
                key,
                "warning",
                "validation-error",
                f"@{kind} entry has no citation key; using '{key}'",
                "id",
            )

        canonical_type = self._map_type(kind, key, warnings)
        values: Dict[str, Any] = {}
        custom: Dict[str, Any] = {}
        order: List[str] = []
        split_date: Dict[str, str] = {}

        for name, value in self._read_fields(rest, macros):
            if name in ("year", "month", "day"):
                split_date[name] = value
                if "issued" not in order:
                    order.append("issued")
                continue
            canonical = field_from_tag(name, self.format)
            if canonical is None:
                custom[name] = value
                self._warning(
                    warnings,
                    key,
                    "info",
                    "field-loss",
                    f"Field '{name}' has no canonical equivalent; kept as metadata",
                    name,
                )
                continue
            if canonical in values:
                continue
            values[canonical] = self._convert(canonical, value)
            if canonical not in order:
                order.append(canonical)

        if "issued" not in values and split_date.get("year"):
            values["issued"] = parse_split_date(
                split_date.get("year"), split_date.get("month"), split_date.get("day")
            )
        elif "issued" not in values:
            for name in ("month", "day"):
                if name in split_date:
                    custom[name] = split_date[name]
            if "issued" in order:
                order.remove("issued")

        values = {name: value for name, value in values.items() if value not in ("", [], None)}
        values["id"] = key
        values["type"] = canonical_type
        values["metadata"] = FormatMetadata(
            source=self.format,
            original_type=kind,
            custom_fields=custom,
            field_order=order,
            raw_entry=raw,
        )
        return self._build(values, warnings, first_warning)


class BibLaTeXParser(BibTeXParser):
    """Same grammar as BibTeX; only the type and field tables differ."""

    format = "biblatex"


class RISParser(BaseParser):
    """Parser for ``TY  - ... ER  -`` tagged records."""

    format = "ris"
    TAG_LINE = re.compile(r"^([A-Z][A-Z0-9])\s*-\s*(.*)$")

    def _records(self, content: str) -> Tuple[List[Dict[str, Any]], List[Tuple[int, str]]]:
        """Group tag lines into records and collect structural problems."""

        records: List[Dict[str, Any]] = []
        problems: List[Tuple[int, str]] = []
        current: Optional[Dict[str, Any]] = None

        for number, line in enumerate((content or "").lstrip("﻿").splitlines(), start=1):
            stripped = line.strip()
            if not stripped:
                continue
            match = self.TAG_LINE.match(stripped)
            if match is None:
                if current is not None and current["fields"]:
                    current["fields"][-1][1] = f"{current['fields'][-1][1]} {stripped}".strip()
                else:
                    problems.append((number, f"Line {number} is not a RIS tag line"))
                continue
            tag, value = match.group(1), match.group(2).strip()
            if tag == "TY":
                if current is not None:
                    current["unterminated"] = True
                    records.append(current)
                    problems.append((number, f"TY on line {number} starts a record before ER"))
                current = {"type": value, "fields": [], "line": number, "unterminated": False}
            elif tag == "ER":
                if current is None:
                    problems.append((number, f"ER on line {number} without a matching TY"))
                else:
                    records.append(current)
                    current = None
            elif current is None:
                problems.append((number, f"Tag {tag} on line {number} outside a record"))
            else:
                current["fields"].append([tag, value])

        if current is not None:
            current["unterminated"] = True
            records.append(current)
            problems.append((current["line"], f"Record starting on line {current['line']} has no ER"))
        return records, problems

    def parse(self, content: str) -> ConversionResult:
        records, _ = self._records(content)
        entries: List[Entry] = []
        warnings: List[ConversionWarning] = []
        failed = 0
        used_ids: Dict[str, int] = {}

        for index, record in enumerate(records, start=1):
            entry = self._parse_record(record, index, used_ids, warnings)
            if entry is None:
                failed += 1
            else:
                entries.append(entry)
        return self._finish(entries, warnings, failed)

    def validate(self, content: str) -> List[ConversionWarning]:
        records, problems = self._records(content)
        issues: List[ConversionWarning] = []
        for _, message in problems:
            severity = "error" if "without a matching TY" in message else "warning"
            self._warning(issues, "", severity, "parse-error", message)
        if not records:
            self._warning(issues, "", "warning", "validation-error", "No entries found")
        return issues

    @staticmethod
    def _trim_date(value: str) -> str:
        # RIS 2001 dates look like "2024/05/12/other info"
        if re.match(r"^\d{4}/", value) and value.count("/") >= 2:
            value = "/".join(part for part in value.split("/")[:3] if part)
        return value.rstrip("/")

    def _parse_record(
        self,
        record: Dict[str, Any],
        index: int,
        used_ids: Dict[str, int],
        warnings: List[ConversionWarning],
    ) -> Optional[Entry]:
        values: Dict[str, Any] = {}
        custom: Dict[str, Any] = {}
        order: List[str] = []
        keywords: List[str] = []
        pages: Dict[str, str] = {}
        record_id = ""
        pending: List[Tuple[str, str, str, Optional[str]]] = []

        def note(field: str) -> None:
            if field not in order:
                order.append(field)

        for tag, value in record["fields"]:
            if not value:
                continue
            if tag == "ID":
                record_id = record_id or value
                continue
            if tag in ("SP", "EP"):
                pages.setdefault(tag, value)
                note("page")
                continue
            if tag == "KW":
                keywords.append(value)
                note("keyword")
                continue
            if tag == "SN":
                field = classify_serial_number(value)
                values.setdefault(field, value)
                note(field)
                continue
            canonical = field_from_tag(tag, self.format)
            if canonical is None:
                custom.setdefault(tag, []).append(value)
                pending.append(("info", "field-loss", f"Tag {tag} has no canonical equivalent; kept as metadata", tag))
                continue
            transform = get_transform(canonical)
            if transform == "name":
                person = parse_name(value)
                if person is not None:
                    values.setdefault(canonical, []).append(person)
            elif transform == "date":
                parsed = parse_date(self._trim_date(value))
                current = values.get(canonical)
                if current is None or (
                    parsed.year == current.year and len(parsed.start) > len(current.start)
                ):
                    values[canonical] = parsed
            elif canonical in values:
                pending.append(("info", "field-loss", f"Repeated tag {tag}; kept the first value", tag))
            else:
                values[canonical] = value
            note(canonical)

        if "SP" in pages and "EP" in pages:
            values["page"] = f"{pages['SP']}-{pages['EP']}"
        elif pages:
            values["page"] = pages.get("SP") or pages.get("EP")
        if keywords:
            values["keyword"] = "; ".join(keywords)

        entry_id = record_id or self._derive_id(values, index, used_ids)
        first_warning = len(warnings)
        canonical_type = self._map_type(record["type"], entry_id, warnings)
        for severity, category, message, field in pending:
            self._warning(warnings, entry_id, severity, category, message, field)
        if record["unterminated"]:
            self._warning(
                warnings,
                entry_id,
                "warning",
                "parse-error",
                f"Record starting on line {record['line']} is not closed by ER",
            )

        values["id"] = entry_id
        values["type"] = canonical_type
        values["metadata"] = FormatMetadata(
            source=self.format,
            original_type=record["type"],
            custom_fields=custom,
            field_order=order,
        )
        return self._build(values, warnings, first_warning)

    @staticmethod
    def _derive_id(values: Dict[str, Any], index: int, used_ids: Dict[str, int]) -> str:
        authors = values.get("author") or []
        issued = values.get("issued")
        stem = ""
        if authors and issued is not None and issued.year is not None:
            lead = authors[0].family or authors[0].literal or ""
            stem = re.sub(r"\s+", "", lead).lower()
            stem = f"{stem}{issued.year}" if stem else ""
        if not stem:
            return f"entry{index}"
        seen = used_ids.get(stem, 0)
        used_ids[stem] = seen + 1
        if seen == 0:
            return stem
        return f"{stem}{chr(ord('a') + seen)}" if seen < 26 else f"{stem}-{seen + 1}"


class CSLJSONParser(BaseParser):
    """Parser for CSL-JSON arrays (a single object is accepted too)."""

    format = "csl-json"

    def _load(self, content: str) -> Tuple[Optional[List[Any]], Optional[str]]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            return None, f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            return None, "CSL-JSON must be an array of objects or a single object"
        return data, None

    def parse(self, content: str) -> ConversionResult:
        data, error = self._load(content)
        if data is None:
            warnings = [ConversionWarning("", "error", "parse-error", error or "")]
            return build_result([], warnings, failed=1)

        entries: List[Entry] = []
        warnings: List[ConversionWarning] = []
        failed = 0
        for index, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                failed += 1
                self._warning(
                    warnings, f"item-{index}", "error", "parse-error", f"Item {index} is not a JSON object"
                )
                continue
            entry = self._parse_item(dict(item), index, warnings)
            if entry is None:
                failed += 1
            else:
                entries.append(entry)
        return self._finish(entries, warnings, failed)

    def validate(self, content: str) -> List[ConversionWarning]:
        data, error = self._load(content)
        issues: List[ConversionWarning] = []
        if data is None:
            self._warning(issues, "", "error", "parse-error", error or "")
            return issues
        for index, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                self._warning(issues, f"item-{index}", "error", "parse-error", f"Item {index} is not a JSON object")
                continue
            for name in ("id", "type"):
                if item.get(name) in (None, ""):
                    self._warning(
                        issues,
                        str(item.get("id") or f"item-{index}"),
                        "warning",
                        "validation-error",
                        f"Item {index} is missing '{name}'",
                        name,
                    )
        if not data:
            self._warning(issues, "", "warning", "validation-error", "No entries found")
        return issues

    def _parse_item(
        self, item: Dict[str, Any], index: int, warnings: List[ConversionWarning]
    ) -> Optional[Entry]:
        first_warning = len(warnings)
        item.pop("_formatMetadata", None)
        entry_id = item.get("id")
        if entry_id in (None, ""):
            entry_id = f"item-{index}"
            self._warning(
                warnings, entry_id, "warning", "validation-error", f"Item {index} has no 'id'; using '{entry_id}'", "id"
            )
        entry_id = str(entry_id)

        raw_type = item.get("type")
        if raw_type in (None, ""):
            canonical_type = "article"
            self._warning(
                warnings, entry_id, "warning", "validation-error", "Item has no 'type'; using 'article'", "type"
            )
        else:
            canonical_type = self._map_type(str(raw_type), entry_id, warnings)

        item["id"] = entry_id
        item["type"] = canonical_type
        if raw_type not in (None, "") and raw_type != canonical_type:
            item["metadata"] = FormatMetadata(source=self.format, original_type=str(raw_type))
        return self._build(item, warnings, first_warning)


class EndNoteParser(BaseParser):
    """Parser for EndNote XML exports (``<xml><records><record>...``)."""

    format = "endnote"
    RECORD_CHUNK = re.compile(r"<record\b.*?</record>", re.DOTALL)

    CONTRIBUTORS = (
        ("authors", "author"),
        ("secondary-authors", "editor"),
        ("tertiary-authors", "collection-editor"),
        ("subsidiary-authors", "translator"),
        ("translated-authors", "translator"),
    )
    TITLES = (
        ("title", "title"),
        ("secondary-title", "container-title"),
        ("tertiary-title", "collection-title"),
        ("short-title", "title-short"),
    )
    LEAVES = {
        "volume": "volume",
        "number": "issue",
        "pages": "page",
        "edition": "edition",
        "section": "chapter-number",
        "publisher": "publisher",
        "pub-location": "publisher-place",
        "electronic-resource-num": "DOI",
        "doi": "DOI",
        "abstract": "abstract",
        "notes": "note",
        "research-notes": "annote",
        "language": "language",
        "accession-num": "PMID",
        "call-num": "call-number",
        "work-type": "genre",
    }
    BOOKKEEPING = {"database", "source-app", "rec-number", "foreign-keys", "ref-type", "label", "isbn"}
    STRUCTURED = {"contributors", "titles", "periodical", "dates", "urls", "keywords"}

    def _records(self, content: str) -> Tuple[List[ElementTree.Element], List[str]]:
        text = (content or "").lstrip("﻿").strip()
        try:
            root = ElementTree.fromstring(text)
        except ElementTree.ParseError as exc:
            logger.debug("endnote: document is not well formed (%s); parsing records one by one", exc)
        else:
            return list(root.iter("record")), []

        records: List[ElementTree.Element] = []
        problems: List[str] = []
        chunks = self.RECORD_CHUNK.findall(text)
        if not chunks:
            return [], ["Malformed EndNote XML: no readable <record> elements"]
        for number, chunk in enumerate(chunks, start=1):
            try:
                records.append(ElementTree.fromstring(chunk))
            except ElementTree.ParseError as exc:
                problems.append(f"Record {number} is not well-formed XML: {exc}")
        return records, problems

    def parse(self, content: str) -> ConversionResult:
        records, problems = self._records(content)
        entries: List[Entry] = []
        warnings: List[ConversionWarning] = []
        for message in problems:
            self._warning(warnings, "", "error", "parse-error", message)
        failed = len(problems)
        used_ids: Dict[str, int] = {}

        for index, record in enumerate(records, start=1):
            entry = self._parse_record(record, index, used_ids, warnings)
            if entry is None:
                failed += 1
            else:
                entries.append(entry)
        return self._finish(entries, warnings, failed)

    def validate(self, content: str) -> List[ConversionWarning]:
        issues: List[ConversionWarning] = []
        text = (content or "").lstrip("﻿").strip()
        try:
            root = ElementTree.fromstring(text)
        except ElementTree.ParseError as exc:
            self._warning(issues, "", "error", "parse-error", f"Malformed XML: {exc}")
            return issues
        if root.find(".//record") is None:
            self._warning(issues, "", "warning", "validation-error", "No records found")
        return issues

    @staticmethod
    def _text(element: Optional[ElementTree.Element]) -> str:
        if element is None:
            return ""
        return " ".join("".join(element.itertext()).split())

    def _parse_record(
        self,
        record: ElementTree.Element,
        index: int,
        used_ids: Dict[str, int],
        warnings: List[ConversionWarning],
    ) -> Optional[Entry]:
        values: Dict[str, Any] = {}
        custom: Dict[str, Any] = {}
        lost: List[str] = []

        contributors = record.find("contributors")
        for group, field in self.CONTRIBUTORS:
            people = []
            for node in contributors.findall(f"{group}/author") if contributors is not None else []:
                person = parse_name(self._text(node))
                if person is not None:
                    people.append(person)
            if people:
                values.setdefault(field, []).extend(people)

        titles = record.find("titles")
        for tag, field in self.TITLES:
            text = self._text(titles.find(tag)) if titles is not None else ""
            if text:
                values[field] = text
        if "container-title" not in values:
            periodical = self._text(record.find("periodical/full-title"))
            if periodical:
                values["container-title"] = periodical

        issued = self._read_dates(record)
        if issued is not None:
            values["issued"] = issued

        urls = [self._text(node) for node in record.findall("urls/related-urls/url")]
        urls += [self._text(node) for node in record.findall("urls/web-urls/url")]
        urls = [url for url in urls if url]
        if urls:
            values["URL"] = urls[0]

        keywords = [self._text(node) for node in record.findall("keywords/keyword")]
        keywords = [word for word in keywords if word]
        if keywords:
            values["keyword"] = "; ".join(keywords)

        serial = self._text(record.find("isbn"))
        if serial:
            values[classify_serial_number(serial)] = serial

        for child in record:
            tag = child.tag
            if tag in self.STRUCTURED or tag in self.BOOKKEEPING:
                continue
            text = self._text(child)
            if not text:
                continue
            field = self.LEAVES.get(tag)
            if field is None:
                custom[tag] = text
                lost.append(tag)
            elif field not in values:
                values[field] = normalize_pages(text) if field == "page" else text

        label = self._text(record.find("label"))
        entry_id = label or self._derive_id(values, index, used_ids)

        ref_type = record.find("ref-type")
        raw_type = ref_type.get("name") if ref_type is not None else None
        raw_type = raw_type or "Journal Article"

        first_warning = len(warnings)
        canonical_type = self._map_type(raw_type, entry_id, warnings)
        for tag in lost:
            self._warning(
                warnings,
                entry_id,
                "info",
                "field-loss",
                f"Element <{tag}> has no canonical equivalent; kept as metadata",
                tag,
            )

        values["id"] = entry_id
        values["type"] = canonical_type
        values["metadata"] = FormatMetadata(
            source=self.format,
            original_type=raw_type,
            custom_fields=custom,
            raw_entry=ElementTree.tostring(record, encoding="unicode"),
        )
        return self._build(values, warnings, first_warning)

    def _read_dates(self, record: ElementTree.Element):
        year = self._text(record.find("dates/year"))
        pub_date = self._text(record.find("dates/pub-dates/date"))
        issued = parse_date(year) if year else None
        if pub_date:
            detailed = parse_date(pub_date)
            if detailed.date_parts and (issued is None or detailed.year == issued.year):
                return detailed
            if year:
                combined = parse_date(f"{pub_date} {year}")
                if combined.date_parts:
                    return combined
        return issued

    @staticmethod
    def _derive_id(values: Dict[str, Any], index: int, used_ids: Dict[str, int]) -> str:
        word = _first_word(values.get("title", ""))
        issued = values.get("issued")
        if not word:
            return f"record{index}"
        stem = f"{word}{issued.year}" if issued is not None and issued.year is not None else word
        seen = used_ids.get(stem, 0)
        used_ids[stem] = seen + 1
        if seen == 0:
            return stem
        return f"{stem}{chr(ord('a') + seen)}" if seen < 26 else f"{stem}-{seen + 1}"


PARSERS = {
    "bibtex": BibTeXParser,
    "biblatex": BibLaTeXParser,
    "csl-json": CSLJSONParser,
    "ris": RISParser,
    "endnote": EndNoteParser,
}

__all__ = [
    "BaseParser",
    "BibTeXParser",
    "BibLaTeXParser",
    "RISParser",
    "CSLJSONParser",
    "EndNoteParser",
    "PARSERS",
    "classify_serial_number",
    "normalize_pages",
]
