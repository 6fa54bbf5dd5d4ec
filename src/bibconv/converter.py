"""Hub that dispatches parsing and generation by format name."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .exporters import EXPORTERS
from .models import ConversionResult, ConversionWarning, ConvertOutcome, Entry, build_result
from .parsers import PARSERS

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("bibtex", "biblatex", "csl-json", "ris", "endnote")
BIBLATEX_ONLY_TYPES = {"dataset", "software", "online", "patent"}

_BIB_ENTRY = re.compile(r"@(\w+)\s*\{")
_RIS_START = re.compile(r"^TY\s+-\s+", re.MULTILINE)


class UnsupportedFormatError(ValueError):
    """Raised when a format name is not one the converter knows."""

    def __init__(self, format_name: str, role: str):
        self.format = format_name
        self.role = role
        super().__init__(f"Unsupported {role} format: {format_name}")


class Parser(Protocol):
    def parse(self, content: str) -> ConversionResult:
        ...


class Exporter(Protocol):
    def generate(self, entries: List[Entry], options: Any = None) -> str:
        ...


def default_parsers() -> Dict[str, Parser]:
    return {name: factory() for name, factory in PARSERS.items()}


def default_exporters() -> Dict[str, Exporter]:
    return {name: factory() for name, factory in EXPORTERS.items()}


class BibliographyConverter:
    """Parse and generate through the canonical entry model.

    ``parsers`` and ``exporters`` override the built-in strategy for the
    format names they contain, which is how tests substitute fakes.
    """

    def __init__(
        self,
        parsers: Optional[Mapping[str, Parser]] = None,
        exporters: Optional[Mapping[str, Exporter]] = None,
    ):
        self.parsers: Dict[str, Parser] = {**default_parsers(), **dict(parsers or {})}
        self.exporters: Dict[str, Exporter] = {**default_exporters(), **dict(exporters or {})}

    def _parser(self, format_name: str) -> Parser:
        parser = self.parsers.get(format_name)
        if parser is None:
            raise UnsupportedFormatError(format_name, "source")
        return parser

    def _exporter(self, format_name: str) -> Exporter:
        exporter = self.exporters.get(format_name)
        if exporter is None:
            raise UnsupportedFormatError(format_name, "target")
        return exporter

    def supported_formats(self) -> List[str]:
        return [name for name in self.parsers if name in self.exporters]

    def parse(self, content: str, format_name: str) -> ConversionResult:
        return self._parser(format_name).parse(content)

    def generate(self, entries: List[Entry], format_name: str, options: Any = None) -> str:
        return self._exporter(format_name).generate(list(entries), options)

    def convert(
        self, content: str, from_format: str, to_format: str, options: Any = None
    ) -> ConvertOutcome:
        parser = self._parser(from_format)
        exporter = self._exporter(to_format)
        parsed = parser.parse(content)
        output = exporter.generate(list(parsed.entries), options)

        warnings = list(parsed.warnings)
        audit = getattr(exporter, "audit", None)
        if audit is not None:
            warnings.extend(audit(parsed.entries))
        result = build_result(parsed.entries, warnings, parsed.stats.failed)
        logger.debug(
            "converted %s -> %s: %d entries, %d warnings",
            from_format,
            to_format,
            result.stats.successful,
            len(warnings),
        )
        return ConvertOutcome(output=output, result=result)

    def validate(self, content: str, format_name: str) -> List[ConversionWarning]:
        check = getattr(self._parser(format_name), "validate", None)
        if check is None:
            return []
        return list(check(content))

    def detect_format(self, content: str) -> Optional[str]:
        """Guess the format of ``content``; ``None`` when nothing matches."""

        text = (content or "").lstrip("﻿").strip()
        if not text:
            return None

        if text.startswith("[") or (text.startswith("{") and '"type"' in text):
            try:
                data = json.loads(text)
            except ValueError:
                data = None
            first = data[0] if isinstance(data, list) and data else data
            if isinstance(first, dict) and "id" in first and "type" in first:
                return "csl-json"

        kinds = [kind.lower() for kind in _BIB_ENTRY.findall(text)]
        if kinds:
            if any(kind in BIBLATEX_ONLY_TYPES for kind in kinds):
                return "biblatex"
            return "bibtex"

        if _RIS_START.search(text):
            return "ris"

        if text.startswith("<?xml") and "<record>" in text:
            return "endnote"
        return None


_default = BibliographyConverter()


def parse(content: str, format_name: str) -> ConversionResult:
    return _default.parse(content, format_name)


def generate(entries: List[Entry], format_name: str, options: Any = None) -> str:
    return _default.generate(entries, format_name, options)


def convert(content: str, from_format: str, to_format: str, options: Any = None) -> ConvertOutcome:
    return _default.convert(content, from_format, to_format, options)


def validate(content: str, format_name: str) -> List[ConversionWarning]:
    return _default.validate(content, format_name)


def detect_format(content: str) -> Optional[str]:
    return _default.detect_format(content)


def get_supported_formats() -> List[str]:
    return _default.supported_formats()
