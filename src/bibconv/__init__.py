"""Bibliography conversion through a canonical CSL-JSON entry model."""

from .converter import (
    BibliographyConverter,
    UnsupportedFormatError,
    convert,
    detect_format,
    generate,
    get_supported_formats,
    parse,
    validate,
)
from .crud import (
    create_entry,
    delete_entries,
    filter_entries,
    merge_entries,
    read_entries,
    sort_entries,
    update_entry,
)
from .models import (
    ConversionResult,
    ConversionStats,
    ConversionWarning,
    ConvertOutcome,
    DateSpec,
    Entry,
    FormatMetadata,
    GeneratorOptions,
    Person,
)

__all__ = [
    "BibliographyConverter",
    "UnsupportedFormatError",
    "convert",
    "detect_format",
    "generate",
    "get_supported_formats",
    "parse",
    "validate",
    "create_entry",
    "delete_entries",
    "filter_entries",
    "merge_entries",
    "read_entries",
    "sort_entries",
    "update_entry",
    "ConversionResult",
    "ConversionStats",
    "ConversionWarning",
    "ConvertOutcome",
    "DateSpec",
    "Entry",
    "FormatMetadata",
    "GeneratorOptions",
    "Person",
]
