"""Command line interface for converting bibliography files."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .converter import (
    BibliographyConverter,
    SUPPORTED_FORMATS,
    UnsupportedFormatError,
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
from .dates import parse_date
from .fields import get_transform
from .models import Entry, GeneratorOptions
from .names import parse_names
from .report import render_report, render_warnings

logger = logging.getLogger(__name__)


def _read(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _write(output: str, destination: Optional[Path]) -> None:
    if destination is None:
        sys.stdout.write(output)
    else:
        destination.write_bytes(output.encode("utf-8"))


def _source_format(converter: BibliographyConverter, text: str, explicit: Optional[str], path: str) -> str:
    if explicit:
        return explicit
    detected = converter.detect_format(text)
    if detected is None:
        raise UnsupportedFormatError("unknown", "source")
    logger.debug("detected %s for %s", detected, path)
    return detected


def _options(args: argparse.Namespace) -> GeneratorOptions:
    return GeneratorOptions(
        indent=" " * args.indent,
        line_ending="\r\n" if args.crlf else "\n",
        sort=args.sort,
        preserve_field_order=args.preserve_field_order,
        include_metadata=args.include_metadata,
    )


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--output", "-o", type=Path, help="Write the result here instead of stdout")
    parser.add_argument("--indent", type=int, default=2, help="Spaces per indentation level")
    parser.add_argument("--sort", action="store_true", help="Sort entries by id before writing")
    parser.add_argument("--crlf", action="store_true", help="Use CRLF line endings")
    parser.add_argument(
        "--preserve-field-order",
        action="store_true",
        help="Keep the field order of the source file where the target format allows it",
    )
    parser.add_argument(
        "--include-metadata",
        action="store_true",
        help="Re-emit source fields that have no canonical equivalent",
    )


def _convert(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    text = _read(args.input)
    source = _source_format(converter, text, args.source_format, args.input)
    outcome = converter.convert(text, source, args.target_format, _options(args))
    _write(outcome.output, args.output)
    if not args.quiet:
        print(render_report(outcome.result), file=sys.stderr)
    return 0


def _validate(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    text = _read(args.input)
    source = _source_format(converter, text, args.source_format, args.input)
    issues = converter.validate(text, source)
    if not issues:
        print(f"{args.input}: no problems found ({source})")
        return 0
    print("\n".join(render_warnings(issues)))
    return 1 if any(issue.severity == "error" for issue in issues) else 0


def _detect(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    detected = converter.detect_format(_read(args.input))
    print(detected or "unknown")
    return 0 if detected else 1


def _filter(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    text = _read(args.input)
    source = _source_format(converter, text, args.source_format, args.input)
    result = converter.parse(text, source)
    entries = filter_entries(
        result.entries,
        id=args.id,
        author=args.author,
        year=args.year,
        type=args.type,
        keyword=args.keyword,
    )
    if args.sort_by:
        entries = sort_entries(entries, by=args.sort_by)
    _write(converter.generate(entries, args.target_format or source, _options(args)), args.output)
    print(f"{len(entries)} of {len(result.entries)} entries matched", file=sys.stderr)
    return 0


def _merge(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    sets = []
    for path in args.inputs:
        text = _read(path)
        source = _source_format(converter, text, args.source_format, path)
        sets.append(converter.parse(text, source).entries)
    merged = merge_entries(sets, dedupe_by=args.dedupe_by)
    _write(converter.generate(merged, args.target_format, _options(args)), args.output)
    total = sum(len(entries) for entries in sets)
    print(f"Merged {total} entries into {len(merged)}", file=sys.stderr)
    return 0


def _load(converter: BibliographyConverter, args: argparse.Namespace) -> Tuple[str, List[Entry]]:
    text = _read(args.input)
    source = _source_format(converter, text, args.source_format, args.input)
    return source, read_entries(text, source)


def _assignments(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Turn ``field=value`` arguments into canonical field values."""

    values: Dict[str, Any] = {}
    for pair in pairs or []:
        key, separator, value = pair.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"expected FIELD=VALUE, got {pair!r}")
        transform = get_transform(key)
        if transform == "name":
            values[key] = parse_names(value)
        elif transform == "date":
            values[key] = parse_date(value)
        else:
            values[key] = value
    return values


def _save(converter: BibliographyConverter, args: argparse.Namespace, entries: List[Entry], source: str) -> None:
    _write(converter.generate(entries, args.target_format or source, _options(args)), args.output)


def _show(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    _, entries = _load(converter, args)
    for entry in entries:
        print(f"{entry.id}\t{entry.type}\t{entry.title or ''}")
    return 0


def _create(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    source, entries = _load(converter, args)
    if any(entry.id == args.id for entry in entries):
        raise ValueError(f"entry {args.id!r} already exists")
    entry = create_entry({**_assignments(args.set), "id": args.id, "type": args.type})
    _save(converter, args, entries + [entry], source)
    return 0


def _update(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    source, entries = _load(converter, args)
    ids = [entry.id for entry in entries]
    if args.id not in ids:
        raise ValueError(f"no entry with id {args.id!r}")
    patch = _assignments(args.set)
    for name in args.unset or []:
        patch[name] = None
    position = ids.index(args.id)
    entries[position] = update_entry(entries[position], patch)
    _save(converter, args, entries, source)
    return 0


def _delete(converter: BibliographyConverter, args: argparse.Namespace) -> int:
    source, entries = _load(converter, args)
    remaining = delete_entries(entries, args.id)
    _save(converter, args, remaining, source)
    print(f"Deleted {len(entries) - len(remaining)} of {len(entries)} entries", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert bibliographies between formats")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug details")
    commands = parser.add_subparsers(dest="command", required=True)
    formats = list(SUPPORTED_FORMATS)

    convert = commands.add_parser("convert", help="Convert a file to another format")
    convert.add_argument("input", help="Input file, or - for stdin")
    convert.add_argument("--to", dest="target_format", required=True, choices=formats)
    convert.add_argument("--from", dest="source_format", choices=formats, help="Detected when omitted")
    convert.add_argument("--quiet", "-q", action="store_true", help="Do not print the conversion report")
    _add_output_arguments(convert)
    convert.set_defaults(handler=_convert)

    validate = commands.add_parser("validate", help="Check a file for structural problems")
    validate.add_argument("input")
    validate.add_argument("--from", dest="source_format", choices=formats)
    validate.set_defaults(handler=_validate)

    detect = commands.add_parser("detect", help="Print the detected format of a file")
    detect.add_argument("input")
    detect.set_defaults(handler=_detect)

    filter_ = commands.add_parser("filter", help="Select entries matching all given criteria")
    filter_.add_argument("input")
    filter_.add_argument("--from", dest="source_format", choices=formats)
    filter_.add_argument("--to", dest="target_format", choices=formats, help="Defaults to the input format")
    filter_.add_argument("--id")
    filter_.add_argument("--author", help="Substring of an author name")
    filter_.add_argument("--year", type=int)
    filter_.add_argument("--type", help="Canonical item type, e.g. article-journal")
    filter_.add_argument("--keyword", help="Substring of the keywords")
    filter_.add_argument("--sort-by", choices=["id", "author", "year"])
    _add_output_arguments(filter_)
    filter_.set_defaults(handler=_filter)

    merge = commands.add_parser("merge", help="Merge several files, dropping duplicates")
    merge.add_argument("inputs", nargs="+")
    merge.add_argument("--from", dest="source_format", choices=formats)
    merge.add_argument("--to", dest="target_format", required=True, choices=formats)
    merge.add_argument("--dedupe-by", choices=["id", "doi"], default="id")
    _add_output_arguments(merge)
    merge.set_defaults(handler=_merge)

    read = commands.add_parser("read", help="List the entries of a file as id, type and title")
    read.add_argument("input")
    read.add_argument("--from", dest="source_format", choices=formats)
    read.set_defaults(handler=_show)

    create = commands.add_parser("create", help="Add a new entry to a file")
    update = commands.add_parser("update", help="Change fields of one entry")
    delete = commands.add_parser("delete", help="Remove entries by id")
    for command in (create, update, delete):
        command.add_argument("input")
        command.add_argument("--from", dest="source_format", choices=formats)
        command.add_argument(
            "--to", dest="target_format", choices=formats, help="Defaults to the input format"
        )
        _add_output_arguments(command)
    create.add_argument("--id", required=True)
    create.add_argument("--type", required=True, help="Canonical item type, e.g. book")
    create.add_argument("--set", action="append", metavar="FIELD=VALUE", help="CSL field value; repeatable")
    create.set_defaults(handler=_create)
    update.add_argument("--id", required=True)
    update.add_argument("--set", action="append", metavar="FIELD=VALUE", help="CSL field value; repeatable")
    update.add_argument("--unset", action="append", metavar="FIELD", help="Clear a field; repeatable")
    update.set_defaults(handler=_update)
    delete.add_argument("--id", action="append", required=True, help="Entry id; repeatable")
    delete.set_defaults(handler=_delete)
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    converter = BibliographyConverter()
    try:
        return args.handler(converter, args)
    except UnsupportedFormatError as exc:
        if exc.format == "unknown":
            print("error: could not detect the input format; pass --from", file=sys.stderr)
        else:
            print(f"error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    raise SystemExit(main())
