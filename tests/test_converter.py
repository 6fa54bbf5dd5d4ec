import json

import pytest

from bibconv import converter as converter_module
from bibconv.converter import BibliographyConverter, UnsupportedFormatError
from bibconv.models import ConversionResult, Entry, build_result


def test_supported_formats():
    assert set(converter_module.get_supported_formats()) == {"bibtex", "biblatex", "csl-json", "ris", "endnote"}


def test_bibtex_to_csl_json(sample_bibtex):
    outcome = converter_module.convert(sample_bibtex, "bibtex", "csl-json")

    data = json.loads(outcome.output)
    assert [item["id"] for item in data] == ["smith2020", "knuth1984"]
    assert data[0]["container-title"] == "Journal of Testing"
    assert data[0]["issued"] == {"date-parts": [[2020, 3]]}
    assert data[0]["author"][1] == {"family": "Doe", "given": "Jane"}
    assert "_formatMetadata" not in data[0]
    assert outcome.result.stats.successful == 2
    assert outcome.result.warnings == []


def test_csl_json_round_trip_is_lossless(sample_csl):
    outcome = converter_module.convert(sample_csl, "csl-json", "csl-json")

    assert json.loads(outcome.output) == json.loads(sample_csl)


def test_ris_to_bibtex_keeps_core_fields(sample_ris):
    outcome = converter_module.convert(sample_ris, "ris", "bibtex")

    assert "@article{smith2020," in outcome.output
    assert "author = {Smith, John and Doe, Jane}" in outcome.output
    assert "pages = {100--120}" in outcome.output
    assert "keywords = {testing; software}" in outcome.output
    assert "@book{knuth1984," in outcome.output


def test_endnote_to_ris(sample_endnote):
    outcome = converter_module.convert(sample_endnote, "endnote", "ris")

    lines = outcome.output.splitlines()
    assert lines[0] == "TY  - JOUR"
    assert "AU  - Doe, Jane" in lines
    assert "SP  - 100" in lines


def test_bibtex_survives_a_trip_through_ris(sample_bibtex):
    ris = converter_module.convert(sample_bibtex, "bibtex", "ris").output
    back = converter_module.parse(ris, "ris").entries

    smith = back[0]
    assert smith.title == "A Study of Österreich"
    assert smith.issued.date_parts == [[2020, 3]]
    assert smith.page == "100-120"
    assert smith.doi == "10.1000/xyz123"


def test_type_downgrade_and_encoding_are_reported():
    content = json.dumps([{"id": "d1", "type": "dataset", "title": "数据 survey"}])

    outcome = converter_module.convert(content, "csl-json", "bibtex")

    assert outcome.output.startswith("@misc{d1,")
    found = {(w.category, w.severity) for w in outcome.result.warnings}
    assert ("type-downgrade", "warning") in found
    assert ("encoding-loss", "info") in found
    assert outcome.result.stats.with_warnings == 1


def test_empty_inputs_give_empty_outputs():
    assert converter_module.convert("", "bibtex", "csl-json").output == "[]"
    assert converter_module.convert("[]", "csl-json", "bibtex").output == "\n"
    assert converter_module.convert("[]", "csl-json", "ris").output == "\n"
    empty = converter_module.convert("[]", "csl-json", "endnote")
    assert "<records></records>" in empty.output
    assert empty.result.stats.total == 0


def test_unsupported_formats_fail_before_parsing():
    calls = []

    class RecordingParser:
        def parse(self, content):
            calls.append(content)
            return ConversionResult()

    converter = BibliographyConverter(parsers={"bibtex": RecordingParser()})

    with pytest.raises(UnsupportedFormatError) as excinfo:
        converter.convert("@article{x,}", "bibtex", "word")

    assert excinfo.value.role == "target"
    assert excinfo.value.format == "word"
    assert calls == []

    with pytest.raises(UnsupportedFormatError) as excinfo:
        converter.parse("", "docx")
    assert str(excinfo.value) == "Unsupported source format: docx"


def test_injected_strategies_are_used():
    class FakeParser:
        def parse(self, content):
            entry = Entry(id=content, type="book", title="Fake")
            return build_result([entry], [])

    class FakeExporter:
        def generate(self, entries, options=None):
            return ",".join(entry.id for entry in entries)

    converter = BibliographyConverter(parsers={"fake": FakeParser()}, exporters={"fake": FakeExporter()})

    outcome = converter.convert("abc", "fake", "fake")

    assert outcome.output == "abc"
    assert outcome.result.stats.total == 1
    assert "fake" in converter.supported_formats()


def test_failed_records_are_counted():
    content = "@article{good, title={T}, journal={J}, year={2020}}\n@article{bad, title={Unclosed"

    outcome = converter_module.convert(content, "bibtex", "csl-json")

    assert outcome.result.stats.total == 2
    assert outcome.result.stats.failed == 1
    assert len(json.loads(outcome.output)) == 1


@pytest.mark.parametrize(
    "fixture_name, expected",
    [
        ("sample_csl", "csl-json"),
        ("sample_bibtex", "bibtex"),
        ("sample_ris", "ris"),
        ("sample_endnote", "endnote"),
    ],
)
def test_detect_format_samples(request, fixture_name, expected):
    assert converter_module.detect_format(request.getfixturevalue(fixture_name)) == expected


def test_detect_format_edge_cases():
    assert converter_module.detect_format("@online{x, title={T}}") == "biblatex"
    assert converter_module.detect_format("@book{a, title={A}}\n@dataset{b, title={B}}") == "biblatex"
    assert converter_module.detect_format("just some prose") is None
    assert converter_module.detect_format("") is None
    assert converter_module.detect_format("[]") is None


def test_validate_dispatches_to_parser():
    issues = converter_module.validate("{broken", "csl-json")

    assert issues[0].severity == "error"
    with pytest.raises(UnsupportedFormatError):
        converter_module.validate("", "word")
