import json

import pytest

from bibconv.exporters import (
    BibTeXExporter,
    RISExporter,
    to_biblatex,
    to_bibtex,
    to_csl_json,
    to_endnote_xml,
    to_ris,
)
from bibconv.models import Entry, GeneratorOptions
from bibconv.parsers import BibTeXParser


def test_bibtex_output(journal_entry):
    expected = (
        "@article{smith2020,\n"
        "  author = {Smith, John},\n"
        "  title = {A Study},\n"
        "  journal = {Journal of Testing},\n"
        "  year = {2020},\n"
        "  month = mar,\n"
        "  pages = {100--120},\n"
        "  doi = {10.1000/xyz123}\n"
        "}\n"
    )

    assert to_bibtex([journal_entry]) == expected


def test_biblatex_uses_its_own_tags(journal_entry):
    output = to_biblatex([journal_entry])

    assert "journaltitle = {Journal of Testing}" in output


def test_bibtex_encodes_latex_and_braces_organizations():
    entry = Entry.from_dict(
        {
            "id": "who2020",
            "type": "report",
            "title": "Café & Co",
            "author": [{"literal": "World Health Organization"}],
            "publisher": "WHO",
        }
    )

    output = to_bibtex([entry])

    assert output.startswith("@techreport{who2020,")
    assert "author = {{World Health Organization}}" in output
    assert r"title = {Caf{\'e} \& Co}" in output
    assert "institution = {WHO}" in output


def test_ris_output(journal_entry):
    expected = (
        "TY  - JOUR\n"
        "AU  - Smith, John\n"
        "TI  - A Study\n"
        "JO  - Journal of Testing\n"
        "PY  - 2020/03\n"
        "SP  - 100\n"
        "EP  - 120\n"
        "DO  - 10.1000/xyz123\n"
        "ER  - \n"
    )

    assert to_ris([journal_entry]) == expected


def test_ris_splits_keywords():
    entry = Entry.from_dict({"id": "k", "type": "book", "title": "T", "keyword": "alpha; beta, gamma"})

    lines = to_ris([entry]).splitlines()

    assert [line for line in lines if line.startswith("KW")] == ["KW  - alpha", "KW  - beta", "KW  - gamma"]


def test_endnote_output(journal_entry):
    output = to_endnote_xml([journal_entry])

    assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<xml>\n  <records>\n')
    assert '<ref-type name="Journal Article">0</ref-type>' in output
    assert "<author>Smith, John</author>" in output
    assert "<secondary-title>Journal of Testing</secondary-title>" in output
    assert "<year>2020</year>" in output
    assert "<date>2020-03</date>" in output
    assert "<pages>100-120</pages>" in output
    assert "<electronic-resource-num>10.1000/xyz123</electronic-resource-num>" in output
    assert "<label>smith2020</label>" in output


def test_endnote_escapes_markup():
    entry = Entry.from_dict({"id": "x", "type": "book", "title": "Rock & <Roll>"})

    assert "<title>Rock &amp; &lt;Roll&gt;</title>" in to_endnote_xml([entry])


def test_csl_json_output_round_trips(journal_entry):
    data = json.loads(to_csl_json([journal_entry]))

    assert data == [journal_entry.to_csl()]
    assert data[0]["issued"] == {"date-parts": [[2020, 3]]}


def test_empty_outputs():
    assert to_csl_json([]) == "[]"
    assert to_bibtex([]) == "\n"
    assert to_ris([]) == "\n"
    assert to_endnote_xml([]) == (
        '<?xml version="1.0" encoding="UTF-8"?>\n<xml>\n  <records></records>\n</xml>\n'
    )


def test_sort_indent_and_line_endings(journal_entry):
    other = journal_entry.model_copy(update={"id": "abel1999"})

    sorted_output = to_bibtex([journal_entry, other], {"sort": True, "indent": 4})
    assert sorted_output.index("@article{abel1999") < sorted_output.index("@article{smith2020")
    assert "\n    author = {Smith, John}," in sorted_output

    crlf = to_ris([journal_entry], {"lineEnding": "\r\n"})
    assert crlf.endswith("ER  - \r\n")
    assert "\n" not in crlf.replace("\r\n", "")


def test_generator_options_validation():
    assert GeneratorOptions(indent=3).indent == "   "
    with pytest.raises(ValueError):
        GeneratorOptions(line_ending="\r")


def test_bibtex_round_trip_restores_type_and_custom_fields():
    source = "@inbook{k, title={T}, author={Smith, John}, booktitle={B}, year={2000}, mood={happy}}"
    entries = BibTeXParser().parse(source).entries

    plain = to_bibtex(entries)
    with_metadata = to_bibtex(entries, {"include_metadata": True})

    assert plain.startswith("@inbook{k,")
    assert "booktitle = {B}" in plain
    assert "mood" not in plain
    assert "mood = {happy}" in with_metadata


def test_preserve_field_order():
    source = "@article{k, title={T}, author={Smith, John}, journal={J}, year={2020}}"
    entries = BibTeXParser().parse(source).entries

    default = to_bibtex(entries)
    preserved = to_bibtex(entries, {"preserve_field_order": True})

    assert default.index("author =") < default.index("title =")
    assert preserved.index("title =") < preserved.index("author =")


def test_audit_reports_downgrades_and_lost_fields():
    entry = Entry.from_dict(
        {"id": "d", "type": "dataset", "title": "Data", "call-number": "QA76", "archive": "Zenodo"}
    )

    issues = BibTeXExporter().audit([entry])
    categories = {(issue.category, issue.field_name) for issue in issues}

    assert ("type-downgrade", None) in categories
    assert ("field-loss", "call-number") in categories
    assert ("field-loss", "archive") in categories


def test_ris_audit_reports_fields_without_tags():
    entry = Entry.from_dict({"id": "b", "type": "book", "title": "T", "edition": "2"})

    issues = RISExporter().audit([entry])

    assert [(issue.category, issue.field_name) for issue in issues] == [("field-loss", "edition")]


@pytest.mark.parametrize("pages", ["100–110", "100—110", "100 - 110"])
def test_ris_splits_pages_on_any_dash(pages):
    entry = Entry.from_dict({"id": "p", "type": "article-journal", "title": "T", "page": pages})

    lines = to_ris([entry]).splitlines()

    assert "SP  - 100" in lines
    assert "EP  - 110" in lines


def test_unknown_generator_options_are_rejected(journal_entry):
    with pytest.raises(ValueError, match="Unknown generator options: colour"):
        GeneratorOptions.coerce({"indent": 2, "colour": "red"})
    with pytest.raises(ValueError):
        to_bibtex([journal_entry], {"sortt": True})
    assert GeneratorOptions.coerce({"lineEnding": "\r\n"}).line_ending == "\r\n"


def test_audit_reports_truncated_date_ranges():
    entry = Entry.from_dict(
        {"id": "r", "type": "book", "title": "T", "issued": {"date-parts": [[2020], [2021]]}}
    )

    for exporter in (BibTeXExporter(), RISExporter()):
        issues = exporter.audit([entry])
        assert [(issue.category, issue.field_name) for issue in issues] == [("field-loss", "issued")]
        assert "start date" in issues[0].message

    assert "year = {2020}" in to_bibtex([entry])
    assert "PY  - 2020" in to_ris([entry]).splitlines()


def test_escaped_braces_survive_bibtex_round_trip():
    entries = [
        Entry.from_dict({"id": "a", "type": "book", "title": "Set {x | x > 0"}),
        Entry.from_dict({"id": "b", "type": "book", "title": "Closing } only"}),
        Entry.from_dict({"id": "c", "type": "book", "title": r"C:\Users"}),
    ]

    output = to_bibtex(entries)
    result = BibTeXParser().parse(output)

    assert r"title = {Set \{x | x > 0}" in output
    assert [entry.id for entry in result.entries] == ["a", "b", "c"]
    assert [entry.title for entry in result.entries] == ["Set {x | x > 0", "Closing } only", r"C:\Users"]
    assert result.stats.failed == 0
    assert BibTeXParser().validate(output) == []
