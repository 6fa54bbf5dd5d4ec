import pytest

from bibconv.entry_types import ITEM_TYPES, TYPE_MAPPINGS, map_type_from_format, map_type_to_format
from bibconv.fields import field_from_tag, get_tag, get_transform, has_tag


def test_every_mapped_type_is_a_known_item_type():
    assert {row.canonical for row in TYPE_MAPPINGS} <= ITEM_TYPES


@pytest.mark.parametrize(
    "canonical, target, expected",
    [
        ("article-journal", "bibtex", ("article", False)),
        ("chapter", "ris", ("CHAP", False)),
        ("thesis", "endnote", ("Thesis", False)),
        ("dataset", "bibtex", ("misc", True)),
        ("dataset", "biblatex", ("dataset", False)),
        ("map", "biblatex", ("misc", True)),
        ("figure", "ris", ("GEN", True)),
        ("book", "csl-json", ("book", False)),
    ],
)
def test_map_type_to_format(canonical, target, expected):
    assert map_type_to_format(canonical, target) == expected


@pytest.mark.parametrize(
    "format_type, source, expected",
    [
        ("phdthesis", "bibtex", ("thesis", False)),
        ("ARTICLE", "bibtex", ("article-journal", False)),
        ("online", "biblatex", ("webpage", False)),
        ("JOUR", "ris", ("article-journal", False)),
        ("journal article", "endnote", ("article-journal", False)),
        ("legal-case", "csl-json", ("legal_case", False)),
        ("mystery", "bibtex", ("article", True)),
        ("XYZ", "ris", ("article", True)),
    ],
)
def test_map_type_from_format(format_type, source, expected):
    assert map_type_from_format(format_type, source) == expected


def test_unknown_format_name_is_rejected():
    with pytest.raises(ValueError):
        map_type_to_format("book", "word")
    with pytest.raises(ValueError):
        map_type_from_format("book", "word")


def test_type_specific_tags():
    assert get_tag("container-title", "bibtex") == "journal"
    assert get_tag("container-title", "bibtex", "inproceedings") == "booktitle"
    assert get_tag("publisher", "bibtex", "phdthesis") == "school"
    assert get_tag("container-title", "biblatex") == "journaltitle"
    assert get_tag("publisher", "biblatex", "report") == "institution"


def test_tag_fallbacks():
    assert get_tag("medium", "ris") == "M1"
    assert get_tag("call-number", "bibtex") == "call-number"
    assert get_tag("event-date", "ris") == "EVENT-DATE"
    assert get_tag("title", "csl-json") == "title"
    assert has_tag("title", "ris")
    assert not has_tag("call-number", "bibtex")


def test_reverse_lookup():
    assert field_from_tag("booktitle", "bibtex") == "container-title"
    assert field_from_tag("JOURNALTITLE", "biblatex") == "container-title"
    assert field_from_tag("t1", "ris") == "title"
    assert field_from_tag("secondary-title", "endnote") == "container-title"
    assert field_from_tag("mood", "bibtex") is None


def test_transforms():
    assert get_transform("author") == "name"
    assert get_transform("issued") == "date"
    assert get_transform("page") == "page-range"
    assert get_transform("title") is None
