import pytest
from pydantic import ValidationError

from bibconv.dates import (
    month_number,
    parse_date,
    parse_split_date,
    to_iso,
    to_ris_slash,
    to_split_fields,
)
from bibconv.models import DateSpec


@pytest.mark.parametrize(
    "text, parts",
    [
        ("2024", [[2024]]),
        ("2024-03-15", [[2024, 3, 15]]),
        ("2024/12", [[2024, 12]]),
        ("2024/03/05", [[2024, 3, 5]]),
        ("15 March 2024", [[2024, 3, 15]]),
        ("March 15, 2024", [[2024, 3, 15]]),
        ("Sep. 2019", [[2019, 9]]),
    ],
)
def test_parse_date_formats(text, parts):
    assert parse_date(text).date_parts == parts


def test_year_range_is_split_on_slash():
    date = parse_date("2020/2021")

    assert date.is_range
    assert date.start == [2020]
    assert date.end == [2021]
    assert to_iso(date) == "2020/2021"


def test_season_and_circa():
    spring = parse_date("Spring 2024")
    assert spring.date_parts == [[2024]]
    assert spring.season == 1

    old = parse_date("circa 1850")
    assert old.circa is True
    assert old.year == 1850


def test_unparseable_text_is_kept_raw():
    date = parse_date("in press")

    assert date.date_parts is None
    assert date.raw == "in press"
    assert to_iso(date) == "in press"


def test_empty_text_gives_empty_date():
    assert parse_date("") == DateSpec()
    assert parse_date(None) == DateSpec()


def test_split_fields_from_bibtex():
    assert parse_split_date("2020", "mar", "5").date_parts == [[2020, 3, 5]]
    assert parse_split_date("2020", "March").date_parts == [[2020, 3]]
    assert parse_split_date("forthcoming").raw == "forthcoming"
    assert parse_split_date("") is None


def test_serializers():
    date = DateSpec(date_parts=[[2024, 3, 5]])

    assert to_iso(date) == "2024-03-05"
    assert to_ris_slash(date) == "2024/03/05"
    assert to_split_fields(date) == ("2024", "mar", "05")
    assert to_split_fields(DateSpec(raw="n.d.")) == ("n.d.", "", "")
    assert to_iso(None) == ""


def test_month_number_accepts_names_and_numbers():
    assert month_number("Sept.") == 9
    assert month_number("12") == 12
    assert month_number("smarch") is None


def test_date_parts_shape_is_enforced():
    with pytest.raises(ValidationError):
        DateSpec(date_parts=[[2020, 1, 1, 1]])
    with pytest.raises(ValidationError):
        DateSpec(date_parts=[[2020], [2021], [2022]])


def test_month_range_across_slash():
    date = parse_date("2024-03/2024-05")

    assert date.date_parts == [[2024, 3], [2024, 5]]
    assert to_iso(date) == "2024-03/2024-05"


def test_slash_text_that_is_no_date_stays_raw():
    date = parse_date("2024/05/2025")

    assert date.date_parts is None
    assert date.raw == "2024/05/2025"
