import pytest
from pydantic import ValidationError

from bibconv.models import Person
from bibconv.names import parse_name, parse_names, serialize_name, serialize_names


def test_family_first_and_natural_order():
    assert parse_name("Smith, John") == Person(family="Smith", given="John")
    assert parse_name("John Smith") == Person(family="Smith", given="John")


def test_particles_are_kept_with_family_name():
    natural = parse_name("Ludwig van Beethoven")
    inverted = parse_name("van Beethoven, Ludwig")

    for person in (natural, inverted):
        assert person.family == "Beethoven"
        assert person.given == "Ludwig"
        assert person.non_dropping_particle == "van"


def test_suffix_positions():
    bibtex_order = parse_name("King, Jr, Martin Luther")
    trailing = parse_name("Smith, John, Jr.")
    natural = parse_name("Martin Luther King Jr.")

    assert (bibtex_order.family, bibtex_order.given, bibtex_order.suffix) == ("King", "Martin Luther", "Jr")
    assert (trailing.family, trailing.given, trailing.suffix) == ("Smith", "John", "Jr.")
    assert (natural.family, natural.given, natural.suffix) == ("King", "Martin Luther", "Jr.")


def test_braced_name_is_literal():
    person = parse_name("{World Health Organization}")

    assert person.literal == "World Health Organization"
    assert person.family is None


def test_blank_name_is_skipped():
    assert parse_name("   ") is None


def test_parse_names_respects_braces_and_others():
    people = parse_names("{Barnes and Noble} and Smith, John AND Doe, Jane and others")

    assert [person.literal or person.family for person in people] == ["Barnes and Noble", "Smith", "Doe"]


def test_serialize_name_styles():
    person = Person(family="Beethoven", given="Ludwig", non_dropping_particle="van")

    assert serialize_name(person) == "van Beethoven, Ludwig"
    assert serialize_name(person, style="natural") == "Ludwig van Beethoven"
    assert serialize_name(Person(family="King", given="Martin Luther", suffix="Jr")) == "King, Martin Luther, Jr"
    assert serialize_name(Person(literal="NASA")) == "NASA"
    assert serialize_name(Person(family="Plato")) == "Plato"


def test_serialize_names_joins_people():
    people = [Person(family="Smith", given="John"), Person(family="Doe", given="Jane")]

    assert serialize_names(people) == "Smith, John and Doe, Jane"


def test_person_requires_some_name():
    with pytest.raises(ValidationError):
        Person()


def test_unknown_style_is_rejected():
    with pytest.raises(ValueError):
        serialize_name(Person(family="Smith"), style="reverse")
