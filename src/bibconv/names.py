"""Person name parsing and serialization."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern

from .models import Person

PARTICLES = frozenset(
    {
        "von", "van", "de", "di", "del", "della", "da", "le", "la", "el", "al",
        "bin", "ibn", "ter", "op", "aan", "dos", "das", "der", "den", "du",
        "des", "dei", "degli", "zu", "y",
    }
)
SUFFIXES = frozenset({"jr", "sr", "ii", "iii", "iv", "v", "vi", "esq", "phd", "md"})

STYLES = ("family-first", "natural")

_AND = re.compile(r"\s+and\s+", re.IGNORECASE)
_COMMA = re.compile(r",")
_SPACE = re.compile(r"\s+")


def split_top_level(text: str, separator: Pattern[str]) -> List[str]:
    """Split ``text`` on ``separator`` matches that sit outside braces."""

    pieces: List[str] = []
    depth = 0
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif depth == 0:
            match = separator.match(text, index)
            if match and match.end() > index:
                pieces.append(text[start:index])
                start = index = match.end()
                continue
        index += 1
    pieces.append(text[start:])
    return pieces


def _is_particle(word: str) -> bool:
    return bool(word) and word[0].islower() and word.lower() in PARTICLES


def _is_suffix(word: str) -> bool:
    return word.replace(".", "").lower() in SUFFIXES


def _wrapped_in_braces(text: str) -> bool:
    if not (text.startswith("{") and text.endswith("}")):
        return False
    depth = 0
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0 and index < len(text) - 1:
                return False
    return depth == 0


def _split_particles(words: List[str]):
    particles = []
    while len(words) > 1 and _is_particle(words[0]):
        particles.append(words.pop(0))
    return " ".join(particles) or None, " ".join(words) or None


def parse_name(text: str) -> Optional[Person]:
    """Parse one name written as ``{Literal}``, ``Last, First[, Jr]`` or ``First von Last``."""

    value = " ".join(text.split())
    if not value:
        return None
    if _wrapped_in_braces(value):
        return Person(literal=value[1:-1].strip() or value)

    parts = [part.strip() for part in split_top_level(value, _COMMA)]
    if len(parts) > 1:
        suffix = None
        if len(parts) >= 3:
            # "von Last, Jr, First" is the BibTeX order; "Last, First, Jr" is also common
            if _is_suffix(parts[1]) and not _is_suffix(parts[2]):
                suffix, given = parts[1], parts[2]
            else:
                given, suffix = parts[1], ", ".join(parts[2:])
        else:
            given = parts[1]
        words = [word for word in split_top_level(parts[0], _SPACE) if word]
        particle, family = _split_particles(words)
        if not (family or given):
            return None
        return Person(
            family=family,
            given=given or None,
            suffix=suffix or None,
            non_dropping_particle=particle,
        )

    words = [word for word in split_top_level(value, _SPACE) if word]
    suffix = None
    if len(words) > 2 and _is_suffix(words[-1]):
        suffix = words.pop()
    if len(words) == 1:
        return Person(family=words[0], suffix=suffix)

    start = next(
        (index for index in range(1, len(words) - 1) if _is_particle(words[index])),
        None,
    )
    if start is None:
        return Person(family=words[-1], given=" ".join(words[:-1]), suffix=suffix)
    particle, family = _split_particles(words[start:])
    return Person(
        family=family,
        given=" ".join(words[:start]),
        suffix=suffix,
        non_dropping_particle=particle,
    )


def parse_names(text: str, delimiter: str = " and ") -> List[Person]:
    """Split a multi-name string (brace aware) and parse each name."""

    if not text:
        return []
    pattern = _AND if delimiter.strip().lower() == "and" else re.compile(re.escape(delimiter))
    people = []
    for chunk in split_top_level(text, pattern):
        if chunk.strip().lower() == "others":
            continue
        person = parse_name(chunk)
        if person is not None:
            people.append(person)
    return people


def _join(*words: Optional[str]) -> str:
    return " ".join(word for word in words if word)


def serialize_name(person: Person, style: str = "family-first") -> str:
    """Render a name.

    ``family-first`` gives ``von Last, First[, Jr]`` (BibTeX, RIS, EndNote);
    ``natural`` gives ``First von Last[ Jr]``.
    """

    if style not in STYLES:
        raise ValueError(f"Unknown name style: {style}")
    if person.literal:
        return person.literal
    family = _join(person.non_dropping_particle, person.family)
    given = _join(person.given, person.dropping_particle)
    if style == "natural":
        return _join(given, family, person.suffix)
    if family and given:
        text = f"{family}, {given}"
        return f"{text}, {person.suffix}" if person.suffix else text
    return family or given


def serialize_names(persons: Iterable[Person], separator: str = " and ", style: str = "family-first") -> str:
    return separator.join(
        text for text in (serialize_name(person, style) for person in persons) if text
    )
