"""Translate between LaTeX markup in BibTeX values and plain Unicode text."""
from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional

# accent command -> combining mark
ACCENTS: Dict[str, str] = {
    "'": "\u0301",
    "`": "\u0300",
    "^": "\u0302",
    '"': "\u0308",
    "~": "\u0303",
    "=": "\u0304",
    ".": "\u0307",
    "u": "\u0306",
    "v": "\u030c",
    "H": "\u030b",
    "c": "\u0327",
    "k": "\u0328",
    "r": "\u030a",
    "d": "\u0323",
    "b": "\u0331",
}

SYMBOLS: Dict[str, str] = {
    "ss": "ß",
    "ae": "æ",
    "AE": "Æ",
    "oe": "œ",
    "OE": "Œ",
    "o": "ø",
    "O": "Ø",
    "aa": "å",
    "AA": "Å",
    "l": "ł",
    "L": "Ł",
    "i": "ı",
    "j": "ȷ",
    "textcopyright": "©",
    "copyright": "©",
    "textregistered": "®",
    "texttrademark": "™",
    "textendash": "–",
    "textemdash": "—",
    "ldots": "…",
    "dots": "…",
    "textellipsis": "…",
    "dag": "†",
    "ddag": "‡",
    "S": "§",
    "P": "¶",
    "pounds": "£",
    "euro": "€",
    "textdegree": "°",
    "textquoteleft": "‘",
    "textquoteright": "’",
    "textquotedblleft": "“",
    "textquotedblright": "”",
    "guillemotleft": "«",
    "guillemotright": "»",
    "textasciitilde": "~",
    "textbackslash": "\\",
    "alpha": "α",
    "beta": "β",
    "gamma": "γ",
    "delta": "δ",
    "epsilon": "ε",
    "lambda": "λ",
    "mu": "μ",
    "pi": "π",
    "sigma": "σ",
    "omega": "ω",
}

SPECIAL_CHARACTERS = "&%$#_{}"

_MARKS = {mark: command for command, mark in ACCENTS.items()}

_ENCODE_SYMBOLS: Dict[str, str] = {}
for _name, _char in SYMBOLS.items():
    _ENCODE_SYMBOLS.setdefault(_char, "{\\%s}" % _name)
_ENCODE_SYMBOLS.update(
    {
        "–": "--",
        "—": "---",
        "“": "``",
        "”": "''",
        "~": "{\\textasciitilde}",
        "\\": "{\\textbackslash}",
    }
)

_FORMATTING = re.compile(
    r"\\(?:emph|textit|textbf|textsc|textrm|texttt|textsf|textup|textnormal|mbox|url)\s*(?=\{)"
)
_SYMBOL_ACCENT = re.compile(r"\\([\'`^\"~=.])\s*(?:\{\s*(\\?[A-Za-z])\s*\}|(\\?[A-Za-z]))")
_LETTER_ACCENT = re.compile(r"\\([uvHckrdb])(?:\s*\{\s*(\\?[A-Za-z])\s*\}|\s+([A-Za-z]))")
_SYMBOL = re.compile(r"\\([A-Za-z]+)(?![A-Za-z])(?:\{\}|[ \t]*)")
_ESCAPED = re.compile(r"\\([&%$#_{}])")
_BRACE = re.compile(r"(?<!\\)[{}]")
_BACKSLASH = re.compile(r"\\textbackslash(?![A-Za-z])(?:\{\})?")
# private-use stand-in so a decoded backslash never starts a new command
_BACKSLASH_MARK = "\ue000"


def _accent(match: "re.Match[str]") -> str:
    base = match.group(2) or match.group(3)
    if base.startswith("\\"):
        base = base[1:]
    return unicodedata.normalize("NFC", base + ACCENTS[match.group(1)])


def _symbol(match: "re.Match[str]") -> str:
    replacement = SYMBOLS.get(match.group(1))
    return match.group(0) if replacement is None else replacement


def decode_latex(text: str, strip_braces: bool = True) -> str:
    """Return ``text`` with LaTeX accents, symbols and dashes decoded.

    Grouping braces are removed unless ``strip_braces`` is false.
    """

    if not text or ("\\" not in text and "{" not in text and "-" not in text
                    and "~" not in text and "`" not in text and "'" not in text):
        return text
    value = _BACKSLASH.sub(_BACKSLASH_MARK, text)
    value = _FORMATTING.sub("", value)
    value = _SYMBOL_ACCENT.sub(_accent, value)
    value = _LETTER_ACCENT.sub(_accent, value)
    value = re.sub(r"(?<!\\)~", " ", value)
    value = value.replace("---", "—").replace("--", "–")
    value = value.replace("``", "“").replace("''", "”")
    value = _SYMBOL.sub(_symbol, value)
    if strip_braces:
        value = _BRACE.sub("", value)
    value = _ESCAPED.sub(r"\1", value)
    return value.replace(_BACKSLASH_MARK, "\\")


def _encode_char(char: str) -> Optional[str]:
    if char in SPECIAL_CHARACTERS:
        return "\\" + char
    if char in _ENCODE_SYMBOLS:
        return _ENCODE_SYMBOLS[char]
    if ord(char) < 128:
        return char
    decomposed = unicodedata.normalize("NFD", char)
    base, marks = decomposed[0], decomposed[1:]
    command = _MARKS.get(marks)
    if command is None or ord(base) >= 128:
        return None
    if base in "ij" and not command.isalpha():
        base = "\\" + base
    if command.isalpha():
        return "{\\%s{%s}}" % (command, base)
    return "{\\%s%s}" % (command, base)


def encode_latex(text: str) -> str:
    """Escape LaTeX specials and write accented letters as accent commands.

    Characters without a LaTeX spelling are left as UTF-8.
    """

    if not text:
        return text
    pieces = []
    for char in text:
        encoded = _encode_char(char)
        pieces.append(char if encoded is None else encoded)
    return "".join(pieces)


def unencodable_characters(text: str) -> List[str]:
    """Characters ``encode_latex`` has to leave as raw UTF-8, in order of appearance."""

    found: List[str] = []
    for char in text or "":
        if _encode_char(char) is None and char not in found:
            found.append(char)
    return found
