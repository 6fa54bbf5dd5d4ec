import pytest

from bibconv.latex import decode_latex, encode_latex, unencodable_characters


@pytest.mark.parametrize(
    "source, expected",
    [
        (r"Schr{\"o}dinger", "Schrödinger"),
        (r"\'{e}t\'e", "été"),
        (r"Fran\c{c}ois", "François"),
        (r"na\"{\i}ve", "naïve"),
        (r"Stra\ss{}e", "Straße"),
        (r"\emph{bold} move", "bold move"),
        ("pages 10--20", "pages 10–20"),
        (r"50\% \& more", "50% & more"),
        ("a~b", "a b"),
        (r"\textasciitilde", "~"),
        ("plain text", "plain text"),
    ],
)
def test_decode_latex(source, expected):
    assert decode_latex(source) == expected


def test_grouping_braces_can_be_kept():
    assert decode_latex(r"The {TeX}book of {\'e}", strip_braces=False) == "The {TeX}book of {é}"


def test_encode_accents_and_specials():
    assert encode_latex("é") == r"{\'e}"
    assert encode_latex("ç") == r"{\c{c}}"
    assert encode_latex("Straße") == r"Stra{\ss}e"
    assert encode_latex("50% & more") == r"50\% \& more"


def test_encoded_text_decodes_back():
    text = "Zoë Müller and Łukasz"

    assert decode_latex(encode_latex(text)) == text


def test_characters_without_latex_form_are_reported():
    assert encode_latex("中文") == "中文"
    assert unencodable_characters("中文 é 中") == ["中", "文"]
    assert unencodable_characters("plain") == []


def test_backslash_survives_encoding():
    assert encode_latex("a\\b") == r"a{\textbackslash}b"
    assert decode_latex(encode_latex("a\\b")) == "a\\b"
    assert decode_latex(encode_latex(r"C:\Users\new")) == r"C:\Users\new"


def test_literal_braces_are_escaped():
    assert encode_latex("{") == r"\{"
    assert encode_latex("Set {x | x > 0") == r"Set \{x | x > 0"
    assert decode_latex(r"Set \{x | x > 0") == "Set {x | x > 0"
