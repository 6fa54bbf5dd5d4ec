import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import pytest

from bibconv.models import Entry


SAMPLE_BIBTEX = r"""% exported from a reference manager
@string{jnl = "Journal of Testing"}

@article{smith2020,
  author = {Smith, John and Doe, Jane},
  title = {A Study of {\"O}sterreich},
  journal = jnl,
  year = 2020,
  month = mar,
  volume = {12},
  number = {3},
  pages = {100--120},
  doi = {10.1000/xyz123},
  note = {First \& foremost}
}

@book{knuth1984,
  author = {Knuth, Donald E.},
  title = {The {TeX}book},
  publisher = {Addison-Wesley},
  year = {1984}
}
"""

SAMPLE_RIS = """TY  - JOUR
AU  - Smith, John
AU  - Doe, Jane
TI  - A Study of Testing
JO  - Journal of Testing
PY  - 2020
DA  - 2020/03/15
VL  - 12
IS  - 3
SP  - 100
EP  - 120
DO  - 10.1000/xyz123
KW  - testing
KW  - software
ER  -

TY  - BOOK
AU  - Knuth, Donald E.
TI  - The TeXbook
PB  - Addison-Wesley
PY  - 1984
ER  -
"""

SAMPLE_CSL = """[
  {
    "id": "smith2020",
    "type": "article-journal",
    "title": "A Study of Testing",
    "author": [{"family": "Smith", "given": "John"}],
    "container-title": "Journal of Testing",
    "issued": {"date-parts": [[2020, 3]]},
    "volume": "12",
    "page": "100-120",
    "DOI": "10.1000/xyz123"
  }
]"""

SAMPLE_ENDNOTE = """<?xml version="1.0" encoding="UTF-8"?>
<xml>
  <records>
    <record>
      <ref-type name="Journal Article">17</ref-type>
      <contributors>
        <authors>
          <author>Smith, John</author>
          <author>Doe, Jane</author>
        </authors>
      </contributors>
      <titles>
        <title>A Study of Testing</title>
        <secondary-title>Journal of Testing</secondary-title>
      </titles>
      <dates>
        <year>2020</year>
      </dates>
      <volume>12</volume>
      <pages>100-120</pages>
      <electronic-resource-num>10.1000/xyz123</electronic-resource-num>
      <label>smith2020</label>
    </record>
  </records>
</xml>
"""


@pytest.fixture()
def sample_bibtex() -> str:
    return SAMPLE_BIBTEX


@pytest.fixture()
def sample_ris() -> str:
    return SAMPLE_RIS


@pytest.fixture()
def sample_csl() -> str:
    return SAMPLE_CSL


@pytest.fixture()
def sample_endnote() -> str:
    return SAMPLE_ENDNOTE


@pytest.fixture()
def journal_entry() -> Entry:
    """A fully populated journal article built directly in the canonical model."""

    return Entry.from_dict(
        {
            "id": "smith2020",
            "type": "article-journal",
            "title": "A Study",
            "author": [{"family": "Smith", "given": "John"}],
            "container-title": "Journal of Testing",
            "issued": {"date-parts": [[2020, 3]]},
            "page": "100-120",
            "DOI": "10.1000/xyz123",
        }
    )


@pytest.fixture()
def library():
    """A small set of entries for filtering, sorting and merging."""

    return [
        Entry.from_dict(
            {
                "id": "knuth1984",
                "type": "book",
                "title": "The TeXbook",
                "author": [{"family": "Knuth", "given": "Donald E."}],
                "publisher": "Addison-Wesley",
                "issued": {"date-parts": [[1984]]},
                "keyword": "typesetting; tex",
            }
        ),
        Entry.from_dict(
            {
                "id": "lamport1994",
                "type": "book",
                "title": "LaTeX: A Document Preparation System",
                "author": [{"family": "Lamport", "given": "Leslie"}],
                "publisher": "Addison-Wesley",
                "issued": {"date-parts": [[1994]]},
                "keyword": "typesetting; latex",
            }
        ),
        Entry.from_dict(
            {
                "id": "alpha2010",
                "type": "article-journal",
                "title": "Alpha",
                "author": [{"family": "Zimmer", "given": "Anna"}],
                "container-title": "Journal of Letters",
                "issued": {"date-parts": [[2010, 6]]},
                "DOI": "10.1/ABC",
            }
        ),
    ]
