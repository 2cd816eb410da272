"""
Shared fixtures for the termtree test suite.

The diamond vocabulary used throughout:

    A(1)
    ├── B(2)
    │   └── D(4)
    └── C(3)
        └── D(4)
"""

import json

import pytest

from termtree.core.models import TermRecord
from termtree.core.term_store import TermStore

VID = 7


def term(id, parents=(), name=None, vid=VID, **attrs):
    """Build a TermRecord the way the persistence layer would hand it over."""
    attrs.setdefault("name", name or f"term-{id}")
    return TermRecord(id=id, vocabulary_id=vid, parent_ids=list(parents), attributes=attrs)


def shape(nodes):
    """(name, depth) pairs, the easiest thing to compare trees by."""
    return [(n.attributes["name"], n.depth) for n in nodes]


@pytest.fixture
def chain_terms():
    return [term(1, [], "A"), term(2, [1], "B"), term(3, [2], "C")]


@pytest.fixture
def diamond_terms():
    return [term(1, [], "A"), term(2, [1], "B"), term(3, [1], "C"), term(4, [2, 3], "D")]


@pytest.fixture
def vocab_rows():
    return [
        {"id": 1, "name": "Science", "parent_ids": [], "pos": 0, "status": 1},
        {"id": 3, "name": "Chemistry", "parent_ids": [1], "pos": 2, "status": 1},
        {"id": 2, "name": "Biology", "parent_ids": [1], "pos": 1, "status": 0},
        {"id": 4, "name": "Biochemistry", "parent_ids": [2, 3], "pos": 3, "status": 1},
        {"id": 5, "name": "Arts", "parent_ids": [], "pos": 4, "status": 1},
    ]


@pytest.fixture
def vocab_dir(tmp_path, vocab_rows):
    d = tmp_path / "vocabularies"
    d.mkdir()
    doc = {"vocabulary": {"id": VID, "name": "Topics"}, "terms": vocab_rows}
    (d / "topics.json").write_text(json.dumps(doc), encoding="utf-8")
    return d


@pytest.fixture
def store(vocab_dir):
    s = TermStore(vocab_dir)
    s.load_all_from_dir()
    return s
