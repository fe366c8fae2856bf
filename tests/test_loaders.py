import json
from pathlib import Path

import pytest

from news_dedup.loaders import (
    CONTENT_PLACEHOLDER,
    DATE_PLACEHOLDER,
    TITLE_PLACEHOLDER,
    load_documents,
    load_raw_documents,
    to_document,
)

FIXTURE = Path(__file__).parent / "fixtures" / "news_small.json"


def test_load_raw_documents_accepts_plain_list(tmp_path):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps([{"title": "A"}]), encoding="utf-8")

    assert load_raw_documents(path) == [{"title": "A"}]


@pytest.mark.parametrize("key", ["documents", "results"])
def test_load_raw_documents_accepts_wrapped_list(tmp_path, key):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps({key: [{"title": "A"}]}), encoding="utf-8")

    assert load_raw_documents(path) == [{"title": "A"}]


def test_load_raw_documents_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raw_documents(tmp_path / "missing.json")


@pytest.mark.parametrize("payload", ["\"x\"", "3", "null"])
def test_load_raw_documents_rejects_scalar_top_level(tmp_path, payload):
    path = tmp_path / "docs.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ValueError, match="Expected a JSON list"):
        load_raw_documents(path)


def test_to_document_cleans_fields():
    doc = to_document({
        "title": "  Un titre\n sur deux lignes ",
        "content": "Premier ; second\t\tparagraphe",
        "source": "RFI",
        "date": "2024-12-14",
    })

    assert doc.title == "Un titre sur deux lignes"
    assert doc.content == "Premier second paragraphe"
    assert doc.source == "RFI"


def test_to_document_uses_field_aliases():
    doc = to_document({
        "headline": "Titre",
        "text": "Corps",
        "website": "Le Monde",
        "published_at": "2024-12-11",
    })

    assert (doc.title, doc.content, doc.source, doc.date) == (
        "Titre", "Corps", "Le Monde", "2024-12-11"
    )


def test_to_document_substitutes_placeholders_and_warns(caplog):
    """A record missing fields is kept with explicit placeholder values."""
    with caplog.at_level("WARNING"):
        doc = to_document({"title": "Sans contenu", "content": "   "})

    assert doc.title == "Sans contenu"
    assert doc.content == CONTENT_PLACEHOLDER
    assert doc.date == DATE_PLACEHOLDER
    assert "no usable content" in caplog.text


def test_load_documents_keeps_every_record():
    docs = load_documents(FIXTURE)

    assert len(docs) == 4
    assert docs[3].title == "Article sans contenu"
    assert docs[3].content == CONTENT_PLACEHOLDER


def test_load_documents_replaces_non_object_records(tmp_path):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps(["not an object"]), encoding="utf-8")

    docs = load_documents(path)

    assert len(docs) == 1
    assert docs[0].title == TITLE_PLACEHOLDER
