"""Tests for fuzzy product search."""

from app.services.search import normalize_query, search_products

CATALOG = [
    {"name": "Kente Stole", "description": "Hand-woven gold and green stole"},
    {"name": "Adinkra Shirt", "description": "Cotton shirt with stamped symbols"},
    {"name": "Shea Butter", "description": "Unrefined butter from Tamale"},
]


def test_normalize_query_strips_punctuation():
    assert normalize_query("  Kente!! Stole?? ") == "kente stole"
    assert normalize_query(None) == ""


def test_empty_query_returns_nothing():
    assert search_products(CATALOG, "") == []
    assert search_products(CATALOG, "!!!") == []


def test_exact_name_ranks_first():
    results = search_products(CATALOG, "kente")
    assert results[0]["name"] == "Kente Stole"


def test_typo_still_matches():
    results = search_products(CATALOG, "adinkr shirt")
    assert [r["name"] for r in results][:1] == ["Adinkra Shirt"]


def test_description_matches():
    results = search_products(CATALOG, "unrefined")
    assert results[0]["name"] == "Shea Butter"


def test_unrelated_query_matches_nothing():
    assert search_products(CATALOG, "zzzzqqqq") == []


def test_works_with_objects():
    class Row:
        def __init__(self, name, description):
            self.name = name
            self.description = description

    rows = [Row("Kente Stole", ""), Row("Shea Butter", "")]
    assert search_products(rows, "shea")[0].name == "Shea Butter"
