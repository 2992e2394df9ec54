"""Tests for search-term expansion."""

from processors.term_expander import expand_terms


def test_lowercases_trims_and_dedupes():
    assert expand_terms(["  CBD ", "cbd", "Cbd"]) == ["cbd"]


def test_parenthetical_yields_inner_and_outer_terms():
    terms = expand_terms(["קנבידיול (CBD)"])
    assert terms[0] == "קנבידיול (cbd)"
    assert "cbd" in terms
    assert "קנבידיול" in terms


def test_dash_and_slash_split():
    terms = expand_terms(["THC - טטרהידרוקנבינול", "indica/sativa"])
    assert {"thc", "טטרהידרוקנבינול", "indica", "sativa"} <= set(terms)


def test_drops_short_and_empty_terms():
    assert expand_terms(["a", "", None, "x/yz"]) == ["x/yz", "yz"]


def test_idempotent_on_nested_shapes():
    raw = ["מירצן (Myrcene) - טרפן/terpene", "a - b/cd", "בטא-קריופילן (BCP)"]
    once = expand_terms(raw)
    assert expand_terms(once) == once
    assert all(len(term) >= 2 for term in once)
