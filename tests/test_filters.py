from __future__ import annotations

from jobsweep.filters import find_unwanted_keyword, normalize_keywords

from tests.conftest import make_listing


def test_normalize_keywords():
    assert normalize_keywords(["  Marketing ", "", "SALES", "sales", "   "]) == ["marketing", "sales"]
    assert normalize_keywords(None) == []


def test_no_keywords_means_no_block():
    assert find_unwanted_keyword(make_listing(), []) is None


def test_matches_company_name_case_insensitively():
    listing = make_listing(company_name="Acme Marketing")
    assert find_unwanted_keyword(listing, ["marketing"]) == "marketing"


def test_matches_title_and_summary():
    assert find_unwanted_keyword(make_listing(title="Sales Director"), ["sales"]) == "sales"
    assert find_unwanted_keyword(make_listing(summary="Heavy TRAVEL required"), ["travel"]) == "travel"


def test_returns_first_keyword_in_list_order():
    listing = make_listing(title="Crypto Sales Lead", summary="web3")
    assert find_unwanted_keyword(listing, ["web3", "sales"]) == "web3"


def test_no_match_lets_listing_through():
    assert find_unwanted_keyword(make_listing(), ["gambling", "defence"]) is None


def test_missing_fields_are_treated_as_empty():
    listing = make_listing(summary=None, company_name=None)
    assert find_unwanted_keyword(listing, ["acme"]) is None
