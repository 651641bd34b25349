from __future__ import annotations

import pytest

from jobsweep.companies import clean_company_url, resolve_company


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (
            "https://www.linkedin.com/company/acme?trk=public_jobs_topcard-org-name",
            "https://www.linkedin.com/company/acme",
        ),
        ("https://www.linkedin.com/company/acme", "https://www.linkedin.com/company/acme"),
        ("https://x.example/co?ref=1&trk=abc", "https://x.example/co?ref=1"),
        ("acme.example/li", "acme.example/li"),
        (None, None),
        ("   ", None),
    ],
)
def test_clean_company_url(raw, expected):
    assert clean_company_url(raw) == expected


def test_creates_company_once_per_user_and_name(store):
    first = resolve_company(store, "u1", "Acme", "https://www.linkedin.com/company/acme")
    again = resolve_company(store, "u1", "Acme", "https://www.linkedin.com/company/acme/")
    assert first == again
    assert len(store.load_companies("u1")) == 1


def test_lookup_is_by_exact_name_not_url(store):
    a = resolve_company(store, "u1", "Acme", "https://a.example")
    b = resolve_company(store, "u1", "Acme Ltd", "https://a.example")
    assert a != b


def test_companies_are_per_user(store):
    a = resolve_company(store, "u1", "Acme", None)
    b = resolve_company(store, "u2", "Acme", None)
    assert a != b
    assert store.find_company("u2", "Acme").id == b


def test_unknown_url_is_stored_as_empty_string(store):
    resolve_company(store, "u1", "Acme", None)
    assert store.find_company("u1", "Acme").company_url == ""


def test_empty_name_resolves_to_no_company(store):
    assert resolve_company(store, "u1", "", "https://a.example") is None
    assert store.load_companies("u1") == []
