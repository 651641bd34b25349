from __future__ import annotations

import csv
from datetime import timedelta

import pytest

from jobsweep.models import CompanyRecord, JobStatus, UserKeywordPreferences
from jobsweep.store import CsvStore, StoreError

from tests.conftest import NOW, make_job, make_search


def test_tables_created_with_headers(tmp_path):
    store = CsvStore(tmp_path / "fresh")
    store.ensure_tables()
    for path in (store.searches_csv, store.profiles_csv, store.companies_csv, store.jobs_csv, store.api_calls_csv):
        assert path.exists()
        assert path.read_text(encoding="utf-8").strip()


def test_only_active_searches_are_loaded(store):
    active = store.add_search(make_search(experience_level=["Director", "Executive"]))
    store.add_search(make_search(is_active=False))
    loaded = store.load_active_searches()
    assert [s.id for s in loaded] == [active.id]
    assert loaded[0].experience_level == ["Director", "Executive"]
    assert loaded[0].last_run_at is None


def test_mark_searches_run(store):
    a = store.add_search(make_search())
    b = store.add_search(make_search())
    assert store.mark_searches_run([a.id], NOW) == 1
    stamped = {s.id: s.last_run_at for s in store.load_active_searches()}
    assert stamped[a.id] == NOW
    assert stamped[b.id] is None


def test_profiles_round_trip_and_upsert(store):
    store.save_profile(UserKeywordPreferences("u1", ["python"], ["marketing", "sales"]))
    store.save_profile(UserKeywordPreferences("u2", [], ["crypto"]))
    store.save_profile(UserKeywordPreferences("u1", [], ["gambling"]))
    prefs = store.load_keyword_preferences(["u1", "u3"])
    assert set(prefs) == {"u1"}
    assert prefs["u1"].unwanted_keywords == ["gambling"]


def test_job_fields_survive_storage(store):
    job = make_job(
        status=JobStatus.REJECTED,
        application_date=NOW - timedelta(days=8),
        job_match_rate=72,
        experience_match_rate=64.5,
        tailored_covering_letter='Dear team,\n\nI said "hello", then left.',
        salary_expectation=90000,
    )
    store.insert_job(job)
    loaded = store.get_job(job.id)
    assert loaded.status is JobStatus.REJECTED
    assert loaded.application_date == job.application_date
    assert loaded.job_match_rate == 72
    assert loaded.experience_match_rate == 64.5
    assert loaded.tailored_covering_letter == job.tailored_covering_letter
    assert loaded.salary_expectation == 90000
    assert loaded.prioritisation_score is None
    assert loaded.is_live is True


def test_update_job_status_changes_only_status(store):
    job = store.insert_job(make_job(status=JobStatus.CLOSED, job_match_rate=50))
    assert store.update_job_status(job.id, JobStatus.BOOKMARKED) is True
    loaded = store.get_job(job.id)
    assert loaded.status is JobStatus.BOOKMARKED
    assert loaded.job_match_rate == 50
    assert loaded.title == job.title
    assert store.update_job_status("missing", JobStatus.BOOKMARKED) is False


def test_jobs_and_companies_are_scoped_per_user(store):
    store.insert_job(make_job("u1"))
    store.insert_job(make_job("u2"))
    store.insert_company(CompanyRecord(id="c1", user_id="u1", name="Acme", cultural_match_rate=70))
    assert len(store.load_jobs("u1")) == 1
    assert store.load_companies("u1")[0].cultural_match_rate == 70
    assert store.load_companies("u2") == []
    assert store.find_company("u2", "Acme") is None


def test_api_call_log(store):
    store.log_api_call(service="brightdata", endpoint="https://api", status_code=502, duration_ms=1200, error="boom")
    (row,) = store.load_api_calls()
    assert row["service"] == "brightdata"
    assert row["status_code"] == "502"
    assert row["error"] == "boom"


def _edit_cell(path, row_id, column, value):
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        headers = reader.fieldnames
        rows = list(reader)
    for r in rows:
        if r["id"] == row_id:
            r[column] = value
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=headers)
        w.writeheader()
        w.writerows(rows)


@pytest.mark.parametrize(
    ("column", "value"),
    [("status", "Followed Up"), ("job_match_rate", "N/A"), ("application_date", "last tuesday")],
)
def test_hand_edited_job_row_raises_store_error(store, column, value):
    job = store.insert_job(make_job())
    _edit_cell(store.jobs_csv, job.id, column, value)

    with pytest.raises(StoreError, match=f"{job.id} in jobs.csv"):
        store.load_jobs("user-1")
    with pytest.raises(StoreError):
        store.get_job(job.id)


def test_hand_edited_company_and_search_rows_raise_store_error(store):
    store.insert_company(CompanyRecord(id="c1", user_id="u1", name="Acme"))
    search = store.add_search(make_search())
    _edit_cell(store.companies_csv, "c1", "cultural_match_rate", "high")
    _edit_cell(store.searches_csv, search.id, "last_run_at", "yesterday")

    with pytest.raises(StoreError, match="companies.csv"):
        store.load_companies("u1")
    with pytest.raises(StoreError, match="companies.csv"):
        store.find_company("u1", "Acme")
    with pytest.raises(StoreError, match="searches.csv"):
        store.load_active_searches()
