"""CSV-backed tables for searches, profiles, companies and jobs, with file locking."""
from __future__ import annotations

import csv
import fcntl
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

from jobsweep.log import get_logger
from jobsweep.models import (
    CompanyRecord,
    JobRecord,
    JobStatus,
    SearchDefinition,
    UserKeywordPreferences,
)

log = get_logger(__name__)

LIST_SEP = "|"

SEARCH_HEADERS: list[str] = [
    "id", "user_id", "label", "keyword", "location", "experience_level",
    "work_model", "job_type", "is_active", "last_run_at", "created_at",
]
PROFILE_HEADERS: list[str] = ["user_id", "wanted_keywords", "unwanted_keywords"]
COMPANY_HEADERS: list[str] = [
    "id", "user_id", "name", "company_url", "cultural_match_rate",
    "cultural_match_insights", "created_at",
]
JOB_HEADERS: list[str] = [
    "id", "user_id", "company_id", "title", "posting_url", "company_name",
    "company_url", "status", "status_reason", "prioritisation_score",
    "experience_match_rate", "experience_match_insights", "job_match_rate",
    "job_match_insights", "job_description", "job_description_full",
    "tailored_covering_letter", "salary_expectation", "application_date",
    "is_live", "created_at", "updated_at",
]
API_CALL_HEADERS: list[str] = [
    "called_at", "service", "endpoint", "method", "status_code",
    "duration_ms", "error",
]


class StoreError(Exception):
    """A table could not be read or written."""


def new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    fcntl.flock(f.fileno(), op)


def _unlock(f) -> None:
    fcntl.flock(f.fileno(), fcntl.LOCK_UN)


# -- cell codecs -------------------------------------------------------------

def _str_or_none(value: str) -> str | None:
    return value if value != "" else None


def _num_or_none(value: str) -> float | int | None:
    if value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return float(value)


def _dt_or_none(value: str) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


def _list(value: str) -> list[str]:
    return [v for v in value.split(LIST_SEP) if v] if value else []


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, JobStatus):
        return value.value
    if isinstance(value, (list, tuple)):
        return LIST_SEP.join(value)
    return str(value)


def _search_from_row(r: dict[str, str]) -> SearchDefinition:
    return SearchDefinition(
        id=r["id"],
        user_id=r["user_id"],
        label=r["label"],
        keyword=r["keyword"],
        location=r["location"],
        experience_level=_list(r["experience_level"]),
        work_model=_list(r["work_model"]),
        job_type=_list(r["job_type"]),
        is_active=_bool(r["is_active"]),
        last_run_at=_dt_or_none(r["last_run_at"]),
        created_at=_dt_or_none(r["created_at"]),
    )


def _company_from_row(r: dict[str, str]) -> CompanyRecord:
    return CompanyRecord(
        id=r["id"],
        user_id=r["user_id"],
        name=r["name"],
        company_url=r["company_url"],
        cultural_match_rate=_num_or_none(r["cultural_match_rate"]),
        cultural_match_insights=_str_or_none(r["cultural_match_insights"]),
        created_at=_dt_or_none(r["created_at"]),
    )


def _job_from_row(r: dict[str, str]) -> JobRecord:
    return JobRecord(
        id=r["id"],
        user_id=r["user_id"],
        company_id=_str_or_none(r["company_id"]),
        title=r["title"],
        posting_url=r["posting_url"],
        company_name=r["company_name"],
        company_url=_str_or_none(r["company_url"]),
        status=JobStatus(r["status"]),
        status_reason=_str_or_none(r["status_reason"]),
        prioritisation_score=_num_or_none(r["prioritisation_score"]),
        experience_match_rate=_num_or_none(r["experience_match_rate"]),
        experience_match_insights=_str_or_none(r["experience_match_insights"]),
        job_match_rate=_num_or_none(r["job_match_rate"]),
        job_match_insights=_str_or_none(r["job_match_insights"]),
        job_description=_str_or_none(r["job_description"]),
        job_description_full=_str_or_none(r["job_description_full"]),
        tailored_covering_letter=_str_or_none(r["tailored_covering_letter"]),
        salary_expectation=_num_or_none(r["salary_expectation"]),
        application_date=_dt_or_none(r["application_date"]),
        is_live=_bool(r["is_live"]),
        created_at=_dt_or_none(r["created_at"]),
        updated_at=_dt_or_none(r["updated_at"]),
    )


def _to_row(obj: Any, headers: list[str]) -> dict[str, str]:
    return {h: _cell(getattr(obj, h)) for h in headers}


def _decode(path: Path, row: dict[str, str], from_row: Callable[[dict[str, str]], Any]) -> Any:
    """Build a record from *row*; a bad or missing cell becomes a ``StoreError``."""
    try:
        return from_row(row)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"Bad row {row.get('id') or '?'} in {path.name}: {exc}") from exc


class CsvStore:
    """One CSV file per table under *data_dir*.

    Every read takes a shared lock and every write an exclusive one, so
    the dashboard and the pipeline can touch the same files.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.searches_csv = self.data_dir / "searches.csv"
        self.profiles_csv = self.data_dir / "profiles.csv"
        self.companies_csv = self.data_dir / "companies.csv"
        self.jobs_csv = self.data_dir / "jobs.csv"
        self.api_calls_csv = self.data_dir / "api_calls.csv"
        self._tables: dict[Path, list[str]] = {
            self.searches_csv: SEARCH_HEADERS,
            self.profiles_csv: PROFILE_HEADERS,
            self.companies_csv: COMPANY_HEADERS,
            self.jobs_csv: JOB_HEADERS,
            self.api_calls_csv: API_CALL_HEADERS,
        }

    def ensure_tables(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for path, headers in self._tables.items():
                if path.exists():
                    continue
                with open(path, "w", newline="", encoding="utf-8") as f:
                    _lock(f)
                    csv.writer(f).writerow(headers)
                    _unlock(f)
                log.info("Created table → %s", path.name)
        except OSError as exc:
            raise StoreError(f"Cannot create tables in {self.data_dir}: {exc}") from exc

    # -- raw row access ------------------------------------------------------

    def _read(self, path: Path) -> list[dict[str, str]]:
        self.ensure_tables()
        try:
            with open(path, "r", newline="", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                rows = list(csv.DictReader(f))
                _unlock(f)
        except (OSError, csv.Error) as exc:
            raise StoreError(f"Cannot read {path.name}: {exc}") from exc
        return rows

    def _append(self, path: Path, row: dict[str, str]) -> None:
        self.ensure_tables()
        try:
            with open(path, "a", newline="", encoding="utf-8") as f:
                _lock(f)
                csv.DictWriter(f, fieldnames=self._tables[path]).writerow(row)
                _unlock(f)
        except (OSError, csv.Error) as exc:
            raise StoreError(f"Cannot write {path.name}: {exc}") from exc

    def _rewrite(self, path: Path, mutate: Callable[[list[dict[str, str]]], int]) -> int:
        """Apply *mutate* to all rows under one exclusive lock; return its count."""
        self.ensure_tables()
        headers = self._tables[path]
        try:
            with open(path, "r+", newline="", encoding="utf-8") as f:
                _lock(f)
                rows = list(csv.DictReader(f))
                changed = mutate(rows)
                if changed:
                    f.seek(0)
                    f.truncate()
                    w = csv.DictWriter(f, fieldnames=headers)
                    w.writeheader()
                    w.writerows(rows)
                _unlock(f)
        except (OSError, csv.Error) as exc:
            raise StoreError(f"Cannot update {path.name}: {exc}") from exc
        return changed

    # -- searches ------------------------------------------------------------

    def add_search(self, search: SearchDefinition) -> SearchDefinition:
        search.created_at = search.created_at or _now()
        self._append(self.searches_csv, _to_row(search, SEARCH_HEADERS))
        return search

    def load_active_searches(self) -> list[SearchDefinition]:
        searches = [_decode(self.searches_csv, r, _search_from_row) for r in self._read(self.searches_csv)]
        return [s for s in searches if s.is_active]

    def mark_searches_run(self, search_ids: Iterable[str], when: datetime) -> int:
        ids = set(search_ids)
        stamp = _cell(when)

        def mutate(rows: list[dict[str, str]]) -> int:
            n = 0
            for r in rows:
                if r["id"] in ids:
                    r["last_run_at"] = stamp
                    n += 1
            return n

        updated = self._rewrite(self.searches_csv, mutate)
        log.debug("Stamped last_run_at on %d search(es)", updated)
        return updated

    # -- keyword profiles ----------------------------------------------------

    def save_profile(self, prefs: UserKeywordPreferences) -> None:
        row = _to_row(prefs, PROFILE_HEADERS)

        def mutate(rows: list[dict[str, str]]) -> int:
            for r in rows:
                if r["user_id"] == prefs.user_id:
                    r.update(row)
                    return 1
            rows.append(row)
            return 1

        self._rewrite(self.profiles_csv, mutate)

    def load_keyword_preferences(self, user_ids: Iterable[str]) -> dict[str, UserKeywordPreferences]:
        wanted = set(user_ids)
        prefs: dict[str, UserKeywordPreferences] = {}
        for r in self._read(self.profiles_csv):
            if r["user_id"] in wanted:
                prefs[r["user_id"]] = UserKeywordPreferences(
                    user_id=r["user_id"],
                    wanted_keywords=_list(r["wanted_keywords"]),
                    unwanted_keywords=_list(r["unwanted_keywords"]),
                )
        return prefs

    # -- companies -----------------------------------------------------------

    def find_company(self, user_id: str, name: str) -> CompanyRecord | None:
        for r in self._read(self.companies_csv):
            if r["user_id"] == user_id and r["name"] == name:
                return _decode(self.companies_csv, r, _company_from_row)
        return None

    def load_companies(self, user_id: str) -> list[CompanyRecord]:
        return [
            _decode(self.companies_csv, r, _company_from_row)
            for r in self._read(self.companies_csv)
            if r["user_id"] == user_id
        ]

    def insert_company(self, company: CompanyRecord) -> CompanyRecord:
        company.created_at = company.created_at or _now()
        self._append(self.companies_csv, _to_row(company, COMPANY_HEADERS))
        log.debug("Created company %s for user %s", company.name, company.user_id)
        return company

    # -- jobs ----------------------------------------------------------------

    def load_jobs(self, user_id: str) -> list[JobRecord]:
        return [_decode(self.jobs_csv, r, _job_from_row) for r in self._read(self.jobs_csv) if r["user_id"] == user_id]

    def get_job(self, job_id: str) -> JobRecord | None:
        for r in self._read(self.jobs_csv):
            if r["id"] == job_id:
                return _decode(self.jobs_csv, r, _job_from_row)
        return None

    def insert_job(self, job: JobRecord) -> JobRecord:
        now = _now()
        job.created_at = job.created_at or now
        job.updated_at = job.updated_at or now
        self._append(self.jobs_csv, _to_row(job, JOB_HEADERS))
        log.debug("Inserted job %s [%s]", job.title, job.status.value)
        return job

    def update_job_status(self, job_id: str, status: JobStatus) -> bool:
        """Change only the status (and updated_at) of one job."""
        stamp = _cell(_now())

        def mutate(rows: list[dict[str, str]]) -> int:
            for r in rows:
                if r["id"] == job_id:
                    r["status"] = status.value
                    r["updated_at"] = stamp
                    return 1
            return 0

        found = self._rewrite(self.jobs_csv, mutate) > 0
        if found:
            log.debug("Updated %s → %s", job_id, status.value)
        return found

    # -- API call log --------------------------------------------------------

    def log_api_call(
        self,
        *,
        service: str,
        endpoint: str,
        method: str = "POST",
        status_code: int | None = None,
        duration_ms: int | None = None,
        error: str | None = None,
    ) -> None:
        self._append(self.api_calls_csv, {
            "called_at": _cell(_now()),
            "service": service,
            "endpoint": endpoint,
            "method": method,
            "status_code": _cell(status_code),
            "duration_ms": _cell(duration_ms),
            "error": (error or "")[:500],
        })

    def load_api_calls(self) -> list[dict[str, str]]:
        return self._read(self.api_calls_csv)
