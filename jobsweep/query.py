"""Compile saved searches into LinkedIn job-search urls for the scraper."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from urllib.parse import quote

from jobsweep.log import get_logger
from jobsweep.models import SearchDefinition

log = get_logger(__name__)

SEARCH_BASE_URL = "https://www.linkedin.com/jobs/search/"
DEFAULT_RECENCY_SECONDS = 86400

EXPERIENCE_CODES: dict[str, str] = {
    "internship": "1",
    "entry level": "2",
    "associate": "3",
    "mid-senior level": "4",
    "director": "5",
    "executive": "6",
}

WORK_MODEL_CODES: dict[str, str] = {
    "on-site": "1",
    "remote": "2",
    "hybrid": "3",
}

JOB_TYPE_CODES: dict[str, str] = {
    "full-time": "F",
    "part-time": "P",
    "contract": "C",
    "temporary": "T",
    "volunteer": "V",
    "internship": "I",
    "other": "O",
}

# Characters encodeURIComponent leaves alone, besides the quote() defaults.
_URI_SAFE = "!~*'()"


@dataclass(frozen=True)
class CompiledQuery:
    request_id: str
    url: str


@dataclass
class QueryBatch:
    queries: list[CompiledQuery] = field(default_factory=list)
    searches_by_request: dict[str, list[SearchDefinition]] = field(default_factory=dict)


def _encode(value: str) -> str:
    return quote(value, safe=_URI_SAFE)


def _codes(values: list[str], table: dict[str, str]) -> list[str]:
    """Map preference values to provider codes, dropping unknown ones."""
    codes = [table.get((v or "").strip().lower()) for v in values]
    return list(dict.fromkeys(c for c in codes if c))


def _request_id(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]


def compile_query(
    search: SearchDefinition, recency_seconds: int = DEFAULT_RECENCY_SECONDS
) -> CompiledQuery:
    url = f"{SEARCH_BASE_URL}?f_TPR=r{recency_seconds}"

    if search.keyword:
        phrase = '"' + search.keyword + '"'
        url += f"&keywords={_encode(phrase)}"
    if search.location:
        url += f"&location={_encode(search.location)}"

    for param, values, table in (
        ("f_E", search.experience_level, EXPERIENCE_CODES),
        ("f_WT", search.work_model, WORK_MODEL_CODES),
        ("f_JT", search.job_type, JOB_TYPE_CODES),
    ):
        codes = _codes(values, table)
        if codes:
            url += f"&{param}={','.join(codes)}"

    return CompiledQuery(request_id=_request_id(url), url=url)


def plan_batch(
    searches: list[SearchDefinition], recency_seconds: int = DEFAULT_RECENCY_SECONDS
) -> QueryBatch:
    """Compile every search and merge identical queries into one request."""
    batch = QueryBatch()
    for search in searches:
        query = compile_query(search, recency_seconds)
        if query.request_id not in batch.searches_by_request:
            batch.queries.append(query)
            batch.searches_by_request[query.request_id] = []
        batch.searches_by_request[query.request_id].append(search)
    log.info("Compiled %d search(es) into %d unique queries", len(searches), len(batch.queries))
    return batch
