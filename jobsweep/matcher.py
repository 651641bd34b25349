"""Decide whether a scraped listing is already one of the user's tracked jobs.

Two strategies run in order and the first hit wins:

1. ``url``: the normalized posting urls are equal.
2. ``title``: the listing has a company url, the record's company url
   normalizes to the same value, and the titles are at least
   ``TITLE_SIMILARITY_THRESHOLD`` similar.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from jobsweep.models import JobRecord, ScrapedListing
from jobsweep.similarity import normalize_url, similarity

TITLE_SIMILARITY_THRESHOLD = 0.85

STRATEGY_URL = "url"
STRATEGY_TITLE = "title"


@dataclass(frozen=True)
class Match:
    record: JobRecord
    strategy: str


def match_by_url(listing: ScrapedListing, existing: Iterable[JobRecord]) -> JobRecord | None:
    target = normalize_url(listing.url)
    for record in existing:
        if normalize_url(record.posting_url) == target:
            return record
    return None


def match_by_company_and_title(
    listing: ScrapedListing,
    existing: Iterable[JobRecord],
    threshold: float = TITLE_SIMILARITY_THRESHOLD,
) -> JobRecord | None:
    if not listing.company_url:
        return None
    company = normalize_url(listing.company_url)
    for record in existing:
        if not record.company_url or normalize_url(record.company_url) != company:
            continue
        if similarity(listing.title, record.title) >= threshold:
            return record
    return None


def find_match(
    listing: ScrapedListing,
    existing: list[JobRecord],
    threshold: float = TITLE_SIMILARITY_THRESHOLD,
) -> Match | None:
    record = match_by_url(listing, existing)
    if record is not None:
        return Match(record, STRATEGY_URL)
    record = match_by_company_and_title(listing, existing, threshold)
    if record is not None:
        return Match(record, STRATEGY_TITLE)
    return None
