"""Block listings that mention a user's unwanted keywords."""
from __future__ import annotations

from jobsweep.models import ScrapedListing


def _normalize(s: str | None) -> str:
    return (s or "").lower().strip()


def normalize_keywords(keywords: list[str] | None) -> list[str]:
    """Lower-case and trim keywords, dropping blanks and repeats."""
    cleaned = (_normalize(k) for k in keywords or [])
    return list(dict.fromkeys(k for k in cleaned if k))


def find_unwanted_keyword(listing: ScrapedListing, keywords: list[str]) -> str | None:
    """Return the first keyword found in the title, summary or company name.

    *keywords* must already be normalized. Fields are checked in that order
    for each keyword before moving to the next keyword.
    """
    if not keywords:
        return None
    fields = (
        _normalize(listing.title),
        _normalize(listing.summary),
        _normalize(listing.company_name),
    )
    for keyword in keywords:
        if any(keyword in text for text in fields):
            return keyword
    return None
