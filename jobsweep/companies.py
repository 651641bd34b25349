"""Find-or-create company records, keyed on (user, exact name)."""
from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from jobsweep.log import get_logger
from jobsweep.models import CompanyRecord
from jobsweep.store import CsvStore, new_id

log = get_logger(__name__)

_TRACKING_PARAMS = ("trk", "trackingid", "refid")


def clean_company_url(url: str | None) -> str | None:
    """Strip LinkedIn tracking parameters such as ``?trk=public_jobs_topcard-org-name``."""
    if not url or not url.strip():
        return None
    parts = urlsplit(url.strip())
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
            if k.lower() not in _TRACKING_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept), parts.fragment))


def resolve_company(
    store: CsvStore, user_id: str, name: str, company_url: str | None
) -> str | None:
    """Return the id of the user's company called *name*, creating it if needed.

    Matching is on the exact name only; the url is stored on creation and
    never used for lookup. An empty name resolves to no company.
    """
    if not name:
        return None
    existing = store.find_company(user_id, name)
    if existing:
        return existing.id
    company = store.insert_company(
        CompanyRecord(id=new_id(), user_id=user_id, name=name, company_url=company_url or "")
    )
    log.info("New company for user %s: %s", user_id, name)
    return company.id
