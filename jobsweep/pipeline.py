"""
Scheduled job-discovery run.

Runs: load searches → compile + merge queries → one scrape call →
per listing and owner: keyword filter → company → dedup → transition → write.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any

from jobsweep.companies import clean_company_url, resolve_company
from jobsweep.config import REPORTS_DIR, Settings, get_data_dir, get_env, load_settings
from jobsweep.filters import find_unwanted_keyword, normalize_keywords
from jobsweep.lease import RunLease
from jobsweep.log import get_logger
from jobsweep.matcher import find_match
from jobsweep.models import JobRecord, JobStatus, ScrapedListing, SearchDefinition
from jobsweep.query import CompiledQuery, plan_batch
from jobsweep.similarity import normalize_url
from jobsweep.sources import ListingSource, ProviderError, get_source
from jobsweep.store import CsvStore, StoreError, new_id
from jobsweep.transitions import Action, Decision, TransitionPolicy, carry_forward, resolve_transition

log = get_logger(__name__)


@dataclass
class RunSummary:
    searches_run: int = 0
    jobs_found: int = 0
    inserted: int = 0
    reposted: int = 0
    reactivated: int = 0
    blocked: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    message: str = "Done"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunContext:
    """Per-run snapshot of what each user already has.

    Built fresh by ``load_context`` at the start of every run and dropped
    when the run ends. Each user's jobs are kept newest first, so a
    listing matches its latest record (a repost before the job it copied).
    Matching only ever sees these preloaded records. Posting urls inserted
    during the run are tracked separately in ``inserted_urls`` so the same
    posting twice in one batch is stored once.
    """

    unwanted_keywords: dict[str, list[str]] = field(default_factory=dict)
    jobs_by_user: dict[str, list[JobRecord]] = field(default_factory=dict)
    culture_by_company: dict[str, float | None] = field(default_factory=dict)
    inserted_urls: dict[str, set[str]] = field(default_factory=dict)

    def jobs_for(self, user_id: str) -> list[JobRecord]:
        return self.jobs_by_user.setdefault(user_id, [])

    def urls_inserted_for(self, user_id: str) -> set[str]:
        return self.inserted_urls.setdefault(user_id, set())

    def culture_score(self, record: JobRecord) -> float | None:
        if not record.company_id:
            return None
        return self.culture_by_company.get(record.company_id)


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(record: JobRecord) -> datetime:
    return record.created_at or _EPOCH


def load_context(store: CsvStore, user_ids: list[str]) -> RunContext:
    ctx = RunContext()
    prefs = store.load_keyword_preferences(user_ids)
    for uid in user_ids:
        keywords = normalize_keywords(prefs[uid].unwanted_keywords) if uid in prefs else []
        if keywords:
            ctx.unwanted_keywords[uid] = keywords
        ctx.jobs_by_user[uid] = sorted(store.load_jobs(uid), key=_created_key, reverse=True)
        for company in store.load_companies(uid):
            ctx.culture_by_company[company.id] = company.cultural_match_rate
    log.info(
        "Preloaded %d existing job(s) across %d user(s)",
        sum(len(v) for v in ctx.jobs_by_user.values()), len(user_ids),
    )
    return ctx


def policy_from_settings(settings: Settings) -> TransitionPolicy:
    return TransitionPolicy(
        culture_min=settings.culture_min,
        experience_min=settings.experience_min,
        prioritisation_min=settings.prioritisation_min,
        repost_cooldown=timedelta(days=settings.repost_cooldown_days),
    )


def _new_record(
    listing: ScrapedListing,
    user_id: str,
    company_id: str | None,
    company_url: str | None,
    status: JobStatus,
    **carried: Any,
) -> JobRecord:
    return JobRecord(
        id=new_id(),
        user_id=user_id,
        company_id=company_id,
        title=listing.title,
        posting_url=listing.url,
        company_name=listing.company_name,
        company_url=company_url,
        job_description_full=listing.summary or None,
        status=status,
        is_live=True,
        **carried,
    )


def _tracked_scrape(store: CsvStore, source: ListingSource, queries: list[CompiledQuery]) -> list[ScrapedListing]:
    """Call the provider once and record the call in the API log."""
    start = time.monotonic()
    status_code: int | None = None
    error: str | None = None
    try:
        listings = source.scrape(queries)
        status_code = 200
        return listings
    except ProviderError as exc:
        status_code, error = exc.status_code, str(exc)
        raise
    finally:
        duration_ms = int((time.monotonic() - start) * 1000)
        try:
            store.log_api_call(
                service=source.name,
                endpoint=source.endpoint,
                status_code=status_code,
                duration_ms=duration_ms,
                error=error,
            )
        except StoreError as exc:
            log.warning("Could not record API call: %s", exc)


def _apply(
    store: CsvStore,
    ctx: RunContext,
    listing: ScrapedListing,
    user_id: str,
    summary: RunSummary,
    settings: Settings,
    policy: TransitionPolicy,
    now: datetime,
) -> None:
    """Reconcile one listing for one user. Store errors propagate to the caller."""
    keyword = find_unwanted_keyword(listing, ctx.unwanted_keywords.get(user_id, []))
    if keyword:
        log.debug("Blocked %r for user %s (keyword %r)", listing.title, user_id, keyword)
        summary.blocked += 1
        return

    company_url = clean_company_url(listing.company_url)
    company_id = resolve_company(store, user_id, listing.company_name, company_url)

    url_key = normalize_url(listing.url)
    inserted = ctx.urls_inserted_for(user_id)
    if url_key in inserted:
        summary.skipped += 1
        log.debug("Skipped %r for user %s: already inserted this run", listing.title, user_id)
        return

    existing = ctx.jobs_for(user_id)
    # Stored company urls are cleaned, so compare against the cleaned form.
    candidate = replace(listing, company_url=company_url)
    match = find_match(candidate, existing, settings.title_similarity_threshold)
    matched = match.record if match else None
    decision: Decision = resolve_transition(
        matched,
        ctx.culture_score(matched) if matched else None,
        now=now,
        policy=policy,
    )

    if decision.action is Action.INSERT_NEW:
        store.insert_job(_new_record(listing, user_id, company_id, company_url, JobStatus.REVIEW))
        inserted.add(url_key)
        summary.inserted += 1
        log.info("New job for user %s: %s @ %s", user_id, listing.title, listing.company_name)

    elif decision.action is Action.REACTIVATE:
        if not store.update_job_status(matched.id, JobStatus.BOOKMARKED):
            raise StoreError(f"job {matched.id} no longer exists")
        matched.status = JobStatus.BOOKMARKED
        summary.reactivated += 1
        log.info("Reactivated %s (%s) as Bookmarked", matched.title, matched.id)

    elif decision.action is Action.INSERT_AS_REPOSTED:
        store.insert_job(_new_record(
            listing, user_id, company_id, company_url, JobStatus.REPOSTED, **carry_forward(matched),
        ))
        inserted.add(url_key)
        summary.inserted += 1
        summary.reposted += 1
        log.info("Reposted %s for user %s (was %s)", listing.title, user_id, matched.status.value)

    elif decision.action is Action.SKIP:
        summary.skipped += 1
        log.debug("Skipped %r for user %s: %s (%s match)", listing.title, user_id, decision.reason, match.strategy)

    else:
        raise ValueError(f"Unhandled action {decision.action!r}")


def _owners(searches: list[SearchDefinition]) -> list[str]:
    return list(dict.fromkeys(s.user_id for s in searches))


def run_searches(
    store: CsvStore,
    source: ListingSource,
    settings: Settings,
    now: datetime | None = None,
) -> RunSummary:
    """Run every active search once and reconcile the results.

    Raises ``ProviderError`` or ``StoreError`` when the run has to abort
    before any listing is written. Per-listing failures end up in
    ``RunSummary.errors`` instead.
    """
    now = now or datetime.now(timezone.utc)
    summary = RunSummary()

    # 1. Active searches across all users
    searches = store.load_active_searches()
    if not searches:
        log.info("No active searches")
        summary.message = "No active searches"
        return summary
    summary.searches_run = len(searches)

    # 2. One query per search, identical ones merged, one provider call
    batch = plan_batch(searches, settings.recency_seconds)
    listings = _tracked_scrape(store, source, batch.queries)
    summary.jobs_found = len(listings)

    # 3. Fresh per-run snapshot of existing records
    ctx = load_context(store, _owners(searches))
    policy = policy_from_settings(settings)

    # 4. Reconcile, sequentially and in provider order
    for listing in listings:
        owners = batch.searches_by_request.get(listing.request_id or "")
        if not owners:
            log.debug("Dropping listing with unknown request id %r", listing.request_id)
            continue
        for user_id in _owners(owners):
            try:
                _apply(store, ctx, listing, user_id, summary, settings, policy, now)
            except StoreError as exc:
                log.error("Failed to reconcile %r for user %s: %s", listing.title, user_id, exc)
                summary.errors.append(f"{listing.title}: {exc}")

    # 5. Stamp every search that was part of this run
    try:
        store.mark_searches_run([s.id for s in searches], now)
    except StoreError as exc:
        log.error("Failed to stamp last_run_at: %s", exc)
        summary.errors.append(f"last_run_at: {exc}")

    log.info(
        "Run complete — searches=%d, found=%d, inserted=%d, reposted=%d, reactivated=%d, "
        "blocked=%d, skipped=%d, errors=%d",
        summary.searches_run, summary.jobs_found, summary.inserted, summary.reposted,
        summary.reactivated, summary.blocked, summary.skipped, len(summary.errors),
    )
    return summary


def run_once(settings: Settings | None = None, *, write_report: bool | None = None) -> RunSummary:
    """Build store and source from configuration and run under the lease.

    Configuration problems surface as ``ConfigError`` before any data is
    touched; a concurrent run surfaces as ``RunInProgressError``. The
    report is best effort and never fails a run that already wrote.
    """
    settings = settings or load_settings()
    source = get_source(settings, get_env)
    data_dir = get_data_dir()
    store = CsvStore(data_dir)
    store.ensure_tables()

    with RunLease(data_dir):
        summary = run_searches(store, source, settings)

    if write_report is None:
        write_report = settings.write_report
    if write_report:
        from jobsweep.report import build_run_report, write_run_report

        try:
            write_run_report(build_run_report(summary), REPORTS_DIR)
        except OSError as exc:
            log.warning("Could not write run report to %s: %s", REPORTS_DIR, exc)
    return summary
