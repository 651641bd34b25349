"""Reconcile a matched (or unmatched) listing against the existing job's status.

The decision depends only on whether a record matched, that record's
status group, its carried scores and how long ago the user applied:

=========  ==================  ===================================  ==================
matched    status group        condition                            action
=========  ==================  ===================================  ==================
no         -                   -                                    INSERT_NEW
yes        closed              culture/experience/prioritisation    REACTIVATE
                               all at or above policy minimums
yes        closed              otherwise                            SKIP
yes        repost-eligible     applied before now - cooldown        INSERT_AS_REPOSTED
yes        repost-eligible     no application date, or recent       SKIP
yes        passive             -                                    SKIP
=========  ==================  ===================================  ==================
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jobsweep.models import JobRecord, JobStatus


class Action(str, Enum):
    INSERT_NEW = "insert_new"
    REACTIVATE = "reactivate"
    INSERT_AS_REPOSTED = "insert_as_reposted"
    SKIP = "skip"


CLOSED_STATUSES: frozenset[JobStatus] = frozenset({JobStatus.CLOSED})

REPOST_ELIGIBLE_STATUSES: frozenset[JobStatus] = frozenset({
    JobStatus.REJECTED,
    JobStatus.APPLIED,
    JobStatus.STAGE_1,
    JobStatus.STAGE_2,
    JobStatus.STAGE_3,
})

PASSIVE_STATUSES: frozenset[JobStatus] = frozenset({
    JobStatus.REVIEW,
    JobStatus.BOOKMARKED,
    JobStatus.INTERESTED,
    JobStatus.REPOSTED,
    JobStatus.UNFIT,
    JobStatus.REFERRED,
    JobStatus.FOLLOWED_UP,
    JobStatus.STAGE_4,
    JobStatus.OFFERED,
    JobStatus.DECLINED,
    JobStatus.SIGNED,
})


def _check_partition() -> None:
    groups = (CLOSED_STATUSES, REPOST_ELIGIBLE_STATUSES, PASSIVE_STATUSES)
    seen: set[JobStatus] = set()
    for group in groups:
        overlap = seen & group
        if overlap:
            raise RuntimeError(f"Statuses in more than one group: {sorted(s.value for s in overlap)}")
        seen |= group
    missing = set(JobStatus) - seen
    if missing:
        raise RuntimeError(f"Statuses without a transition rule: {sorted(s.value for s in missing)}")


_check_partition()

# Analysis copied verbatim onto a reposted record.
CARRIED_FIELDS: tuple[str, ...] = (
    "job_match_rate",
    "job_match_insights",
    "experience_match_rate",
    "experience_match_insights",
    "job_description",
    "tailored_covering_letter",
    "salary_expectation",
    "prioritisation_score",
)


@dataclass(frozen=True)
class TransitionPolicy:
    culture_min: float = 60
    experience_min: float = 70
    prioritisation_min: float = 70
    repost_cooldown: timedelta = timedelta(days=7)


DEFAULT_POLICY = TransitionPolicy()


@dataclass(frozen=True)
class Decision:
    action: Action
    existing: JobRecord | None = None
    reason: str = ""


def _score(value: float | None) -> float:
    return value if value is not None else 0


def _resolve_closed(existing: JobRecord, culture_score: float | None, policy: TransitionPolicy) -> Decision:
    culture = _score(culture_score)
    experience = _score(existing.experience_match_rate)
    priority = _score(existing.prioritisation_score)
    if (
        culture >= policy.culture_min
        and experience >= policy.experience_min
        and priority >= policy.prioritisation_min
    ):
        return Decision(Action.REACTIVATE, existing, "closed with strong scores")
    return Decision(
        Action.SKIP,
        existing,
        f"closed with low scores (culture={culture}, experience={experience}, priority={priority})",
    )


def _resolve_repost(existing: JobRecord, now: datetime, policy: TransitionPolicy) -> Decision:
    applied = existing.application_date
    if applied is None:
        return Decision(Action.SKIP, existing, f"{existing.status.value} without application date")
    if applied.tzinfo is None:
        applied = applied.replace(tzinfo=timezone.utc)
    if applied < now - policy.repost_cooldown:
        return Decision(Action.INSERT_AS_REPOSTED, existing, f"{existing.status.value} past cooldown")
    return Decision(Action.SKIP, existing, f"{existing.status.value} within cooldown")


def resolve_transition(
    existing: JobRecord | None,
    culture_score: float | None = None,
    now: datetime | None = None,
    policy: TransitionPolicy = DEFAULT_POLICY,
) -> Decision:
    """Pick the action for a listing given the record it matched, if any.

    *culture_score* is the matched record's company culture score.
    """
    if existing is None:
        return Decision(Action.INSERT_NEW, None, "no match")

    now = now or datetime.now(timezone.utc)
    status = existing.status
    if status in CLOSED_STATUSES:
        return _resolve_closed(existing, culture_score, policy)
    if status in REPOST_ELIGIBLE_STATUSES:
        return _resolve_repost(existing, now, policy)
    if status in PASSIVE_STATUSES:
        return Decision(Action.SKIP, existing, f"already tracked as {status.value}")
    raise ValueError(f"No transition rule for status {status!r}")


def carry_forward(existing: JobRecord) -> dict[str, Any]:
    return {name: getattr(existing, name) for name in CARRIED_FIELDS}
