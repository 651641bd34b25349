"""Data models for searches, scraped listings, jobs and companies."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    REVIEW = "Review"
    BOOKMARKED = "Bookmarked"
    INTERESTED = "Interested"
    REPOSTED = "Reposted"
    UNFIT = "Unfit"
    APPLIED = "Applied"
    REFERRED = "Referred"
    FOLLOWED_UP = "Followed-Up"
    STAGE_1 = "1st Stage"
    STAGE_2 = "2nd Stage"
    STAGE_3 = "3rd Stage"
    STAGE_4 = "4th Stage"
    OFFERED = "Offered"
    DECLINED = "Declined"
    REJECTED = "Rejected"
    SIGNED = "Signed"
    CLOSED = "Closed"


@dataclass
class SearchDefinition:
    id: str
    user_id: str
    label: str
    keyword: str
    location: str
    experience_level: list[str] = field(default_factory=list)
    work_model: list[str] = field(default_factory=list)
    job_type: list[str] = field(default_factory=list)
    is_active: bool = True
    last_run_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class ScrapedListing:
    url: str
    posting_id: str
    title: str
    company_name: str
    company_url: str | None
    location: str
    summary: str
    seniority: str | None = None
    employment_type: str | None = None
    request_id: str | None = None
    raw: dict = field(default_factory=dict)


@dataclass
class CompanyRecord:
    id: str
    user_id: str
    name: str
    company_url: str = ""
    cultural_match_rate: float | None = None
    cultural_match_insights: str | None = None
    created_at: datetime | None = None


@dataclass
class JobRecord:
    id: str
    user_id: str
    title: str
    posting_url: str
    company_name: str
    status: JobStatus
    company_id: str | None = None
    company_url: str | None = None
    status_reason: str | None = None
    prioritisation_score: float | None = None
    experience_match_rate: float | None = None
    experience_match_insights: str | None = None
    job_match_rate: float | None = None
    job_match_insights: str | None = None
    job_description: str | None = None
    job_description_full: str | None = None
    tailored_covering_letter: str | None = None
    salary_expectation: float | None = None
    application_date: datetime | None = None
    is_live: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class UserKeywordPreferences:
    user_id: str
    wanted_keywords: list[str] = field(default_factory=list)
    unwanted_keywords: list[str] = field(default_factory=list)
