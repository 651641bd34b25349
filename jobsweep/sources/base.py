from __future__ import annotations

from abc import ABC, abstractmethod

from jobsweep.models import ScrapedListing
from jobsweep.query import CompiledQuery


class ProviderError(Exception):
    """The scraping provider failed or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ListingSource(ABC):
    name: str = "unknown"
    endpoint: str = ""

    @abstractmethod
    def scrape(self, queries: list[CompiledQuery]) -> list[ScrapedListing]:
        pass
