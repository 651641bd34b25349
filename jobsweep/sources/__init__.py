from .base import ListingSource, ProviderError
from .brightdata import BrightDataSource
from .mock import MockSource

from jobsweep.config import ConfigError, Settings
from jobsweep.log import get_logger

log = get_logger(__name__)

__all__ = [
    "ListingSource", "ProviderError", "BrightDataSource", "MockSource",
    "get_source",
]


def get_source(settings: Settings, env_getter) -> ListingSource:
    """Build the configured provider; a missing credential is fatal."""
    if settings.provider == "mock":
        log.info("Using source: MockSource")
        return MockSource()

    if settings.provider == "brightdata":
        api_key = env_getter("BRIGHTDATA_API_KEY")
        if not api_key:
            raise ConfigError("BRIGHTDATA_API_KEY not set")
        log.info("Using source: Bright Data (dataset %s)", settings.dataset_id)
        return BrightDataSource(api_key, settings.dataset_id, timeout=settings.request_timeout)

    raise ConfigError(f"Unknown scrape provider: {settings.provider!r}")
