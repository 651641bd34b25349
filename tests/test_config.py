from __future__ import annotations

import pytest

from jobsweep.config import ConfigError, Settings, get_data_dir, load_settings
from jobsweep.sources import BrightDataSource, MockSource, get_source


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("SCRAPE_PROVIDER", raising=False)
    assert load_settings(tmp_path / "nope.yaml") == Settings()


def test_nested_sections_are_read(tmp_path, monkeypatch):
    monkeypatch.delenv("SCRAPE_PROVIDER", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        "brightdata:\n  dataset_id: ds-9\n  timeout: 30\n"
        "reactivation:\n  culture: 50\n  experience: 60\n  prioritisation: 65\n"
        "title_similarity_threshold: 0.9\nrepost_cooldown_days: 14\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.dataset_id == "ds-9"
    assert settings.request_timeout == 30
    assert (settings.culture_min, settings.experience_min, settings.prioritisation_min) == (50, 60, 65)
    assert settings.title_similarity_threshold == 0.9
    assert settings.repost_cooldown_days == 14


def test_quoted_numbers_are_cast(tmp_path, monkeypatch):
    monkeypatch.delenv("SCRAPE_PROVIDER", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        "title_similarity_threshold: \"0.85\"\nrecency_seconds: \"3600\"\nbrightdata:\n  timeout: \"45\"\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.title_similarity_threshold == 0.85
    assert isinstance(settings.title_similarity_threshold, float)
    assert settings.recency_seconds == 3600
    assert isinstance(settings.recency_seconds, int)
    assert settings.request_timeout == 45.0


def test_env_overrides_provider(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRAPE_PROVIDER", "mock")
    assert load_settings(tmp_path / "nope.yaml").provider == "mock"


@pytest.mark.parametrize(
    "content",
    [
        "surprise: 1\n",
        "title_similarity_threshold: 1.5\n",
        "recency_seconds: 0\n",
        "- a\n- b\n",
        "a: [\n",
        "reactivation:\n  culture: high\n",
        "repost_cooldown_days: true\n",
        "write_report: \"no\"\n",
    ],
)
def test_invalid_settings_raise(tmp_path, monkeypatch, content):
    monkeypatch.delenv("SCRAPE_PROVIDER", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_data_dir_override(tmp_path, monkeypatch):
    monkeypatch.setenv("JOBSWEEP_DATA_DIR", str(tmp_path))
    assert get_data_dir() == tmp_path


def test_get_source():
    env = {"BRIGHTDATA_API_KEY": "k"}.get
    assert isinstance(get_source(Settings(provider="mock"), lambda k: ""), MockSource)
    source = get_source(Settings(), lambda k: env(k, ""))
    assert isinstance(source, BrightDataSource)
    assert source.api_key == "k"
    with pytest.raises(ConfigError, match="BRIGHTDATA_API_KEY"):
        get_source(Settings(), lambda k: "")
    with pytest.raises(ConfigError, match="Unknown"):
        get_source(Settings(provider="monster"), lambda k: "")
