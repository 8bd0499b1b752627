from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "DATABASE_URL",
        "SNAPSHOT_NOISE_THRESHOLD",
        "SNAPSHOT_HIGH_THRESHOLD",
        "SNAPSHOT_MEDIUM_THRESHOLD",
        "SNAPSHOT_TOP_HOLDINGS",
        "ENGINE_MAX_CONCURRENCY",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite:///./data/snapshots.db"
    assert settings.noise_threshold == 0.1
    assert settings.high_significance_threshold == 2.0
    assert settings.medium_significance_threshold == 0.5
    assert settings.top_holdings_limit == 10
    assert settings.engine_max_concurrency == 4
    assert settings.log_level == "INFO"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
    monkeypatch.setenv("SNAPSHOT_HIGH_THRESHOLD", "3")
    monkeypatch.setenv("SNAPSHOT_TOP_HOLDINGS", "5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite:///other.db"
    assert settings.high_significance_threshold == 3.0
    assert settings.top_holdings_limit == 5
    assert settings.log_level == "DEBUG"


def test_unknown_log_level_falls_back_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert Settings(_env_file=None).log_level == "INFO"


def test_medium_threshold_above_high_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SNAPSHOT_HIGH_THRESHOLD", "1.0")
    monkeypatch.setenv("SNAPSHOT_MEDIUM_THRESHOLD", "1.5")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_unknown_snapshot_env_is_logged(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setenv("SNAPSHOT_TYPO", "1")

    with caplog.at_level("WARNING", logger="core.settings"):
        Settings(_env_file=None)

    assert "SNAPSHOT_TYPO" in caplog.text


def test_get_settings_is_cached_until_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///first.db")
    first = get_settings()
    monkeypatch.setenv("DATABASE_URL", "sqlite:///second.db")

    assert get_settings() is first
    assert first.database_url == "sqlite:///first.db"

    get_settings.cache_clear()

    assert get_settings().database_url == "sqlite:///second.db"
