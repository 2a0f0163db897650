"""Tests for environment-backed settings.

Tests cover:
- Loading keys and defaults from environment variables
- Building ProviderCredentials and DetectionConfig from settings
- Time-sensitivity keywords as configuration
"""

from hallucination_detector.config.settings import Settings
from hallucination_detector.verification.time_sensitivity import (
    DEFAULT_TIME_SENSITIVITY_KEYWORDS,
)


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
    monkeypatch.setenv("EXA_API_KEY", "exa-env")
    monkeypatch.setenv("USE_DOMESTIC_PROVIDERS", "true")
    monkeypatch.setenv("SEARCH_TIMEOUT", "12.5")

    settings = Settings(_env_file=None)

    assert settings.anthropic_api_key == "sk-ant-env"
    assert settings.exa_api_key == "exa-env"
    assert settings.use_domestic_providers is True
    assert settings.search_timeout == 12.5


def test_defaults(monkeypatch) -> None:
    for name in ("DEEPSEEK_MODEL", "EXTRACTION_MAX_ATTEMPTS", "MAX_SEARCH_RESULTS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.deepseek_model == "deepseek-chat"
    assert settings.extraction_max_attempts == 3
    assert settings.max_search_results == 3
    assert settings.time_sensitivity_keywords == list(DEFAULT_TIME_SENSITIVITY_KEYWORDS)


def test_credentials_and_detection_config() -> None:
    settings = Settings(
        anthropic_api_key="a",
        exa_api_key="e",
        deepseek_api_key=None,
        bocha_api_key=None,
        max_search_results=4,
        _env_file=None,
    )

    credentials = settings.credentials()
    assert credentials.has("anthropic_api_key")
    assert not credentials.has("bocha_api_key")

    config = settings.detection_config(confidence_threshold=55)
    assert config.max_search_results == 4
    assert config.confidence_threshold == 55
    assert config.credentials == credentials


def test_keywords_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TIME_SENSITIVITY_KEYWORDS", '["breaking", "live"]')
    settings = Settings(_env_file=None)
    assert settings.time_sensitivity_keywords == ["breaking", "live"]
