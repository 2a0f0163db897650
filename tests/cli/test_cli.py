"""Tests for the Typer CLI.

Tests cover:
- detect: table output, JSON output, --file input, option overrides
- detect: exit codes for missing text, missing credentials and extraction failure
- status: masked credentials per provider pair
- version
"""

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from hallucination_detector.cli import main
from hallucination_detector.config.settings import Settings
from hallucination_detector.verification.errors import ExtractionFailed, MissingCredentials
from hallucination_detector.verification.schemas import (
    Claim,
    ClaimVerification,
    DetectionResult,
    DetectionSummary,
    ProviderPair,
)

runner = CliRunner()

ANTHROPIC_KEY = "sk-ant-api03-" + "z" * 60


def _settings() -> Settings:
    return Settings(
        anthropic_api_key=ANTHROPIC_KEY,
        exa_api_key="3f2b6c1e-9d4a-4b7e-8c21-5a6d7e8f9012",
        deepseek_api_key=None,
        bocha_api_key=None,
        use_domestic_providers=False,
        _env_file=None,
    )


def _result() -> DetectionResult:
    claim = Claim(claim="The Eiffel Tower opened in 1889", original_text="It opened in 1889.")
    return DetectionResult(
        provider_pair=ProviderPair.INTERNATIONAL,
        claims=[claim],
        verifications=[
            ClaimVerification(
                claim=claim.claim,
                original_text=claim.original_text,
                assessment="True",
                confidence_score=97,
                summary="Opened for the 1889 World's Fair.",
            )
        ],
        summary=DetectionSummary(total_claims=1, true_claims=1, accuracy_rate=100.0, high_confidence_claims=1),
        message="Verified 1 claims",
    )


@pytest.fixture
def calls(monkeypatch) -> list[dict]:
    recorded: list[dict] = []

    async def fake_run_detection(text, config=None, on_progress=None, settings=None):
        recorded.append({"text": text, "config": config, "on_progress": on_progress})
        if on_progress is not None:
            on_progress("start", {"message": "Starting", "progress": 0})
        return _result()

    monkeypatch.setattr(main, "get_settings", _settings)
    monkeypatch.setattr(main, "_setup_logging", lambda: None)
    monkeypatch.setattr(main, "run_detection", fake_run_detection)
    monkeypatch.setattr(main, "console", Console(width=200))
    return recorded


class TestDetect:
    def test_table_output(self, calls) -> None:
        result = runner.invoke(main.app, ["detect", "The Eiffel Tower opened in 1889."])
        assert result.exit_code == 0
        assert "Eiffel" in result.stdout
        assert "Accuracy rate" in result.stdout
        assert calls[0]["text"] == "The Eiffel Tower opened in 1889."

    def test_json_output(self, calls) -> None:
        result = runner.invoke(main.app, ["detect", "Some text", "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["verifications"][0]["assessment"] == "True"
        assert calls[0]["on_progress"] is None

    def test_options_override_settings(self, calls) -> None:
        result = runner.invoke(
            main.app,
            ["detect", "Some text", "--domestic", "--max-sources", "5", "--threshold", "60"],
        )
        assert result.exit_code == 0
        config = calls[0]["config"]
        assert config.use_domestic_providers is True
        assert config.max_search_results == 5
        assert config.confidence_threshold == 60

    def test_file_input(self, calls, tmp_path) -> None:
        path = tmp_path / "input.txt"
        path.write_text("Text from a file.", encoding="utf-8")
        result = runner.invoke(main.app, ["detect", "--file", str(path)])
        assert result.exit_code == 0
        assert calls[0]["text"] == "Text from a file."

    def test_missing_text(self, calls) -> None:
        result = runner.invoke(main.app, ["detect"], input="")
        assert result.exit_code == 2
        assert calls == []

    def test_missing_credentials_exit_code(self, monkeypatch, calls) -> None:
        async def failing(text, config=None, on_progress=None, settings=None):
            raise MissingCredentials(["exa_api_key"], "international")

        monkeypatch.setattr(main, "run_detection", failing)
        result = runner.invoke(main.app, ["detect", "Some text"])
        assert result.exit_code == 2

    def test_extraction_failure_exit_code(self, monkeypatch, calls) -> None:
        async def failing(text, config=None, on_progress=None, settings=None):
            raise ExtractionFailed("Claim extraction failed: upstream down")

        monkeypatch.setattr(main, "run_detection", failing)
        result = runner.invoke(main.app, ["detect", "Some text"])
        assert result.exit_code == 1


class TestStatus:
    def test_keys_are_masked(self, calls) -> None:
        result = runner.invoke(main.app, ["status"])
        assert result.exit_code == 0
        assert ANTHROPIC_KEY not in result.stdout
        assert "international" in result.stdout
        assert "domestic" in result.stdout
        assert "Missing keys" in result.stdout


def test_version() -> None:
    result = runner.invoke(main.app, ["version"])
    assert result.exit_code == 0
    assert main.__version__ in result.stdout
