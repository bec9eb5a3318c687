"""
Tests for settings loading and validation.
"""

import pytest

from replyranker.config import Settings, load_settings
from replyranker.errors import ConfigurationError

ENV_NAMES = [
    "REPLYRANKER_SUBMIT_URL",
    "REPLYRANKER_RESULTS_URL",
    "REPLYRANKER_CHUNK_SIZE",
    "REPLYRANKER_POLL_INTERVAL",
    "REPLYRANKER_MAX_WORKERS",
    "REPLYRANKER_REQUEST_TIMEOUT",
    "REPLYRANKER_TRANSPORT_RETRIES",
    "REPLYRANKER_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings.submit_url is None
        assert settings.chunk_size == 50
        assert settings.poll_interval == 3.0
        assert settings.max_workers == 8
        assert settings.log_level == "INFO"

    def test_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("REPLYRANKER_SUBMIT_URL", "https://scorer.test/submit")
        monkeypatch.setenv("REPLYRANKER_CHUNK_SIZE", "25")
        monkeypatch.setenv("REPLYRANKER_POLL_INTERVAL", "0.5")

        settings = load_settings()

        assert settings.submit_url == "https://scorer.test/submit"
        assert settings.chunk_size == 25
        assert settings.poll_interval == 0.5

    def test_dotenv_file(self, clean_env, monkeypatch):
        (clean_env / ".env").write_text(
            "REPLYRANKER_RESULTS_URL=https://scorer.test/results\nREPLYRANKER_MAX_WORKERS=3\n",
            encoding="utf-8",
        )
        try:
            settings = load_settings()
        finally:
            monkeypatch.delenv("REPLYRANKER_RESULTS_URL", raising=False)
            monkeypatch.delenv("REPLYRANKER_MAX_WORKERS", raising=False)

        assert settings.results_url == "https://scorer.test/results"
        assert settings.max_workers == 3

    def test_non_numeric_value(self, clean_env, monkeypatch):
        monkeypatch.setenv("REPLYRANKER_CHUNK_SIZE", "fifty")
        with pytest.raises(ConfigurationError, match="CHUNK_SIZE"):
            load_settings()


class TestValidate:
    def test_valid(self):
        settings = Settings(submit_url="https://a", results_url="https://b")
        assert settings.validate() is settings

    def test_missing_endpoints(self):
        with pytest.raises(ConfigurationError, match="submission URL"):
            Settings(results_url="https://b").validate()
        with pytest.raises(ConfigurationError, match="results URL"):
            Settings(submit_url="https://a").validate()

    def test_endpoints_optional(self):
        Settings().validate(require_endpoints=False)

    @pytest.mark.parametrize("field, value", [
        ("chunk_size", 0),
        ("poll_interval", 0),
        ("max_workers", 0),
        ("request_timeout", -1),
        ("transport_retries", -1),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ConfigurationError):
            Settings(**{field: value}).validate(require_endpoints=False)

    def test_overrides_skip_none(self):
        settings = Settings(chunk_size=10).with_overrides(chunk_size=None, poll_interval=1.5)
        assert settings.chunk_size == 10
        assert settings.poll_interval == 1.5
