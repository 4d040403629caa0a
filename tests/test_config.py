"""
aikit - Configuration Tests
"""

import pytest

from aikit import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "ANTHROPIC_API_KEY",
        "AIKIT_TIMEOUT", "AIKIT_MAX_RETRIES", "LOG_LEVEL", "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestProviderSettings:
    """Test per-provider environment lookup."""

    def test_api_key(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "  sk-ant  ")
        assert config.get_api_key("anthropic") == "sk-ant"

    def test_responses_shares_openai_env(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-1")
        clean_env.setenv("OPENAI_MODEL", "gpt-4o")
        assert config.get_api_key("openai_responses") == "sk-1"
        assert config.get_default_model("openai_responses") == "gpt-4o"

    def test_unset_and_blank(self, clean_env):
        clean_env.setenv("OPENAI_BASE_URL", "   ")
        assert config.get_base_url("openai") is None
        assert config.get_api_key("openai") is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            config.get_api_key("cohere")


class TestNumericSettings:
    """Test timeout / retry parsing."""

    def test_defaults(self):
        assert config.get_timeout() == 30.0
        assert config.get_max_retries() == 1

    def test_valid_values(self, clean_env):
        clean_env.setenv("AIKIT_TIMEOUT", "5")
        clean_env.setenv("AIKIT_MAX_RETRIES", "4")
        assert config.get_timeout() == 5.0
        assert config.get_max_retries() == 4

    @pytest.mark.parametrize("value", ["abc", "0", "-1"])
    def test_invalid_timeout(self, clean_env, value):
        clean_env.setenv("AIKIT_TIMEOUT", value)
        with pytest.raises(ValueError):
            config.get_timeout()

    @pytest.mark.parametrize("value", ["1.5", "0", "many"])
    def test_invalid_max_retries(self, clean_env, value):
        clean_env.setenv("AIKIT_MAX_RETRIES", value)
        with pytest.raises(ValueError):
            config.get_max_retries()


class TestLogSettings:
    """Test LOG_LEVEL / LOG_FORMAT."""

    def test_defaults(self):
        settings = config.get_log_settings()
        assert settings.level == "WARNING"
        assert settings.json_output is True

    def test_text_format(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("LOG_FORMAT", "text")
        settings = config.get_log_settings()
        assert settings.level == "DEBUG"
        assert settings.json_output is False
