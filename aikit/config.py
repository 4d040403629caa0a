"""
aikit - Configuration

Environment-driven settings for adapters and logging.

Variables:
    OPENAI_API_KEY / ANTHROPIC_API_KEY / GOOGLE_API_KEY
    OPENAI_BASE_URL / ANTHROPIC_BASE_URL / GOOGLE_BASE_URL
    OPENAI_MODEL / ANTHROPIC_MODEL / GOOGLE_MODEL
    AIKIT_TIMEOUT       request timeout in seconds (default 30)
    AIKIT_MAX_RETRIES   attempts before the first streamed line (default 1)
    LOG_LEVEL           library log level (default WARNING)
    LOG_FORMAT          json | text (default json)
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

# Responses shares OpenAI's credentials and base URL
_ENV_PREFIXES: Dict[str, str] = {
    "openai": "OPENAI",
    "openai_responses": "OPENAI",
    "anthropic": "ANTHROPIC",
    "google": "GOOGLE",
}

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 1


@dataclass
class LogSettings:
    level: str = "WARNING"
    json_output: bool = True


def _env_prefix(provider: str) -> str:
    try:
        return _ENV_PREFIXES[provider]
    except KeyError:
        raise ValueError(
            f"Unknown provider '{provider}'. Use one of: {', '.join(_ENV_PREFIXES)}"
        )


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_api_key(provider: str) -> Optional[str]:
    """Get the API key for a provider from the environment."""
    return _env_str(f"{_env_prefix(provider)}_API_KEY")


def get_base_url(provider: str) -> Optional[str]:
    """Get a base URL override for a provider, if any."""
    return _env_str(f"{_env_prefix(provider)}_BASE_URL")


def get_default_model(provider: str) -> Optional[str]:
    """Get the default model for a provider, if any."""
    return _env_str(f"{_env_prefix(provider)}_MODEL")


def get_timeout() -> float:
    """Request timeout in seconds."""
    raw = _env_str("AIKIT_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"Invalid AIKIT_TIMEOUT: {raw!r}")
    if timeout <= 0:
        raise ValueError(f"AIKIT_TIMEOUT must be positive, got {raw!r}")
    return timeout


def get_max_retries() -> int:
    """Connection attempts allowed before the first streamed line."""
    raw = _env_str("AIKIT_MAX_RETRIES")
    if raw is None:
        return DEFAULT_MAX_RETRIES
    try:
        retries = int(raw)
    except ValueError:
        raise ValueError(f"Invalid AIKIT_MAX_RETRIES: {raw!r}")
    if retries < 1:
        raise ValueError(f"AIKIT_MAX_RETRIES must be at least 1, got {raw!r}")
    return retries


def get_log_settings() -> LogSettings:
    """Read LOG_LEVEL / LOG_FORMAT."""
    level = (_env_str("LOG_LEVEL") or "WARNING").upper()
    json_output = (_env_str("LOG_FORMAT") or "json").lower() == "json"
    return LogSettings(level=level, json_output=json_output)
