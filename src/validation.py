"""Input and environment validation helpers."""

import re
from dataclasses import dataclass
from typing import Any, Mapping

EMBEDDING_PROVIDERS = ("local", "gemini", "openai")

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class ConfigError(ValueError):
    """Raised when required environment configuration is missing or invalid."""


def is_valid_search_query(query: Any) -> bool:
    """A search query is a string with at least two non-blank characters."""
    return isinstance(query, str) and len(query.strip()) >= 2


def is_valid_embedding_provider(provider: Any) -> bool:
    return isinstance(provider, str) and provider in EMBEDDING_PROVIDERS


def is_valid_slug(slug: Any) -> bool:
    """Lowercase alphanumeric words joined by single hyphens."""
    return isinstance(slug, str) and _SLUG_RE.match(slug) is not None


@dataclass(frozen=True)
class EnvironmentConfig:
    turso_db_url: str
    turso_auth_token: str
    embedding_provider: str = "local"
    gemini_api_key: str | None = None
    openai_api_key: str | None = None


def validate_environment(env: Mapping[str, str | None]) -> EnvironmentConfig:
    """Check deployment environment variables and return them normalized.

    Args:
        env: Mapping of variable names to values, typically ``os.environ``.

    Raises:
        ConfigError: If a required variable is missing or the embedding
            provider is unknown or lacks its API key.
    """
    if not env.get("TURSO_DB_URL"):
        raise ConfigError("TURSO_DB_URL is required")

    if not env.get("TURSO_AUTH_TOKEN"):
        raise ConfigError("TURSO_AUTH_TOKEN is required")

    provider = env.get("EMBEDDING_PROVIDER") or "local"
    if not is_valid_embedding_provider(provider):
        raise ConfigError(
            f"Invalid EMBEDDING_PROVIDER: {provider}. "
            "Must be 'local', 'gemini', or 'openai'"
        )

    if provider == "gemini" and not env.get("GEMINI_API_KEY"):
        raise ConfigError("GEMINI_API_KEY is required when using gemini provider")

    if provider == "openai" and not env.get("OPENAI_API_KEY"):
        raise ConfigError("OPENAI_API_KEY is required when using openai provider")

    return EnvironmentConfig(
        turso_db_url=env["TURSO_DB_URL"],
        turso_auth_token=env["TURSO_AUTH_TOKEN"],
        embedding_provider=provider,
        gemini_api_key=env.get("GEMINI_API_KEY"),
        openai_api_key=env.get("OPENAI_API_KEY"),
    )
