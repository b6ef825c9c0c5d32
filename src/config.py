"""Central configuration for the docsite search API."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from src.validation import ConfigError, is_valid_embedding_provider, validate_environment

load_dotenv()

logger = logging.getLogger(__name__)

# Project root is the repository directory
PROJECT_ROOT = Path(__file__).parent.parent


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Turso / libSQL
    turso_db_url: str = field(default_factory=lambda: os.getenv("TURSO_DB_URL", ""))
    turso_auth_token: str = field(
        default_factory=lambda: os.getenv("TURSO_AUTH_TOKEN", "")
    )

    # Embeddings
    embedding_provider: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "local")
    )
    embedding_model: str = field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL", "sentence-transformers/all-mpnet-base-v2"
        )
    )
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))

    # Rate limiting (search endpoint)
    search_rate_limit_max_requests: int = field(
        default_factory=lambda: _env_int("SEARCH_RATE_LIMIT_MAX_REQUESTS", 20)
    )
    search_rate_limit_window_seconds: int = field(
        default_factory=lambda: _env_int("SEARCH_RATE_LIMIT_WINDOW_SECONDS", 60)
    )
    rate_limit_sweep_interval_seconds: int = field(
        default_factory=lambda: _env_int("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", 300)
    )
    rate_limit_client_headers: tuple[str, ...] = field(
        default_factory=lambda: _env_list(
            "RATE_LIMIT_CLIENT_HEADERS",
            ("cf-connecting-ip", "x-real-ip", "x-forwarded-for"),
        )
    )

    # Storage paths
    sqlite_db_path: Path = field(default=None)
    chroma_db_path: Path = field(default=None)

    # Data
    data_dir: Path = field(default=None)
    content_dir: Path = field(default=None)

    def __post_init__(self):
        if self.data_dir is None:
            self.data_dir = PROJECT_ROOT / "data"
        if self.content_dir is None:
            self.content_dir = Path(
                os.getenv("CONTENT_DIR", str(PROJECT_ROOT / "content"))
            )
        if self.sqlite_db_path is None:
            self.sqlite_db_path = Path(
                os.getenv("SQLITE_DB_PATH", str(self.data_dir / "local.db"))
            )
        if self.chroma_db_path is None:
            self.chroma_db_path = Path(
                os.getenv("CHROMA_DB_PATH", str(self.data_dir / "chroma_db"))
            )

    @property
    def has_turso_credentials(self) -> bool:
        return bool(self.turso_db_url and self.turso_auth_token)

    def as_env(self) -> dict[str, str]:
        """The deployment variables this config was read from, keyed by env name."""
        return {
            "TURSO_DB_URL": self.turso_db_url,
            "TURSO_AUTH_TOKEN": self.turso_auth_token,
            "EMBEDDING_PROVIDER": self.embedding_provider,
            "GEMINI_API_KEY": self.gemini_api_key,
            "OPENAI_API_KEY": self.openai_api_key,
        }

    def validate(self) -> None:
        """Raise ConfigError if the deployment settings are unusable.

        With Turso credentials the full environment check runs; without them
        only the embedding provider is checked.
        """
        if self.has_turso_credentials:
            validate_environment(self.as_env())
        elif not is_valid_embedding_provider(self.embedding_provider):
            raise ConfigError(
                f"Invalid EMBEDDING_PROVIDER: {self.embedding_provider}. "
                "Must be 'local', 'gemini', or 'openai'"
            )

    def ensure_dirs(self):
        """Create data directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.sqlite_db_path.parent.mkdir(parents=True, exist_ok=True)
        self.chroma_db_path.mkdir(parents=True, exist_ok=True)


def get_config() -> Config:
    """Get a Config instance. Call this instead of constructing directly."""
    config = Config()
    config.validate()
    config.ensure_dirs()
    if not config.has_turso_credentials:
        logger.warning(
            "Turso credentials not found, using local database at %s",
            config.sqlite_db_path,
        )
    return config
