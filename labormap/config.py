"""LaborMap configuration management.

Loads configuration from environment variables with sensible defaults.
Every setting has a default so the engine runs without a .env file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class DBConfig:
    """Database connection configuration (catalog and link records)."""

    url: str = "sqlite+aiosqlite:///./labormap.db"
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class MatchingConfig:
    """Candidate listing caps and keyword scoring weights."""

    listing_limit: int = 50
    ranking_limit: int = 20
    token_match_points: int = 15
    substring_points: int = 8
    code_points: int = 5
    prefix_bonus_points: int = 5
    prefix_bonus_min_length: int = 4  # bonus keywords must be longer than this
    series_fuzzy_min_score: int = 90  # RapidFuzz partial_ratio, 0-100


@dataclass
class DMSConfig:
    """Dealership management system REST endpoints."""

    base_url: str = "http://localhost:8080/api"
    api_key: str | None = None
    branch_code: str | None = None
    timeout_seconds: float = 30.0


@dataclass
class LLMConfig:
    """AI suggestion provider configuration."""

    provider: str = "openai"
    api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    temperature: float = 0.3
    history_sample_size: int = 30
    enrichment_batch_size: int = 25


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    json_logs: bool = False

    db: DBConfig = field(default_factory=DBConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    dms: DMSConfig = field(default_factory=DMSConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - DATABASE_URL: SQLAlchemy async URL for catalog/link storage
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: "true" for JSON log lines
        - DMS_BASE_URL / DMS_API_KEY / DMS_BRANCH_CODE: order and link endpoints
        - OPENAI_API_KEY: enables AI keyword hints and suggestions
        - Scoring weights (TOKEN_MATCH_POINTS, SUBSTRING_POINTS, ...)

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            db=DBConfig(
                url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./labormap.db"),
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            matching=MatchingConfig(
                listing_limit=int(os.getenv("LISTING_LIMIT", "50")),
                ranking_limit=int(os.getenv("RANKING_LIMIT", "20")),
                token_match_points=int(os.getenv("TOKEN_MATCH_POINTS", "15")),
                substring_points=int(os.getenv("SUBSTRING_POINTS", "8")),
                code_points=int(os.getenv("CODE_POINTS", "5")),
                prefix_bonus_points=int(os.getenv("PREFIX_BONUS_POINTS", "5")),
                prefix_bonus_min_length=int(os.getenv("PREFIX_BONUS_MIN_LENGTH", "4")),
                series_fuzzy_min_score=int(os.getenv("SERIES_FUZZY_MIN_SCORE", "90")),
            ),
            dms=DMSConfig(
                base_url=os.getenv("DMS_BASE_URL", "http://localhost:8080/api"),
                api_key=os.getenv("DMS_API_KEY"),
                branch_code=os.getenv("DMS_BRANCH_CODE"),
                timeout_seconds=float(os.getenv("DMS_TIMEOUT_SECONDS", "30")),
            ),
            llm=LLMConfig(
                provider=os.getenv("LLM_PROVIDER", "openai"),
                api_key=os.getenv("OPENAI_API_KEY"),
                llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
                temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
            ),
        )

    @property
    def config_root(self) -> Path:
        """Root directory for rule configuration files."""
        return Path(__file__).parent.parent / "config"

    @property
    def admission_rules_path(self) -> Path:
        """Path to admission_rules.yaml."""
        return self.config_root / "admission_rules.yaml"

    @property
    def classification_rules_path(self) -> Path:
        """Path to classification_rules.yaml."""
        return self.config_root / "classification_rules.yaml"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config
