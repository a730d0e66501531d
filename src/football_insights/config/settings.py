"""Centralized configuration using pydantic-settings.

All configuration values are loaded from environment variables with sensible defaults.
Environment variables can be set in .env file or directly in the environment.

Usage:
    from football_insights.config import get_settings
    settings = get_settings()
    print(settings.football_data_api_key)
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # ==========================================================================
    # Database
    # ==========================================================================
    database_url: str = Field(
        default="sqlite:///data/football_insights.db",
        description="SQLAlchemy database URL"
    )

    # ==========================================================================
    # Fixture Source (football-data.org v4)
    # ==========================================================================
    football_data_api_key: Optional[str] = Field(
        default=None,
        description="football-data.org API token (X-Auth-Token header)"
    )
    football_data_base_url: str = Field(
        default="https://api.football-data.org/v4",
        description="Base URL of the fixture source"
    )
    competition_ids: List[int] = Field(
        default=[2021, 2014, 2019, 2002, 2015, 2003, 2016, 2017, 2018, 2001, 2013, 2024],
        description="Competitions whose standings feed the team strength model"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for fixture source requests"
    )
    fixture_window_days: int = Field(
        default=7,
        description="Days ahead covered by the default fixture query"
    )

    # ==========================================================================
    # Prediction Cache
    # ==========================================================================
    prediction_cache_ttl_seconds: int = Field(
        default=300,
        description="Time-to-live of the default prediction snapshot"
    )

    # ==========================================================================
    # Probability Model
    # ==========================================================================
    simulations: int = Field(
        default=5000,
        description="Monte Carlo trials per match"
    )
    simulation_seed: Optional[int] = Field(
        default=None,
        description="Fixed RNG seed (None reseeds every prediction)"
    )
    max_goals: int = Field(
        default=6,
        description="Highest goal count per side tracked in the score matrix"
    )
    home_advantage: float = Field(
        default=1.15,
        description="Home expected-goals multiplier (1.0 = neutral venue)"
    )
    league_average_goals: float = Field(
        default=1.35,
        description="League-average goals per team per match"
    )

    # ==========================================================================
    # Markets
    # ==========================================================================
    bookmaker_margin_pct: float = Field(
        default=7.0,
        description="Bookmaker margin applied to fair odds (e.g., 7.0 = 7%)"
    )
    confidence_floor: int = Field(
        default=5,
        description="Lowest displayed market confidence"
    )
    confidence_ceiling: int = Field(
        default=95,
        description="Highest displayed market confidence"
    )
    high_confidence_threshold: int = Field(
        default=60,
        description="Top-market confidence at or above which a match is High"
    )
    mid_confidence_threshold: int = Field(
        default=40,
        description="Top-market confidence at or above which a match is Mid"
    )

    # ==========================================================================
    # Derived Artifacts
    # ==========================================================================
    daily_picks_count: int = Field(
        default=5,
        description="Number of daily picks published per UTC day"
    )
    daily_picks_hour_utc: int = Field(
        default=6,
        description="UTC hour at which daily picks are generated"
    )
    longshot_target_legs: int = Field(
        default=25,
        description="Target leg count of the longshot accumulator"
    )
    longshot_window_days: int = Field(
        default=7,
        description="Forward-looking window for accumulator legs"
    )
    odds_comparison_bookmakers: List[str] = Field(
        default=["Bet365", "William Hill", "Betfair", "Unibet", "888sport"],
        description="Simulated bookmakers in the odds comparison"
    )
    odds_jitter_pct: float = Field(
        default=10.0,
        description="Typical jitter applied to synthesized bookmaker odds"
    )
    odds_max_deviation_pct: float = Field(
        default=15.0,
        description="Hard bound on synthesized odds deviation from canonical"
    )

    # ==========================================================================
    # Settlement
    # ==========================================================================
    settlement_interval_minutes: int = Field(
        default=15,
        description="Minutes between automatic settlement passes"
    )
    settlement_lookup_delay_seconds: float = Field(
        default=6.0,
        description="Delay between live match lookups during settlement"
    )
    default_stake: float = Field(
        default=10.0,
        description="Default stake for logged picks"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    data_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "data",
        description="Directory for data files"
    )
    logs_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "logs",
        description="Directory for log files"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_to_file: bool = Field(
        default=True,
        description="Whether to write logs to file"
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("bookmaker_margin_pct")
    @classmethod
    def validate_margin(cls, v: float) -> float:
        if not 0 <= v < 50:
            raise ValueError("bookmaker_margin_pct must be between 0 and 50")
        return v

    @field_validator("daily_picks_hour_utc")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("daily_picks_hour_utc must be between 0 and 23")
        return v

    @field_validator("simulations")
    @classmethod
    def validate_simulations(cls, v: int) -> int:
        if v < 100:
            raise ValueError("simulations must be at least 100")
        return v

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        if not 0 <= self.confidence_floor < self.confidence_ceiling <= 100:
            raise ValueError("confidence_floor must be below confidence_ceiling (0-100)")
        if self.mid_confidence_threshold >= self.high_confidence_threshold:
            raise ValueError("mid_confidence_threshold must be below high_confidence_threshold")
        if self.odds_jitter_pct > self.odds_max_deviation_pct:
            raise ValueError("odds_jitter_pct cannot exceed odds_max_deviation_pct")
        return self

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def bookmaker_margin(self) -> float:
        """Margin as decimal (e.g., 0.07 for 7%)."""
        return self.bookmaker_margin_pct / 100

    @property
    def db_path(self) -> Path:
        """Extract SQLite database path from URL."""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url.replace("sqlite:///", ""))
        return self.data_dir / "football_insights.db"

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        if self.database_url.startswith("sqlite:///") and ":memory:" not in self.database_url:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for performance.
    Call get_settings.cache_clear() to reload.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
