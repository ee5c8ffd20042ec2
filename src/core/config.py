"""Configuration management for task-scheduler."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_SECRET_KEY = "dev-secret-key-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    sqlite_db_path: str = Field(default="data/task_scheduler.db", description="SQLite database file path")

    # Session Configuration
    secret_key: str = Field(default=DEV_SECRET_KEY, description="Secret used to sign session cookies")
    session_max_age_seconds: int = Field(default=86400 * 30, description="Session cookie lifetime in seconds")

    # Environment
    environment: str = Field(default="development", description="Deployment environment name")
    locale: str = Field(default="ja", description="Locale for client-facing error messages (ja or en)")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # GitHub Actions Configuration (CI performance monitor)
    github_owner: str = Field(default="yukifrog", description="Repository owner for CI monitoring")
    github_repo: str = Field(default="task-scheduler", description="Repository name for CI monitoring")
    github_workflow_id: str = Field(default="ci.yml", description="Workflow file or ID to analyze")
    github_token: str | None = Field(default=None, description="GitHub token (optional, raises rate limits)")
    github_api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")

    # CI Performance Thresholds
    ci_max_runs: int = Field(default=50, description="Number of recent runs to analyze")
    ci_request_delay_seconds: float = Field(default=0.1, description="Delay between API calls to respect rate limits")
    ci_data_dir: str = Field(default="reports/ci-performance", description="Directory for CI performance reports")
    ci_total_time_threshold: int = Field(default=300, description="Run duration warning threshold in seconds")
    ci_cache_hit_threshold: float = Field(default=85, description="Minimum acceptable cache hit rate (%)")
    ci_degradation_percent: float = Field(default=20, description="Trend change threshold (%)")

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production (controls secure cookies and mock fallbacks)."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Session cookie
    SESSION_COOKIE_NAME: str = "session"

    # Routine defaults
    DEFAULT_ROUTINE_ESTIMATED_MINUTES: int = 60
    DEFAULT_REPEAT_INTERVAL: int = 1

    # Timer
    TIMER_TICK_SECONDS: float = 1.0

    # CI trend analysis
    CI_TREND_RECENT_WINDOW: int = 10  # Runs counted as "recent" for trend comparison
    CI_FAILURE_WINDOW: int = 5  # Most recent runs inspected for failures
    CI_FAILURE_ALERT_COUNT: int = 3  # Failures within the window that raise an error alert
    CI_BASELINE_RANGE_SECONDS: tuple[int, int] = (90, 150)
    CI_BASELINE_EXPECTED_IMPROVEMENT: int = 60  # Percent
    CI_REPORT_RECENT_RUNS: int = 15  # Rows shown in the HTML report table
    CI_MOCK_RUN_COUNT: int = 20

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    TEMPLATES_DIR: Path = PROJECT_ROOT / "templates"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
