"""Pydantic models for CI performance analysis.

Report files and API responses use camelCase keys (``runId``,
``avgCacheHitRate`` ...); Python code reads and writes the snake_case field
names. Dump with ``by_alias=True`` when producing JSON.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.config import settings


class CIModel(BaseModel):
    """Base model that accepts and emits camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CacheStep(CIModel):
    """A cache-related workflow step."""

    name: str
    conclusion: str | None = None
    duration: int = 0
    is_hit: bool = False


class CacheAnalysis(CIModel):
    """Cache effectiveness of one run."""

    total_steps: int = 0
    hits: int = 0
    hit_rate: float = 0.0  # Percent, 2 decimal places
    details: list[CacheStep] = Field(default_factory=list)


class RunRecord(CIModel):
    """Analysis of a single completed workflow run."""

    run_id: int
    run_number: int
    branch: str | None = None
    event: str | None = None
    conclusion: str | None = None
    created_at: datetime
    duration: int  # Seconds
    duration_minutes: float
    test_job_duration: int = 0
    security_job_duration: int = 0
    cache: CacheAnalysis = Field(default_factory=CacheAnalysis)
    is_optimal: bool = False


class Thresholds(CIModel):
    """Alerting thresholds for CI runs."""

    total_time: int = 300  # Seconds
    cache_hit_rate: float = 85  # Percent
    degradation_percent: float = 20  # Percent

    @classmethod
    def from_settings(cls) -> "Thresholds":
        return cls(
            total_time=settings.ci_total_time_threshold,
            cache_hit_rate=settings.ci_cache_hit_threshold,
            degradation_percent=settings.ci_degradation_percent,
        )


class Alert(CIModel):
    """Threshold breach reported with a summary."""

    type: Literal["warning", "error"]
    category: Literal["performance", "cache", "reliability"]
    message: str
    severity: Literal["low", "medium", "high"]


class Baseline(CIModel):
    """Comparison against the expected post-caching duration range."""

    expected_duration_range: tuple[int, int]
    expected_improvement: int
    actual_performance: Literal["meeting-expectations", "below-expectations"]


class PerformanceSummary(CIModel):
    """Aggregate statistics over a sequence of runs."""

    total_runs: int
    avg_duration: int
    avg_duration_minutes: float
    avg_cache_hit_rate: float
    fastest_run: int
    slowest_run: int
    optimal_runs: int
    optimal_rate: int
    trend: Literal["improving", "stable", "degrading"]
    recent_avg_duration: int
    alerts: list[Alert] = Field(default_factory=list)
    analyzed_at: datetime
    baseline: Baseline


class NoDataSummary(CIModel):
    """Result of summarizing an empty run sequence."""

    total_runs: Literal[0] = 0
    error: str = "No valid analyses available"
    alerts: list[Alert] = Field(default_factory=list)
    analyzed_at: datetime
