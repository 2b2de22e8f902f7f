"""Configuration schemas for the triage engine.

This module defines Pydantic models for engine configuration validation.
All configuration must be validated before use so that scoring tables,
matching weights and sweep intervals are known to be consistent.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class SeverityThresholds(BaseModel):
    """Ordered score thresholds for the severity tiers."""

    critical: int = Field(default=80, ge=0, description="Minimum score for critical")
    high: int = Field(default=60, ge=0, description="Minimum score for high")
    medium: int = Field(default=40, ge=0, description="Minimum score for medium")
    low: int = Field(
        default=20,
        ge=0,
        description="Minimum score for low; also the escalation threshold",
    )

    @model_validator(mode="after")
    def validate_order(self) -> "SeverityThresholds":
        """Validate thresholds are strictly decreasing from critical to low."""
        if not self.critical > self.high > self.medium > self.low:
            raise ValueError("Severity thresholds must satisfy critical > high > medium > low")
        return self

    def as_table(self) -> List[Tuple[str, int]]:
        """Get the threshold table ordered from most to least severe.

        Returns:
            List of (severity name, minimum score) tuples
        """
        return [
            ("critical", self.critical),
            ("high", self.high),
            ("medium", self.medium),
            ("low", self.low),
        ]


class DeadlineTier(BaseModel):
    """Contribution awarded when the deadline is closer than a number of hours."""

    within_hours: float = Field(..., gt=0, description="Upper bound in hours (exclusive)")
    weight: int = Field(..., ge=0, description="Score contribution for this tier")


class CountTier(BaseModel):
    """Contribution awarded when a counted signal reaches a minimum."""

    at_least: int = Field(..., ge=1, description="Minimum count (inclusive)")
    weight: int = Field(..., ge=0, description="Score contribution for this tier")


class TriggerSettings(BaseModel):
    """Weights and tiers for the escalation trigger signals."""

    manual_weight: int = Field(default=50, ge=0, description="Flat weight for manual requests")
    deadline_tiers: List[DeadlineTier] = Field(
        default_factory=lambda: [
            DeadlineTier(within_hours=24, weight=40),
            DeadlineTier(within_hours=72, weight=25),
            DeadlineTier(within_hours=168, weight=15),
        ],
        description="Deadline proximity tiers",
    )
    failure_tiers: List[CountTier] = Field(
        default_factory=lambda: [
            CountTier(at_least=5, weight=35),
            CountTier(at_least=3, weight=20),
            CountTier(at_least=2, weight=10),
        ],
        description="Consecutive failure tiers",
    )
    sentiment_tiers: List[CountTier] = Field(
        default_factory=lambda: [
            CountTier(at_least=3, weight=30),
            CountTier(at_least=2, weight=15),
            CountTier(at_least=1, weight=5),
        ],
        description="Negative interaction count tiers",
    )
    sentiment_lookback: int = Field(
        default=5, ge=1, description="Number of recent interactions inspected"
    )
    negative_sentiments: List[str] = Field(
        default_factory=lambda: ["frustrated", "angry"],
        description="Sentiment labels counted as negative",
    )
    complexity_indicators: List[str] = Field(
        default_factory=lambda: [
            "multiple servicers",
            "legal issue",
            "compliance violation",
            "system integration",
            "data corruption",
            "security breach",
            "regulatory requirement",
        ],
        description="Phrases that mark an issue as high complexity",
    )
    complexity_indicator_weight: int = Field(default=10, ge=0)
    affected_systems_threshold: int = Field(
        default=2, ge=0, description="Bonus applies when more systems than this are affected"
    )
    affected_systems_bonus: int = Field(default=15, ge=0)
    complexity_cap: int = Field(default=25, ge=0, description="Ceiling for complexity")

    @field_validator("deadline_tiers")
    @classmethod
    def sort_deadline_tiers(cls, v: List[DeadlineTier]) -> List[DeadlineTier]:
        """Order deadline tiers from nearest to farthest."""
        return sorted(v, key=lambda tier: tier.within_hours)

    @field_validator("failure_tiers", "sentiment_tiers")
    @classmethod
    def sort_count_tiers(cls, v: List[CountTier]) -> List[CountTier]:
        """Order count tiers from highest to lowest minimum."""
        return sorted(v, key=lambda tier: tier.at_least, reverse=True)

    @field_validator("negative_sentiments", "complexity_indicators")
    @classmethod
    def normalize_phrases(cls, v: List[str]) -> List[str]:
        """Lowercase phrases and drop blanks."""
        return [phrase.strip().lower() for phrase in v if phrase and phrase.strip()]


class MatchingSettings(BaseModel):
    """Weights and limits for specialist assignment."""

    specialty_weight: float = Field(default=40, ge=0)
    success_weight: float = Field(default=30, ge=0)
    load_weight: float = Field(default=20, ge=0)
    timeliness_weight: float = Field(default=10, ge=0)
    max_load: int = Field(default=5, ge=1, description="Maximum open cases per specialist")
    resolution_time_baseline_minutes: float = Field(
        default=180, gt=0, description="Resolution time that earns no timeliness credit"
    )
    exclude_previous_on_reassign: bool = Field(
        default=True,
        description="Whether a stale case may go back to the specialist it left",
    )


class AutoResolutionSettings(BaseModel):
    """Settings for resolving cases without a human."""

    enabled: bool = Field(default=True)
    confidence_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Confidence must exceed this value"
    )
    similar_case_limit: int = Field(default=20, ge=1)
    min_similarity: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Minimum similarity for a prior outcome to count"
    )
    fallback_action: str = Field(default="Retry with adjusted parameters")
    max_prevention_measures: int = Field(default=3, ge=0)

    @field_validator("fallback_action")
    @classmethod
    def validate_fallback_action(cls, v: str) -> str:
        """Validate fallback action is not empty."""
        if not v or not v.strip():
            raise ValueError("Fallback action cannot be empty")
        return v.strip()


class MonitorSettings(BaseModel):
    """Intervals for the background sweeps."""

    reassignment_interval_seconds: float = Field(default=300, gt=0)
    availability_interval_seconds: float = Field(default=60, gt=0)
    critical_stale_minutes: float = Field(default=30, gt=0)
    retry_pending: bool = Field(
        default=True, description="Retry assignment of pending cases during the sweep"
    )


class CollaboratorSettings(BaseModel):
    """Timeouts and retry bounds for collaborator calls."""

    read_timeout_seconds: float = Field(default=2.0, gt=0)
    write_timeout_seconds: float = Field(default=5.0, gt=0)
    write_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=0.2, ge=0)


class RedisSettings(BaseModel):
    """Connection settings for the Redis-backed collaborators."""

    enabled: bool = Field(default=False)
    url: str = Field(default="redis://localhost:6379/0")
    key_prefix: str = Field(default="triage")

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Validate key prefix is not empty."""
        if not v or not v.strip():
            raise ValueError("Key prefix cannot be empty")
        return v.strip().rstrip(":")


class SpecialistSeed(BaseModel):
    """A specialist loaded into the directory at startup."""

    id: str = Field(..., description="Unique specialist identifier")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="Contact address")
    specialties: List[str] = Field(default_factory=list)
    availability: str = Field(default="available")
    current_load: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    average_resolution_time: float = Field(default=60.0, ge=0.0)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate specialist id is not empty."""
        if not v or not v.strip():
            raise ValueError("Specialist id cannot be empty")
        return v.strip()

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v: str) -> str:
        """Validate availability is supported."""
        supported = {"available", "busy", "offline"}
        if v not in supported:
            raise ValueError(f"Availability '{v}' not supported. Must be one of: {supported}")
        return v


class TriageConfig(BaseModel):
    """Complete engine configuration."""

    thresholds: SeverityThresholds = Field(default_factory=SeverityThresholds)
    triggers: TriggerSettings = Field(default_factory=TriggerSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    auto_resolution: AutoResolutionSettings = Field(default_factory=AutoResolutionSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    collaborators: CollaboratorSettings = Field(default_factory=CollaboratorSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    specialists: List[SpecialistSeed] = Field(
        default_factory=list, description="Specialists seeded into the directory"
    )

    @field_validator("specialists")
    @classmethod
    def validate_specialists(cls, v: List[SpecialistSeed]) -> List[SpecialistSeed]:
        """Validate specialist ids are unique."""
        ids = [seed.id for seed in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Specialist ids must be unique")
        return v
