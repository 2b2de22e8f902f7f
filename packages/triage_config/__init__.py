"""Case Triage Engine - Configuration Package."""

from .loader import ConfigurationError, load_config_from_dict, load_config_from_yaml
from .schemas import (
    AutoResolutionSettings,
    CollaboratorSettings,
    CountTier,
    DeadlineTier,
    MatchingSettings,
    MonitorSettings,
    RedisSettings,
    SeverityThresholds,
    SpecialistSeed,
    TriageConfig,
    TriggerSettings,
)

__version__ = "0.1.0"

__all__ = [
    "AutoResolutionSettings",
    "CollaboratorSettings",
    "ConfigurationError",
    "CountTier",
    "DeadlineTier",
    "MatchingSettings",
    "MonitorSettings",
    "RedisSettings",
    "SeverityThresholds",
    "SpecialistSeed",
    "TriageConfig",
    "TriggerSettings",
    "load_config_from_dict",
    "load_config_from_yaml",
]
