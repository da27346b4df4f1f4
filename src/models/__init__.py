"""Domain models for the roster validator.

This package contains the entity schema, the finding/anomaly result types and
the configuration dataclass shared by the matching, validator and service layers.
"""

from .anomaly import Anomaly, AnomalyCategory, AnomalySeverity
from .check_result import CheckResult, CheckStatus
from .config_models import DEFAULT_CONFIG, ValidationConfig
from .entity import EntityKind, EntityRow
from .finding import DATASET_ROW, Finding, Severity

__all__ = [
    # Entities
    "EntityKind",
    "EntityRow",
    # Results
    "Finding",
    "Severity",
    "DATASET_ROW",
    "Anomaly",
    "AnomalyCategory",
    "AnomalySeverity",
    "CheckResult",
    "CheckStatus",
    # Configuration
    "ValidationConfig",
    "DEFAULT_CONFIG",
]
