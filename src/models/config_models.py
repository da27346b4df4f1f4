from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the roster validator.

Every threshold used by the reconciler and the validators lives here so that a
YAML file (see src/config/loader.py) can tune them. The defaults reproduce the
stock rule set.
"""


def _default_ranges() -> dict[str, tuple[float, float]]:
    return {
        "PriorityLevel": (1, 5),
        "MaxLoadPerPhase": (1, 20),
        "Duration": (1, 10),
        "MaxConcurrent": (1, 5),
    }


@dataclass(frozen=True)
class ValidationConfig:
    """Root configuration object for one validation session.

    Thresholds are inclusive bounds unless noted ("> threshold" comparisons are
    spelled out per attribute).
    """
    similarity_threshold: float = 0.3  # 自動マッピング採用の下限スコア
    numeric_ranges: dict[str, tuple[float, float]] = field(default_factory=_default_ranges)
    overload_threshold: float = 15  # MaxLoadPerPhase > this -> warning
    anomaly_limit: int = 10
    outlier_sigma: float = 2.0  # |v - mean| > sigma * stddev
    high_outlier_sigma: float = 3.0
    phase_min: int = 1
    phase_max: int = 10
    min_available_slots: int = 2
    min_skills: int = 2
    skill_overload: int = 6  # Skills entries > this -> pattern anomaly
    skills_to_keep: int = 4
    max_requested_tasks: int = 10
    skill_redundancy_threshold: int = 5  # workers with skill > this -> info
    high_priority_share: float = 0.6  # levels 4-5 share > this -> warning


DEFAULT_CONFIG = ValidationConfig()
