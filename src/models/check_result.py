from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .finding import Finding, Severity

"""Per-check result model for the field validator run.

The status of a check is derived from its findings:
failed (errors > 0) / warning (warnings > 0, no errors) / passed.
"""

__all__ = [
    "CheckStatus",
    "CheckResult",
]


class CheckStatus(Enum):
    """Status of one validator check.

    - PASSED: no error or warning findings (info findings allowed)
    - WARNING: warnings only
    - FAILED: at least one error, including a synthetic execution failure
    """
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


@dataclass(frozen=True)
class CheckResult:
    check_id: str  # 例: "duplicate_ids"
    name: str
    description: str
    findings: tuple[Finding, ...] = field(default_factory=tuple)

    @property
    def errors(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.ERROR)

    @property
    def warnings(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.WARNING)

    @property
    def status(self) -> CheckStatus:
        if self.errors > 0:
            return CheckStatus.FAILED
        if self.warnings > 0:
            return CheckStatus.WARNING
        return CheckStatus.PASSED
