from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.check_result import CheckResult

"""Progress display service with tqdm (TTY only).

A validate-all run is a sequence of stages (one per field check and entity
kind, then the cross-entity passes). On a TTY a single tqdm bar tracks the
stages; in non-TTY environments (CI, pipes) the bar is disabled so logs stay
free of control sequences.
"""

__all__ = [
    "StageProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class StageProgress:
    """Progress tracker over validation stages.

    Usable directly as the ``on_stage`` callback of run_field_validation().
    """

    def __init__(self, total_stages: int, *, description: str = "Validating") -> None:
        self.total_stages = total_stages
        self.description = description
        self.completed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_stages,
                desc=description,
                unit="check",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, result: CheckResult) -> None:
        self.advance(result.check_id, status=result.status.value)

    def advance(self, label: str, **postfix: Any) -> None:
        """Mark one stage as done."""
        self.completed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({label})")
            if postfix:
                self.pbar.set_postfix(**postfix)
            self.pbar.update(1)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(self.description)
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> StageProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
