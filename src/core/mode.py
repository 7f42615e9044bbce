"""Execution mode (apply vs simulate).

The mode is an explicit value handed to the Session at construction; no
component reads it from global state.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.config import AppSettings


@dataclass(frozen=True)
class ExecutionMode:
    """Controls how operations are executed."""

    simulate: bool = False
    allow_real_download: bool = False

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ExecutionMode":
        return cls(simulate=settings.dry_run, allow_real_download=settings.allow_real_download)

    def is_simulating(self) -> bool:
        return self.simulate

    def should_download_for_real(self) -> bool:
        """True when not simulating, or when simulating with real downloads allowed.

        Simulated plans may need real artifacts on disk so later steps can
        reason about real paths/versions.
        """

        return not self.simulate or self.allow_real_download


APPLY = ExecutionMode()
SIMULATE = ExecutionMode(simulate=True)
