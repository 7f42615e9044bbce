"""Errors raised by the default collaborators.

The dispatch layer never wraps or retries these: whatever a collaborator
raises reaches the caller unchanged.
"""

from __future__ import annotations


class DualrunError(Exception):
    """Base class for errors raised by dualrun components."""


class DownloadError(DualrunError):
    """A source could not be fetched, cached or placed at its destination."""


class ArchiveMemberNotFoundError(DownloadError):
    """The requested member does not exist inside the downloaded archive."""

    def __init__(self, archive: str, member: str) -> None:
        super().__init__(f"member {member!r} not found in archive {archive}")
        self.archive = archive
        self.member = member


class PkiGenerationError(DualrunError):
    """Key/certificate generation failed (e.g. an invalid SAN)."""


class PlanError(DualrunError):
    """A plan file could not be read or validated."""
