"""
Error taxonomy for the sync engine.

Fatal errors (ConfigurationError, FeedUnavailableError) propagate to the
orchestrator and end the run. Per-item conditions (NoMatchFound,
IncompleteFeedRecord, TransformFailure) are absorbed by the phase that raised
them and only ever show up as skipped outcomes in the run log.
"""
from __future__ import annotations

from typing import Optional

from shared.models.enums import SkipReason


class SyncError(Exception):
    """Base class for all sync engine errors."""


class ConfigurationError(SyncError):
    """Required configuration (e.g. the feed credential) is missing."""


class FeedUnavailableError(SyncError):
    """The feed could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ItemSkipped(SyncError):
    """A single event cannot be reconciled this run; the phase carries on."""

    default_reason: SkipReason = SkipReason.NO_MATCH

    def __init__(
        self,
        message: str,
        reason: Optional[SkipReason] = None,
        external_id: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason or self.default_reason
        self.external_id = external_id


class NoMatchFound(ItemSkipped):
    """No feed record corresponds to a local event."""


class IncompleteFeedRecord(ItemSkipped):
    """A feed record lacks data needed for this phase (final score, lineup)."""

    default_reason = SkipReason.NO_FINAL_SCORE


class TransformFailure(ItemSkipped):
    """A lineup payload could not be turned into player positions."""

    default_reason = SkipReason.TRANSFORM_FAILED
