"""Outcome bookkeeping shared by the reconciliation phases."""
from __future__ import annotations

from typing import Optional

from shared.models.domain import Event, SyncOutcome
from shared.models.enums import OutcomeKind, SkipReason, SyncPhase
from shared.utils.logging import get_logger
from shared.utils.metrics import SYNC_OUTCOMES

logger = get_logger(__name__)


def record(
    outcomes: list[SyncOutcome],
    phase: SyncPhase,
    kind: OutcomeKind,
    title: str,
    event: Optional[Event] = None,
    external_id: Optional[int] = None,
    reason: Optional[SkipReason] = None,
    detail: Optional[str] = None,
) -> SyncOutcome:
    """Append an outcome to the running list, log it and count it."""
    outcome = SyncOutcome(
        phase=phase,
        kind=kind,
        title=title,
        event_id=event.id if event else None,
        external_id=external_id if external_id is not None else (event.external_id if event else None),
        reason=reason,
        detail=detail,
    )
    outcomes.append(outcome)
    SYNC_OUTCOMES.labels(phase=phase.value, kind=kind.value).inc()
    log = logger.info if kind != OutcomeKind.SKIPPED else logger.debug
    log(
        "sync_outcome",
        phase=phase.value,
        kind=kind.value,
        title=title,
        event_id=str(outcome.event_id) if outcome.event_id else None,
        external_id=outcome.external_id,
        reason=reason.value if reason else None,
        detail=detail,
    )
    return outcome
