"""Case status state machine.

Every status change goes through apply_transition(), which validates the
move against ALLOWED_TRANSITIONS. Moving to resolved stamps resolved_at.
Moving away from resolved keeps the earlier resolved_at, so a reopened case
still shows when it was last resolved. Every move stamps updated_at.
"""

import dataclasses
from datetime import datetime

from advisor_compliance.errors import ValidationError
from advisor_compliance.monitoring.types import CaseRecord, CaseStatus

ALLOWED_TRANSITIONS: dict[CaseStatus, frozenset[CaseStatus]] = {
    CaseStatus.OPEN: frozenset({CaseStatus.UNDER_REVIEW, CaseStatus.RESOLVED}),
    CaseStatus.UNDER_REVIEW: frozenset({CaseStatus.OPEN, CaseStatus.RESOLVED}),
    CaseStatus.RESOLVED: frozenset({CaseStatus.OPEN, CaseStatus.UNDER_REVIEW}),
}


def parse_case_status(value: str) -> CaseStatus:
    """Parse a status string, rejecting anything outside the enumeration.

    Raises:
        ValidationError: If ``value`` is not a known case status.
    """
    try:
        return CaseStatus(value)
    except ValueError:
        allowed = sorted(status.value for status in CaseStatus)
        raise ValidationError(
            message=f"Unknown case status '{value}'. Allowed: {allowed}",
            field="status",
        ) from None


def validate_transition(current: CaseStatus, target: CaseStatus) -> None:
    """Raise ValidationError unless ``current -> target`` is an allowed move."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ValidationError(
            message=f"Cannot move case from '{current.value}' to '{target.value}'",
            field="status",
        )


def apply_transition(case: CaseRecord, target: CaseStatus, now: datetime) -> CaseRecord:
    """Return a copy of ``case`` moved to ``target``.

    Args:
        case: The current case snapshot.
        target: Requested status.
        now: Timestamp stamped into updated_at (and resolved_at when resolving).

    Returns:
        The transitioned case with its revision incremented.

    Raises:
        ValidationError: If the move is not in ALLOWED_TRANSITIONS.
    """
    validate_transition(case.status, target)
    resolved_at = now if target == CaseStatus.RESOLVED else case.resolved_at
    return dataclasses.replace(
        case,
        status=target,
        updated_at=now,
        resolved_at=resolved_at,
        revision=case.revision + 1,
    )
