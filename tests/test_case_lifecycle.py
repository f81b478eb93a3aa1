"""Tests for the case status state machine."""

from datetime import timedelta

import pytest

from advisor_compliance.errors import ValidationError
from advisor_compliance.monitoring.case_lifecycle import (
    ALLOWED_TRANSITIONS,
    apply_transition,
    parse_case_status,
    validate_transition,
)
from advisor_compliance.monitoring.types import CaseStatus
from tests.conftest import FIXED_NOW, make_case


class TestParseCaseStatus:
    def test_known_status(self) -> None:
        assert parse_case_status("under_review") == CaseStatus.UNDER_REVIEW

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_case_status("closed")
        assert exc_info.value.field == "status"


class TestValidateTransition:
    @pytest.mark.parametrize("status", list(CaseStatus))
    def test_same_state_move_rejected(self, status: CaseStatus) -> None:
        with pytest.raises(ValidationError):
            validate_transition(status, status)

    def test_every_other_move_allowed(self) -> None:
        for current, targets in ALLOWED_TRANSITIONS.items():
            assert targets == frozenset(CaseStatus) - {current}
            for target in targets:
                validate_transition(current, target)


class TestApplyTransition:
    def test_resolve_stamps_resolved_at(self) -> None:
        case = make_case(CaseStatus.UNDER_REVIEW)
        resolved = apply_transition(case, CaseStatus.RESOLVED, FIXED_NOW)
        assert resolved.status == CaseStatus.RESOLVED
        assert resolved.resolved_at == FIXED_NOW
        assert resolved.updated_at == FIXED_NOW
        assert resolved.revision == case.revision + 1
        assert case.status == CaseStatus.UNDER_REVIEW

    def test_review_keeps_resolved_at_empty(self) -> None:
        reviewed = apply_transition(make_case(CaseStatus.OPEN), CaseStatus.UNDER_REVIEW, FIXED_NOW)
        assert reviewed.resolved_at is None
        assert reviewed.updated_at == FIXED_NOW

    def test_reopen_keeps_previous_resolved_at(self) -> None:
        earlier = FIXED_NOW - timedelta(days=3)
        case = make_case(CaseStatus.RESOLVED, resolved_at=earlier)
        reopened = apply_transition(case, CaseStatus.OPEN, FIXED_NOW)
        assert reopened.status == CaseStatus.OPEN
        assert reopened.resolved_at == earlier

    def test_invalid_move_raises(self) -> None:
        with pytest.raises(ValidationError):
            apply_transition(make_case(CaseStatus.OPEN), CaseStatus.OPEN, FIXED_NOW)
