"""Test fixtures for the advisor compliance engine.

Provides:
- tenant_id / actor_id / tenant: a deterministic TenantContext
- fixed_now / clock: a frozen reference instant
- make_rule / make_check / make_case / make_document: monitoring records
- make_fake_*_row: MagicMock ORM rows as returned by the repositories
"""

import uuid
from datetime import UTC, date, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from advisor_compliance.auth import TenantContext
from advisor_compliance.monitoring.types import (
    CaseRecord,
    CaseStatus,
    CheckRecord,
    CheckStatus,
    DocumentRecord,
    DocumentStatus,
    RuleCategory,
    RuleRecord,
    Severity,
)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture()
def tenant_id() -> uuid.UUID:
    """Return a fixed tenant UUID for consistent test assertions."""
    return uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture()
def actor_id() -> uuid.UUID:
    """Return a fixed actor UUID for consistent test assertions."""
    return uuid.UUID("00000000-0000-0000-0000-000000000002")


@pytest.fixture()
def tenant(tenant_id: uuid.UUID, actor_id: uuid.UUID) -> TenantContext:
    """Create a TenantContext for service and API tests."""
    return TenantContext(tenant_id=tenant_id, user_id=actor_id)


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def clock() -> MagicMock:
    """A clock callable frozen at FIXED_NOW."""
    return MagicMock(return_value=FIXED_NOW)


# ---------------------------------------------------------------------------
# Monitoring record builders
# ---------------------------------------------------------------------------


def make_rule(
    name: str = "KYC refresh",
    category: RuleCategory = RuleCategory.IDENTITY_VERIFICATION,
    severity: Severity = Severity.MEDIUM,
    enabled: bool = True,
    rule_id: uuid.UUID | None = None,
    revision: int = 1,
) -> RuleRecord:
    return RuleRecord(
        id=rule_id or uuid.uuid4(),
        name=name,
        category=category,
        severity=severity,
        enabled=enabled,
        revision=revision,
    )


def make_check(
    status: CheckStatus = CheckStatus.PASS,
    checked_at: datetime | None = None,
) -> CheckRecord:
    return CheckRecord(
        id=uuid.uuid4(),
        rule_id=uuid.uuid4(),
        subject_id=uuid.uuid4(),
        status=status,
        checked_at=checked_at or FIXED_NOW - timedelta(days=1),
    )


def make_case(
    status: CaseStatus = CaseStatus.OPEN,
    priority: Severity = Severity.MEDIUM,
    created_at: datetime | None = None,
    case_number: str = "CMP-0001",
    title: str = "Unsuitable trade",
    subject_name: str | None = None,
    resolved_at: datetime | None = None,
    case_id: uuid.UUID | None = None,
) -> CaseRecord:
    return CaseRecord(
        id=case_id or uuid.uuid4(),
        case_number=case_number,
        title=title,
        priority=priority,
        status=status,
        created_at=created_at or FIXED_NOW - timedelta(days=2),
        subject_name=subject_name,
        resolved_at=resolved_at,
    )


def make_document(
    name: str = "Passport",
    expiry_date: date | datetime | str | None = None,
    days_until_expiry: int | None = None,
    status: DocumentStatus | None = DocumentStatus.APPROVED,
    subject_name: str | None = None,
) -> DocumentRecord:
    return DocumentRecord(
        id=uuid.uuid4(),
        name=name,
        subject_name=subject_name,
        status=status,
        expiry_date=expiry_date,
        days_until_expiry=days_until_expiry,
    )


# ---------------------------------------------------------------------------
# Fake ORM rows
# ---------------------------------------------------------------------------


def make_fake_client_row(name: str = "Jordan Client") -> MagicMock:
    client = MagicMock()
    client.id = uuid.uuid4()
    client.name = name
    return client


def make_fake_rule_row(
    tenant_id: uuid.UUID,
    name: str = "KYC refresh",
    category: str = "identity_verification",
    severity: str = "high",
    enabled: bool = True,
    revision: int = 1,
) -> MagicMock:
    """Create a fake ComplianceRule ORM object for tests."""
    rule = MagicMock()
    rule.id = uuid.uuid4()
    rule.tenant_id = tenant_id
    rule.name = name
    rule.description = None
    rule.category = category
    rule.severity = severity
    rule.enabled = enabled
    rule.check_frequency = "daily"
    rule.auto_check = True
    rule.revision = revision
    return rule


def make_fake_check_row(
    tenant_id: uuid.UUID,
    status: str = "pass",
    checked_at: datetime | None = None,
    rule_name: str = "KYC refresh",
) -> MagicMock:
    """Create a fake ComplianceCheck ORM object with joined rule and client."""
    check = MagicMock()
    check.id = uuid.uuid4()
    check.tenant_id = tenant_id
    check.rule = MagicMock()
    check.rule.name = rule_name
    check.rule_id = uuid.uuid4()
    check.client = make_fake_client_row()
    check.client_id = check.client.id
    check.status = status
    check.checked_at = checked_at or FIXED_NOW - timedelta(days=1)
    check.risk_score = None
    return check


def make_fake_case_row(
    tenant_id: uuid.UUID,
    status: str = "open",
    priority: str = "medium",
    created_at: datetime | None = None,
    revision: int = 1,
    case_id: uuid.UUID | None = None,
    resolved_at: datetime | None = None,
) -> MagicMock:
    """Create a fake ComplianceCase ORM object for tests."""
    case = MagicMock()
    case.id = case_id or uuid.uuid4()
    case.tenant_id = tenant_id
    case.case_number = "CMP-1A2B3C4D"
    case.title = "Unsuitable trade"
    case.description = None
    case.priority = priority
    case.status = status
    case.client = None
    case.client_id = None
    case.created_at = created_at or FIXED_NOW - timedelta(days=2)
    case.updated_at = None
    case.resolved_at = resolved_at
    case.revision = revision
    return case


def make_fake_document_row(
    tenant_id: uuid.UUID,
    name: str = "Passport",
    expiry_date: date | None = None,
    status: str = "approved",
) -> MagicMock:
    """Create a fake ComplianceDocument ORM object for tests."""
    document = MagicMock()
    document.id = uuid.uuid4()
    document.tenant_id = tenant_id
    document.name = name
    document.document_type = "identity"
    document.status = status
    document.expiry_date = expiry_date
    document.client = make_fake_client_row()
    document.client_id = document.client.id
    return document


def make_fake_comment_row(tenant_id: uuid.UUID, case_id: uuid.UUID, author_id: uuid.UUID) -> MagicMock:
    comment = MagicMock()
    comment.id = uuid.uuid4()
    comment.tenant_id = tenant_id
    comment.case_id = case_id
    comment.author_id = author_id
    comment.comment = "Requested updated suitability form"
    comment.created_at = FIXED_NOW
    return comment
