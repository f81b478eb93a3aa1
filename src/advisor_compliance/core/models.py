"""SQLAlchemy ORM models for the compliance store.

All models use the `cmp_` table prefix and extend TenantScopedModel for
automatic id (UUID), tenant_id, created_at and updated_at fields.

Models:
- Client               Subject of checks, cases and documents (display name only)
- ComplianceRule       Named compliance policy with category and severity
- ComplianceCheck      Append-only evaluation outcome of a rule against a client
- ComplianceCase       Investigation / remediation item with a status lifecycle
- CaseComment          Append-only comment thread on a case
- ComplianceDocument   Compliance artifact with an optional expiry date

Status and category columns are stored as strings; the service layer parses
them into the enums in monitoring/types.py and rejects unknown values.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisor_compliance.database import TenantScopedModel


class Client(TenantScopedModel):
    """A client (subject) that checks, cases and documents pertain to.

    Owned by the CRM screens; this service only reads the display name.
    """

    __tablename__ = "cmp_clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Client display name")


class ComplianceRule(TenantScopedModel):
    """Compliance rule monitored for a tenant.

    Rules are created by an administrator and toggled on or off at any time.
    They are never physically deleted by this service.

    Attributes:
        name: Human-readable rule name.
        category: identity_verification | documentation | suitability | trading | portfolio_risk.
        severity: low | medium | high | critical.
        enabled: Whether the rule is actively monitored.
        check_frequency: daily | weekly | monthly | on_trade | on_profile_update.
        auto_check: Whether checks run automatically.
        revision: Incremented on every write; used for compare-and-swap.
    """

    __tablename__ = "cmp_compliance_rules"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    check_frequency: Mapped[str] = mapped_column(String(30), nullable=False, default="daily")
    auto_check: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class ComplianceCheck(TenantScopedModel):
    """One evaluation outcome of a rule against a client.

    Immutable once written. New checks are appended, never edited.

    Attributes:
        status: pass | fail | warning | needs_review.
        checked_at: When the check ran.
        risk_score: Optional risk score reported by the check.
    """

    __tablename__ = "cmp_compliance_checks"

    rule_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cmp_compliance_rules.id"), nullable=True
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cmp_clients.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    checked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    risk_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    checked_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    rule: Mapped[ComplianceRule | None] = relationship(lazy="joined")
    client: Mapped[Client | None] = relationship(lazy="joined")


class ComplianceCase(TenantScopedModel):
    """Investigation / remediation case.

    Attributes:
        case_number: Human-facing case reference, unique per tenant.
        priority: low | medium | high | critical.
        status: open | under_review | resolved.
        resolved_at: Stamped when the case moves to resolved; kept on reopen.
        revision: Incremented on every status write; used for compare-and-swap.
    """

    __tablename__ = "cmp_compliance_cases"

    case_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cmp_clients.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open", index=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    client: Mapped[Client | None] = relationship(lazy="joined")


class CaseComment(TenantScopedModel):
    """Comment on a compliance case. Insert and read only."""

    __tablename__ = "cmp_case_comments"

    case_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cmp_compliance_cases.id"), nullable=False, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)


class ComplianceDocument(TenantScopedModel):
    """Compliance document uploaded for a client.

    days_until_expiry is derived on every read and never stored.

    Attributes:
        document_type: Free-form type, e.g. kyc_form or risk_disclosure.
        status: approved | pending | expired | rejected.
        expiry_date: Optional calendar expiry date.
    """

    __tablename__ = "cmp_compliance_documents"

    client_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cmp_clients.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True, default="pending")
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    client: Mapped[Client | None] = relationship(lazy="joined")
