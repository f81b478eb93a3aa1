"""Domain types for compliance monitoring.

Records are immutable snapshots of store rows taken for one aggregation pass.
Status-like fields are enums so that unknown values are rejected when a record
is built rather than silently carried through the pipeline.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID


class RuleCategory(StrEnum):
    IDENTITY_VERIFICATION = "identity_verification"
    DOCUMENTATION = "documentation"
    SUITABILITY = "suitability"
    TRADING = "trading"
    PORTFOLIO_RISK = "portfolio_risk"


class Severity(StrEnum):
    """Ordered severity / priority scale shared by rules, cases and actions."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class CheckFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ON_TRADE = "on_trade"
    ON_PROFILE_UPDATE = "on_profile_update"


class CheckStatus(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    NEEDS_REVIEW = "needs_review"


class CaseStatus(StrEnum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"


class DocumentStatus(StrEnum):
    APPROVED = "approved"
    PENDING = "pending"
    EXPIRED = "expired"
    REJECTED = "rejected"


class InsightKind(StrEnum):
    ALERT = "alert"
    SUGGESTION = "suggestion"
    RISK = "risk"
    TREND = "trend"


class InsightSource(StrEnum):
    REMOTE = "remote"
    HEURISTIC = "heuristic"


class ActionKind(StrEnum):
    DOCUMENT = "document"
    CASE = "case"


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class RuleRecord:
    """A compliance rule.

    Attributes:
        id: Rule UUID.
        name: Human-readable rule name.
        category: Rule category.
        severity: Severity; rules sort highest first within a category.
        enabled: Whether the rule is actively monitored.
        description: Optional description.
        check_frequency: How often the rule is evaluated.
        auto_check: Whether checks are run automatically.
        revision: Store revision counter for compare-and-swap writes.
    """

    id: UUID
    name: str
    category: RuleCategory
    severity: Severity
    enabled: bool
    description: str | None = None
    check_frequency: CheckFrequency = CheckFrequency.DAILY
    auto_check: bool = True
    revision: int = 1


@dataclass(frozen=True)
class CheckRecord:
    """One evaluation outcome of a rule against a subject."""

    id: UUID
    rule_id: UUID | None
    subject_id: UUID | None
    status: CheckStatus
    checked_at: datetime
    rule_name: str | None = None
    subject_name: str | None = None
    risk_score: float | None = None


@dataclass(frozen=True)
class CaseRecord:
    """A tracked investigation / remediation item.

    Attributes:
        resolved_at: Set when the case first moves to resolved; later moves
            away from resolved keep it.
    """

    id: UUID
    case_number: str
    title: str
    priority: Severity
    status: CaseStatus
    created_at: datetime
    subject_id: UUID | None = None
    subject_name: str | None = None
    description: str | None = None
    updated_at: datetime | None = None
    resolved_at: datetime | None = None
    revision: int = 1


@dataclass(frozen=True)
class DocumentRecord:
    """A compliance document.

    ``expiry_date`` may be a date, a datetime, an ISO string or None; the
    expiry calculator normalizes it. ``days_until_expiry`` is derived on every
    read and never stored.
    """

    id: UUID
    name: str
    subject_id: UUID | None = None
    subject_name: str | None = None
    document_type: str | None = None
    status: DocumentStatus | None = None
    expiry_date: date | datetime | str | None = None
    days_until_expiry: int | None = None


@dataclass(frozen=True)
class Insight:
    """A human-readable observation about the aggregate compliance state."""

    id: str
    kind: InsightKind
    title: str
    description: str
    confidence: int
    action: str
    source: InsightSource


@dataclass(frozen=True)
class Action:
    """A derived, prioritized to-do item."""

    id: UUID
    kind: ActionKind
    title: str
    description: str
    priority: Severity
    due_date: datetime | None = None


@dataclass(frozen=True)
class ComplianceSnapshot:
    """All raw entities read for one aggregation pass."""

    rules: list[RuleRecord] = field(default_factory=list)
    checks: list[CheckRecord] = field(default_factory=list)
    cases: list[CaseRecord] = field(default_factory=list)
    documents: list[DocumentRecord] = field(default_factory=list)
