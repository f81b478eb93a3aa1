"""Pydantic request and response schemas for the compliance engine API.

All API inputs and outputs use Pydantic models, never raw dicts.
Schemas are grouped by resource type.

Resources:
- Dashboard / overview: stats, next actions, insights
- ComplianceRule: listing by category, creation, enable toggle
- ComplianceCheck: recent list and append
- ComplianceCase: listing, creation, status transitions, comments
- ComplianceDocument: listing with days until expiry, registration, status summary
"""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

RuleCategoryValue = Literal[
    "identity_verification", "documentation", "suitability", "trading", "portfolio_risk"
]
SeverityValue = Literal["low", "medium", "high", "critical"]
CheckFrequencyValue = Literal["daily", "weekly", "monthly", "on_trade", "on_profile_update"]
CheckStatusValue = Literal["pass", "fail", "warning", "needs_review"]
CaseStatusValue = Literal["open", "under_review", "resolved"]
DocumentStatusValue = Literal["approved", "pending", "expired", "rejected"]


# ---------------------------------------------------------------------------
# Dashboard schemas
# ---------------------------------------------------------------------------


class DashboardStatsResponse(BaseModel):
    """Headline compliance numbers."""

    overall_score: int = Field(description="Share of passing checks among decided checks, 0-100")
    trend: Literal["up", "down", "stable"] = Field(description="Score direction versus the prior 30 days")
    total_rules: int = Field(description="Number of compliance rules")
    passed_checks: int = Field(description="Checks with status pass")
    failed_checks: int = Field(description="Checks with status fail or warning")
    pending_cases: int = Field(description="Cases open or under review")
    expiring_docs: int = Field(description="Documents expiring within 30 days")
    health_label: str = Field(description="Healthy | Needs Attention | Critical")


class NextActionResponse(BaseModel):
    """A prioritized to-do item derived from a document or a case."""

    id: uuid.UUID = Field(description="UUID of the source document or case")
    type: Literal["document", "case"] = Field(description="Source entity kind")
    title: str
    description: str
    priority: SeverityValue
    due_date: datetime | None = Field(default=None, description="Expiry instant for document actions")


class InsightResponse(BaseModel):
    """A human-readable observation about the compliance state."""

    id: str = Field(description="Sequential id, local to one load")
    type: Literal["alert", "suggestion", "risk", "trend"]
    title: str
    description: str
    confidence: int = Field(ge=0, le=100)
    action: str = Field(description="Suggested action label")
    source: Literal["remote", "heuristic"] = Field(description="Which generator produced the insight")


class ComplianceOverviewResponse(BaseModel):
    """Combined compliance view for one aggregation pass."""

    tenant_id: uuid.UUID
    generated_at: datetime
    stats: DashboardStatsResponse
    next_actions: list[NextActionResponse]
    insights: list[InsightResponse]
    errors: list[str] = Field(
        default_factory=list,
        description="Collections that failed to load; their panels are empty",
    )


# ---------------------------------------------------------------------------
# ComplianceRule schemas
# ---------------------------------------------------------------------------


class RuleCreateRequest(BaseModel):
    """Request body for creating a compliance rule."""

    name: str = Field(min_length=1, max_length=255)
    category: RuleCategoryValue
    severity: SeverityValue = "medium"
    description: str | None = None
    check_frequency: CheckFrequencyValue = "daily"
    auto_check: bool = True


class RuleToggleRequest(BaseModel):
    """Request body for enabling or disabling a rule."""

    enabled: bool
    expected_revision: int | None = Field(
        default=None,
        description="Reject the write with 409 unless the rule is still at this revision",
    )


class RuleResponse(BaseModel):
    """Response schema for a compliance rule."""

    id: uuid.UUID
    name: str
    category: RuleCategoryValue
    severity: SeverityValue
    enabled: bool
    description: str | None
    check_frequency: CheckFrequencyValue
    auto_check: bool
    revision: int


class RuleCategoryGroupResponse(BaseModel):
    """Rules of one category, highest severity first."""

    category: RuleCategoryValue
    enabled_count: int
    rules: list[RuleResponse]


# ---------------------------------------------------------------------------
# ComplianceCheck schemas
# ---------------------------------------------------------------------------


class CheckCreateRequest(BaseModel):
    """Request body for appending a check outcome."""

    rule_id: uuid.UUID
    client_id: uuid.UUID | None = None
    status: CheckStatusValue
    checked_at: datetime | None = Field(default=None, description="Defaults to now")
    risk_score: float | None = None


class CheckResponse(BaseModel):
    """Response schema for a compliance check."""

    id: uuid.UUID
    rule_id: uuid.UUID | None
    rule_name: str | None
    client_id: uuid.UUID | None
    client_name: str | None
    status: CheckStatusValue
    checked_at: datetime
    risk_score: float | None


# ---------------------------------------------------------------------------
# ComplianceCase schemas
# ---------------------------------------------------------------------------


class CaseCreateRequest(BaseModel):
    """Request body for opening a compliance case."""

    title: str = Field(min_length=1, max_length=255)
    priority: SeverityValue = "medium"
    client_id: uuid.UUID | None = None
    description: str | None = None


class CaseStatusUpdateRequest(BaseModel):
    """Request body for moving a case to another status.

    ``status`` is validated by the service against the transition table so
    that unknown values and disallowed moves share one error path.
    """

    status: str
    expected_revision: int | None = Field(
        default=None,
        description="Reject the write with 409 unless the case is still at this revision",
    )


class CaseResponse(BaseModel):
    """Response schema for a compliance case."""

    id: uuid.UUID
    case_number: str
    title: str
    description: str | None
    priority: SeverityValue
    status: CaseStatusValue
    client_id: uuid.UUID | None
    client_name: str | None
    created_at: datetime
    updated_at: datetime | None
    resolved_at: datetime | None
    revision: int


class CaseCommentCreateRequest(BaseModel):
    """Request body for commenting on a case."""

    comment: str = Field(min_length=1)


class CaseCommentResponse(BaseModel):
    """Response schema for a case comment."""

    id: uuid.UUID
    case_id: uuid.UUID
    author_id: uuid.UUID
    comment: str
    created_at: datetime


# ---------------------------------------------------------------------------
# ComplianceDocument schemas
# ---------------------------------------------------------------------------


class DocumentCreateRequest(BaseModel):
    """Request body for registering document metadata. The file is stored elsewhere."""

    name: str = Field(min_length=1, max_length=255)
    client_id: uuid.UUID | None = None
    document_type: str | None = Field(default=None, max_length=50)
    status: DocumentStatusValue = "pending"
    expiry_date: date | None = None
    file_path: str | None = Field(default=None, description="Location of the stored file")


class DocumentResponse(BaseModel):
    """Response schema for a compliance document."""

    id: uuid.UUID
    name: str
    document_type: str | None
    status: DocumentStatusValue | None
    client_id: uuid.UUID | None
    client_name: str | None
    expiry_date: date | None
    days_until_expiry: int | None = Field(description="Derived on every read; null without an expiry")


class DocumentSummaryResponse(BaseModel):
    """Counts over the tenant's documents."""

    total: int
    approved: int
    pending: int
    expiring: int
    expired: int
    completion_rate: int = Field(description="Rounded percentage of approved documents")
