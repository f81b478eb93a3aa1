"""API router for the advisor compliance engine.

All endpoints are registered here and included in main.py under the /api/v1
prefix. Routes are thin; business logic lives in the service layer.

Endpoints:
- GET         /compliance/overview                  Stats, next actions and insights
- GET         /compliance/stats                     Dashboard statistics
- GET         /compliance/next-actions              Prioritized next actions
- GET         /compliance/insights                  Remote or heuristic insights
- GET/POST    /compliance/rules                     Rules grouped by category, create
- POST        /compliance/rules/{id}/toggle         Enable or disable a rule
- GET/POST    /compliance/checks                    Recent checks, append a check
- GET/POST    /compliance/cases                     List and open cases
- POST        /compliance/cases/{id}/status         Move a case through its lifecycle
- GET/POST    /compliance/cases/{id}/comments       Case comment thread
- GET/POST    /compliance/documents                 Documents with days until expiry, register
- GET         /compliance/documents/summary         Document status counts
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_compliance.adapters.insight_client import InsightClient
from advisor_compliance.adapters.repositories import (
    CaseRepository,
    CheckRepository,
    DocumentRepository,
    RuleRepository,
)
from advisor_compliance.api.schemas import (
    CaseCommentCreateRequest,
    CaseCommentResponse,
    CaseCreateRequest,
    CaseResponse,
    CaseStatusUpdateRequest,
    CheckCreateRequest,
    CheckResponse,
    ComplianceOverviewResponse,
    DashboardStatsResponse,
    DocumentCreateRequest,
    DocumentResponse,
    DocumentSummaryResponse,
    InsightResponse,
    NextActionResponse,
    RuleCategoryGroupResponse,
    RuleCreateRequest,
    RuleResponse,
    RuleToggleRequest,
)
from advisor_compliance.auth import TenantContext, get_current_tenant
from advisor_compliance.core.services import ComplianceOrchestrator, ComplianceService, utcnow
from advisor_compliance.database import get_db_session
from advisor_compliance.monitoring.insights import InsightGenerator
from advisor_compliance.observability import get_logger
from advisor_compliance.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["compliance"])


# ---------------------------------------------------------------------------
# Dependency factories: wire repositories, services and clients together
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> Settings:
    """Return the Settings instance stored on app state at startup."""
    return request.app.state.settings


def build_insight_generator(settings: Settings) -> InsightGenerator:
    """Construct the insight generator, remote-backed only when a URL is configured.

    Args:
        settings: Service settings.

    Returns:
        An InsightGenerator; its client is None when no service URL is set.
    """
    client = None
    if settings.insight_service_url:
        client = InsightClient(
            service_url=settings.insight_service_url,
            api_key=settings.insight_service_api_key,
            timeout_seconds=settings.insight_timeout_seconds,
        )
    return InsightGenerator(
        client=client,
        clock=utcnow,
        check_window=settings.insight_check_window,
        urgent_expiry_days=settings.urgent_expiry_days,
        stale_case_days=settings.stale_case_days,
    )


def get_compliance_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ComplianceService:
    """Construct ComplianceService with injected repositories.

    Args:
        session: Primary DB session.
        settings: Service settings.

    Returns:
        Fully wired ComplianceService instance.
    """
    orchestrator = ComplianceOrchestrator(
        rule_repo=RuleRepository(session),
        check_repo=CheckRepository(session),
        case_repo=CaseRepository(session),
        document_repo=DocumentRepository(session),
        insight_generator=build_insight_generator(settings),
        clock=utcnow,
        recent_checks_limit=settings.recent_checks_limit,
        max_document_actions=settings.max_document_actions,
        max_case_actions=settings.max_case_actions,
        urgent_expiry_days=settings.urgent_expiry_days,
        critical_expiry_days=settings.critical_expiry_days,
        expiring_soon_days=settings.expiring_soon_days,
    )
    return ComplianceService(orchestrator)


Tenant = Annotated[TenantContext, Depends(get_current_tenant)]
Service = Annotated[ComplianceService, Depends(get_compliance_service)]


# ---------------------------------------------------------------------------
# Dashboard endpoints
# ---------------------------------------------------------------------------


@router.get("/compliance/overview", response_model=ComplianceOverviewResponse)
async def get_overview(tenant: Tenant, service: Service) -> ComplianceOverviewResponse:
    """Run one aggregation pass and return stats, next actions and insights.

    Collections that fail to load are listed in ``errors`` and contribute
    nothing to the derived values; the request itself still succeeds.

    Args:
        tenant: Tenant context from gateway headers.
        service: Injected ComplianceService.

    Returns:
        ComplianceOverviewResponse for the tenant.
    """
    return await service.get_overview(tenant)


@router.get("/compliance/stats", response_model=DashboardStatsResponse)
async def get_stats(tenant: Tenant, service: Service) -> DashboardStatsResponse:
    """Return the dashboard statistics without generating insights."""
    return await service.get_stats(tenant)


@router.get("/compliance/next-actions", response_model=list[NextActionResponse])
async def get_next_actions(tenant: Tenant, service: Service) -> list[NextActionResponse]:
    """Return urgent document renewals followed by open cases."""
    return await service.get_next_actions(tenant)


@router.get("/compliance/insights", response_model=list[InsightResponse])
async def get_insights(tenant: Tenant, service: Service) -> list[InsightResponse]:
    """Return insights from the remote service, or heuristics when it is unavailable."""
    return await service.get_insights(tenant)


# ---------------------------------------------------------------------------
# Rule endpoints
# ---------------------------------------------------------------------------


@router.get("/compliance/rules", response_model=list[RuleCategoryGroupResponse])
async def list_rules(tenant: Tenant, service: Service) -> list[RuleCategoryGroupResponse]:
    """List rules grouped by category, highest severity first within each group."""
    return await service.list_rules(tenant)


@router.post("/compliance/rules", response_model=RuleResponse, status_code=201)
async def create_rule(request: RuleCreateRequest, tenant: Tenant, service: Service) -> RuleResponse:
    """Create an enabled compliance rule.

    Args:
        request: Rule creation request body.
        tenant: Tenant context from gateway headers.
        service: Injected ComplianceService.

    Returns:
        The created RuleResponse.
    """
    return await service.create_rule(
        tenant=tenant,
        name=request.name,
        category=request.category,
        severity=request.severity,
        description=request.description,
        check_frequency=request.check_frequency,
        auto_check=request.auto_check,
    )


@router.post("/compliance/rules/{rule_id}/toggle", response_model=list[RuleCategoryGroupResponse])
async def toggle_rule(
    rule_id: uuid.UUID,
    request: RuleToggleRequest,
    tenant: Tenant,
    service: Service,
) -> list[RuleCategoryGroupResponse]:
    """Write a rule's enabled flag and return the re-read rule groups.

    Args:
        rule_id: The rule UUID.
        request: New flag value and optional revision guard.
        tenant: Tenant context from gateway headers.
        service: Injected ComplianceService.

    Returns:
        Rule groups as stored after the write.
    """
    return await service.toggle_rule(tenant, rule_id, request.enabled, request.expected_revision)


# ---------------------------------------------------------------------------
# Check endpoints
# ---------------------------------------------------------------------------


@router.get("/compliance/checks", response_model=list[CheckResponse])
async def list_checks(tenant: Tenant, service: Service) -> list[CheckResponse]:
    """List the most recent checks, newest first."""
    return await service.list_checks(tenant)


@router.post("/compliance/checks", response_model=CheckResponse, status_code=201)
async def record_check(request: CheckCreateRequest, tenant: Tenant, service: Service) -> CheckResponse:
    """Append a check outcome."""
    return await service.record_check(
        tenant=tenant,
        rule_id=request.rule_id,
        client_id=request.client_id,
        status=request.status,
        checked_at=request.checked_at,
        risk_score=request.risk_score,
    )


# ---------------------------------------------------------------------------
# Case endpoints
# ---------------------------------------------------------------------------


@router.get("/compliance/cases", response_model=list[CaseResponse])
async def list_cases(tenant: Tenant, service: Service) -> list[CaseResponse]:
    """List cases, newest first."""
    return await service.list_cases(tenant)


@router.post("/compliance/cases", response_model=CaseResponse, status_code=201)
async def create_case(request: CaseCreateRequest, tenant: Tenant, service: Service) -> CaseResponse:
    """Open a compliance case."""
    return await service.create_case(
        tenant=tenant,
        title=request.title,
        priority=request.priority,
        client_id=request.client_id,
        description=request.description,
    )


@router.post("/compliance/cases/{case_id}/status", response_model=CaseResponse)
async def update_case_status(
    case_id: uuid.UUID,
    request: CaseStatusUpdateRequest,
    tenant: Tenant,
    service: Service,
) -> CaseResponse:
    """Move a case to another status.

    Unknown statuses and moves outside the transition table return 422.
    A stale ``expected_revision`` returns 409.

    Args:
        case_id: The case UUID.
        request: Target status and optional revision guard.
        tenant: Tenant context from gateway headers.
        service: Injected ComplianceService.

    Returns:
        The case as stored after the transition.
    """
    return await service.update_case_status(tenant, case_id, request.status, request.expected_revision)


@router.get("/compliance/cases/{case_id}/comments", response_model=list[CaseCommentResponse])
async def list_case_comments(case_id: uuid.UUID, tenant: Tenant, service: Service) -> list[CaseCommentResponse]:
    """List a case's comments, oldest first."""
    return await service.list_case_comments(tenant, case_id)


@router.post("/compliance/cases/{case_id}/comments", response_model=CaseCommentResponse, status_code=201)
async def add_case_comment(
    case_id: uuid.UUID,
    request: CaseCommentCreateRequest,
    tenant: Tenant,
    service: Service,
) -> CaseCommentResponse:
    """Append a comment to a case; the caller is recorded as author."""
    return await service.add_case_comment(tenant, case_id, request.comment)


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.get("/compliance/documents", response_model=list[DocumentResponse])
async def list_documents(tenant: Tenant, service: Service) -> list[DocumentResponse]:
    """List documents, soonest expiry first, with days until expiry."""
    return await service.list_documents(tenant)


@router.get("/compliance/documents/summary", response_model=DocumentSummaryResponse)
async def get_document_summary(tenant: Tenant, service: Service) -> DocumentSummaryResponse:
    """Return document status counts and the approval completion rate."""
    return await service.get_document_summary(tenant)


@router.post("/compliance/documents", response_model=DocumentResponse, status_code=201)
async def register_document(request: DocumentCreateRequest, tenant: Tenant, service: Service) -> DocumentResponse:
    """Register document metadata. Uploading the file itself is handled elsewhere."""
    return await service.register_document(
        tenant=tenant,
        name=request.name,
        client_id=request.client_id,
        document_type=request.document_type,
        expiry_date=request.expiry_date,
        file_path=request.file_path,
        status=request.status,
    )
