"""Core business logic services for the compliance engine.

Four service classes:
- RuleCategoryManager: rule grouping and enabled-flag writes
- CaseLifecycleController: case status transitions, case creation and comments
- ComplianceOrchestrator: loads every collection and runs the monitoring
  pipeline (expiry, score, next actions, insights) in that order
- ComplianceService: API-facing facade returning response schemas

All services are async-first. They accept injected repositories through their
constructors and contain no framework code. Writes go to the store first;
in-memory snapshots are only replaced after the store confirms the write.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, TypeVar

from advisor_compliance.api.schemas import (
    CaseCommentResponse,
    CaseResponse,
    CheckResponse,
    ComplianceOverviewResponse,
    DashboardStatsResponse,
    DocumentResponse,
    DocumentSummaryResponse,
    InsightResponse,
    NextActionResponse,
    RuleCategoryGroupResponse,
    RuleResponse,
)
from advisor_compliance.auth import TenantContext
from advisor_compliance.core.interfaces import (
    ICaseRepository,
    ICheckRepository,
    IDocumentRepository,
    IRuleRepository,
)
from advisor_compliance.core.models import (
    CaseComment,
    ComplianceCase,
    ComplianceCheck,
    ComplianceDocument,
    ComplianceRule,
)
from advisor_compliance.errors import NotFoundError, StoreReadError, ValidationError
from advisor_compliance.monitoring.actions import prioritize_next_actions
from advisor_compliance.monitoring.case_lifecycle import apply_transition, parse_case_status
from advisor_compliance.monitoring.documents import summarize_documents
from advisor_compliance.monitoring.expiry import attach_expiry, attach_expiry_all, normalize_expiry
from advisor_compliance.monitoring.insights import InsightGenerator
from advisor_compliance.monitoring.rules import group_by_category, with_enabled
from advisor_compliance.monitoring.scoring import DashboardStats, aggregate_dashboard
from advisor_compliance.monitoring.types import (
    Action,
    CaseRecord,
    CaseStatus,
    CheckFrequency,
    CheckRecord,
    CheckStatus,
    ComplianceSnapshot,
    DocumentRecord,
    DocumentStatus,
    Insight,
    RuleCategory,
    RuleRecord,
    Severity,
)
from advisor_compliance.observability import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]

_RowT = TypeVar("_RowT")
_RecordT = TypeVar("_RecordT")


def utcnow() -> datetime:
    """Default clock: the current UTC instant."""
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# ORM row -> monitoring record conversion
# ---------------------------------------------------------------------------


def _rule_to_record(rule: ComplianceRule) -> RuleRecord:
    return RuleRecord(
        id=rule.id,
        name=rule.name,
        category=RuleCategory(rule.category),
        severity=Severity(rule.severity),
        enabled=bool(rule.enabled),
        description=rule.description,
        check_frequency=CheckFrequency(rule.check_frequency),
        auto_check=bool(rule.auto_check),
        revision=rule.revision,
    )


def _check_to_record(check: ComplianceCheck) -> CheckRecord:
    return CheckRecord(
        id=check.id,
        rule_id=check.rule_id,
        subject_id=check.client_id,
        status=CheckStatus(check.status),
        checked_at=check.checked_at,
        rule_name=check.rule.name if check.rule is not None else None,
        subject_name=check.client.name if check.client is not None else None,
        risk_score=check.risk_score,
    )


def _case_to_record(case: ComplianceCase) -> CaseRecord:
    return CaseRecord(
        id=case.id,
        case_number=case.case_number,
        title=case.title,
        priority=Severity(case.priority),
        status=CaseStatus(case.status),
        created_at=case.created_at,
        subject_id=case.client_id,
        subject_name=case.client.name if case.client is not None else None,
        description=case.description,
        updated_at=case.updated_at,
        resolved_at=case.resolved_at,
        revision=case.revision,
    )


def _document_to_record(document: ComplianceDocument) -> DocumentRecord:
    return DocumentRecord(
        id=document.id,
        name=document.name,
        subject_id=document.client_id,
        subject_name=document.client.name if document.client is not None else None,
        document_type=document.document_type,
        status=DocumentStatus(document.status) if document.status is not None else None,
        expiry_date=document.expiry_date,
    )


def _convert_rows(
    rows: list[_RowT],
    converter: Callable[[_RowT], _RecordT],
    entity: str,
) -> list[_RecordT]:
    """Convert store rows, dropping rows whose enum columns hold unknown values."""
    records: list[_RecordT] = []
    for row in rows:
        try:
            records.append(converter(row))
        except ValueError as exc:
            logger.warning(
                "Skipping record with unknown enumeration value",
                entity=entity,
                record_id=str(getattr(row, "id", "")),
                error=str(exc),
            )
    return records


# ---------------------------------------------------------------------------
# Rule category manager
# ---------------------------------------------------------------------------


class RuleCategoryManager:
    """Groups rules by category and writes the enabled flag.

    Args:
        rule_repo: Repository for ComplianceRule persistence.
    """

    def __init__(self, rule_repo: IRuleRepository) -> None:
        self._rule_repo = rule_repo

    def grouped(self, rules: list[RuleRecord]) -> dict[RuleCategory, list[RuleRecord]]:
        return group_by_category(rules)

    async def toggle_enabled(
        self,
        rules: list[RuleRecord],
        rule_id: uuid.UUID,
        enabled: bool,
        tenant: TenantContext,
        expected_revision: int | None = None,
    ) -> list[RuleRecord]:
        """Write a rule's enabled flag and return the updated rule list.

        The input list is never modified. If the store write fails the error
        propagates and the caller keeps its previous list.

        Args:
            rules: Current rule snapshot.
            rule_id: Rule to toggle.
            enabled: New flag value.
            tenant: The tenant context.
            expected_revision: Optional revision guard.

        Returns:
            A new list with the written flag applied to ``rule_id``.

        Raises:
            NotFoundError: If the rule is not in the snapshot or the store.
            ConflictError: If expected_revision no longer matches.
            StoreWriteError: If the store rejects the write.
        """
        if not any(rule.id == rule_id for rule in rules):
            raise NotFoundError(resource="ComplianceRule", resource_id=str(rule_id))

        stored = await self._rule_repo.set_enabled(
            rule_id=rule_id,
            enabled=enabled,
            tenant=tenant,
            expected_revision=expected_revision,
        )
        logger.info(
            "Rule enabled flag written",
            tenant_id=str(tenant.tenant_id),
            rule_id=str(rule_id),
            enabled=stored.enabled,
        )
        return with_enabled(rules, rule_id, bool(stored.enabled), stored.revision)

    async def create_rule(
        self,
        tenant: TenantContext,
        name: str,
        category: str,
        severity: str,
        description: str | None,
        check_frequency: str,
        auto_check: bool,
    ) -> RuleRecord:
        """Create an enabled rule.

        Returns:
            The stored rule as a RuleRecord.
        """
        stored = await self._rule_repo.create(
            tenant=tenant,
            name=name,
            category=RuleCategory(category).value,
            severity=Severity(severity).value,
            description=description,
            check_frequency=CheckFrequency(check_frequency).value,
            auto_check=auto_check,
        )
        return _rule_to_record(stored)


# ---------------------------------------------------------------------------
# Case lifecycle controller
# ---------------------------------------------------------------------------


class CaseLifecycleController:
    """Enacts case status transitions against the store.

    Args:
        case_repo: Repository for ComplianceCase persistence.
        clock: Returns the current instant.
    """

    def __init__(self, case_repo: ICaseRepository, clock: Clock = utcnow) -> None:
        self._case_repo = case_repo
        self._clock = clock

    async def transition(
        self,
        cases: list[CaseRecord],
        case_id: uuid.UUID,
        target_status: str,
        tenant: TenantContext,
        expected_revision: int | None = None,
    ) -> list[CaseRecord]:
        """Move one case to ``target_status`` and return the updated case list.

        The move is validated against the transition table before anything is
        written. Moving to resolved stamps resolved_at; other moves keep it.
        The input list is never modified, so a failed write leaves the
        caller's cases as they were.

        Args:
            cases: Current case snapshot.
            case_id: Case to move.
            target_status: Requested status value.
            tenant: The tenant context.
            expected_revision: Optional revision guard.

        Returns:
            A new case list with the stored version of the moved case.

        Raises:
            NotFoundError: If the case is not in the snapshot or the store.
            ValidationError: If the status is unknown or the move is not allowed.
            ConflictError: If expected_revision no longer matches.
            StoreWriteError: If the store rejects the write.
        """
        current = next((case for case in cases if case.id == case_id), None)
        if current is None:
            raise NotFoundError(resource="ComplianceCase", resource_id=str(case_id))

        target = parse_case_status(target_status)
        moved = apply_transition(current, target, self._clock())

        stored = await self._case_repo.update_status(
            case_id=case_id,
            tenant=tenant,
            status=moved.status.value,
            updated_at=moved.updated_at,
            resolved_at=moved.resolved_at,
            expected_revision=expected_revision,
        )
        logger.info(
            "Case status updated",
            tenant_id=str(tenant.tenant_id),
            case_id=str(case_id),
            old_status=current.status.value,
            new_status=moved.status.value,
        )
        stored_record = _case_to_record(stored)
        return [stored_record if case.id == case_id else case for case in cases]

    async def create_case(
        self,
        tenant: TenantContext,
        title: str,
        priority: str,
        client_id: uuid.UUID | None,
        description: str | None,
    ) -> CaseRecord:
        stored = await self._case_repo.create(
            tenant=tenant,
            title=title,
            priority=Severity(priority).value,
            client_id=client_id,
            description=description,
        )
        return _case_to_record(stored)

    async def add_comment(self, case_id: uuid.UUID, comment: str, tenant: TenantContext) -> CaseComment:
        """Append a comment to an existing case.

        Raises:
            NotFoundError: If the case does not exist.
            StoreWriteError: If the insert fails.
        """
        await self._case_repo.get_by_id(case_id, tenant)
        entry = await self._case_repo.add_comment(case_id=case_id, tenant=tenant, comment=comment)
        logger.info("Case comment added", tenant_id=str(tenant.tenant_id), case_id=str(case_id))
        return entry

    async def list_comments(self, case_id: uuid.UUID, tenant: TenantContext) -> list[CaseComment]:
        await self._case_repo.get_by_id(case_id, tenant)
        return await self._case_repo.list_comments(case_id, tenant)


# ---------------------------------------------------------------------------
# Compliance orchestrator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplianceView:
    """Everything derived from one aggregation pass.

    Attributes:
        snapshot: Raw collections; documents carry days_until_expiry.
        stats: Dashboard statistics.
        next_actions: Bounded next-actions queue.
        insights: Insights, empty when the pass skipped insight generation.
        errors: Collections that failed to load.
        generated_at: Reference instant of the pass.
    """

    snapshot: ComplianceSnapshot
    stats: DashboardStats
    next_actions: list[Action]
    insights: list[Insight]
    generated_at: datetime
    errors: list[str] = field(default_factory=list)


class ComplianceOrchestrator:
    """Loads the compliance store and runs the monitoring pipeline.

    Order per pass: fetch rules, recent checks, cases and documents (each
    independently), derive document expiry, aggregate the score, build the
    next-actions queue, then generate insights. Every mutation is written to
    the store first and followed by a fresh pass.

    Args:
        rule_repo: Repository for rules.
        check_repo: Repository for checks.
        case_repo: Repository for cases.
        document_repo: Repository for documents.
        insight_generator: Remote/heuristic insight generator.
        clock: Returns the current instant.
        recent_checks_limit: Checks loaded per pass.
        max_document_actions: Cap on document-derived next actions.
        max_case_actions: Cap on case-derived next actions.
        urgent_expiry_days: Expiry window for document actions.
        critical_expiry_days: Expiry window for critical document actions.
        expiring_soon_days: Expiry window for the dashboard counter.
    """

    def __init__(
        self,
        rule_repo: IRuleRepository,
        check_repo: ICheckRepository,
        case_repo: ICaseRepository,
        document_repo: IDocumentRepository,
        insight_generator: InsightGenerator,
        clock: Clock = utcnow,
        recent_checks_limit: int = 100,
        max_document_actions: int = 3,
        max_case_actions: int = 3,
        urgent_expiry_days: int = 7,
        critical_expiry_days: int = 3,
        expiring_soon_days: int = 30,
    ) -> None:
        self._rule_repo = rule_repo
        self._check_repo = check_repo
        self._case_repo = case_repo
        self._document_repo = document_repo
        self._insight_generator = insight_generator
        self._clock = clock
        self._recent_checks_limit = recent_checks_limit
        self._max_document_actions = max_document_actions
        self._max_case_actions = max_case_actions
        self._urgent_expiry_days = urgent_expiry_days
        self._critical_expiry_days = critical_expiry_days
        self._expiring_soon_days = expiring_soon_days
        self.rules = RuleCategoryManager(rule_repo)
        self.cases = CaseLifecycleController(case_repo, clock)

    @property
    def expiring_soon_days(self) -> int:
        return self._expiring_soon_days

    async def _load_rules(self, tenant: TenantContext) -> list[RuleRecord]:
        rows = await self._rule_repo.list_all(tenant)
        return _convert_rows(rows, _rule_to_record, "rule")

    async def _load_checks(self, tenant: TenantContext) -> list[CheckRecord]:
        rows = await self._check_repo.list_recent(tenant, limit=self._recent_checks_limit)
        return _convert_rows(rows, _check_to_record, "check")

    async def _load_cases(self, tenant: TenantContext) -> list[CaseRecord]:
        rows = await self._case_repo.list_all(tenant)
        return _convert_rows(rows, _case_to_record, "case")

    async def _load_documents(self, tenant: TenantContext, now: datetime) -> list[DocumentRecord]:
        rows = await self._document_repo.list_all(tenant)
        return attach_expiry_all(_convert_rows(rows, _document_to_record, "document"), now)

    async def load_snapshot(self, tenant: TenantContext) -> tuple[ComplianceSnapshot, list[str], datetime]:
        """Fetch every collection, tolerating per-collection read failures.

        Returns:
            The snapshot, the names of collections that failed to load, and
            the reference instant used for expiry.
        """
        now = self._clock()
        errors: list[str] = []

        async def guarded(name: str, loader: Any) -> list[Any]:
            try:
                return await loader
            except StoreReadError as exc:
                logger.error(
                    "Failed to load compliance collection",
                    tenant_id=str(tenant.tenant_id),
                    collection=name,
                    error=exc.message,
                )
                errors.append(name)
                return []

        rules = await guarded("rules", self._load_rules(tenant))
        checks = await guarded("checks", self._load_checks(tenant))
        cases = await guarded("cases", self._load_cases(tenant))
        documents = await guarded("documents", self._load_documents(tenant, now))

        snapshot = ComplianceSnapshot(rules=rules, checks=checks, cases=cases, documents=documents)
        return snapshot, errors, now

    def derive(self, snapshot: ComplianceSnapshot, now: datetime) -> tuple[DashboardStats, list[Action]]:
        """Run the score aggregator and next-actions prioritizer."""
        stats = aggregate_dashboard(
            rules=snapshot.rules,
            checks=snapshot.checks,
            cases=snapshot.cases,
            documents=snapshot.documents,
            now=now,
            expiring_soon_days=self._expiring_soon_days,
        )
        actions = prioritize_next_actions(
            snapshot.documents,
            snapshot.cases,
            max_document_actions=self._max_document_actions,
            max_case_actions=self._max_case_actions,
            urgent_expiry_days=self._urgent_expiry_days,
            critical_expiry_days=self._critical_expiry_days,
        )
        return stats, actions

    async def load(self, tenant: TenantContext, include_insights: bool = True) -> ComplianceView:
        """Run one full aggregation pass.

        Args:
            tenant: The tenant context.
            include_insights: Skip the insight step when False so callers can
                render stats and actions without waiting on the insight service.

        Returns:
            The combined ComplianceView.
        """
        snapshot, errors, now = await self.load_snapshot(tenant)
        stats, actions = self.derive(snapshot, now)
        insights = await self._insight_generator.generate(snapshot) if include_insights else []

        logger.info(
            "Compliance pass complete",
            tenant_id=str(tenant.tenant_id),
            overall_score=stats.overall_score,
            next_actions=len(actions),
            insights=len(insights),
            failed_collections=errors,
        )
        return ComplianceView(
            snapshot=snapshot,
            stats=stats,
            next_actions=actions,
            insights=insights,
            generated_at=now,
            errors=errors,
        )

    async def insights(self, tenant: TenantContext) -> list[Insight]:
        snapshot, _, _ = await self.load_snapshot(tenant)
        return await self._insight_generator.generate(snapshot)

    async def toggle_rule(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        enabled: bool,
        expected_revision: int | None = None,
    ) -> ComplianceView:
        """Write a rule's enabled flag, then re-read the store."""
        rules = await self._load_rules(tenant)
        await self.rules.toggle_enabled(rules, rule_id, enabled, tenant, expected_revision)
        return await self.load(tenant, include_insights=False)

    async def update_case_status(
        self,
        tenant: TenantContext,
        case_id: uuid.UUID,
        target_status: str,
        expected_revision: int | None = None,
    ) -> ComplianceView:
        """Transition a case, then re-read the store."""
        cases = await self._load_cases(tenant)
        await self.cases.transition(cases, case_id, target_status, tenant, expected_revision)
        return await self.load(tenant, include_insights=False)

    async def record_check(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        client_id: uuid.UUID | None,
        status: str,
        checked_at: datetime | None,
        risk_score: float | None,
    ) -> CheckRecord:
        """Append a check outcome; existing checks are never edited."""
        stored = await self._check_repo.append(
            tenant=tenant,
            rule_id=rule_id,
            client_id=client_id,
            status=CheckStatus(status).value,
            checked_at=checked_at or self._clock(),
            risk_score=risk_score,
        )
        return _check_to_record(stored)

    async def register_document(
        self,
        tenant: TenantContext,
        name: str,
        client_id: uuid.UUID | None,
        document_type: str | None,
        expiry_date: date | None,
        file_path: str | None,
        status: str = DocumentStatus.PENDING.value,
    ) -> DocumentRecord:
        """Store document metadata and return it with days_until_expiry attached.

        Raises:
            ValidationError: If the status is not a known document status.
            StoreWriteError: If the insert fails.
        """
        try:
            parsed = DocumentStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown document status '{status}'", field="status") from exc

        stored = await self._document_repo.create(
            tenant=tenant,
            name=name,
            client_id=client_id,
            document_type=document_type,
            status=parsed.value,
            expiry_date=expiry_date,
            file_path=file_path,
        )
        logger.info(
            "Document registered",
            tenant_id=str(tenant.tenant_id),
            document_id=str(stored.id),
            status=parsed.value,
        )
        return attach_expiry(_document_to_record(stored), self._clock())


# ---------------------------------------------------------------------------
# API facade
# ---------------------------------------------------------------------------


class ComplianceService:
    """API-facing facade converting orchestrator results to response schemas.

    Args:
        orchestrator: The compliance orchestrator for this request.
    """

    def __init__(self, orchestrator: ComplianceOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def get_overview(self, tenant: TenantContext) -> ComplianceOverviewResponse:
        view = await self._orchestrator.load(tenant)
        return ComplianceOverviewResponse(
            tenant_id=tenant.tenant_id,
            generated_at=view.generated_at,
            stats=_stats_to_response(view.stats),
            next_actions=[_action_to_response(action) for action in view.next_actions],
            insights=[_insight_to_response(insight) for insight in view.insights],
            errors=view.errors,
        )

    async def get_stats(self, tenant: TenantContext) -> DashboardStatsResponse:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return _stats_to_response(view.stats)

    async def get_next_actions(self, tenant: TenantContext) -> list[NextActionResponse]:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return [_action_to_response(action) for action in view.next_actions]

    async def get_insights(self, tenant: TenantContext) -> list[InsightResponse]:
        insights = await self._orchestrator.insights(tenant)
        return [_insight_to_response(insight) for insight in insights]

    async def list_rules(self, tenant: TenantContext) -> list[RuleCategoryGroupResponse]:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return _groups_to_response(self._orchestrator.rules.grouped(view.snapshot.rules))

    async def create_rule(
        self,
        tenant: TenantContext,
        name: str,
        category: str,
        severity: str,
        description: str | None,
        check_frequency: str,
        auto_check: bool,
    ) -> RuleResponse:
        logger.info("Creating compliance rule", tenant_id=str(tenant.tenant_id), name=name)
        rule = await self._orchestrator.rules.create_rule(
            tenant=tenant,
            name=name,
            category=category,
            severity=severity,
            description=description,
            check_frequency=check_frequency,
            auto_check=auto_check,
        )
        return _rule_to_response(rule)

    async def toggle_rule(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        enabled: bool,
        expected_revision: int | None,
    ) -> list[RuleCategoryGroupResponse]:
        view = await self._orchestrator.toggle_rule(tenant, rule_id, enabled, expected_revision)
        return _groups_to_response(self._orchestrator.rules.grouped(view.snapshot.rules))

    async def list_checks(self, tenant: TenantContext) -> list[CheckResponse]:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return [_check_to_response(check) for check in view.snapshot.checks]

    async def record_check(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        client_id: uuid.UUID | None,
        status: str,
        checked_at: datetime | None,
        risk_score: float | None,
    ) -> CheckResponse:
        check = await self._orchestrator.record_check(
            tenant, rule_id, client_id, status, checked_at, risk_score
        )
        return _check_to_response(check)

    async def list_cases(self, tenant: TenantContext) -> list[CaseResponse]:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return [_case_to_response(case) for case in view.snapshot.cases]

    async def create_case(
        self,
        tenant: TenantContext,
        title: str,
        priority: str,
        client_id: uuid.UUID | None,
        description: str | None,
    ) -> CaseResponse:
        logger.info("Opening compliance case", tenant_id=str(tenant.tenant_id), title=title)
        case = await self._orchestrator.cases.create_case(
            tenant=tenant,
            title=title,
            priority=priority,
            client_id=client_id,
            description=description,
        )
        return _case_to_response(case)

    async def update_case_status(
        self,
        tenant: TenantContext,
        case_id: uuid.UUID,
        status: str,
        expected_revision: int | None,
    ) -> CaseResponse:
        view = await self._orchestrator.update_case_status(tenant, case_id, status, expected_revision)
        updated = next((case for case in view.snapshot.cases if case.id == case_id), None)
        if updated is None:
            raise NotFoundError(resource="ComplianceCase", resource_id=str(case_id))
        return _case_to_response(updated)

    async def add_case_comment(
        self,
        tenant: TenantContext,
        case_id: uuid.UUID,
        comment: str,
    ) -> CaseCommentResponse:
        entry = await self._orchestrator.cases.add_comment(case_id, comment, tenant)
        return _comment_to_response(entry)

    async def list_case_comments(self, tenant: TenantContext, case_id: uuid.UUID) -> list[CaseCommentResponse]:
        entries = await self._orchestrator.cases.list_comments(case_id, tenant)
        return [_comment_to_response(entry) for entry in entries]

    async def list_documents(self, tenant: TenantContext) -> list[DocumentResponse]:
        view = await self._orchestrator.load(tenant, include_insights=False)
        return [_document_to_response(doc) for doc in view.snapshot.documents]

    async def register_document(
        self,
        tenant: TenantContext,
        name: str,
        client_id: uuid.UUID | None,
        document_type: str | None,
        expiry_date: date | None,
        file_path: str | None,
        status: str,
    ) -> DocumentResponse:
        document = await self._orchestrator.register_document(
            tenant=tenant,
            name=name,
            client_id=client_id,
            document_type=document_type,
            expiry_date=expiry_date,
            file_path=file_path,
            status=status,
        )
        return _document_to_response(document)

    async def get_document_summary(self, tenant: TenantContext) -> DocumentSummaryResponse:
        view = await self._orchestrator.load(tenant, include_insights=False)
        summary = summarize_documents(view.snapshot.documents, self._orchestrator.expiring_soon_days)
        return DocumentSummaryResponse(
            total=summary.total,
            approved=summary.approved,
            pending=summary.pending,
            expiring=summary.expiring,
            expired=summary.expired,
            completion_rate=summary.completion_rate,
        )


# ---------------------------------------------------------------------------
# Record -> response conversion
# ---------------------------------------------------------------------------


def _stats_to_response(stats: DashboardStats) -> DashboardStatsResponse:
    return DashboardStatsResponse(
        overall_score=stats.overall_score,
        trend=stats.trend.value,
        total_rules=stats.total_rules,
        passed_checks=stats.passed_checks,
        failed_checks=stats.failed_checks,
        pending_cases=stats.pending_cases,
        expiring_docs=stats.expiring_docs,
        health_label=stats.health_label,
    )


def _action_to_response(action: Action) -> NextActionResponse:
    return NextActionResponse(
        id=action.id,
        type=action.kind.value,
        title=action.title,
        description=action.description,
        priority=action.priority.value,
        due_date=action.due_date,
    )


def _insight_to_response(insight: Insight) -> InsightResponse:
    return InsightResponse(
        id=insight.id,
        type=insight.kind.value,
        title=insight.title,
        description=insight.description,
        confidence=insight.confidence,
        action=insight.action,
        source=insight.source.value,
    )


def _rule_to_response(rule: RuleRecord) -> RuleResponse:
    return RuleResponse(
        id=rule.id,
        name=rule.name,
        category=rule.category.value,
        severity=rule.severity.value,
        enabled=rule.enabled,
        description=rule.description,
        check_frequency=rule.check_frequency.value,
        auto_check=rule.auto_check,
        revision=rule.revision,
    )


def _groups_to_response(grouped: dict[RuleCategory, list[RuleRecord]]) -> list[RuleCategoryGroupResponse]:
    return [
        RuleCategoryGroupResponse(
            category=category.value,
            enabled_count=sum(1 for rule in rules if rule.enabled),
            rules=[_rule_to_response(rule) for rule in rules],
        )
        for category, rules in grouped.items()
    ]


def _check_to_response(check: CheckRecord) -> CheckResponse:
    return CheckResponse(
        id=check.id,
        rule_id=check.rule_id,
        rule_name=check.rule_name,
        client_id=check.subject_id,
        client_name=check.subject_name,
        status=check.status.value,
        checked_at=check.checked_at,
        risk_score=check.risk_score,
    )


def _case_to_response(case: CaseRecord) -> CaseResponse:
    return CaseResponse(
        id=case.id,
        case_number=case.case_number,
        title=case.title,
        description=case.description,
        priority=case.priority.value,
        status=case.status.value,
        client_id=case.subject_id,
        client_name=case.subject_name,
        created_at=case.created_at,
        updated_at=case.updated_at,
        resolved_at=case.resolved_at,
        revision=case.revision,
    )


def _comment_to_response(entry: CaseComment) -> CaseCommentResponse:
    return CaseCommentResponse(
        id=entry.id,
        case_id=entry.case_id,
        author_id=entry.author_id,
        comment=entry.comment,
        created_at=entry.created_at,
    )


def _document_to_response(document: DocumentRecord) -> DocumentResponse:
    expiry = normalize_expiry(document.expiry_date)
    return DocumentResponse(
        id=document.id,
        name=document.name,
        document_type=document.document_type,
        status=document.status.value if document.status is not None else None,
        client_id=document.subject_id,
        client_name=document.subject_name,
        expiry_date=expiry.date() if expiry is not None else None,
        days_until_expiry=document.days_until_expiry,
    )
