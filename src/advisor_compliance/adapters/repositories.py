"""SQLAlchemy repositories for the compliance store.

Each repository implements the corresponding interface from core/interfaces.py.
Every query is scoped to the requesting tenant. Driver and database failures
are translated into StoreReadError / StoreWriteError so the service layer can
tell a failed read from a failed write.

Repositories:
- RuleRepository      ComplianceRule list, create, enabled toggle
- CheckRepository     ComplianceCheck recent list and append
- CaseRepository      ComplianceCase lifecycle and CaseComment thread
- DocumentRepository  ComplianceDocument list and metadata registration

Reads run inside a savepoint so one failing collection does not abort the
request transaction for the others.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Executable, Result, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_compliance.auth import TenantContext
from advisor_compliance.core.models import (
    CaseComment,
    ComplianceCase,
    ComplianceCheck,
    ComplianceDocument,
    ComplianceRule,
)
from advisor_compliance.errors import ConflictError, NotFoundError, StoreReadError, StoreWriteError
from advisor_compliance.observability import get_logger

logger = get_logger(__name__)


class _SessionRepository:
    """Holds the request-scoped AsyncSession shared by all repositories.

    Args:
        session: The primary DB async session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _read(self, stmt: Executable, what: str) -> Result:
        """Run a read inside a savepoint.

        A failed query rolls back only to the savepoint, so the shared request
        transaction stays usable for the remaining reads.

        Args:
            stmt: The SELECT statement.
            what: Collection name used in the error message.

        Returns:
            The buffered query result.

        Raises:
            StoreReadError: If the query fails.
        """
        try:
            async with self._session.begin_nested():
                return await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Failed to load {what}: {exc}") from exc

    async def _revision_conflict_or_missing(
        self,
        model: type[ComplianceRule] | type[ComplianceCase],
        record_id: uuid.UUID,
        tenant: TenantContext,
        expected_revision: int | None,
    ) -> Exception:
        """Explain why a guarded UPDATE matched no row."""
        stmt = select(model.revision).where(model.id == record_id, model.tenant_id == tenant.tenant_id)
        current = (await self._session.execute(stmt)).scalar_one_or_none()
        if current is None:
            return NotFoundError(resource=model.__name__, resource_id=str(record_id))
        return ConflictError(
            f"{model.__name__} '{record_id}' is at revision {current}, expected {expected_revision}"
        )


class RuleRepository(_SessionRepository):
    """Repository for ComplianceRule persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceRule]:
        """List all rules for a tenant, highest severity handled by the caller.

        Args:
            tenant: The tenant context.

        Returns:
            List of ComplianceRule records ordered by name.
        """
        stmt = (
            select(ComplianceRule)
            .where(ComplianceRule.tenant_id == tenant.tenant_id)
            .order_by(ComplianceRule.name)
        )
        result = await self._read(stmt, "compliance rules")
        return list(result.scalars().all())

    async def create(
        self,
        tenant: TenantContext,
        name: str,
        category: str,
        severity: str,
        description: str | None,
        check_frequency: str,
        auto_check: bool,
    ) -> ComplianceRule:
        """Create and persist a new enabled rule.

        Args:
            tenant: The tenant context.
            name: Rule name.
            category: Rule category value.
            severity: Severity value.
            description: Optional description.
            check_frequency: Check frequency value.
            auto_check: Whether checks run automatically.

        Returns:
            The persisted ComplianceRule.
        """
        rule = ComplianceRule(
            tenant_id=tenant.tenant_id,
            name=name,
            category=category,
            severity=severity,
            description=description,
            check_frequency=check_frequency,
            auto_check=auto_check,
            enabled=True,
            created_by=tenant.user_id,
            revision=1,
        )
        try:
            self._session.add(rule)
            await self._session.flush()
            await self._session.refresh(rule)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to create compliance rule: {exc}") from exc
        logger.info("Rule created in DB", rule_id=str(rule.id), tenant_id=str(tenant.tenant_id))
        return rule

    async def set_enabled(
        self,
        rule_id: uuid.UUID,
        enabled: bool,
        tenant: TenantContext,
        expected_revision: int | None = None,
    ) -> ComplianceRule:
        """Write a rule's enabled flag and bump its revision.

        Args:
            rule_id: The rule UUID.
            enabled: New flag value.
            tenant: The tenant context.
            expected_revision: Optional revision the stored row must still have.

        Returns:
            The updated ComplianceRule.

        Raises:
            NotFoundError: If the rule does not exist.
            ConflictError: If expected_revision does not match.
            StoreWriteError: If the update fails.
        """
        stmt = update(ComplianceRule).where(
            ComplianceRule.id == rule_id,
            ComplianceRule.tenant_id == tenant.tenant_id,
        )
        if expected_revision is not None:
            stmt = stmt.where(ComplianceRule.revision == expected_revision)
        stmt = stmt.values(enabled=enabled, revision=ComplianceRule.revision + 1).returning(ComplianceRule)
        try:
            result = await self._session.execute(stmt)
            rule = result.scalar_one_or_none()
            if rule is None:
                raise await self._revision_conflict_or_missing(
                    ComplianceRule, rule_id, tenant, expected_revision
                )
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to update compliance rule: {exc}") from exc
        return rule


class CheckRepository(_SessionRepository):
    """Repository for the append-only ComplianceCheck table.

    There is intentionally no update or delete operation.
    """

    async def list_recent(self, tenant: TenantContext, limit: int = 100) -> list[ComplianceCheck]:
        """List the most recent checks for a tenant, newest first.

        Args:
            tenant: The tenant context.
            limit: Maximum number of checks returned.

        Returns:
            List of ComplianceCheck records with rule and client eagerly loaded.
        """
        stmt = (
            select(ComplianceCheck)
            .where(ComplianceCheck.tenant_id == tenant.tenant_id)
            .order_by(ComplianceCheck.checked_at.desc())
            .limit(limit)
        )
        result = await self._read(stmt, "compliance checks")
        return list(result.scalars().unique().all())

    async def append(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        client_id: uuid.UUID | None,
        status: str,
        checked_at: datetime,
        risk_score: float | None,
    ) -> ComplianceCheck:
        """Append a new check outcome.

        Args:
            tenant: The tenant context.
            rule_id: The evaluated rule.
            client_id: The evaluated client, if any.
            status: Check status value.
            checked_at: When the check ran.
            risk_score: Optional risk score.

        Returns:
            The persisted ComplianceCheck.
        """
        check = ComplianceCheck(
            tenant_id=tenant.tenant_id,
            rule_id=rule_id,
            client_id=client_id,
            status=status,
            checked_at=checked_at,
            risk_score=risk_score,
            checked_by=tenant.user_id,
        )
        try:
            self._session.add(check)
            await self._session.flush()
            await self._session.refresh(check)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to record compliance check: {exc}") from exc
        return check


class CaseRepository(_SessionRepository):
    """Repository for ComplianceCase and CaseComment persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceCase]:
        """List all cases for a tenant, newest first.

        Args:
            tenant: The tenant context.

        Returns:
            List of ComplianceCase records with client eagerly loaded.
        """
        stmt = (
            select(ComplianceCase)
            .where(ComplianceCase.tenant_id == tenant.tenant_id)
            .order_by(ComplianceCase.created_at.desc())
        )
        result = await self._read(stmt, "compliance cases")
        return list(result.scalars().unique().all())

    async def get_by_id(self, case_id: uuid.UUID, tenant: TenantContext) -> ComplianceCase:
        """Retrieve a case by ID, scoped to the tenant.

        Raises:
            NotFoundError: If not found.
        """
        stmt = select(ComplianceCase).where(
            ComplianceCase.id == case_id,
            ComplianceCase.tenant_id == tenant.tenant_id,
        ).execution_options(populate_existing=True)
        result = await self._read(stmt, "compliance case")
        case = result.unique().scalar_one_or_none()
        if case is None:
            raise NotFoundError(resource="ComplianceCase", resource_id=str(case_id))
        return case

    async def create(
        self,
        tenant: TenantContext,
        title: str,
        priority: str,
        client_id: uuid.UUID | None,
        description: str | None,
    ) -> ComplianceCase:
        """Open a new case with a generated case number.

        Args:
            tenant: The tenant context.
            title: Case title.
            priority: Priority value.
            client_id: Optional client the case is about.
            description: Optional description.

        Returns:
            The persisted ComplianceCase in open status.
        """
        case = ComplianceCase(
            tenant_id=tenant.tenant_id,
            case_number=f"CMP-{uuid.uuid4().hex[:8].upper()}",
            title=title,
            priority=priority,
            client_id=client_id,
            description=description,
            status="open",
            created_by=tenant.user_id,
            revision=1,
        )
        try:
            self._session.add(case)
            await self._session.flush()
            await self._session.refresh(case)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to create compliance case: {exc}") from exc
        logger.info(
            "Case created in DB",
            case_id=str(case.id),
            case_number=case.case_number,
            tenant_id=str(tenant.tenant_id),
        )
        return case

    async def update_status(
        self,
        case_id: uuid.UUID,
        tenant: TenantContext,
        status: str,
        updated_at: datetime,
        resolved_at: datetime | None,
        expected_revision: int | None = None,
    ) -> ComplianceCase:
        """Write a case status with its timestamps and bump its revision.

        Args:
            case_id: The case UUID.
            tenant: The tenant context.
            status: New status value.
            updated_at: Timestamp of the transition.
            resolved_at: Resolution timestamp to store (kept when reopening).
            expected_revision: Optional revision the stored row must still have.

        Returns:
            The updated ComplianceCase.

        Raises:
            NotFoundError: If the case does not exist.
            ConflictError: If expected_revision does not match.
            StoreWriteError: If the update fails.
        """
        stmt = update(ComplianceCase).where(
            ComplianceCase.id == case_id,
            ComplianceCase.tenant_id == tenant.tenant_id,
        )
        if expected_revision is not None:
            stmt = stmt.where(ComplianceCase.revision == expected_revision)
        stmt = stmt.values(
            status=status,
            updated_at=updated_at,
            resolved_at=resolved_at,
            revision=ComplianceCase.revision + 1,
        )
        try:
            result = await self._session.execute(stmt)
            if result.rowcount == 0:
                raise await self._revision_conflict_or_missing(
                    ComplianceCase, case_id, tenant, expected_revision
                )
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to update compliance case: {exc}") from exc
        return await self.get_by_id(case_id, tenant)

    async def add_comment(
        self,
        case_id: uuid.UUID,
        tenant: TenantContext,
        comment: str,
    ) -> CaseComment:
        """Insert a comment on a case.

        Args:
            case_id: The case UUID.
            tenant: The tenant context; its user is recorded as author.
            comment: Comment text.

        Returns:
            The persisted CaseComment.
        """
        entry = CaseComment(
            tenant_id=tenant.tenant_id,
            case_id=case_id,
            author_id=tenant.user_id,
            comment=comment,
        )
        try:
            self._session.add(entry)
            await self._session.flush()
            await self._session.refresh(entry)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to add case comment: {exc}") from exc
        return entry

    async def list_comments(self, case_id: uuid.UUID, tenant: TenantContext) -> list[CaseComment]:
        """List a case's comments, oldest first."""
        stmt = (
            select(CaseComment)
            .where(CaseComment.case_id == case_id, CaseComment.tenant_id == tenant.tenant_id)
            .order_by(CaseComment.created_at)
        )
        result = await self._read(stmt, "case comments")
        return list(result.scalars().all())


class DocumentRepository(_SessionRepository):
    """Repository for ComplianceDocument persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceDocument]:
        """List all documents for a tenant, soonest expiry first.

        Args:
            tenant: The tenant context.

        Returns:
            List of ComplianceDocument records with client eagerly loaded.
        """
        stmt = (
            select(ComplianceDocument)
            .where(ComplianceDocument.tenant_id == tenant.tenant_id)
            .order_by(ComplianceDocument.expiry_date.asc().nulls_last())
        )
        result = await self._read(stmt, "compliance documents")
        return list(result.scalars().unique().all())

    async def create(
        self,
        tenant: TenantContext,
        name: str,
        client_id: uuid.UUID | None,
        document_type: str | None,
        status: str,
        expiry_date: date | None,
        file_path: str | None,
    ) -> ComplianceDocument:
        """Register document metadata. The file itself is stored elsewhere.

        Args:
            tenant: The tenant context.
            name: Display name.
            client_id: Optional client the document belongs to.
            document_type: Optional document type.
            status: Document status value.
            expiry_date: Optional expiry date.
            file_path: Optional location of the stored file.

        Returns:
            The persisted ComplianceDocument.
        """
        document = ComplianceDocument(
            tenant_id=tenant.tenant_id,
            name=name,
            client_id=client_id,
            document_type=document_type,
            status=status,
            expiry_date=expiry_date,
            file_path=file_path,
        )
        try:
            self._session.add(document)
            await self._session.flush()
            await self._session.refresh(document)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to register compliance document: {exc}") from exc
        logger.info("Document registered in DB", document_id=str(document.id), tenant_id=str(tenant.tenant_id))
        return document
