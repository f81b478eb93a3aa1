"""Abstract interfaces (Protocol classes) for the compliance engine.

Defines the contracts between the service layer and the adapter layer using
Python's typing.Protocol. Services depend on these protocols, never on
concrete repositories, so tests can inject AsyncMock repositories.

Protocols defined:
- IRuleRepository
- ICheckRepository
- ICaseRepository
- IDocumentRepository

The insight client contract (IInsightClient) lives beside the generator in
monitoring/insights.py.
"""

import uuid
from datetime import date, datetime
from typing import Protocol

from advisor_compliance.auth import TenantContext
from advisor_compliance.core.models import (
    CaseComment,
    ComplianceCase,
    ComplianceCheck,
    ComplianceDocument,
    ComplianceRule,
)


class IRuleRepository(Protocol):
    """Repository contract for ComplianceRule persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceRule]:
        """List every rule of the tenant.

        Raises:
            StoreReadError: If the query fails.
        """
        ...

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
        """Create an enabled rule.

        Raises:
            StoreWriteError: If the insert fails.
        """
        ...

    async def set_enabled(
        self,
        rule_id: uuid.UUID,
        enabled: bool,
        tenant: TenantContext,
        expected_revision: int | None = None,
    ) -> ComplianceRule:
        """Write a rule's enabled flag.

        Args:
            rule_id: The rule UUID.
            enabled: New flag value.
            tenant: The tenant context.
            expected_revision: When given, the write only applies if the stored
                revision still matches.

        Returns:
            The updated rule.

        Raises:
            NotFoundError: If the rule does not exist for the tenant.
            ConflictError: If expected_revision no longer matches.
            StoreWriteError: If the update fails.
        """
        ...


class ICheckRepository(Protocol):
    """Repository contract for the append-only ComplianceCheck table."""

    async def list_recent(self, tenant: TenantContext, limit: int = 100) -> list[ComplianceCheck]:
        """List the most recent checks, newest first.

        Raises:
            StoreReadError: If the query fails.
        """
        ...

    async def append(
        self,
        tenant: TenantContext,
        rule_id: uuid.UUID,
        client_id: uuid.UUID | None,
        status: str,
        checked_at: datetime,
        risk_score: float | None,
    ) -> ComplianceCheck:
        """Append a new check.

        Raises:
            StoreWriteError: If the insert fails.
        """
        ...


class ICaseRepository(Protocol):
    """Repository contract for ComplianceCase and CaseComment persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceCase]:
        """List the tenant's cases, newest first.

        Raises:
            StoreReadError: If the query fails.
        """
        ...

    async def get_by_id(self, case_id: uuid.UUID, tenant: TenantContext) -> ComplianceCase:
        """Retrieve a case by ID.

        Raises:
            NotFoundError: If no case exists with the given ID for this tenant.
        """
        ...

    async def create(
        self,
        tenant: TenantContext,
        title: str,
        priority: str,
        client_id: uuid.UUID | None,
        description: str | None,
    ) -> ComplianceCase:
        """Open a new case.

        Raises:
            StoreWriteError: If the insert fails.
        """
        ...

    async def update_status(
        self,
        case_id: uuid.UUID,
        tenant: TenantContext,
        status: str,
        updated_at: datetime,
        resolved_at: datetime | None,
        expected_revision: int | None = None,
    ) -> ComplianceCase:
        """Write a case status with its timestamps.

        Raises:
            NotFoundError: If the case does not exist for the tenant.
            ConflictError: If expected_revision no longer matches.
            StoreWriteError: If the update fails.
        """
        ...

    async def add_comment(
        self,
        case_id: uuid.UUID,
        tenant: TenantContext,
        comment: str,
    ) -> CaseComment:
        """Insert a comment authored by the tenant's user.

        Raises:
            StoreWriteError: If the insert fails.
        """
        ...

    async def list_comments(self, case_id: uuid.UUID, tenant: TenantContext) -> list[CaseComment]:
        """List a case's comments, oldest first."""
        ...


class IDocumentRepository(Protocol):
    """Repository contract for ComplianceDocument persistence."""

    async def list_all(self, tenant: TenantContext) -> list[ComplianceDocument]:
        """List the tenant's documents.

        Raises:
            StoreReadError: If the query fails.
        """
        ...

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
        """Register document metadata.

        Raises:
            StoreWriteError: If the insert fails.
        """
        ...
