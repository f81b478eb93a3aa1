"""Tests for the adapter/repository layer.

These are unit tests using mock SQLAlchemy sessions; they verify what is
handed to the session and how driver failures and guarded updates are
translated into engine errors.
"""

import re
import uuid
from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from advisor_compliance.adapters.repositories import (
    CaseRepository,
    CheckRepository,
    DocumentRepository,
    RuleRepository,
)
from advisor_compliance.auth import TenantContext
from advisor_compliance.core.models import (
    CaseComment,
    ComplianceCase,
    ComplianceCheck,
    ComplianceDocument,
    ComplianceRule,
)
from advisor_compliance.errors import ConflictError, NotFoundError, StoreReadError, StoreWriteError


def _db_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection lost"))


def _result(scalar: object = None, rows: list | None = None, rowcount: int = 1) -> MagicMock:
    """Build a fake SQLAlchemy Result."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.unique.return_value.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = rows or []
    result.scalars.return_value.unique.return_value.all.return_value = rows or []
    result.rowcount = rowcount
    return result


def _session() -> AsyncMock:
    """Build a mock AsyncSession whose begin_nested() works as an async context manager."""
    session = AsyncMock()
    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=None)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=savepoint)
    return session


def _session_capturing_adds(added: list) -> AsyncMock:
    session = _session()
    session.add = MagicMock(side_effect=added.append)

    async def mock_refresh(obj: object) -> None:
        obj.id = uuid.uuid4()

    session.refresh = AsyncMock(side_effect=mock_refresh)
    return session


class TestReadFailures:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        ("repo_cls", "method"),
        [
            (RuleRepository, "list_all"),
            (CheckRepository, "list_recent"),
            (CaseRepository, "list_all"),
            (DocumentRepository, "list_all"),
        ],
    )
    async def test_driver_errors_become_store_read_errors(
        self, repo_cls: type, method: str, tenant: TenantContext
    ) -> None:
        session = _session()
        session.execute.side_effect = _db_error()
        repo = repo_cls(session)

        with pytest.raises(StoreReadError):
            await getattr(repo, method)(tenant)

    @pytest.mark.asyncio()
    async def test_list_returns_rows(self, tenant: TenantContext) -> None:
        rows = [MagicMock(), MagicMock()]
        session = _session()
        session.execute.return_value = _result(rows=rows)

        assert await DocumentRepository(session).list_all(tenant) == rows

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        ("repo_cls", "method"),
        [
            (RuleRepository, "list_all"),
            (CheckRepository, "list_recent"),
            (CaseRepository, "list_all"),
            (DocumentRepository, "list_all"),
        ],
    )
    async def test_reads_run_inside_savepoint(self, repo_cls: type, method: str, tenant: TenantContext) -> None:
        session = _session()
        session.execute.return_value = _result(rows=[])

        await getattr(repo_cls(session), method)(tenant)

        session.begin_nested.assert_called_once_with()
        savepoint = session.begin_nested.return_value
        savepoint.__aenter__.assert_awaited_once()
        savepoint.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_failed_read_rolls_back_only_its_savepoint(self, tenant: TenantContext) -> None:
        """A failing read unwinds its own savepoint and the next read on the session still succeeds."""
        rows = [MagicMock()]
        session = _session()
        session.execute.side_effect = [_db_error(), _result(rows=rows)]

        with pytest.raises(StoreReadError):
            await RuleRepository(session).list_all(tenant)
        checks = await CheckRepository(session).list_recent(tenant)

        assert checks == rows
        savepoint = session.begin_nested.return_value
        exc_type = savepoint.__aexit__.await_args_list[0].args[0]
        assert issubclass(exc_type, OperationalError)
        assert savepoint.__aexit__.await_count == 2


class TestRuleRepository:
    @pytest.mark.asyncio()
    async def test_create_persists_enabled_rule(self, tenant: TenantContext) -> None:
        added: list = []
        repo = RuleRepository(_session_capturing_adds(added))

        rule = await repo.create(
            tenant=tenant,
            name="Annual KYC refresh",
            category="identity_verification",
            severity="high",
            description=None,
            check_frequency="monthly",
            auto_check=True,
        )

        assert added == [rule]
        assert isinstance(rule, ComplianceRule)
        assert rule.enabled is True
        assert rule.revision == 1
        assert rule.tenant_id == tenant.tenant_id
        assert rule.created_by == tenant.user_id

    @pytest.mark.asyncio()
    async def test_set_enabled_returns_updated_row(self, tenant: TenantContext) -> None:
        stored = MagicMock()
        session = _session()
        session.execute.return_value = _result(scalar=stored)

        assert await RuleRepository(session).set_enabled(uuid.uuid4(), False, tenant) is stored

    @pytest.mark.asyncio()
    async def test_set_enabled_missing_rule(self, tenant: TenantContext) -> None:
        session = _session()
        session.execute.side_effect = [_result(scalar=None), _result(scalar=None)]

        with pytest.raises(NotFoundError):
            await RuleRepository(session).set_enabled(uuid.uuid4(), False, tenant)

    @pytest.mark.asyncio()
    async def test_set_enabled_stale_revision(self, tenant: TenantContext) -> None:
        session = _session()
        session.execute.side_effect = [_result(scalar=None), _result(scalar=3)]

        with pytest.raises(ConflictError, match="revision 3, expected 2"):
            await RuleRepository(session).set_enabled(uuid.uuid4(), True, tenant, expected_revision=2)

    @pytest.mark.asyncio()
    async def test_set_enabled_driver_error(self, tenant: TenantContext) -> None:
        session = _session()
        session.execute.side_effect = _db_error()

        with pytest.raises(StoreWriteError):
            await RuleRepository(session).set_enabled(uuid.uuid4(), True, tenant)


class TestCheckRepository:
    def test_repository_is_append_only(self) -> None:
        repo = CheckRepository(_session())
        assert not hasattr(repo, "update")
        assert not hasattr(repo, "delete")

    @pytest.mark.asyncio()
    async def test_append_records_author(self, tenant: TenantContext) -> None:
        added: list = []
        repo = CheckRepository(_session_capturing_adds(added))
        checked_at = datetime(2024, 6, 1, tzinfo=UTC)

        check = await repo.append(
            tenant=tenant,
            rule_id=uuid.uuid4(),
            client_id=None,
            status="needs_review",
            checked_at=checked_at,
            risk_score=None,
        )

        assert isinstance(check, ComplianceCheck)
        assert check.status == "needs_review"
        assert check.checked_at == checked_at
        assert check.checked_by == tenant.user_id

    @pytest.mark.asyncio()
    async def test_append_flush_failure(self, tenant: TenantContext) -> None:
        session = _session()
        session.add = MagicMock()
        session.flush.side_effect = _db_error()

        with pytest.raises(StoreWriteError):
            await CheckRepository(session).append(tenant, uuid.uuid4(), None, "pass", datetime.now(UTC), None)


class TestCaseRepository:
    @pytest.mark.asyncio()
    async def test_create_opens_case_with_number(self, tenant: TenantContext) -> None:
        added: list = []
        repo = CaseRepository(_session_capturing_adds(added))

        case = await repo.create(tenant, "Missing W-9", "high", None, None)

        assert isinstance(case, ComplianceCase)
        assert case.status == "open"
        assert re.fullmatch(r"CMP-[0-9A-F]{8}", case.case_number)

    @pytest.mark.asyncio()
    async def test_get_by_id_missing(self, tenant: TenantContext) -> None:
        session = _session()
        session.execute.return_value = _result(scalar=None)

        with pytest.raises(NotFoundError):
            await CaseRepository(session).get_by_id(uuid.uuid4(), tenant)

    @pytest.mark.asyncio()
    async def test_update_status_rereads_row(self, tenant: TenantContext) -> None:
        stored = MagicMock()
        session = _session()
        session.execute.side_effect = [_result(rowcount=1), _result(scalar=stored)]

        case = await CaseRepository(session).update_status(
            uuid.uuid4(), tenant, "resolved", datetime.now(UTC), datetime.now(UTC)
        )

        assert case is stored
        assert session.execute.await_count == 2

    @pytest.mark.asyncio()
    async def test_update_status_stale_revision(self, tenant: TenantContext) -> None:
        session = _session()
        session.execute.side_effect = [_result(rowcount=0), _result(scalar=4)]

        with pytest.raises(ConflictError):
            await CaseRepository(session).update_status(
                uuid.uuid4(), tenant, "open", datetime.now(UTC), None, expected_revision=1
            )

    @pytest.mark.asyncio()
    async def test_add_comment_records_author(self, tenant: TenantContext) -> None:
        added: list = []
        repo = CaseRepository(_session_capturing_adds(added))
        case_id = uuid.uuid4()

        entry = await repo.add_comment(case_id, tenant, "Called client")

        assert isinstance(entry, CaseComment)
        assert entry.case_id == case_id
        assert entry.author_id == tenant.user_id
        assert entry.comment == "Called client"


class TestDocumentRepository:
    @pytest.mark.asyncio()
    async def test_create_stores_metadata(self, tenant: TenantContext) -> None:
        added: list = []
        repo = DocumentRepository(_session_capturing_adds(added))
        client_id = uuid.uuid4()

        document = await repo.create(
            tenant=tenant,
            name="Form ADV Part 2",
            client_id=client_id,
            document_type="disclosure",
            status="pending",
            expiry_date=date(2025, 1, 31),
            file_path="documents/adv-part-2.pdf",
        )

        assert added == [document]
        assert isinstance(document, ComplianceDocument)
        assert document.tenant_id == tenant.tenant_id
        assert document.client_id == client_id
        assert document.status == "pending"
        assert document.expiry_date == date(2025, 1, 31)
        assert document.file_path == "documents/adv-part-2.pdf"

    @pytest.mark.asyncio()
    async def test_create_flush_failure(self, tenant: TenantContext) -> None:
        session = _session()
        session.add = MagicMock()
        session.flush.side_effect = _db_error()

        with pytest.raises(StoreWriteError):
            await DocumentRepository(session).create(tenant, "W-9", None, None, "pending", None, None)
