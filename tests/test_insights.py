"""Tests for insight generation and the remote insight client.

The remote client is exercised against httpx.MockTransport; the generator is
exercised with an AsyncMock client so the fallback path can be forced.
"""

import json
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from advisor_compliance.adapters.insight_client import InsightClient
from advisor_compliance.errors import InsightServiceError
from advisor_compliance.monitoring.insights import (
    InsightGenerator,
    heuristic_insights,
    snapshot_to_payload,
)
from advisor_compliance.monitoring.types import (
    CaseStatus,
    CheckStatus,
    ComplianceSnapshot,
    InsightKind,
    InsightSource,
)
from tests.conftest import FIXED_NOW, make_case, make_check, make_document, make_rule

SERVICE_URL = "https://insights.internal/v1/generate"


def _failing_checks(failures: int, total: int) -> list:
    return [make_check(CheckStatus.FAIL) for _ in range(failures)] + [
        make_check(CheckStatus.PASS) for _ in range(total - failures)
    ]


class TestHeuristicInsights:
    def test_empty_snapshot_yields_nothing(self) -> None:
        assert heuristic_insights(ComplianceSnapshot(), FIXED_NOW) == []

    def test_all_three_templates_numbered_in_order(self) -> None:
        snapshot = ComplianceSnapshot(
            checks=_failing_checks(5, 20),
            documents=[make_document(days_until_expiry=2)],
            cases=[make_case(CaseStatus.OPEN, created_at=FIXED_NOW - timedelta(days=31))],
        )
        insights = heuristic_insights(snapshot, FIXED_NOW)

        assert [i.kind for i in insights] == [InsightKind.ALERT, InsightKind.SUGGESTION, InsightKind.RISK]
        assert [i.id for i in insights] == ["1", "2", "3"]
        assert [i.confidence for i in insights] == [85, 92, 78]
        assert all(i.source == InsightSource.HEURISTIC for i in insights)

    def test_failure_rate_threshold_is_strict(self) -> None:
        """Exactly 20% failures does not raise the alert."""
        snapshot = ComplianceSnapshot(checks=_failing_checks(4, 20))
        assert heuristic_insights(snapshot, FIXED_NOW) == []

    def test_failure_rate_uses_most_recent_twenty(self) -> None:
        # Older failures beyond the window are ignored
        checks = [make_check(CheckStatus.PASS) for _ in range(20)] + _failing_checks(10, 10)
        assert heuristic_insights(ComplianceSnapshot(checks=checks), FIXED_NOW) == []

    def test_warnings_do_not_count_as_failures(self) -> None:
        checks = [make_check(CheckStatus.WARNING) for _ in range(10)]
        assert heuristic_insights(ComplianceSnapshot(checks=checks), FIXED_NOW) == []

    def test_expired_documents_count_as_urgent(self) -> None:
        snapshot = ComplianceSnapshot(
            documents=[make_document(days_until_expiry=-4), make_document(days_until_expiry=None)]
        )
        insights = heuristic_insights(snapshot, FIXED_NOW)
        assert len(insights) == 1
        assert insights[0].kind == InsightKind.SUGGESTION
        assert insights[0].id == "1"
        assert insights[0].description.startswith("1 document(s)")

    def test_stale_cases_include_under_review_but_not_resolved(self) -> None:
        old = FIXED_NOW - timedelta(days=40)
        snapshot = ComplianceSnapshot(
            cases=[
                make_case(CaseStatus.UNDER_REVIEW, created_at=old),
                make_case(CaseStatus.RESOLVED, created_at=old),
                make_case(CaseStatus.OPEN, created_at=FIXED_NOW - timedelta(days=10)),
            ]
        )
        insights = heuristic_insights(snapshot, FIXED_NOW)
        assert len(insights) == 1
        assert insights[0].kind == InsightKind.RISK
        assert insights[0].description.startswith("1 case(s)")


class TestInsightGenerator:
    def _snapshot(self) -> ComplianceSnapshot:
        return ComplianceSnapshot(
            rules=[make_rule()],
            documents=[make_document(days_until_expiry=1)],
        )

    @pytest.mark.asyncio()
    async def test_without_client_uses_heuristics(self) -> None:
        generator = InsightGenerator(client=None, clock=MagicMock(return_value=FIXED_NOW))
        insights = await generator.generate(self._snapshot())
        assert [i.source for i in insights] == [InsightSource.HEURISTIC]

    @pytest.mark.asyncio()
    async def test_remote_insights_replace_heuristics(self) -> None:
        client = AsyncMock()
        client.fetch_insights.return_value = [
            {"type": "trend", "title": "Improving", "description": "Up 5%", "confidence": 70, "action": "None"},
            {"type": "alert", "title": "KYC gaps", "description": "3 gaps", "confidence": 90, "action": "Fix"},
        ]
        generator = InsightGenerator(client=client, clock=MagicMock(return_value=FIXED_NOW))

        insights = await generator.generate(self._snapshot())

        assert [i.id for i in insights] == ["1", "2"]
        assert [i.kind for i in insights] == [InsightKind.TREND, InsightKind.ALERT]
        assert all(i.source == InsightSource.REMOTE for i in insights)
        payload = client.fetch_insights.call_args.args[0]
        assert set(payload) == {"rules", "checks", "cases", "documents"}

    @pytest.mark.asyncio()
    async def test_remote_failure_falls_back(self) -> None:
        client = AsyncMock()
        client.fetch_insights.side_effect = InsightServiceError("boom", status_code=500)
        generator = InsightGenerator(client=client, clock=MagicMock(return_value=FIXED_NOW))

        insights = await generator.generate(self._snapshot())

        assert len(insights) == 1
        assert insights[0].kind == InsightKind.SUGGESTION
        assert insights[0].source == InsightSource.HEURISTIC

    @pytest.mark.asyncio()
    async def test_unexpected_client_error_falls_back(self) -> None:
        client = AsyncMock()
        client.fetch_insights.side_effect = RuntimeError("client bug")
        generator = InsightGenerator(client=client, clock=MagicMock(return_value=FIXED_NOW))

        insights = await generator.generate(self._snapshot())

        assert [i.source for i in insights] == [InsightSource.HEURISTIC]

    @pytest.mark.asyncio()
    async def test_unusable_remote_item_falls_back(self) -> None:
        client = AsyncMock()
        client.fetch_insights.return_value = [{"type": "forecast", "title": "x"}]
        generator = InsightGenerator(client=client, clock=MagicMock(return_value=FIXED_NOW))

        insights = await generator.generate(self._snapshot())

        assert [i.source for i in insights] == [InsightSource.HEURISTIC]

    @pytest.mark.asyncio()
    async def test_malformed_service_url_falls_back(self) -> None:
        generator = InsightGenerator(
            client=InsightClient(service_url="http://[::1/insights"),
            clock=MagicMock(return_value=FIXED_NOW),
        )

        assert await generator.generate(ComplianceSnapshot()) == []

    def test_snapshot_payload_is_json_serializable(self) -> None:
        snapshot = ComplianceSnapshot(
            rules=[make_rule()],
            checks=[make_check()],
            cases=[make_case()],
            documents=[make_document(expiry_date=FIXED_NOW, days_until_expiry=0)],
        )
        payload = snapshot_to_payload(snapshot)
        decoded = json.loads(json.dumps(payload))
        assert decoded["rules"][0]["category"] == "identity_verification"
        assert decoded["documents"][0]["days_until_expiry"] == 0


class TestInsightClient:
    def _client(self, handler: Any) -> InsightClient:
        return InsightClient(
            service_url=SERVICE_URL,
            api_key="secret",
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio()
    async def test_success(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "insights": [
                        {"type": "risk", "title": "Concentration", "description": "d", "confidence": 80, "action": "a"}
                    ]
                },
            )

        result = await self._client(handler).fetch_insights({"rules": [], "checks": [], "cases": [], "documents": []})

        assert result == [
            {"type": "risk", "title": "Concentration", "description": "d", "confidence": 80, "action": "a"}
        ]
        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["rules"] == []

    @pytest.mark.asyncio()
    async def test_non_success_status(self) -> None:
        client = self._client(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(InsightServiceError) as exc_info:
            await client.fetch_insights({})
        assert exc_info.value.upstream_status == 503

    @pytest.mark.asyncio()
    async def test_non_json_body(self) -> None:
        client = self._client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(InsightServiceError):
            await client.fetch_insights({})

    @pytest.mark.asyncio()
    async def test_malformed_payload(self) -> None:
        client = self._client(
            lambda request: httpx.Response(200, json={"insights": [{"type": "unknown", "title": "x"}]})
        )
        with pytest.raises(InsightServiceError):
            await client.fetch_insights({})

    @pytest.mark.asyncio()
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(InsightServiceError):
            await self._client(handler).fetch_insights({})

    @pytest.mark.asyncio()
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(InsightServiceError, match="timed out"):
            await self._client(handler).fetch_insights({})

    @pytest.mark.asyncio()
    async def test_invalid_url(self) -> None:
        client = InsightClient(service_url="http://[::1/insights")
        with pytest.raises(InsightServiceError, match="URL is invalid"):
            await client.fetch_insights({})

    @pytest.mark.asyncio()
    async def test_other_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.HTTPError("stream closed")

        with pytest.raises(InsightServiceError, match="HTTP error"):
            await self._client(handler).fetch_insights({})
