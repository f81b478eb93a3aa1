"""Insight generation with heuristic fallback.

The generator asks the remote insight service once per load, passing the full
rule / check / case / document snapshot. If that call fails for any reason
(network error, timeout, non-2xx status, malformed payload) it falls back to
a deterministic pass over the same snapshot that emits up to three fixed
insight templates:

- alert       failure rate over the most recent checks above 20%
- suggestion  documents expiring within the urgent window
- risk        cases still pending after the stale-case age

The result is either the remote list or the heuristic list, never a mix.
"""

import dataclasses
from collections.abc import Callable
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from advisor_compliance.errors import InsightServiceError
from advisor_compliance.monitoring.types import (
    CaseRecord,
    CaseStatus,
    CheckRecord,
    CheckStatus,
    ComplianceSnapshot,
    DocumentRecord,
    Insight,
    InsightKind,
    InsightSource,
)
from advisor_compliance.observability import get_logger

logger = get_logger(__name__)

CHECK_WINDOW = 20
FAILURE_RATE_THRESHOLD = 0.20
URGENT_EXPIRY_DAYS = 7
STALE_CASE_DAYS = 30

# Fixed confidence per heuristic template
ALERT_CONFIDENCE = 85
SUGGESTION_CONFIDENCE = 92
RISK_CONFIDENCE = 78


class IInsightClient(Protocol):
    """Contract for the remote insight-generation service."""

    async def fetch_insights(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        """Request insights for a compliance snapshot.

        Args:
            payload: ``{"rules": [...], "checks": [...], "cases": [...], "documents": [...]}``.

        Returns:
            Validated insight dicts with keys type, title, description,
            confidence and action.

        Raises:
            InsightServiceError: On any transport, status or payload failure.
        """
        ...


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def snapshot_to_payload(snapshot: ComplianceSnapshot) -> dict[str, Any]:
    """Serialize a snapshot to the JSON body the insight service expects."""
    return {
        "rules": [_jsonable(dataclasses.asdict(rule)) for rule in snapshot.rules],
        "checks": [_jsonable(dataclasses.asdict(check)) for check in snapshot.checks],
        "cases": [_jsonable(dataclasses.asdict(case)) for case in snapshot.cases],
        "documents": [_jsonable(dataclasses.asdict(doc)) for doc in snapshot.documents],
    }


def _recent_failure_rate(checks: list[CheckRecord], window: int) -> float | None:
    recent = checks[:window]
    if not recent:
        return None
    failures = sum(1 for check in recent if check.status == CheckStatus.FAIL)
    return failures / len(recent)


def _urgent_document_count(documents: list[DocumentRecord], urgent_days: int) -> int:
    return sum(
        1
        for doc in documents
        if doc.days_until_expiry is not None and doc.days_until_expiry <= urgent_days
    )


def _stale_case_count(cases: list[CaseRecord], now: datetime, stale_days: int) -> int:
    cutoff = now - timedelta(days=stale_days)
    return sum(
        1 for case in cases if case.status != CaseStatus.RESOLVED and case.created_at < cutoff
    )


def heuristic_insights(
    snapshot: ComplianceSnapshot,
    now: datetime,
    check_window: int = CHECK_WINDOW,
    urgent_expiry_days: int = URGENT_EXPIRY_DAYS,
    stale_case_days: int = STALE_CASE_DAYS,
) -> list[Insight]:
    """Derive fallback insights from a snapshot.

    Checks are expected newest first, as returned by the store. Documents must
    already carry days_until_expiry.

    Args:
        snapshot: The aggregation-pass snapshot.
        now: Reference instant for case ageing.
        check_window: Number of most recent checks inspected for the failure rate.
        urgent_expiry_days: Expiry window for the document suggestion.
        stale_case_days: Age after which a pending case counts as stale.

    Returns:
        Zero to three insights, ids numbered from 1 in emission order.
    """
    drafts: list[tuple[InsightKind, str, str, int, str]] = []

    failure_rate = _recent_failure_rate(snapshot.checks, check_window)
    if failure_rate is not None and failure_rate > FAILURE_RATE_THRESHOLD:
        drafts.append(
            (
                InsightKind.ALERT,
                "High Check Failure Rate",
                f"{failure_rate * 100:.1f}% of the last {min(len(snapshot.checks), check_window)} "
                "compliance checks failed. Failing rules may indicate a systemic issue.",
                ALERT_CONFIDENCE,
                "Review failed checks",
            )
        )

    urgent_docs = _urgent_document_count(snapshot.documents, urgent_expiry_days)
    if urgent_docs > 0:
        drafts.append(
            (
                InsightKind.SUGGESTION,
                "Documents Expiring Soon",
                f"{urgent_docs} document(s) expire within {urgent_expiry_days} days. "
                "Request renewals from the affected clients now.",
                SUGGESTION_CONFIDENCE,
                "Request document renewals",
            )
        )

    stale_cases = _stale_case_count(snapshot.cases, now, stale_case_days)
    if stale_cases > 0:
        drafts.append(
            (
                InsightKind.RISK,
                "Aging Compliance Cases",
                f"{stale_cases} case(s) have been open for more than {stale_case_days} days. "
                "Unresolved cases increase regulatory exposure.",
                RISK_CONFIDENCE,
                "Escalate aging cases",
            )
        )

    return [
        Insight(
            id=str(index),
            kind=kind,
            title=title,
            description=description,
            confidence=confidence,
            action=action,
            source=InsightSource.HEURISTIC,
        )
        for index, (kind, title, description, confidence, action) in enumerate(drafts, start=1)
    ]


class InsightGenerator:
    """Produces insights remotely, degrading to heuristics on failure.

    Args:
        client: Remote insight client, or None to always use heuristics.
        clock: Returns the current instant.
        check_window: Checks inspected by the failure-rate heuristic.
        urgent_expiry_days: Expiry window for the document heuristic.
        stale_case_days: Case age threshold for the risk heuristic.
    """

    def __init__(
        self,
        client: IInsightClient | None,
        clock: Callable[[], datetime],
        check_window: int = CHECK_WINDOW,
        urgent_expiry_days: int = URGENT_EXPIRY_DAYS,
        stale_case_days: int = STALE_CASE_DAYS,
    ) -> None:
        self._client = client
        self._clock = clock
        self._check_window = check_window
        self._urgent_expiry_days = urgent_expiry_days
        self._stale_case_days = stale_case_days

    def _fallback(self, snapshot: ComplianceSnapshot) -> list[Insight]:
        return heuristic_insights(
            snapshot,
            now=self._clock(),
            check_window=self._check_window,
            urgent_expiry_days=self._urgent_expiry_days,
            stale_case_days=self._stale_case_days,
        )

    async def generate(self, snapshot: ComplianceSnapshot) -> list[Insight]:
        """Return remote insights, or the heuristic set if the remote call fails.

        Args:
            snapshot: Snapshot whose documents already carry days_until_expiry.

        Returns:
            Remote insights stamped with sequential ids, or heuristic insights.
        """
        if self._client is None:
            return self._fallback(snapshot)

        try:
            items = await self._client.fetch_insights(snapshot_to_payload(snapshot))
            insights = [
                Insight(
                    id=str(index),
                    kind=InsightKind(item["type"]),
                    title=item["title"],
                    description=item["description"],
                    confidence=int(item["confidence"]),
                    action=item["action"],
                    source=InsightSource.REMOTE,
                )
                for index, item in enumerate(items, start=1)
            ]
        except InsightServiceError as exc:
            logger.warning(
                "Insight service failed, using heuristic insights",
                error=exc.message,
                upstream_status=exc.upstream_status,
            )
            return self._fallback(snapshot)
        except Exception as exc:
            # Insight failures never reach the caller.
            logger.warning(
                "Unexpected insight client failure, using heuristic insights",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return self._fallback(snapshot)

        logger.debug("Received remote insights", count=len(items))
        return insights
