"""Compliance score aggregation.

The overall score is the share of passing checks among decided checks:
``passed`` counts pass, ``failed`` counts fail and warning, and needs_review
checks are left out of both. Scores round half up to an integer in [0, 100]
and are 0 when no check has been decided.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from advisor_compliance.monitoring.expiry import is_expiring_within
from advisor_compliance.monitoring.types import (
    CaseRecord,
    CaseStatus,
    CheckRecord,
    CheckStatus,
    DocumentRecord,
    RuleRecord,
    Trend,
)

# Dashboard health thresholds
HEALTHY_THRESHOLD = 90
ATTENTION_THRESHOLD = 70

_PASSING = frozenset({CheckStatus.PASS})
_FAILING = frozenset({CheckStatus.FAIL, CheckStatus.WARNING})
_PENDING_CASE_STATUSES = frozenset({CaseStatus.OPEN, CaseStatus.UNDER_REVIEW})


@dataclass(frozen=True)
class CheckTally:
    passed: int
    failed: int

    @property
    def score(self) -> int:
        return ratio_score(self.passed, self.failed)


@dataclass(frozen=True)
class DashboardStats:
    """Headline numbers for the compliance dashboard.

    Attributes:
        overall_score: Integer score 0-100.
        trend: Month-over-month direction of the score.
        total_rules: Number of rules loaded.
        passed_checks: Checks with status pass.
        failed_checks: Checks with status fail or warning.
        pending_cases: Cases that are open or under review.
        expiring_docs: Documents expiring within the expiring-soon window.
        health_label: Healthy, Needs Attention or Critical.
    """

    overall_score: int
    trend: Trend
    total_rules: int
    passed_checks: int
    failed_checks: int
    pending_cases: int
    expiring_docs: int
    health_label: str


def ratio_score(passed: int, failed: int) -> int:
    """Round-half-up percentage of passed over passed + failed, 0 when empty."""
    total = passed + failed
    if total == 0:
        return 0
    return math.floor(100 * passed / total + 0.5)


def tally_checks(checks: list[CheckRecord]) -> CheckTally:
    passed = sum(1 for check in checks if check.status in _PASSING)
    failed = sum(1 for check in checks if check.status in _FAILING)
    return CheckTally(passed=passed, failed=failed)


def health_label(score: int) -> str:
    """Dashboard label for a score."""
    if score >= HEALTHY_THRESHOLD:
        return "Healthy"
    if score >= ATTENTION_THRESHOLD:
        return "Needs Attention"
    return "Critical"


def compute_trend(checks: list[CheckRecord], now: datetime, window_days: int = 30) -> Trend:
    """Compare the score of the last window against the window before it.

    Args:
        checks: Checks to inspect; order does not matter.
        now: Reference instant.
        window_days: Length of each comparison window.

    Returns:
        UP or DOWN when the scores differ, STABLE when equal or when either
        window has no decided checks.
    """
    window = timedelta(days=window_days)
    current_start = now - window
    previous_start = current_start - window

    current = tally_checks([c for c in checks if current_start < c.checked_at <= now])
    previous = tally_checks([c for c in checks if previous_start < c.checked_at <= current_start])

    if current.passed + current.failed == 0 or previous.passed + previous.failed == 0:
        return Trend.STABLE
    if current.score > previous.score:
        return Trend.UP
    if current.score < previous.score:
        return Trend.DOWN
    return Trend.STABLE


def aggregate_dashboard(
    rules: list[RuleRecord],
    checks: list[CheckRecord],
    cases: list[CaseRecord],
    documents: list[DocumentRecord],
    now: datetime,
    expiring_soon_days: int = 30,
) -> DashboardStats:
    """Reduce the raw collections to dashboard statistics.

    ``documents`` must already carry days_until_expiry (see attach_expiry_all).
    """
    tally = tally_checks(checks)
    score = tally.score
    return DashboardStats(
        overall_score=score,
        trend=compute_trend(checks, now),
        total_rules=len(rules),
        passed_checks=tally.passed,
        failed_checks=tally.failed,
        pending_cases=sum(1 for case in cases if case.status in _PENDING_CASE_STATUSES),
        expiring_docs=sum(1 for doc in documents if is_expiring_within(doc, expiring_soon_days)),
        health_label=health_label(score),
    )
