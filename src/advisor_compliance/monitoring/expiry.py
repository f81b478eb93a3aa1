"""Document expiry calculation.

days_until_expiry = ceil((expiry - now) / 1 day). Date-only expiry values are
read as midnight UTC and naive datetimes are treated as UTC. A missing or
unparseable expiry yields None, and every expiry-based filter in this package
excludes None instead of treating it as already expired.
"""

import dataclasses
import math
from datetime import UTC, date, datetime

from advisor_compliance.monitoring.types import DocumentRecord
from advisor_compliance.observability import get_logger

logger = get_logger(__name__)

_SECONDS_PER_DAY = 86400


def normalize_expiry(value: date | datetime | str | None) -> datetime | None:
    """Convert a stored expiry value to an aware UTC datetime.

    Args:
        value: Expiry as date, datetime, ISO-8601 string or None.

    Returns:
        The expiry instant, or None when absent or malformed.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring malformed expiry date", expiry_date=text)
            return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def days_until_expiry(value: date | datetime | str | None, now: datetime) -> int | None:
    """Whole days from now until the expiry, rounded up.

    Args:
        value: Expiry value in any form accepted by normalize_expiry().
        now: Reference instant.

    Returns:
        Days until expiry (negative once expired), or None without a usable expiry.
    """
    expiry = normalize_expiry(value)
    if expiry is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return math.ceil((expiry - now).total_seconds() / _SECONDS_PER_DAY)


def attach_expiry(document: DocumentRecord, now: datetime) -> DocumentRecord:
    """Return the document with days_until_expiry derived for ``now``.

    A document without an expiry date is returned unchanged.
    """
    if document.expiry_date is None:
        return document
    return dataclasses.replace(document, days_until_expiry=days_until_expiry(document.expiry_date, now))


def attach_expiry_all(documents: list[DocumentRecord], now: datetime) -> list[DocumentRecord]:
    return [attach_expiry(document, now) for document in documents]


def is_expiring_within(document: DocumentRecord, days: int) -> bool:
    """True when the document expires between now and ``days`` days from now."""
    remaining = document.days_until_expiry
    return remaining is not None and 0 <= remaining <= days


def is_expired(document: DocumentRecord) -> bool:
    remaining = document.days_until_expiry
    return remaining is not None and remaining < 0


def expiry_due_date(document: DocumentRecord) -> datetime | None:
    """The expiry instant of a document, used as an action due date."""
    return normalize_expiry(document.expiry_date)

