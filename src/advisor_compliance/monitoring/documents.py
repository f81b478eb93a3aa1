"""Document status summary for the document tracker panel."""

from dataclasses import dataclass

from advisor_compliance.monitoring.expiry import is_expired, is_expiring_within
from advisor_compliance.monitoring.scoring import ratio_score
from advisor_compliance.monitoring.types import DocumentRecord, DocumentStatus


@dataclass(frozen=True)
class DocumentSummary:
    """Counts over the tenant's compliance documents.

    Attributes:
        total: All documents.
        approved: Documents with status approved.
        pending: Documents with status pending.
        expiring: Documents expiring within the expiring-soon window.
        expired: Documents marked expired or past their expiry date.
        completion_rate: Rounded percentage of approved documents.
    """

    total: int
    approved: int
    pending: int
    expiring: int
    expired: int
    completion_rate: int


def summarize_documents(documents: list[DocumentRecord], expiring_soon_days: int = 30) -> DocumentSummary:
    total = len(documents)
    approved = sum(1 for doc in documents if doc.status == DocumentStatus.APPROVED)
    pending = sum(1 for doc in documents if doc.status == DocumentStatus.PENDING)
    expiring = sum(1 for doc in documents if is_expiring_within(doc, expiring_soon_days))
    expired = sum(
        1 for doc in documents if doc.status == DocumentStatus.EXPIRED or is_expired(doc)
    )
    completion_rate = ratio_score(approved, total - approved)
    return DocumentSummary(
        total=total,
        approved=approved,
        pending=pending,
        expiring=expiring,
        expired=expired,
        completion_rate=completion_rate,
    )
