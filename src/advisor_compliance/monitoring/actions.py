"""Next-actions prioritization.

The queue is built in two fixed segments: documents about to expire first,
then cases. Each segment keeps the order of its input and is capped
independently, and the two segments are concatenated without a global
re-sort.
"""

from advisor_compliance.monitoring.expiry import expiry_due_date, is_expiring_within
from advisor_compliance.monitoring.types import (
    Action,
    ActionKind,
    CaseRecord,
    DocumentRecord,
    Severity,
)

MAX_DOCUMENT_ACTIONS = 3
MAX_CASE_ACTIONS = 3
URGENT_EXPIRY_DAYS = 7
CRITICAL_EXPIRY_DAYS = 3


def document_action(document: DocumentRecord, critical_expiry_days: int = CRITICAL_EXPIRY_DAYS) -> Action:
    """Build the renewal action for an expiring document.

    The caller guarantees the document has a known days_until_expiry.
    """
    days = document.days_until_expiry
    priority = Severity.CRITICAL if days is not None and days <= critical_expiry_days else Severity.HIGH
    subject = f" for {document.subject_name}" if document.subject_name else ""
    return Action(
        id=document.id,
        kind=ActionKind.DOCUMENT,
        title=f"Renew {document.name}",
        description=f"Document{subject} expires in {days} days",
        priority=priority,
        due_date=expiry_due_date(document),
    )


def case_action(case: CaseRecord) -> Action:
    subject = f" ({case.subject_name})" if case.subject_name else ""
    return Action(
        id=case.id,
        kind=ActionKind.CASE,
        title=f"Review case {case.case_number}",
        description=f"{case.title}{subject}",
        priority=case.priority,
    )


def prioritize_next_actions(
    documents: list[DocumentRecord],
    cases: list[CaseRecord],
    max_document_actions: int = MAX_DOCUMENT_ACTIONS,
    max_case_actions: int = MAX_CASE_ACTIONS,
    urgent_expiry_days: int = URGENT_EXPIRY_DAYS,
    critical_expiry_days: int = CRITICAL_EXPIRY_DAYS,
) -> list[Action]:
    """Build the bounded next-actions queue.

    Args:
        documents: Documents carrying days_until_expiry.
        cases: Cases in the order the store returned them.
        max_document_actions: Cap on document-derived actions.
        max_case_actions: Cap on case-derived actions.
        urgent_expiry_days: Documents expiring within this window qualify.
        critical_expiry_days: Document actions within this window are critical.

    Returns:
        Document actions followed by case actions; at most
        max_document_actions + max_case_actions entries.
    """
    urgent = [doc for doc in documents if is_expiring_within(doc, urgent_expiry_days)]
    document_actions = [
        document_action(doc, critical_expiry_days) for doc in urgent[:max_document_actions]
    ]
    case_actions = [case_action(case) for case in cases[:max_case_actions]]
    return document_actions + case_actions
