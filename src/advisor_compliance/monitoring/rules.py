"""Rule grouping by category."""

import dataclasses
from uuid import UUID

from advisor_compliance.errors import NotFoundError
from advisor_compliance.monitoring.types import RuleCategory, RuleRecord


def group_by_category(rules: list[RuleRecord]) -> dict[RuleCategory, list[RuleRecord]]:
    """Group rules by category, highest severity first within each group.

    Every category appears in the result, in enumeration order, even when it
    has no rules. Ties in severity keep their input order.
    """
    grouped: dict[RuleCategory, list[RuleRecord]] = {category: [] for category in RuleCategory}
    for rule in rules:
        grouped[rule.category].append(rule)
    for members in grouped.values():
        members.sort(key=lambda rule: rule.severity.rank, reverse=True)
    return grouped


def with_enabled(rules: list[RuleRecord], rule_id: UUID, enabled: bool, revision: int) -> list[RuleRecord]:
    """Return a new rule list where ``rule_id`` carries the written enabled flag.

    Raises:
        NotFoundError: If the rule is not in the list.
    """
    if not any(rule.id == rule_id for rule in rules):
        raise NotFoundError(resource="ComplianceRule", resource_id=str(rule_id))
    return [
        dataclasses.replace(rule, enabled=enabled, revision=revision) if rule.id == rule_id else rule
        for rule in rules
    ]
