"""Transaction classification into ledger groups and category nodes."""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from pjledger.domain.category_index import CategoryIndex
from pjledger.domain.entities import (
    CategorizationRule,
    LedgerGroup,
    ManualClassification,
    MatchType,
    RuleClassification,
    Transaction,
)
from pjledger.domain.ledger_groups import get_ledger_group

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Where a transaction's amount is posted."""

    ledger_group: LedgerGroup
    category_path: str
    redirected: bool = False


def classify(txn: Transaction, index: CategoryIndex) -> Resolution:
    """Resolve a transaction to a ledger group and category node.

    Resolution order (first match wins):

    1. explicit category path that exists and accepts postings;
    2. category id of a known node that accepts postings;
    3. ledger group already assigned by a rule or by hand;
    4. keyword inference over legacy free-text labels;
    5. sign of the amount.

    A node found in steps 1-2 that does not accept postings redirects the
    posting to its group root, so postings never vanish.

    Args:
        txn: Transaction to classify
        index: Category index snapshot

    Returns:
        Resolution with the ledger group and target category path
    """
    classification = txn.classification
    if isinstance(classification, (RuleClassification, ManualClassification)):
        candidates = [
            index.get(classification.category_path),
            index.get_by_id(classification.category_id),
        ]
        found = [definition for definition in candidates if definition is not None]
        for definition in found:
            if definition.accepts_postings:
                return Resolution(definition.ledger_group, definition.path)
        if found:
            group = found[0].ledger_group
            logger.debug(
                "Redirecting transaction %s from non-posting node %s to group root",
                txn.id,
                found[0].path,
            )
            return Resolution(group, index.root_for(group).path, redirected=True)

    group = get_ledger_group(txn)
    return Resolution(group, index.root_for(group).path)


def matches_pattern(description: str, pattern: str, match_type: MatchType) -> bool:
    """Check a description against a rule pattern, ignoring case."""
    description_lower = (description or "").lower()
    pattern_lower = pattern.lower()

    if match_type == MatchType.EXACT:
        return description_lower == pattern_lower
    if match_type == MatchType.CONTAINS:
        return pattern_lower in description_lower
    if match_type == MatchType.STARTS_WITH:
        return description_lower.startswith(pattern_lower)
    return False


def extract_pattern(description: str, match_type: MatchType) -> str:
    """Derive a rule pattern from an example description."""
    if match_type == MatchType.CONTAINS:
        words = [word for word in description.split() if len(word) > 3]
        return words[0] if words else description
    if match_type == MatchType.STARTS_WITH:
        return description[:10]
    return description


def find_matching_rule(
    txn: Transaction, rules: Sequence[CategorizationRule]
) -> Optional[CategorizationRule]:
    """Return the first enabled rule matching the transaction description."""
    for rule in rules:
        if not rule.enabled:
            continue
        if matches_pattern(txn.description, rule.pattern, rule.match_type):
            return rule
    return None


def apply_categorization_rules(
    transactions: Sequence[Transaction], rules: Sequence[CategorizationRule]
) -> list[Transaction]:
    """Classify transactions with the first matching rule.

    Manually classified transactions are left alone.

    Returns:
        The transactions whose classification changed, in input order
    """
    changed: list[Transaction] = []
    for txn in transactions:
        if isinstance(txn.classification, ManualClassification):
            continue
        rule = find_matching_rule(txn, rules)
        if rule is None:
            continue
        classification = RuleClassification(
            rule_id=rule.id,
            ledger_group=rule.ledger_group,
            category_path=rule.category_path,
            subcategory=rule.subcategory,
        )
        if classification == txn.classification:
            continue
        changed.append(replace(txn, classification=classification))
    return changed


def subcategory_label(txn: Transaction, group: LedgerGroup) -> str:
    """Label used for a transaction in flat per-group breakdowns."""
    classification = txn.classification
    if isinstance(classification, (RuleClassification, ManualClassification)):
        if classification.subcategory:
            return classification.subcategory
    if txn.legacy_item:
        return txn.legacy_item
    if group == LedgerGroup.REVENUE:
        return f"Account {txn.account_id}"
    return txn.description
