"""Category hierarchy construction with ancestor rollups."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Sequence

from pjledger.domain.category_index import CategoryIndex
from pjledger.domain.classifier import classify
from pjledger.domain.entities import (
    CENT,
    ZERO,
    CategoryDefinition,
    CategoryHierarchy,
    CategoryHierarchyNode,
    Transaction,
)
from pjledger.domain.ledger_groups import LEDGER_GROUP_SORT_ORDER

logger = logging.getLogger(__name__)


@dataclass
class _PathTotals:
    inflows: Decimal = ZERO
    outflows: Decimal = ZERO

    def add(self, amount: Decimal) -> None:
        amount = Decimal(amount).quantize(CENT)
        if amount >= 0:
            self.inflows += amount
        else:
            self.outflows += -amount

    @property
    def is_zero(self) -> bool:
        return self.inflows == 0 and self.outflows == 0


def node_from_definition(definition: CategoryDefinition) -> CategoryHierarchyNode:
    """Create an empty hierarchy node mirroring a definition."""
    return CategoryHierarchyNode(
        id=definition.id,
        label=definition.label,
        path=definition.path,
        level=definition.level,
        sort_order=definition.sort_order,
        parent_path=definition.parent_path,
        accepts_postings=definition.accepts_postings,
        ledger_group=definition.ledger_group,
    )


def child_sort_key(node: CategoryHierarchyNode) -> tuple[int, str]:
    return (node.sort_order, node.label)


def root_sort_key(node: CategoryHierarchyNode) -> tuple[int, str]:
    return (LEDGER_GROUP_SORT_ORDER[node.ledger_group], node.label)


def assemble_hierarchy(nodes: dict[str, CategoryHierarchyNode]) -> CategoryHierarchy:
    """Link nodes to their parents by path, sort, and build lookups.

    Nodes whose parent is not materialized become roots.
    """
    for node in nodes.values():
        node.children = []

    roots: list[CategoryHierarchyNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_path) if node.parent_path else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=child_sort_key)
    roots.sort(key=root_sort_key)

    root_by_ledger_group = {}
    for root in roots:
        if root.level == 0 and root.ledger_group not in root_by_ledger_group:
            root_by_ledger_group[root.ledger_group] = root

    return CategoryHierarchy(
        roots=roots,
        nodes_by_path=dict(nodes),
        root_by_ledger_group=root_by_ledger_group,
    )


def build_cost_tree(
    transactions: Iterable[Transaction], index: CategoryIndex
) -> CategoryHierarchy:
    """Build the category hierarchy for a set of transactions.

    Every transaction is classified and its amount accumulated on the target
    node; the totals then roll up to every ancestor. Only chains with
    activity are materialized.

    Args:
        transactions: Transactions to aggregate
        index: Category index snapshot

    Returns:
        CategoryHierarchy with one root per touched ledger group

    Raises:
        StructuralError: If the category index contains a cycle
    """
    index.validate()

    totals_by_path: dict[str, _PathTotals] = {}
    redirected = 0
    for txn in transactions:
        resolution = classify(txn, index)
        if resolution.redirected:
            redirected += 1
        totals_by_path.setdefault(resolution.category_path, _PathTotals()).add(
            txn.amount
        )

    nodes: dict[str, CategoryHierarchyNode] = {}
    for path, totals in totals_by_path.items():
        if totals.is_zero:
            continue
        for level, definition in enumerate(index.ancestors(path)):
            node = nodes.get(definition.path)
            if node is None:
                node = node_from_definition(definition)
                nodes[definition.path] = node
            node.inflows += totals.inflows
            node.outflows += totals.outflows
            if level == 0:
                node.direct_inflows += totals.inflows
                node.direct_outflows += totals.outflows

    if redirected:
        logger.debug("%d postings redirected to group roots", redirected)
    return assemble_hierarchy(nodes)


def iter_nodes(nodes: Sequence[CategoryHierarchyNode]) -> Iterator[CategoryHierarchyNode]:
    """Yield nodes in pre-order."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def check_rollup(node: CategoryHierarchyNode) -> bool:
    """Check that a node's totals equal its children's plus its direct totals."""
    inflows = sum((child.inflows for child in node.children), ZERO)
    outflows = sum((child.outflows for child in node.children), ZERO)
    return (
        node.inflows == inflows + node.direct_inflows
        and node.outflows == outflows + node.direct_outflows
    )
