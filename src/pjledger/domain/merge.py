"""Consolidation of per-account results into an "all accounts" view."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pjledger.domain.entities import (
    ZERO,
    CashFlowSummary,
    CategoryHierarchy,
    CategoryHierarchyNode,
)
from pjledger.domain.errors import StructuralError
from pjledger.domain.hierarchy import assemble_hierarchy, iter_nodes

logger = logging.getLogger(__name__)

_METADATA_FIELDS = (
    "id",
    "label",
    "level",
    "sort_order",
    "parent_path",
    "accepts_postings",
    "ledger_group",
)


def _metadata(node: CategoryHierarchyNode) -> tuple:
    return tuple(getattr(node, name) for name in _METADATA_FIELDS)


def _copy_metadata(node: CategoryHierarchyNode) -> CategoryHierarchyNode:
    return CategoryHierarchyNode(
        id=node.id,
        label=node.label,
        path=node.path,
        level=node.level,
        sort_order=node.sort_order,
        parent_path=node.parent_path,
        accepts_postings=node.accepts_postings,
        ledger_group=node.ledger_group,
    )


def merge_trees(trees: Iterable[CategoryHierarchy]) -> CategoryHierarchy:
    """Merge independently built hierarchies into one.

    Nodes are matched by path; totals are summed and the tree is re-linked
    and re-sorted. The result does not depend on the order or grouping of
    the inputs, and input trees are left untouched.

    Args:
        trees: Hierarchies built per bank account

    Returns:
        Consolidated CategoryHierarchy

    Raises:
        StructuralError: If two sources disagree on a node's metadata
    """
    merged: dict[str, CategoryHierarchyNode] = {}
    source_count = 0

    for tree in trees:
        source_count += 1
        for node in iter_nodes(tree.roots):
            target = merged.get(node.path)
            if target is None:
                target = _copy_metadata(node)
                merged[node.path] = target
            elif _metadata(target) != _metadata(node):
                raise StructuralError(
                    f"Sources disagree on category '{node.path}': "
                    f"{_metadata(target)} != {_metadata(node)}"
                )
            target.inflows += node.inflows
            target.outflows += node.outflows
            target.direct_inflows += node.direct_inflows
            target.direct_outflows += node.direct_outflows

    logger.debug("Merged %d hierarchies into %d nodes", source_count, len(merged))
    return assemble_hierarchy(merged)


def _min_date(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max_date(a: Optional[date], b: Optional[date]) -> Optional[date]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def merge_summaries(summaries: Iterable[CashFlowSummary]) -> CashFlowSummary:
    """Merge flat per-account summaries.

    Counts and totals are summed, extremes take the maximum, daily flows are
    summed per date and the covered range is the union of the inputs.
    """
    total_in = ZERO
    total_out = ZERO
    inflow_count = 0
    outflow_count = 0
    largest_in = ZERO
    largest_out = ZERO
    transaction_count = 0
    daily: dict[date, Decimal] = {}
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    for summary in summaries:
        total_in += summary.total_in
        total_out += summary.total_out
        inflow_count += summary.inflow_count
        outflow_count += summary.outflow_count
        largest_in = max(largest_in, summary.largest_in)
        largest_out = max(largest_out, summary.largest_out)
        transaction_count += summary.transaction_count
        for day, net in summary.daily_net_flows:
            daily[day] = daily.get(day, ZERO) + net
        start_date = _min_date(start_date, summary.start_date)
        end_date = _max_date(end_date, summary.end_date)

    return CashFlowSummary(
        total_in=total_in,
        total_out=total_out,
        inflow_count=inflow_count,
        outflow_count=outflow_count,
        largest_in=largest_in,
        largest_out=largest_out,
        transaction_count=transaction_count,
        daily_net_flows=tuple(sorted(daily.items())),
        start_date=start_date,
        end_date=end_date,
    )
