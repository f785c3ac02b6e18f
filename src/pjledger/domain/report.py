"""Report domain service: hierarchy trees, cash flow and insights."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Any, Callable, Optional, Sequence, TypeVar

from pjledger.database.base import Database
from pjledger.domain.category import CategoryService
from pjledger.domain.entities import CashFlowSummary, CategoryHierarchy, Transaction
from pjledger.domain.errors import NotFoundError, account_not_found
from pjledger.domain.hierarchy import build_cost_tree, check_rollup, iter_nodes
from pjledger.domain.insights import (
    ReceivablesSummary,
    build_cost_breakdown,
    build_monthly_insights,
    summarize_cash_flow,
    summarize_receivables,
)
from pjledger.domain.merge import merge_summaries, merge_trees

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReportService:
    """Service for building per-account reports and merging them."""

    def __init__(self, db: Database, max_workers: int = 4):
        """Initialize report service.

        Args:
            db: Database instance
            max_workers: Threads used to build per-account results
        """
        self.db = db
        self.max_workers = max(1, max_workers)
        self.category_service = CategoryService(db)

    def _account_ids(self, client_id: str, account_ids: Optional[Sequence[int]]) -> list[int]:
        """Return the requested accounts, or all of the client's accounts.

        Raises:
            NotFoundError: If a requested account doesn't belong to the client
        """
        owned = [acc.id for acc in self.db.list_accounts(client_id=client_id)]
        if not account_ids:
            return owned
        for account_id in account_ids:
            if account_id not in owned:
                raise NotFoundError(account_not_found(account_id))
        return list(account_ids)

    def _load_by_account(
        self,
        account_ids: Sequence[int],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> dict[int, list[Transaction]]:
        """Read each account's transactions on the calling thread."""
        return {
            account_id: self.db.list_transactions(
                account_ids=[account_id], start_date=start_date, end_date=end_date
            )
            for account_id in account_ids
        }

    def _run_per_account(
        self,
        build: Callable[[list[Transaction]], T],
        batches: dict[int, list[Transaction]],
    ) -> list[T]:
        """Run ``build`` once per account on a thread pool.

        A failure in any worker propagates and aborts the whole report.
        """
        if not batches:
            return []
        results: dict[int, T] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(batches))) as executor:
            futures = {
                executor.submit(build, transactions): account_id
                for account_id, transactions in batches.items()
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return [results[account_id] for account_id in batches]

    def build_tree(
        self,
        client_id: str,
        account_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CategoryHierarchy:
        """Build the category hierarchy for one or more accounts.

        Each account's tree is built independently and the results are
        merged, so one account yields its own tree and several yield the
        consolidated view.

        Raises:
            StructuralError: If the client's category plan is malformed
        """
        index = self.category_service.get_category_index(client_id)
        batches = self._load_by_account(
            self._account_ids(client_id, account_ids), start_date, end_date
        )
        trees = self._run_per_account(lambda txns: build_cost_tree(txns, index), batches)
        tree = merge_trees(trees)

        if logger.isEnabledFor(logging.DEBUG):
            broken = [node.path for node in iter_nodes(tree.roots) if not check_rollup(node)]
            if broken:
                logger.warning("Rollup mismatch at %s", ", ".join(broken))
        logger.info("Built hierarchy for %d accounts (%d nodes)", len(batches), len(tree.nodes_by_path))
        return tree

    def cash_flow(
        self,
        client_id: str,
        account_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CashFlowSummary:
        """Summarize cash flow per account and merge the summaries."""
        batches = self._load_by_account(
            self._account_ids(client_id, account_ids), start_date, end_date
        )
        summaries = self._run_per_account(
            lambda txns: summarize_cash_flow(txns, start_date, end_date), batches
        )
        return merge_summaries(summaries)

    def _transactions(
        self, client_id: str, account_ids: Optional[Sequence[int]]
    ) -> list[Transaction]:
        return self.db.list_transactions(account_ids=self._account_ids(client_id, account_ids))

    def cost_breakdown(
        self,
        client_id: str,
        account_ids: Optional[Sequence[int]] = None,
        month: Optional[str] = None,
    ) -> dict[str, Any]:
        """Break a month down by ledger group and subcategory."""
        return build_cost_breakdown(
            self._transactions(client_id, account_ids),
            self.db.list_sales(client_id),
            month=month,
        )

    def insights(
        self,
        client_id: str,
        account_ids: Optional[Sequence[int]] = None,
        month: Optional[str] = None,
        history_months: int = 6,
    ) -> dict[str, Any]:
        """Build the monthly insights of a client."""
        return build_monthly_insights(
            self._transactions(client_id, account_ids),
            self.db.list_sales(client_id),
            month=month,
            history_months=history_months,
        )

    def receivables(
        self,
        client_id: str,
        today: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ReceivablesSummary:
        """Total the client's unsettled parcels."""
        legs = [leg for sale in self.db.list_sales(client_id) for leg in sale.legs]
        return summarize_receivables(
            legs, today or date.today(), start_date=start_date, end_date=end_date
        )
