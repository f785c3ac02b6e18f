"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date

# Import entities directly to keep the service modules out of this import chain
from pjledger.domain.entities import (
    Account,
    CategorizationRule,
    CategoryDefinition,
    LedgerGroup,
    MatchConfirmation,
    MatchType,
    Sale,
    SaleLeg,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for pjledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, client_id: str, name: str, bank_name: str) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, client_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally filtered by client."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        client_id: Optional[str],
        label: str,
        path: str,
        parent_path: Optional[str],
        level: int,
        sort_order: int,
        accepts_postings: bool,
        ledger_group: LedgerGroup,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category_by_path(
        self, client_id: Optional[str], path: str
    ) -> Optional[CategoryDefinition]:
        """Get a client's (or global) category by path."""
        pass

    @abstractmethod
    def list_categories(self, client_id: Optional[str] = None) -> list[CategoryDefinition]:
        """List categories of a client plan.

        With a client, the client's own categories shadow global ones sharing
        a path. Without one, only global categories are listed.
        """
        pass

    # Transaction operations
    @abstractmethod
    def create_transactions(self, transactions: Sequence[Transaction]) -> list[int]:
        """Persist new transactions in one unit of work. Returns their IDs."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        unreconciled_only: bool = False,
    ) -> list[Transaction]:
        """List transactions ordered by date and ID."""
        pass

    @abstractmethod
    def update_classifications(self, transactions: Sequence[Transaction]) -> None:
        """Store the classification of each given transaction."""
        pass

    # Categorization rule operations
    @abstractmethod
    def create_rule(
        self,
        client_id: str,
        pattern: str,
        match_type: MatchType,
        ledger_group: LedgerGroup,
        category_path: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> int:
        """Create a categorization rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[CategorizationRule]:
        """Get categorization rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, client_id: str, enabled_only: bool = False) -> list[CategorizationRule]:
        """List a client's rules in creation order."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(self, sale: Sale) -> int:
        """Persist a sale with its legs and settlement plans. Returns sale ID."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID, legs included."""
        pass

    @abstractmethod
    def find_sale(self, client_id: str, invoice_number: str, sale_date: date) -> Optional[Sale]:
        """Find a client's sale by invoice number and date."""
        pass

    @abstractmethod
    def list_sales(
        self,
        client_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Sale]:
        """List a client's sales ordered by date."""
        pass

    @abstractmethod
    def get_sale_leg(self, leg_id: int) -> Optional[SaleLeg]:
        """Get sale leg by ID with its settlement plan."""
        pass

    @abstractmethod
    def get_sale_leg_client(self, leg_id: int) -> Optional[str]:
        """Return the client owning a sale leg."""
        pass

    @abstractmethod
    def save_match_confirmation(self, confirmation: MatchConfirmation) -> None:
        """Store an updated leg and its reconciled transaction atomically."""
        pass

    # Statement import operations
    @abstractmethod
    def statement_imported(self, client_id: str, file_hash: str) -> bool:
        """Check whether a statement file was already imported for a client."""
        pass

    @abstractmethod
    def record_statement_import(
        self,
        client_id: str,
        account_id: int,
        file_name: str,
        file_hash: str,
        transactions: Sequence[Transaction],
        skipped_count: int,
    ) -> list[int]:
        """Persist imported transactions and the import record together.

        Returns:
            IDs of the created transactions
        """
        pass
