"""Account domain service."""

from typing import Optional
from pjledger.database.base import Database
from pjledger.domain.entities import Account as AccountEntity
from pjledger.domain.errors import ConflictError, NotFoundError, account_not_found


class AccountService:
    """Service for managing a client's bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, client_id: str, name: str, bank_name: str) -> int:
        """Create a new account.

        Args:
            client_id: Client owning the account
            name: Account name, unique per client
            bank_name: Bank name

        Returns:
            Account ID

        Raises:
            ConflictError: If the client already has an account with that name
        """
        for acc in self.db.list_accounts(client_id=client_id):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(client_id=client_id, name=name, bank_name=bank_name)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, client_id: Optional[str] = None) -> list[AccountEntity]:
        """List accounts, optionally only those of one client."""
        return self.db.list_accounts(client_id=client_id)

    def resolve_account(self, client_id: str, account: str | int) -> int:
        """Resolve an account name or ID within a client to its ID.

        Raises:
            NotFoundError: If the client has no such account
        """
        if not isinstance(account, int):
            try:
                account = int(account)
            except (ValueError, TypeError):
                pass

        accounts = self.db.list_accounts(client_id=client_id)
        if isinstance(account, int):
            if any(acc.id == account for acc in accounts):
                return account
            raise NotFoundError(account_not_found(account))

        for acc in accounts:
            if acc.name == account:
                return acc.id
        raise NotFoundError(f"Account '{account}' not found")

    def resolve_accounts(
        self, client_id: str, accounts: tuple[str, ...] | list[str] = ()
    ) -> list[int]:
        """Resolve several accounts; none selects every account of the client."""
        if not accounts:
            return [acc.id for acc in self.db.list_accounts(client_id=client_id)]
        resolved: list[int] = []
        for account in accounts:
            account_id = self.resolve_account(client_id, account)
            if account_id not in resolved:
                resolved.append(account_id)
        return resolved
