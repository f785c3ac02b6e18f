"""Category domain service."""

import logging
import re
from typing import Optional

from pjledger.database.base import Database
from pjledger.domain.category_index import CategoryIndex, build_category_index
from pjledger.domain.entities import CategoryDefinition, LedgerGroup
from pjledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_path_not_found,
)
from pjledger.domain.ledger_groups import normalize_label, root_path

logger = logging.getLogger(__name__)


def make_path(parent_path: str, label: str) -> str:
    """Build a child category path from its parent path and label.

    Raises:
        ValidationError: If the label has no usable characters
    """
    slug = re.sub(r"\s+", "_", normalize_label(label).strip())
    if not slug:
        raise ValidationError(f"Category label '{label}' has no usable characters")
    return f"{parent_path}.{slug}"


class CategoryService:
    """Service for managing a client's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def _resolve_parent(
        self, client_id: Optional[str], parent_path: str
    ) -> tuple[LedgerGroup, int]:
        """Return the ledger group and level of a parent path."""
        for group in LedgerGroup:
            if parent_path == root_path(group):
                return group, 0
        parent = self.db.get_category_by_path(client_id, parent_path)
        if parent is None:
            raise NotFoundError(category_path_not_found(parent_path))
        return parent.ledger_group, parent.level

    def create_category(
        self,
        label: str,
        client_id: Optional[str] = None,
        ledger_group: Optional[LedgerGroup] = None,
        parent_path: Optional[str] = None,
        sort_order: int = 0,
        accepts_postings: bool = True,
    ) -> str:
        """Create a category.

        Args:
            label: Display label
            client_id: Client owning the category; None creates a global default
            ledger_group: Ledger group; required when there is no parent
            parent_path: Path of the parent category or ledger group root
            sort_order: Position among siblings
            accepts_postings: Whether transactions may post directly to it

        Returns:
            Path of the new category

        Raises:
            ValidationError: If neither a group nor a parent is given, or they disagree
            NotFoundError: If the parent category doesn't exist
            ConflictError: If a category with the same path already exists
        """
        if parent_path is None:
            if ledger_group is None:
                raise ValidationError("A ledger group or a parent category is required")
            parent_path = root_path(ledger_group)

        parent_group, parent_level = self._resolve_parent(client_id, parent_path)
        if ledger_group is not None and ledger_group != parent_group:
            raise ValidationError(
                f"Category group {ledger_group.value} does not match parent "
                f"group {parent_group.value}"
            )

        path = make_path(parent_path, label)
        existing = self.db.get_category_by_path(client_id, path)
        # A client category may shadow a global one with the same path
        if existing is not None and (
            client_id is None or existing != self.db.get_category_by_path(None, path)
        ):
            raise ConflictError(f"Category '{path}' already exists")

        self.db.create_category(
            client_id=client_id,
            label=label.strip(),
            path=path,
            parent_path=parent_path,
            level=parent_level + 1,
            sort_order=sort_order,
            accepts_postings=accepts_postings,
            ledger_group=parent_group,
        )
        logger.debug("Created category %s", path)
        return path

    def get_category_by_path(
        self, path: str, client_id: Optional[str] = None
    ) -> Optional[CategoryDefinition]:
        """Get category by path, preferring the client's own definition."""
        return self.db.get_category_by_path(client_id, path)

    def list_categories(self, client_id: Optional[str] = None) -> list[CategoryDefinition]:
        """List the categories visible to a client."""
        return self.db.list_categories(client_id=client_id)

    def get_category_index(self, client_id: Optional[str] = None) -> CategoryIndex:
        """Build an immutable index snapshot of a client's plan.

        Raises:
            StructuralError: If a category references an unknown parent
        """
        return build_category_index(self.db.list_categories(client_id=client_id))
