"""Read-only index over a client's chart of accounts."""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Optional

from pjledger.domain.entities import CategoryDefinition, LedgerGroup
from pjledger.domain.errors import StructuralError, category_cycle, missing_parent
from pjledger.domain.ledger_groups import (
    LEDGER_GROUP_LABELS,
    LEDGER_GROUP_SORT_ORDER,
    root_path,
)

logger = logging.getLogger(__name__)


def ledger_root_definition(group: LedgerGroup) -> CategoryDefinition:
    """Build the synthetic root definition of a ledger group."""
    path = root_path(group)
    return CategoryDefinition(
        id=path,
        label=LEDGER_GROUP_LABELS[group],
        path=path,
        level=0,
        sort_order=LEDGER_GROUP_SORT_ORDER[group],
        parent_path=None,
        accepts_postings=False,
        ledger_group=group,
    )


@dataclass(frozen=True)
class CategoryIndex:
    """Immutable snapshot of category definitions for one report build.

    Always holds one synthetic root per ledger group, so any transaction
    has a place to land.
    """

    by_path: dict[str, CategoryDefinition]
    by_id: dict[str, CategoryDefinition]
    root_by_group: dict[LedgerGroup, CategoryDefinition]

    def get(self, path: Optional[str]) -> Optional[CategoryDefinition]:
        if path is None:
            return None
        return self.by_path.get(path)

    def get_by_id(self, category_id: Optional[str]) -> Optional[CategoryDefinition]:
        if category_id is None:
            return None
        return self.by_id.get(str(category_id))

    def root_for(self, group: LedgerGroup) -> CategoryDefinition:
        return self.root_by_group[group]

    def ancestors(self, path: str) -> Iterator[CategoryDefinition]:
        """Yield the definition at ``path`` followed by each ancestor.

        Raises:
            StructuralError: If the chain loops back on itself
        """
        seen: set[str] = set()
        current: Optional[str] = path
        while current is not None:
            if current in seen:
                logger.debug("Cycle detected while walking ancestors of %s", path)
                raise StructuralError(category_cycle(current))
            seen.add(current)
            definition = self.by_path.get(current)
            if definition is None:
                return
            yield definition
            current = definition.parent_path

    def validate(self) -> None:
        """Walk every ancestor chain once.

        Raises:
            StructuralError: If any category is its own ancestor
        """
        for path in self.by_path:
            for _ in self.ancestors(path):
                pass

    def __len__(self) -> int:
        return len(self.by_path)


def build_category_index(
    definitions: Iterable[CategoryDefinition] = (),
) -> CategoryIndex:
    """Build a category index from plan definitions.

    Definitions without a parent hang off the synthetic root of their ledger
    group. A definition may replace a group root by reusing its path.

    Args:
        definitions: Category definitions of the client plan (or global defaults)

    Returns:
        CategoryIndex snapshot

    Raises:
        StructuralError: If a definition references an unknown parent
    """
    by_path: dict[str, CategoryDefinition] = {}
    by_id: dict[str, CategoryDefinition] = {}
    root_by_group: dict[LedgerGroup, CategoryDefinition] = {}

    for group in LedgerGroup:
        root = ledger_root_definition(group)
        by_path[root.path] = root
        root_by_group[group] = root

    for definition in definitions:
        if not definition.path:
            continue
        if definition.path == root_path(definition.ledger_group):
            by_path[definition.path] = definition
            root_by_group[definition.ledger_group] = definition
            continue
        if definition.parent_path is None:
            definition = replace(
                definition, parent_path=root_path(definition.ledger_group)
            )
        by_path[definition.path] = definition
        by_id[str(definition.id)] = definition

    for definition in by_path.values():
        parent = definition.parent_path
        if parent is not None and parent not in by_path:
            raise StructuralError(missing_parent(definition.path, parent))

    return CategoryIndex(by_path=by_path, by_id=by_id, root_by_group=root_by_group)
