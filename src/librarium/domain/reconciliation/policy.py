"""Priority resolution for caller selections.

Every change the merge can make is looked up here by its identity. Identities the
caller did not select fall back to a per-change default: incoming additions apply
unless declined, while updates and removals of live records only happen when the
caller explicitly picks the import side.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from librarium.domain.errors import InvalidSelectionError

from .contracts import Priority, Selection

if TYPE_CHECKING:
    from collections.abc import Iterable


class ChangeKind(StrEnum):
    BOOK_ADDITION = "book_addition"
    BOOK_MODIFICATION = "book_modification"
    OWNERSHIP_ADDITION = "ownership_addition"
    OWNERSHIP_DELETION = "ownership_deletion"
    BOOK_DELETION = "book_deletion"
    LOCATION_DELETION = "location_deletion"


DEFAULT_PRIORITIES: Final[Mapping[ChangeKind, Priority]] = {
    ChangeKind.BOOK_ADDITION: Priority.IMPORT,
    ChangeKind.BOOK_MODIFICATION: Priority.DATABASE,
    ChangeKind.OWNERSHIP_ADDITION: Priority.IMPORT,
    ChangeKind.OWNERSHIP_DELETION: Priority.DATABASE,
    ChangeKind.BOOK_DELETION: Priority.DATABASE,
    ChangeKind.LOCATION_DELETION: Priority.DATABASE,
}


@dataclass(slots=True)
class SelectionPolicy:
    """Caller selections indexed by identity. Later selections win.

    ``overrides`` replaces the default of a whole change kind for identities the
    caller did not select.
    """

    selections: dict[str, Priority] = field(default_factory=dict[str, Priority])
    overrides: dict[ChangeKind, Priority] = field(default_factory=dict[ChangeKind, Priority])

    @classmethod
    def from_selections(
        cls,
        selections: Iterable[Selection | Mapping[str, object]] = (),
    ) -> SelectionPolicy:
        policy = cls()
        for item in selections:
            selection = item if isinstance(item, Selection) else coerce_selection(item)
            policy.selections[selection.entity_id] = selection.priority
        return policy

    @classmethod
    def prefer(cls, priority: Priority, entity_ids: Iterable[str]) -> SelectionPolicy:
        """Select the same side for every given identity."""
        return cls({entity_id: priority for entity_id in entity_ids})

    def resolve_priority(self, entity_id: str, kind: ChangeKind) -> Priority:
        selected = self.selections.get(entity_id)
        if selected is not None:
            return selected
        return self.overrides.get(kind, DEFAULT_PRIORITIES[kind])


def coerce_selection(raw: Mapping[str, object]) -> Selection:
    """Build a ``Selection`` from its wire shape ``{"entity_id", "priority"}``."""

    entity_id = raw.get("entity_id")
    if not isinstance(entity_id, str) or not entity_id:
        raise InvalidSelectionError("Selection requires a non-empty 'entity_id'")
    priority = raw.get("priority")
    try:
        return Selection(entity_id=entity_id, priority=Priority(str(priority)))
    except ValueError as exc:
        raise InvalidSelectionError(
            f"Selection for {entity_id!r} has unknown priority {priority!r}"
        ) from exc
