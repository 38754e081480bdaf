from dataclasses import dataclass
from typing import Dict, List, Optional

from ..exceptions import SchemaResolutionError

ID_UID = "Ticket.id"
NAME_UID = "Ticket.name"
STATUS_UID = "Ticket.status"
REQUESTER_UID = "Ticket._users_id_recipient"

MANDATORY_UIDS = [ID_UID, NAME_UID, STATUS_UID]
ALL_UIDS = MANDATORY_UIDS + [REQUESTER_UID]


@dataclass(frozen=True)
class Ticket:
    """Snapshot of one row of a search/Ticket response."""
    id: int
    name: str = ""
    requester: Optional[str] = None


@dataclass(frozen=True)
class FieldMapping:
    """Numeric search option ids for the ticket columns the notifier needs."""
    id_field: int
    name_field: int
    status_field: int
    requester_field: Optional[int] = None

    @classmethod
    def from_resolved(cls, resolved: Dict[str, int]) -> "FieldMapping":
        """
        Build a mapping from the output of TicketAPI.resolve_fields.

        Args:
            resolved: Map of search option uid to numeric field id.

        Raises:
            SchemaResolutionError: If id, name or status could not be resolved.
        """
        missing = [uid for uid in MANDATORY_UIDS if uid not in resolved]
        if missing:
            raise SchemaResolutionError(missing)

        return cls(
            id_field=resolved[ID_UID],
            name_field=resolved[NAME_UID],
            status_field=resolved[STATUS_UID],
            requester_field=resolved.get(REQUESTER_UID),
        )

    def display_fields(self, include_status: bool = True) -> List[int]:
        """Field ids to request through forcedisplay, in column order."""
        fields = [self.id_field, self.name_field]
        if include_status:
            fields.append(self.status_field)
            if self.requester_field is not None:
                fields.append(self.requester_field)
        return fields
