import logging
from typing import List, Optional

from ..api.ticket_api import TicketAPI
from ..models.ticket import ALL_UIDS, FieldMapping, Ticket

logger = logging.getLogger(__name__)


class GlpiFacade:
    """
    Owns the GLPI session together with the ticket field mapping.

    Both are created lazily and thrown away together by discard_session(),
    so the next call authenticates and resolves the schema again.
    """

    def __init__(self, base_url: str, user_token: str, app_token: Optional[str] = None,
                 verify_ssl: bool = True, timeout: float = 30):
        self.tickets = TicketAPI(base_url, user_token, app_token=app_token,
                                 verify_ssl=verify_ssl, timeout=timeout)
        self._fields: Optional[FieldMapping] = None

    def resolve_fields(self) -> FieldMapping:
        """
        Returns the cached field mapping, resolving it against listSearchOptions if needed.

        Raises:
            SchemaResolutionError: If id, name or status is missing from the schema.
        """
        if self._fields is None:
            resolved = self.tickets.resolve_fields(ALL_UIDS)
            self._fields = FieldMapping.from_resolved(resolved)
            if self._fields.requester_field is None:
                logger.warning("Requester field not found; notifications will not show who opened the ticket")
            logger.info(f"Resolved ticket fields: {self._fields}")
        return self._fields

    def get_new_tickets(self, limit: int = 200) -> List[Ticket]:
        return self.tickets.search_new(self.resolve_fields(), limit)

    def get_recent_tickets(self, limit: int = 10) -> List[Ticket]:
        return self.tickets.search_recent(self.resolve_fields(), limit)

    def discard_session(self) -> None:
        """Drop the session and the field mapping; both are rebuilt on the next query."""
        self.tickets.end_session()
        self._fields = None

    def end_session(self) -> None:
        self.tickets.end_session()
