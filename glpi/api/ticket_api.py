import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .glpi_api import GlpiAPI
from ..exceptions import QueryError
from ..models.ticket import FieldMapping, Ticket

logger = logging.getLogger(__name__)

# GLPI status code for "New"
STATUS_NEW = 1


def _extract_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _extract_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return None


class TicketAPI(GlpiAPI):
    def list_search_options(self, itemtype: str = "Ticket") -> Dict[str, Any]:
        """
        Gets the search options (schema) for an itemtype.

        Args:
            itemtype: The GLPI itemtype, e.g. "Ticket".
        """
        return self.get(f"listSearchOptions/{itemtype}")

    def resolve_fields(self, names: Iterable[str]) -> Dict[str, int]:
        """
        Maps search option uids (e.g. "Ticket.name") to their numeric field id.

        Entries are keyed by the numeric id and carry a "uid" attribute; names
        that do not appear in the schema are simply left out of the result.

        Args:
            names: The uids to resolve.

        Raises:
            QueryError: If the schema request fails or is not a JSON object.
        """
        wanted = set(names)
        options = self.list_search_options("Ticket")
        resolved: Dict[str, int] = {}

        if not isinstance(options, dict):
            self.invalidate_session()
            raise QueryError(
                "listSearchOptions returned an unexpected payload",
                body=repr(options)[:500],
            )

        for key, option in options.items():
            field_id = _extract_int(key)
            if field_id is None or not isinstance(option, dict):
                continue
            uid = option.get("uid")
            if isinstance(uid, str) and uid in wanted:
                resolved[uid] = field_id

        logger.debug(f"Resolved {len(resolved)}/{len(wanted)} ticket fields: {resolved}")
        return resolved

    def search_new(self, fields: FieldMapping, limit: int = 200) -> List[Ticket]:
        """
        Returns up to `limit` tickets with status New, newest first.

        Args:
            fields: Resolved field ids.
            limit: Maximum number of rows to request.
        """
        params: List[Tuple[str, Union[str, int]]] = [
            ("criteria[0][field]", fields.status_field),
            ("criteria[0][searchtype]", "equals"),
            ("criteria[0][value]", STATUS_NEW),
        ]
        params.extend(self._listing_params(fields, limit, include_status=True))

        payload = self.get("search/Ticket", params)
        if isinstance(payload, dict) and "totalcount" in payload:
            logger.debug(f"totalcount(status=New) = {payload['totalcount']}")

        return self.parse_ticket_rows(self._rows(payload), fields, with_requester=True)

    def search_recent(self, fields: FieldMapping, limit: int = 10) -> List[Ticket]:
        """
        Returns the most recent tickets regardless of status. Used for diagnostics.

        Args:
            fields: Resolved field ids.
            limit: Maximum number of rows to request.
        """
        params = self._listing_params(fields, limit, include_status=False)
        payload = self.get("search/Ticket", params)
        return self.parse_ticket_rows(self._rows(payload), fields, with_requester=False)

    @staticmethod
    def parse_ticket_rows(data: Any, fields: FieldMapping, with_requester: bool = True) -> List[Ticket]:
        """
        Converts the "data" member of a search response into Ticket objects.

        GLPI returns rows either as a list or as an object keyed by arbitrary
        strings; both are flattened. Rows without a usable id are dropped.

        Args:
            data: The raw "data" value.
            fields: Field ids used as row keys.
            with_requester: Whether to read the requester column.
        """
        if isinstance(data, dict):
            rows = list(data.values())
        elif isinstance(data, list):
            rows = data
        else:
            return []

        id_key = str(fields.id_field)
        name_key = str(fields.name_field)
        requester_key = None
        if with_requester and fields.requester_field is not None:
            requester_key = str(fields.requester_field)

        tickets = []
        for row in rows:
            if not isinstance(row, dict):
                logger.debug(f"Skipping non-object row: {row!r}")
                continue

            ticket_id = _extract_int(row.get(id_key))
            if ticket_id is None:
                logger.debug(f"Skipping row without a parseable id: {row!r}")
                continue

            name = _extract_str(row.get(name_key)) or ""
            requester = _extract_str(row.get(requester_key)) if requester_key else None

            tickets.append(Ticket(id=ticket_id, name=name, requester=requester or None))

        return tickets

    @staticmethod
    def _listing_params(fields: FieldMapping, limit: int, include_status: bool) -> List[Tuple[str, Union[str, int]]]:
        params: List[Tuple[str, Union[str, int]]] = [
            ("sort", fields.id_field),
            ("order", "DESC"),
            ("range", f"0-{max(limit, 1) - 1}"),
        ]
        for index, field_id in enumerate(fields.display_fields(include_status)):
            params.append((f"forcedisplay[{index}]", field_id))
        return params

    @staticmethod
    def _rows(payload: Any) -> Any:
        if isinstance(payload, dict):
            return payload.get("data")
        return None
