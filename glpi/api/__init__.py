from .glpi_api import GlpiAPI, create_headers
from .ticket_api import TicketAPI

__all__ = [
    'GlpiAPI',
    'create_headers',
    'TicketAPI',
]
