"""
GLPI
====

Read-only access to the GLPI REST API: session handling, ticket schema
resolution and the searches needed to detect new tickets.
"""

from .api.glpi_api import GlpiAPI, create_headers
from .api.ticket_api import TicketAPI
from .facade.glpi_facade import GlpiFacade

__all__ = [
        "GlpiAPI",
        "create_headers",
        "TicketAPI",
        "GlpiFacade",
]
