from .ticket import FieldMapping, Ticket

__all__ = ["FieldMapping", "Ticket"]
