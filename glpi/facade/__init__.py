from .glpi_facade import GlpiFacade

__all__ = ["GlpiFacade"]
