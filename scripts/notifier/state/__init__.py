"""
Persistent state for the GLPI notifier.

Provides the seen-ticket store and the heartbeat writer, both kept in the
per-user data directory.
"""

from .heartbeat import write_heartbeat
from .paths import get_data_dir
from .seen_store import SeenStore

__all__ = ["SeenStore", "get_data_dir", "write_heartbeat"]
