"""
Seen-ticket store for notification idempotency.

Keeps the ids of tickets that already produced a notification so that each
ticket is announced at most once, across restarts. Backed by a JSON file in
the per-user data directory.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .paths import get_data_dir

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "state.json"


class SeenStore:
    """
    Durable set of already-notified ticket ids.

    Ids are only ever added. The file holds {"seen_ticket_ids": [...]} with
    the ids sorted ascending.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            path: State file location; defaults to state.json in the data dir.
        """
        self.path = Path(path) if path is not None else get_data_dir() / STATE_FILE_NAME
        self._ids: Set[int] = set()
        logger.debug(f"SeenStore using {self.path}")

    def load(self) -> "SeenStore":
        """
        Replace the in-memory ids with the persisted ones.

        A missing file means first run; an unreadable or corrupt one is
        logged and treated the same way.

        Returns:
            SeenStore: self, for chaining.
        """
        self._ids = set()

        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting empty")
            return self

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._ids = {int(i) for i in data.get("seen_ticket_ids", [])}
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load state from {self.path}: {e}")
            self._ids = set()

        logger.info(f"Loaded {len(self._ids)} seen ticket id(s)")
        return self

    def save(self) -> None:
        """
        Write the ids to disk, replacing the previous file atomically.

        Raises:
            OSError: If the state file cannot be written.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"seen_ticket_ids": self.ids}

        tmp_path = ""
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=self.path.parent, suffix=".tmp"
            ) as tmp_file:
                tmp_path = tmp_file.name
                json.dump(payload, tmp_file, indent=2)
            os.replace(tmp_path, self.path)
            tmp_path = ""
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.debug(f"Saved {len(self._ids)} seen ticket id(s) to {self.path}")

    def contains(self, ticket_id: int) -> bool:
        return ticket_id in self._ids

    def add(self, ticket_id: int) -> None:
        self._ids.add(ticket_id)

    def update(self, ticket_ids: Iterable[int]) -> None:
        self._ids.update(ticket_ids)

    @property
    def ids(self) -> List[int]:
        """Seen ids in ascending order."""
        return sorted(self._ids)

    def __contains__(self, ticket_id: object) -> bool:
        return ticket_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
