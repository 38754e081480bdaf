import json
import logging
import time
from pathlib import Path
from typing import Optional

from .paths import get_data_dir

logger = logging.getLogger(__name__)

HEARTBEAT_FILE_NAME = "heartbeat.json"


def write_heartbeat(ok: bool, new_count: int, path: Optional[Path] = None) -> None:
    """
    Write the liveness file: UNIX timestamp, last cycle status and notified count.

    Never raises; a failed write is only logged.
    """
    try:
        target = Path(path) if path is not None else get_data_dir() / HEARTBEAT_FILE_NAME
        payload = {"ts": int(time.time()), "ok": ok, "new": new_count}
        with open(target, "w", encoding="utf-8") as f:
            json.dump(payload, f)
    except OSError as e:
        logger.debug(f"Could not write heartbeat: {e}")
