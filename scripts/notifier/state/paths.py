import os
import sys
from pathlib import Path

APP_DIR_NAME = "GlpiNotifier"


def get_data_dir(create: bool = True) -> Path:
    """
    Per-user application data directory for the notifier.

    %APPDATA% on Windows, ~/Library/Application Support on macOS and
    $XDG_DATA_HOME (default ~/.local/share) elsewhere.

    Args:
        create: Create the directory if it does not exist.
    """
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")

    data_dir = Path(base) / APP_DIR_NAME
    if create:
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
