"""
SnoreToast notification adapter.

Shows Windows toast notifications by running snoretoast.exe and reading the
user's interaction back from its exit code.
"""

import logging
import os
import shutil
import subprocess
import sys
import webbrowser
from pathlib import Path
from typing import Callable, List, Optional

from .base_notification_adapter import BaseNotificationAdapter
from ..exceptions import DeliveryError, NotifierNotAvailableError
from ..models.notification import DeliveryOutcome, Notification

logger = logging.getLogger(__name__)

SNORETOAST_EXE = "snoretoast.exe"
LOGO_NAME = "logo.png"

ExecutableResolver = Callable[[], Optional[str]]
UrlOpener = Callable[[str], bool]


def _program_dir() -> Optional[Path]:
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return None


def find_snoretoast() -> Optional[str]:
    """
    Locate snoretoast.exe.

    Looks next to the running program, then in %ProgramFiles%\\SnoreToast,
    then on PATH.

    Returns:
        Optional[str]: Path to the executable, or None if it cannot be found.
    """
    candidates = []
    program_dir = _program_dir()
    if program_dir is not None:
        candidates.append(program_dir / SNORETOAST_EXE)
    candidates.append(Path(sys.executable).resolve().parent / SNORETOAST_EXE)

    program_files = os.getenv("ProgramFiles")
    if program_files:
        candidates.append(Path(program_files) / "SnoreToast" / SNORETOAST_EXE)

    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)

    return shutil.which("snoretoast")


def resolve_image_path(explicit_path: Optional[str] = None, cache_dir: Optional[Path] = None) -> Optional[str]:
    """
    Pick the image to attach to a toast.

    Precedence: the configured path, assets/logo.png or logo.png shipped next
    to the program, then logo.png in the per-user cache dir.

    Args:
        explicit_path: Path from configuration (GLPI_LOGO_PATH).
        cache_dir: Per-user application data directory.

    Returns:
        Optional[str]: An existing image path, or None.
    """
    if explicit_path and explicit_path.strip():
        candidate = Path(explicit_path.strip())
        if candidate.is_file():
            return str(candidate)
        logger.debug(f"Configured logo not found: {candidate}")

    program_dir = _program_dir()
    if program_dir is not None:
        for candidate in (program_dir / "assets" / LOGO_NAME, program_dir / LOGO_NAME):
            if candidate.is_file():
                return str(candidate)

    if cache_dir is not None:
        candidate = Path(cache_dir) / LOGO_NAME
        if candidate.is_file():
            return str(candidate)

    return None


class SnoreToastAdapter(BaseNotificationAdapter):
    """
    Notification adapter backed by the SnoreToast command line tool.

    Exit codes 0-5 are the documented SnoreToast results; anything else is a
    failure. When the user presses the action button, the notification's
    open_url is handed to url_opener.
    """

    def __init__(
        self,
        executable_resolver: ExecutableResolver = find_snoretoast,
        url_opener: UrlOpener = webbrowser.open,
        timeout: Optional[float] = 120,
    ):
        """
        Args:
            executable_resolver: Returns the snoretoast path, or None when missing.
            url_opener: Opens a URL with the OS default handler.
            timeout: Seconds to wait for the toast process, None to wait forever.
        """
        self.executable_resolver = executable_resolver
        self.url_opener = url_opener
        self.timeout = timeout

    def is_available(self) -> bool:
        return self.executable_resolver() is not None

    def build_command(self, executable: str, notification: Notification) -> List[str]:
        command = [
            executable,
            "-appID", notification.app_id,
            "-id", notification.notification_id,
            "-t", notification.title,
            "-m", notification.body,
            "-d", notification.duration,
        ]
        if notification.image_path:
            command.extend(["-p", notification.image_path])
        if notification.open_url:
            command.extend(["-b", notification.button_label or "Open"])
        # Arguments cannot carry NUL characters
        return [arg.replace("\x00", "") for arg in command]

    def deliver(self, notification: Notification) -> DeliveryOutcome:
        """
        Show a toast and wait for SnoreToast to exit.

        Raises:
            NotifierNotAvailableError: If snoretoast cannot be found or launched.
            DeliveryError: On timeout, unusable arguments or an unrecognized exit code.
        """
        command = self.build_command(self._executable(), notification)
        if notification.image_path:
            logger.debug(f"SnoreToast: attaching image {notification.image_path}")

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DeliveryError(f"snoretoast did not exit within {self.timeout}s") from e
        except OSError as e:
            raise NotifierNotAvailableError(f"Could not launch snoretoast: {str(e)}") from e
        except ValueError as e:
            raise DeliveryError(f"Invalid snoretoast arguments: {str(e)}") from e

        outcome = DeliveryOutcome.from_exit_code(completed.returncode)
        if outcome is None:
            raise DeliveryError(
                f"snoretoast failed (code {completed.returncode}). "
                f"STDOUT:\n{completed.stdout}\nSTDERR:\n{completed.stderr}",
                exit_code=completed.returncode,
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
            )

        logger.debug(f"SnoreToast: {outcome.name}")
        if outcome is DeliveryOutcome.BUTTON_PRESSED and notification.open_url:
            self._open_url(notification.open_url)

        return outcome

    def install_shortcut(self, shortcut_name: str, app_id: str, program: Optional[str] = None) -> bool:
        """
        Register a Start Menu shortcut carrying the AppUserModelID.

        Windows only shows toast buttons for apps with such a shortcut. Best
        effort: failures are logged and reported through the return value.
        """
        executable = self.executable_resolver()
        if executable is None:
            logger.warning("snoretoast not found, cannot install shortcut")
            return False

        program = program or str(Path(sys.argv[0]).resolve())
        try:
            subprocess.run(
                [executable, "-install", shortcut_name, program, app_id],
                capture_output=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Failed to install notifier shortcut: {str(e)}")
            return False

        logger.info(f"Installed notifier shortcut '{shortcut_name}' ({app_id})")
        return True

    def _executable(self) -> str:
        executable = self.executable_resolver()
        if not executable:
            raise NotifierNotAvailableError(
                "snoretoast.exe not found (place it next to the program, in "
                "%ProgramFiles%\\SnoreToast or on PATH)"
            )
        return executable

    def _open_url(self, url: str) -> None:
        try:
            opened = self.url_opener(url)
        except Exception as e:
            logger.warning(f"Failed to open ticket URL {url}: {str(e)}")
            return
        if opened is False:
            logger.warning(f"Failed to open ticket URL {url}")
