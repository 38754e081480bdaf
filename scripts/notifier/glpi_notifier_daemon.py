"""
GLPI New Ticket Notifier Daemon

Polls the GLPI REST API for tickets in status New and shows one desktop
notification for every ticket that has not been announced before. Announced
ids are persisted, so a ticket is notified at most once across restarts.
"""

import argparse
import functools
import logging
import os
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv

from glpi.exceptions import GlpiError, SchemaResolutionError
from glpi.facade.glpi_facade import GlpiFacade
from glpi.models.ticket import Ticket
from notifications.adapters.base_notification_adapter import BaseNotificationAdapter
from notifications.adapters.snoretoast_adapter import SnoreToastAdapter, resolve_image_path
from notifications.exceptions import NotificationError
from notifications.models.notification import Notification
from scripts.notifier.notifier_config import NotifierConfig
from scripts.notifier.state.heartbeat import write_heartbeat
from scripts.notifier.state.paths import get_data_dir
from scripts.notifier.state.seen_store import STATE_FILE_NAME, SeenStore

logger = logging.getLogger(__name__)

APP_ID = "GlpiNotifier"
BATCH_SIZE = 200
DEBUG_LIST_SIZE = 10


def handle_keyboard_interrupt(exit_message="Daemon interrupted by user"):
    """Decorator to handle KeyboardInterrupt and exit gracefully."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                logger.info(f"\n{exit_message}")
                sys.exit(0)

        return wrapper

    return decorator


def build_ticket_notification(
    ticket: Ticket,
    app_id: str = APP_ID,
    ticket_url_template: Optional[str] = None,
    image_path: Optional[str] = None,
) -> Notification:
    """
    Build the toast for a ticket: title, subject and requester, plus an
    "Open" button when a ticket URL template is configured.

    Args:
        ticket: The ticket to announce.
        app_id: AppUserModelID the toast is shown under.
        ticket_url_template: URL with an {id} placeholder.
        image_path: Optional image to attach.
    """
    requester = ticket.requester or "Unknown"
    if ticket.name:
        body = f"{ticket.name}\nBy: {requester}"
    else:
        body = f"New ticket\nBy: {requester}"

    open_url = None
    if ticket_url_template:
        open_url = ticket_url_template.replace("{id}", str(ticket.id))

    return Notification(
        app_id=app_id,
        notification_id=str(ticket.id),
        title=f"GLPI: New ticket #{ticket.id}",
        body=body,
        image_path=image_path,
        button_label="Open" if open_url else None,
        open_url=open_url,
    )


class GlpiNotifierDaemon:
    """
    Polls GLPI for new tickets and notifies each unseen one exactly once.

    On the very first cycle against an empty seen set, existing New tickets
    are only recorded (no notifications) unless first_run_notify is set.
    """

    def __init__(
        self,
        facade: GlpiFacade,
        seen_store: SeenStore,
        notifier: BaseNotificationAdapter,
        first_run_notify: bool = False,
        debug_list: bool = False,
        ticket_url_template: Optional[str] = None,
        logo_path: Optional[str] = None,
        data_dir: Optional[Path] = None,
        app_id: str = APP_ID,
        batch_size: int = BATCH_SIZE,
        heartbeat: Optional[Callable[[bool, int], None]] = None,
    ):
        """
        Initialize the notifier daemon.

        Args:
            facade: GlpiFacade owning the session and field mapping
            seen_store: Loaded SeenStore with already-notified ids
            notifier: Notification adapter used for delivery
            first_run_notify: Notify existing New tickets on the first cycle
            debug_list: Log the fetched tickets (and recent ones when none are new)
            ticket_url_template: URL opened by the toast button, with {id}
            logo_path: Configured toast image
            data_dir: Per-user data directory, searched for a cached logo
            app_id: AppUserModelID for the toasts
            batch_size: Maximum number of New tickets fetched per cycle
            heartbeat: Called with (ok, notified_count) after every cycle
                (default: write the heartbeat file)
        """
        self.facade = facade
        self.seen_store = seen_store
        self.notifier = notifier
        self.first_run_notify = first_run_notify
        self.debug_list = debug_list
        self.ticket_url_template = ticket_url_template
        self.logo_path = logo_path
        self.data_dir = data_dir
        self.app_id = app_id
        self.batch_size = batch_size
        self.heartbeat = heartbeat or write_heartbeat

        self.first_run = len(seen_store) == 0

        self.stats = {
            "runs": 0,
            "tickets_notified": 0,
            "failed_runs": 0,
        }

    def build_notification(self, ticket: Ticket) -> Notification:
        return build_ticket_notification(
            ticket,
            app_id=self.app_id,
            ticket_url_template=self.ticket_url_template,
            image_path=resolve_image_path(self.logo_path, self.data_dir),
        )

    def log_debug_listing(self, tickets: List[Ticket]) -> None:
        logger.info(f"DEBUG: {len(tickets)} ticket(s) with status=New")
        for ticket in tickets[:DEBUG_LIST_SIZE]:
            logger.info(f"DEBUG: New -> #{ticket.id} {ticket.name} (by {ticket.requester or '?'})")

        if tickets:
            return

        try:
            recent = self.facade.get_recent_tickets(DEBUG_LIST_SIZE)
        except GlpiError as e:
            logger.info(f"DEBUG: could not list recent tickets: {e}")
            return

        logger.info(f"DEBUG: recent tickets (any status): {len(recent)}")
        for ticket in recent[:DEBUG_LIST_SIZE]:
            logger.info(f"DEBUG: Recent -> #{ticket.id} {ticket.name}")

    def tick(self) -> int:
        """
        Run one poll cycle: fetch New tickets, notify the unseen ones.

        Returns:
            int: Number of notifications delivered in this cycle.

        Raises:
            GlpiError: If authentication or a query fails.
            NotificationError: If a delivery fails; the rest of the batch is skipped.
            OSError: If the seen set cannot be saved.
        """
        tickets = self.facade.get_new_tickets(self.batch_size)

        if self.debug_list:
            self.log_debug_listing(tickets)

        if self.first_run and not self.first_run_notify:
            self.seen_store.update(t.id for t in tickets)
            self.seen_store.save()
            self.first_run = False
            logger.info(
                f"First run: marked {len(tickets)} 'New' ticket(s) as seen "
                "(FIRST_RUN_NOTIFY=false)"
            )
            return 0

        if self.first_run and self.first_run_notify:
            logger.info("First run WITH notifications (FIRST_RUN_NOTIFY=true)")
            self.first_run = False
            self.first_run_notify = False

        unseen = {t.id: t for t in tickets if not self.seen_store.contains(t.id)}
        fresh = sorted(unseen.values(), key=lambda t: t.id, reverse=True)

        for ticket in fresh:
            self.notifier.deliver(self.build_notification(ticket))
            self.seen_store.add(ticket.id)

        if fresh:
            self.seen_store.save()
            logger.info(f"Notified {len(fresh)} new ticket(s): {[t.id for t in fresh]}")

        return len(fresh)

    def run_once(self) -> Dict[str, Any]:
        """
        Run one cycle and report liveness.

        Transport, delivery and state errors end the cycle: the session is
        discarded so the next cycle re-authenticates. A schema error is fatal
        and propagates.

        Returns:
            Dict with "ok" and "notified" keys.
        """
        self.stats["runs"] += 1

        try:
            notified = self.tick()
        except SchemaResolutionError:
            self.heartbeat(False, 0)
            raise
        except (GlpiError, NotificationError, OSError) as e:
            self.stats["failed_runs"] += 1
            logger.warning(f"Tick error: {e}. Will re-authenticate on next iteration.")
            self.heartbeat(False, 0)
            self.facade.discard_session()
            return {"ok": False, "notified": 0, "error": str(e)}

        self.stats["tickets_notified"] += notified
        self.heartbeat(True, notified)
        return {"ok": True, "notified": notified}

    def run_continuous(self, interval_seconds: int = 60, stop_event: Optional[threading.Event] = None):
        """
        Poll until stop_event is set, waiting interval_seconds between cycles.

        The stop event is checked once per second while waiting.

        Args:
            interval_seconds: Seconds to wait between cycles
            stop_event: Cooperative stop signal
        """
        stop_event = stop_event or threading.Event()
        logger.info(f"GLPI notifier starting (interval: {interval_seconds}s)")

        try:
            while not stop_event.is_set():
                try:
                    self.run_once()
                except SchemaResolutionError:
                    raise
                except Exception:
                    logger.exception("Unexpected error in daemon loop")
                    self.stats["failed_runs"] += 1
                    self.heartbeat(False, 0)
                    self.facade.discard_session()
                    logger.info(f"Waiting {interval_seconds} seconds before retry...")

                for _ in range(max(int(interval_seconds), 0)):
                    if stop_event.wait(1):
                        break

        except KeyboardInterrupt:
            logger.info("\nDaemon stopped by user")

        finally:
            self.facade.end_session()
            logger.info(f"Daemon stats: {self.get_stats()}")

    def get_stats(self) -> Dict[str, Any]:
        """Get daemon statistics."""
        return self.stats.copy()


def send_test_toast(notifier: BaseNotificationAdapter, config: Dict[str, Any], data_dir: Path) -> bool:
    """Show a sample notification to check the notifier setup."""
    dummy = Ticket(id=12345, name="Notification test", requester="Example User")
    notification = build_ticket_notification(
        dummy,
        ticket_url_template=config["ticket_url_template"],
        image_path=resolve_image_path(config["logo_path"], data_dir),
    )
    try:
        outcome = notifier.deliver(notification)
    except NotificationError as e:
        logger.error(f"Toast error: {e}")
        return False

    logger.info(f"Test toast result: {outcome.name}")
    return True


@handle_keyboard_interrupt("Notifier interrupted by user")
def main():
    """Main entry point for the GLPI notifier daemon."""

    # Parse command line arguments
    parser = argparse.ArgumentParser(
        description="GLPI Notifier - Show a desktop notification for every new GLPI ticket"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single poll cycle and exit (default: run continuously)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        help="Polling interval in seconds (default: from POLL_SECONDS env var, or 60)",
    )
    parser.add_argument(
        "--test-toast",
        action="store_true",
        help="Show a sample notification and exit",
    )
    parser.add_argument(
        "--install-shortcut",
        action="store_true",
        help="Register the Start Menu shortcut needed for toast buttons and exit",
    )
    parser.add_argument(
        "--log",
        nargs="?",
        const="glpi_notifier.log",
        help="Enable logging to file (default: glpi_notifier.log)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    # Set up logging
    log_level = getattr(logging, args.log_level)

    if args.log:
        log_path = args.log
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(levelname)s - %(message)s",
            handlers=[logging.FileHandler(log_path), logging.StreamHandler(sys.stdout)],
        )
        logger.info(f"Logging to file: {log_path}")
    else:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )

    # Load environment variables
    logger.info("Loading environment variables...")
    load_dotenv()
    config = NotifierConfig.get_config()
    data_dir = get_data_dir()

    notifier = SnoreToastAdapter()

    if args.install_shortcut:
        sys.exit(0 if notifier.install_shortcut(APP_ID, APP_ID) else 1)

    if args.test_toast:
        sys.exit(0 if send_test_toast(notifier, config, data_dir) else 1)

    missing = NotifierConfig.validate_config(config)
    if missing:
        logger.error("Missing required environment variables")
        logger.error(f"Required: {', '.join(missing)} (no quotes, no extra spaces)")
        sys.exit(1)

    if not notifier.is_available():
        logger.warning("snoretoast.exe not found; notifications will fail until it is installed")

    interval = args.interval if args.interval is not None else config["poll_seconds"]
    logger.info(f"GLPI Base URL: {config['base_url']}")

    facade = GlpiFacade(
        config["base_url"],
        config["user_token"],
        app_token=config["app_token"],
        verify_ssl=config["verify_ssl"],
        timeout=config["timeout"],
    )
    seen_store = SeenStore(data_dir / STATE_FILE_NAME).load()

    daemon = GlpiNotifierDaemon(
        facade=facade,
        seen_store=seen_store,
        notifier=notifier,
        first_run_notify=config["first_run_notify"],
        debug_list=config["debug_list"],
        ticket_url_template=config["ticket_url_template"],
        logo_path=config["logo_path"],
        data_dir=data_dir,
    )

    stop_event = threading.Event()
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, lambda signum, frame: stop_event.set())

    try:
        # Fail fast when the schema lacks a mandatory ticket field
        facade.resolve_fields()
    except SchemaResolutionError as e:
        logger.error(f"Failed to resolve fields: {e}")
        write_heartbeat(False, 0)
        facade.end_session()
        sys.exit(1)
    except GlpiError as e:
        logger.warning(f"Could not reach GLPI at startup: {e}. Will retry on schedule.")
        facade.discard_session()

    try:
        if args.once:
            result = daemon.run_once()
            if not result["ok"]:
                sys.exit(1)
        else:
            daemon.run_continuous(interval_seconds=interval, stop_event=stop_event)

    except SchemaResolutionError as e:
        logger.error(f"Failed to resolve fields: {e}")
        sys.exit(1)

    finally:
        facade.end_session()
        logger.info(f"Notifier shutdown complete at {datetime.now():%Y-%m-%d %H:%M:%S}")


if __name__ == "__main__":
    main()
