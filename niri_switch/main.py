#!/usr/bin/env python3

"""niri-switch daemon - Main application"""

import os
os.environ['NO_AT_BRIDGE'] = '1'

import asyncio
import fcntl
import logging
import signal
import sys
import tempfile
import threading
from typing import Dict, Optional, TextIO
import gi

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk, GLib

from .apps import AppDatabase
from .channel import TriggerChannel, UserCancelled, UserSelected
from .config import parse_arguments, args_to_config, log_level
from .constants import LOCK_FILENAME
from .controller import ActivationController, presentation_order
from .dbus import DaemonService
from .niri import CompositorError, NiriClient
from .ui import GtkPresenter, SwitcherWindow, load_css
from .window_cache import WindowOrderCache

logger = logging.getLogger(__name__)


class NiriSwitchApp:
    """Main niri-switch daemon

    GTK and the D-Bus service live on the main thread, the activation
    controller runs on its own asyncio loop in a background thread.
    """

    def __init__(self, config: Dict, client: NiriClient):
        """Initialize application

        Args:
            config: Configuration dictionary
            client: niri IPC client
        """
        self.config = config
        self.client = client

        # Initialize GTK
        Gtk.init()
        load_css()

        self.channel = TriggerChannel(config['queue_size'])
        self.app_database = AppDatabase()

        # Initialize UI
        self.switcher_window = SwitcherWindow(
            self.app_database,
            self._on_window_selected,
            self._on_cancelled
        )
        self.presenter = GtkPresenter(self.switcher_window)

        self.controller = ActivationController(self.client, self.presenter, self.channel, config)

        # Controller loop; bound to the channel now so early requests queue up
        self.loop = asyncio.new_event_loop()
        self.channel.attach(self.loop)
        self.controller_task = None
        self.controller_thread = threading.Thread(
            target=self._run_controller, name="niri-switch-controller", daemon=True)

        self.service = DaemonService(self.channel, on_name_lost=self.quit)

        logger.info("niri-switch initialized")

    def _run_controller(self):
        asyncio.set_event_loop(self.loop)
        self.controller_task = self.loop.create_task(self.controller.run())
        try:
            self.loop.run_until_complete(self.controller_task)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Activation controller crashed: {e}", exc_info=True)
            GLib.idle_add(self.quit)
        finally:
            self.loop.close()

    def _on_window_selected(self, window_id: int):
        """Handle window chosen in the overlay"""
        self.channel.send_threadsafe(UserSelected(window_id), wait=True)

    def _on_cancelled(self):
        """Handle overlay dismissed by the user"""
        self.channel.send_threadsafe(UserCancelled(), wait=True)

    def run(self):
        """Run the application"""
        try:
            self.controller_thread.start()
            self.service.start()

            logger.info("Entering main loop")
            Gtk.main()

        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.cleanup()

    def quit(self):
        """Leave the GTK main loop"""
        Gtk.main_quit()
        return False

    def cleanup(self):
        """Clean up resources"""
        logger.info("Cleaning up...")

        self.service.stop()

        if self.controller_task is not None and self.controller_thread.is_alive():
            try:
                self.loop.call_soon_threadsafe(self.controller_task.cancel)
            except RuntimeError:
                # Controller exited and closed its loop meanwhile
                logger.debug("Controller loop already closed")
        if self.controller_thread.is_alive():
            self.controller_thread.join(timeout=2.0)

        logger.info("Cleanup complete")


def list_windows(client: NiriClient, config: Dict):
    """List windows in the order the overlay would show them (for --list option)

    Args:
        client: niri IPC client
        config: Configuration dictionary
    """
    windows = client.list_windows()

    if not windows:
        print("\nNo windows found.")
        return

    cache = WindowOrderCache()
    cache.reconcile(window.id for window in windows)
    windows_by_id = {window.id: window for window in windows}
    order = presentation_order(cache.snapshot_order(), config['swap_first'])

    print("\nCurrent Windows:")
    print("-" * 80)
    print(f"{'App ID':<30} {'ID':<8} {'Workspace':<10} {'Title'}")
    print("-" * 80)

    for window_id in order:
        window = windows_by_id[window_id]
        workspace = window.workspace_id if window.workspace_id is not None else '-'
        print(f"{window.app_id[:29]:<30} {window.id:<8} {str(workspace):<10} {window.title[:30]}")

    print("-" * 80)
    print(f"Total: {len(windows)} window(s)")


def acquire_lock_file() -> Optional[TextIO]:
    """Acquire the per-user daemon lock

    Returns:
        Open lock file (keep it open to hold the lock), or None if
        another daemon holds it
    """
    lock_path = os.path.join(tempfile.gettempdir(), LOCK_FILENAME)
    try:
        lock_file = open(lock_path, 'w')
    except OSError as e:
        logger.error(f"Failed to create lock file {lock_path}: {e}")
        return None

    try:
        fcntl.flock(lock_file, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        lock_file.close()
        return None

    return lock_file


def main():
    """Main entry point"""
    # Parse arguments
    args = parse_arguments()

    # Configure logging
    logging.basicConfig(level=log_level(args), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Convert args to config
    config = args_to_config(args)

    try:
        client = NiriClient(timeout=config['ipc_timeout'])
    except CompositorError as e:
        logger.error(f"Failed to connect with niri: {e}")
        sys.exit(1)

    # Handle --list
    if args.list:
        try:
            list_windows(client, config)
        except CompositorError as e:
            logger.error(f"Could not list windows: {e}")
            sys.exit(1)
        sys.exit(0)

    # Prevent multiple daemons from running
    lock_file = acquire_lock_file()
    if lock_file is None:
        logger.info("niri-switch daemon is already running")
        sys.exit(0)

    # Log configuration
    logger.info("Starting niri-switch daemon")
    logger.info(f"Workspace only: {config['workspace_only']}, swap first: {config['swap_first']}")

    try:
        app = NiriSwitchApp(config, client)

        # Handle signals
        def signal_handler():
            logger.info("Received termination signal")
            app.quit()
            return GLib.SOURCE_REMOVE

        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, signal_handler)
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, signal_handler)

        app.run()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        fcntl.flock(lock_file, fcntl.LOCK_UN)
        lock_file.close()


if __name__ == "__main__":
    main()
