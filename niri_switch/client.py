"""niri-switch client - wakes the running daemon"""

import argparse
import logging
import sys
from typing import List, Optional

from gi.repository import GLib

from . import __version__
from .dbus import activate_daemon

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        prog="niri-switch",
        description="Show the niri-switch overlay, or advance its selection if already shown")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format='%(name)s - %(levelname)s - %(message)s')

    try:
        activate_daemon()
    except GLib.Error as e:
        logger.error(f"Failed to call 'Activate' on the daemon: {e.message}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
