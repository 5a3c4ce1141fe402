"""Configuration and command-line argument parsing"""

import argparse
import logging
import os
from typing import Dict, List, Optional

from .constants import APP_CONFIG_DIR, DEFAULT_CONFIG, MAX_IPC_TIMEOUT, MAX_QUEUE_SIZE, STYLESHEET_FILENAME

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the daemon's argument parser"""
    parser = argparse.ArgumentParser(
        prog="niri-switch-daemon",
        description="niri-switch daemon - a most-recently-used window switcher for niri",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                           # Default: all windows, MRU order
  %(prog)s --workspace               # Only windows on the focused workspace
  %(prog)s --no-swap                 # Select the most recent window first
  %(prog)s --list                    # Print windows and exit

Bind the client to a key in niri, e.g.:
  Alt+Tab { spawn "niri-switch"; }
        """)

    # Behavior
    parser.add_argument(
        '-w', '--workspace', action='store_true',
        help='Display windows only from the active workspace')
    parser.add_argument(
        '--no-swap', action='store_true',
        help='Keep the most recent window in the first slot')

    # IPC
    parser.add_argument(
        '--timeout', type=float, default=DEFAULT_CONFIG['ipc_timeout'], metavar='SECONDS',
        help='Timeout for niri IPC calls (default: %(default)s)')
    parser.add_argument(
        '--queue-size', type=int, default=DEFAULT_CONFIG['queue_size'], metavar='NUM',
        help='Pending activation requests before new ones are refused (default: %(default)s)')

    # Utilities
    parser.add_argument(
        '--list', action='store_true',
        help='List all windows and exit')

    # Logging
    parser.add_argument(
        '--debug', action='store_true',
        help='Enable debug logging')
    parser.add_argument(
        '--verbose', action='store_true',
        help='Enable verbose logging')

    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments

    Args:
        argv: Arguments to parse (default: sys.argv)

    Returns:
        Parsed arguments
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    if args.timeout <= 0:
        parser.error("--timeout must be positive")
    if args.timeout > MAX_IPC_TIMEOUT:
        parser.error(f"--timeout should not exceed {MAX_IPC_TIMEOUT:g} seconds")
    if args.queue_size < 1:
        parser.error("--queue-size must be at least 1")
    if args.queue_size > MAX_QUEUE_SIZE:
        parser.error(f"--queue-size should not exceed {MAX_QUEUE_SIZE}")

    return args


def args_to_config(args: argparse.Namespace) -> Dict:
    """Convert parsed arguments to configuration dictionary

    Args:
        args: Parsed command-line arguments

    Returns:
        Configuration dictionary
    """
    config = dict(DEFAULT_CONFIG)
    config.update({
        'workspace_only': args.workspace,
        'swap_first': not args.no_swap,
        'ipc_timeout': args.timeout,
        'queue_size': args.queue_size,
    })
    return config


def log_level(args: argparse.Namespace) -> int:
    """Logging level selected on the command line"""
    if args.debug or args.verbose:
        return logging.DEBUG
    return logging.INFO


def find_user_stylesheet(environ: Dict[str, str]) -> Optional[str]:
    """Locate a user-provided stylesheet

    Looks in $XDG_CONFIG_HOME/niri-switch first, then in
    $HOME/.config/niri-switch.

    Args:
        environ: Environment variables

    Returns:
        Path to the stylesheet or None
    """
    candidates = []
    if environ.get('XDG_CONFIG_HOME'):
        candidates.append(os.path.join(environ['XDG_CONFIG_HOME'], APP_CONFIG_DIR, STYLESHEET_FILENAME))
    if environ.get('HOME'):
        candidates.append(os.path.join(environ['HOME'], '.config', APP_CONFIG_DIR, STYLESHEET_FILENAME))

    for path in candidates:
        if os.path.isfile(path):
            logger.debug(f"Using stylesheet {path}")
            return path
    return None
