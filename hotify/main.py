#!/usr/bin/env python3
"""Entry point for the hotify CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .app import ACTIONS, HotifyApp
from .core.config_manager import ConfigManager
from .utils.constants import APP_NAME, CONFIG_FILE, LOG_FILE


def setup_logging(verbose: bool = False):
    """Set up application logging.

    Everything from INFO up goes to the log file next to the settings, the
    terminal only shows warnings unless ``verbose`` is set.
    """
    handlers: List[logging.Handler] = []
    file_error = None

    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)
    except OSError as e:
        file_error = e

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handlers.append(stream_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    if file_error:
        logging.getLogger(__name__).warning(f"Not logging to {LOG_FILE}: {file_error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Manage your hotify instance: start, stop and update services and view their logs."
    )
    parser.add_argument('-c', '--config', type=Path, default=CONFIG_FILE,
                        help='Path to the config file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show debug output')

    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    commands.add_parser('configure', help='Configure the server address and API secret')
    commands.add_parser('list', help='Display all your services')
    commands.add_parser('create', help='Create a service interactively')
    commands.add_parser('config', help='Show the server configuration')

    logs = commands.add_parser('logs', help='Get logs for a service')
    logs.add_argument('name', help='Service name')
    logs.add_argument('-l', '--live', action='store_true',
                      help='Update logs in real-time')

    for action in ACTIONS:
        command = commands.add_parser(action, help=f'{action.capitalize()} a service')
        command.add_argument('name', help='Service name')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config_manager = ConfigManager(args.config)
    config_manager.load_config()

    app = HotifyApp(config_manager)
    try:
        return asyncio.run(app.run(args.command, getattr(args, 'name', None), getattr(args, 'live', False)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
