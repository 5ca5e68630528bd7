#!/usr/bin/env python3
"""
CLI Router for the Event Engine.

Modular command architecture for event scanning and ingestion.
"""

import argparse
import logging
import sys
from typing import Optional, List

from commands import get_command, COMMANDS
from core.config import get_config_manager

logger = logging.getLogger(__name__)


class CLIRouter:
    """
    CLI router for event engine commands.

    Command structure:
    - python run.py scan run --raw-file feeds.json
    - python run.py scan pending
    - python run.py ingest push --file events.json
    - python run.py serve api --port 8000
    - python run.py health check
    """

    def __init__(self):
        """Initialize CLI router."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description="Local Event Discovery and Classification Engine",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_scan_parser(subparsers)
        self._add_ingest_parser(subparsers)
        self._add_serve_parser(subparsers)
        self._add_health_parser(subparsers)

        return parser

    def _add_scan_parser(self, subparsers):
        """Add scan command parser."""
        scan_parser = subparsers.add_parser(
            'scan',
            help='Event scan operations'
        )

        scan_subparsers = scan_parser.add_subparsers(
            dest='subcommand',
            help='Scan operations',
            metavar='{run,pending}'
        )

        run_parser = scan_subparsers.add_parser('run', help='Scan inline feeds or stored rows and create briefs')
        run_parser.add_argument('--raw-file', help='JSON file with raw_data entries or a full scan request body')
        run_parser.add_argument('--start', help='Window start date (default: today)')
        run_parser.add_argument('--end', help='Window end date (default: start + DEFAULT_WINDOW_MONTHS)')
        run_parser.add_argument('--json', action='store_true', help='Print the scan summary as JSON')

        pending_parser = scan_subparsers.add_parser('pending', help='Show stored rows awaiting a scan')
        pending_parser.add_argument('--limit', type=int, default=None, help='Maximum rows to list')
        pending_parser.add_argument('--verbose', action='store_true', help='List every row')

    def _add_ingest_parser(self, subparsers):
        """Add ingest command parser."""
        ingest_parser = subparsers.add_parser(
            'ingest',
            help='Store scraped events for later scans'
        )

        ingest_subparsers = ingest_parser.add_subparsers(
            dest='subcommand',
            help='Ingest operations',
            metavar='{push}'
        )

        push_parser = ingest_subparsers.add_parser('push', help='Ingest events from a JSON file')
        push_parser.add_argument('--file', required=True, help='JSON file with {"events": [...]}')
        push_parser.add_argument('--json', action='store_true', help='Print the ingestion summary as JSON')

    def _add_serve_parser(self, subparsers):
        """Add serve command parser."""
        serve_parser = subparsers.add_parser(
            'serve',
            help='Run the HTTP API'
        )

        serve_subparsers = serve_parser.add_subparsers(
            dest='subcommand',
            help='Serve operations',
            metavar='{api}'
        )

        api_parser = serve_subparsers.add_parser('api', help='Serve the scan and ingestion endpoints')
        api_parser.add_argument('--host', default='127.0.0.1', help='Bind address (default: 127.0.0.1)')
        api_parser.add_argument('--port', type=int, default=8000, help='Port (default: 8000)')

    def _add_health_parser(self, subparsers):
        """Add health command parser."""
        health_parser = subparsers.add_parser(
            'health',
            help='System health monitoring and diagnostics'
        )

        health_subparsers = health_parser.add_subparsers(
            dest='subcommand',
            help='Health operations',
            metavar='{check}'
        )

        check_parser = health_subparsers.add_parser('check', help='Run comprehensive health check')
        check_parser.add_argument('--test', action='store_true', help='Test the OpenAI connection')

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  # Scan feeds forwarded in a file, default window (today + 3 months)
  python run.py scan run --raw-file feeds.json

  # Scan stored rows for a custom window
  python run.py scan run --start 2025-03-01 --end 2025-06-01

  # Other commands
  python run.py scan pending --verbose
  python run.py ingest push --file events.json
  python run.py serve api --port 8000
  python run.py health check --test

"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            self.parser.parse_args([args.command, '--help'])
            return 1

        command = get_command(args.command)
        return command.execute(subcommand, args)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Loads .env on construction; a bad configuration surfaces in the command itself
    manager = get_config_manager()
    try:
        manager.update_logging()
    except ValueError as e:
        logger.warning(f"Using default logging: {e}")

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
