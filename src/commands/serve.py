#!/usr/bin/env python3
"""
Serve command for running the HTTP API under uvicorn.
"""

from argparse import Namespace

import uvicorn

from .base import BaseCommand


class ServeCommand(BaseCommand):
    """Run the HTTP API."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute serve subcommand."""
        try:
            if subcommand == "api":
                return self.api(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"serve {subcommand}")

    def api(self, args: Namespace) -> int:
        """Start uvicorn; blocks until shutdown."""
        # Fail before binding when configuration is invalid
        config = self.config
        self.logger.info(f"Starting API on {args.host}:{args.port} (storage: {config.database.backend})")

        uvicorn.run(
            "api.app:app",
            host=args.host,
            port=args.port,
            log_level=config.app.log_level.lower(),
        )
        return 0
