#!/usr/bin/env python3
"""
Ingest command for pushing scraped events from a JSON file.
"""

from argparse import Namespace

from .base import BaseCommand


class IngestCommand(BaseCommand):
    """Store scraped events for later scans."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute ingest subcommand."""
        try:
            if subcommand == "push":
                return self.push(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"ingest {subcommand}")

    def push(self, args: Namespace) -> int:
        """Ingest ``{"events": [...]}`` (or a bare array) from a file."""
        loaded = self.load_json_file(args.file)
        events = loaded.get('events') if isinstance(loaded, dict) else loaded

        result = self.create_ingestion_service().ingest(events)

        if getattr(args, 'json', False):
            self.print_json(result.to_dict())
        else:
            print("📥 Event Ingestion")
            print("=" * 50)
            print(f"📨 Received: {result.events_received}")
            print(f"✅ Stored: {result.events_processed}")
            print(f"⏭️  Skipped: {result.events_skipped}")
            print(f"📦 Batches: {result.batches_processed} ok, {result.batches_failed} failed")
            if result.sources_summary:
                print(f"📡 Sources: {', '.join(result.sources_summary)}")
            print(f"\n{result.message}")

        return 0 if result.success else 1
