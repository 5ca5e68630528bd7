#!/usr/bin/env python3
"""
Scan command.

Runs event scans from the command line and inspects the stored rows a
scan without inline data would pick up.
"""

import logging
from argparse import Namespace
from collections import Counter
from typing import Any, Dict

from .base import BaseCommand
from core.exceptions import RequestValidationError

logger = logging.getLogger(__name__)


class ScanCommand(BaseCommand):
    """Run event scans and inspect pending stored feeds."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute scan subcommand."""
        try:
            if subcommand == "run":
                return self.run(args)
            elif subcommand == "pending":
                return self.pending(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"scan {subcommand}")

    def _build_body(self, args: Namespace) -> Dict[str, Any]:
        body: Dict[str, Any] = {}

        if getattr(args, 'raw_file', None):
            loaded = self.load_json_file(args.raw_file)
            if isinstance(loaded, list):
                body['raw_data'] = loaded
            elif isinstance(loaded, dict):
                body.update(loaded)
            else:
                raise RequestValidationError(f"{args.raw_file} must hold a JSON array or object")

        date_range = dict(body.get('date_range') or {})
        if getattr(args, 'start', None):
            date_range['start_date'] = args.start
        if getattr(args, 'end', None):
            date_range['end_date'] = args.end
        if date_range:
            body['date_range'] = date_range

        return body

    def run(self, args: Namespace) -> int:
        """Run one scan over a payload file or the stored rows."""
        service = self.create_scan_service()
        result = service.scan_request(self._build_body(args))

        if getattr(args, 'json', False):
            self.print_json(result.to_dict())
            return 0 if result.success else 1

        print("🔎 Event Scan")
        print("=" * 50)
        print(f"📅 Window: {result.window} ({result.window.duration_days} days)")
        print(f"📡 Data source: {result.data_source} ({result.raw_sources_processed} sources)")
        print(f"📰 Events extracted: {result.events_extracted}")
        print(f"🛡️  After gatekeeper: {result.events_after_gatekeeper} "
              f"({result.competitor_events_filtered} filtered, {result.gatekeeper_status})")
        print(f"⭐ Final events: {result.events_final} ({result.enrichment_status})")

        for event in result.events:
            print(f"   • {event.event_name} ({event.event_date.isoformat()}, "
                  f"{event.relevance_score}/10, {event.source_name})")
            if event.event_url:
                print(f"     {event.event_url}")

        print(f"🏷️  Tenants: {result.tenants_processed}")
        print(f"📝 Briefs created: {result.briefs_created} (failed: {result.briefs_failed})")
        print(f"\n{result.message}")
        return 0 if result.success else 1

    def pending(self, args: Namespace) -> int:
        """Show stored rows not yet processed by a scan."""
        rows = self.storage.raw_events.list_unprocessed(limit=args.limit)

        print(f"📦 Unprocessed raw events: {len(rows)}")
        if not rows:
            return 0

        by_source = Counter(row.source_name or row.source_url for row in rows)
        for source_name, count in by_source.most_common():
            print(f"  📋 {source_name}: {count}")

        if args.verbose:
            for row in rows:
                created = row.created_at.isoformat() if row.created_at else "unknown"
                print(f"  - {row.id} {created} {row.source_url} ({row.content_length} chars)")
        return 0
