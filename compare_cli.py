#!/usr/bin/env python3
"""
CLI Interface for the Multi-Source Property Reconciliation Engine

Provides commands for:
- Listing configured sources and their field mappings
- Comparing a single property across sources
- Auditing a batch of properties for discrepancies

Usage:
    python compare_cli.py sources
    python compare_cli.py compare --property-file property.json
    python compare_cli.py compare --property-id 1234 --store
    python compare_cli.py audit --agency KNAM --limit 50 --store
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from supabase import create_client, Client

from config.comparison_config import get_config
from services.comparison_models import Property, PropertyComparison
from services.comparison_orchestrator import ComparisonOrchestrator
from services.comparison_store import ComparisonStore

logger = logging.getLogger(__name__)


STATUS_BADGES = {
    'connected': '✅ Connected',
    'error': '❌ Error',
    'loading': '🔄 Loading',
    'not_configured': '⚪ Not configured',
}


def configure_logging() -> None:
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(config.log_file)
        ]
    )


def get_supabase_client() -> Client:
    """Create and return a Supabase client."""
    url = os.getenv('SUPABASE_URL')
    # Support both SUPABASE_KEY and SUPABASE_ANON_KEY for compatibility
    key = os.getenv('SUPABASE_KEY') or os.getenv('SUPABASE_ANON_KEY')

    if not url or not key:
        print("Error: SUPABASE_URL and SUPABASE_ANON_KEY environment variables required")
        sys.exit(1)

    return create_client(url, key)


def load_property_file(path: str) -> Property:
    with open(path, 'r', encoding='utf-8') as f:
        return Property.from_dict(json.load(f))


def print_comparison(comparison: PropertyComparison) -> None:
    """Print a human-readable comparison summary."""
    reference = comparison.property

    print("\n" + "=" * 70)
    print(f"PROPERTY {reference.id}: {reference.title or reference.address or ''}")
    print("=" * 70)

    print("\nSources:")
    for source in comparison.sources:
        badge = STATUS_BADGES.get(source.status, source.status)
        detail = f" - {source.error_message}" if source.error_message else ""
        print(f"  {source.icon} {source.display_name:<12} {badge}{detail}")

    source_names = [s.name for s in comparison.sources]
    header = f"{'Field':<16}" + "".join(f"{name:<20}" for name in source_names) + "Conf."
    print("\n" + "-" * len(header))
    print(header)
    print("-" * len(header))
    for field in comparison.fields:
        marker = '⚠️ ' if field.significant_difference else ('• ' if field.has_differences else '  ')
        values = "".join(f"{field.display_values[name][:18]:<20}" for name in source_names)
        print(f"{marker}{field.label:<14}{values}{field.confidence_score}%")
    print("-" * len(header))

    print(f"\nOverall consistency: {comparison.overall_consistency}%")

    if comparison.critical_issues:
        print("\nCritical issues:")
        for issue in comparison.critical_issues:
            print(f"  🚨 {issue}")

    if comparison.suggestions:
        print("\nSuggestions:")
        for suggestion in comparison.suggestions:
            print(f"  - {suggestion}")

    print()


async def cmd_sources(args):
    """List configured sources and their canonical field mappings."""
    config = get_config()

    print("\n" + "=" * 60)
    print("CONFIGURED SOURCES")
    print("=" * 60)

    for source in config.sources:
        role = 'primary' if source.primary else ('enabled' if source.enabled else 'disabled')
        print(f"\n{source.icon} {source.display_name} ({source.name}, {role})")
        print(f"  Endpoint: {source.endpoint or 'per agency'}")
        print(f"  Timeout: {source.timeout_seconds}s")
        for spec in config.fields:
            native = source.field_map.get(spec.key, '-')
            print(f"    {spec.key:<12} -> {native}")

    print("\nCanonical fields:")
    for spec in config.fields:
        print(f"  {spec.key:<12} {spec.type:<10} weight {spec.weight}")
    print()


async def cmd_compare(args):
    """Compare a single property across all sources."""
    store: Optional[ComparisonStore] = None

    if args.property_file:
        reference = load_property_file(args.property_file)
    else:
        store = ComparisonStore(get_supabase_client())
        reference = store.get_property(args.property_id)
        if reference is None:
            print(f"Error: property {args.property_id} not found")
            sys.exit(1)

    orchestrator = ComparisonOrchestrator()

    try:
        comparison = await orchestrator.compare_property_across_sources(reference)
    except Exception as e:
        print(f"\nError comparing property {reference.id}: {e}")
        logger.exception("Comparison error")
        sys.exit(1)

    if args.json:
        print(json.dumps(comparison.to_dict(), indent=2, default=str))
    else:
        print_comparison(comparison)

    if args.store:
        store = store or ComparisonStore(get_supabase_client())
        stored = store.save_comparison(comparison)
        print("Stored comparison" if stored else "Failed to store comparison")


async def cmd_audit(args):
    """Compare a batch of properties and summarise discrepancies."""
    store = ComparisonStore(get_supabase_client())
    properties = store.load_properties(agency_id=args.agency, limit=args.limit)

    if not properties:
        print("No properties to audit")
        return

    print("\n" + "=" * 60)
    print(f"AUDITING {len(properties)} PROPERTIES")
    print("=" * 60)
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    orchestrator = ComparisonOrchestrator()
    comparisons = await orchestrator.batch_compare(properties, max_concurrent=args.concurrency)

    comparisons.sort(key=lambda c: c.overall_consistency)

    print("\n" + "-" * 60)
    print(f"{'Property':<12} {'Consistency':<13} {'Issues':<8} Title")
    print("-" * 60)
    for comparison in comparisons:
        reference = comparison.property
        title = (reference.title or reference.address or '')[:30]
        print(f"{str(reference.id):<12} {comparison.overall_consistency:>9}%    "
              f"{len(comparison.critical_issues):<8} {title}")
    print("-" * 60)

    with_issues = len([c for c in comparisons if c.critical_issues])
    print(f"\nCompared: {len(comparisons)}/{len(properties)}")
    print(f"With critical issues: {with_issues}")

    if args.store:
        stored = len([c for c in comparisons if store.save_comparison(c)])
        print(f"Stored: {stored}")

    print()


def main():
    """Main entry point for the CLI."""
    load_dotenv()
    configure_logging()

    parser = argparse.ArgumentParser(
        description='Multi-Source Property Reconciliation CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sources                              List sources and field mappings
  %(prog)s compare --property-file prop.json    Compare a property from a JSON file
  %(prog)s compare --property-id 1234 --store   Compare a stored property and record the result
  %(prog)s audit --agency KNAM --limit 50       Audit an agency's latest 50 properties
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Sources command
    sources_parser = subparsers.add_parser('sources', help='List configured sources')
    sources_parser.set_defaults(func=cmd_sources)

    # Compare command
    compare_parser = subparsers.add_parser('compare', help='Compare one property across sources')
    target = compare_parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--property-file', help='JSON file with the reference property')
    target.add_argument('--property-id', help='Property id to load from the database')
    compare_parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
    compare_parser.add_argument('--store', action='store_true', help='Store the comparison summary')
    compare_parser.set_defaults(func=cmd_compare)

    # Audit command
    audit_parser = subparsers.add_parser('audit', help='Compare a batch of stored properties')
    audit_parser.add_argument('--agency', help='Only audit properties of this agency')
    audit_parser.add_argument('--limit', type=int, default=50, help='Number of properties to audit')
    audit_parser.add_argument('--concurrency', type=int, default=None, help='Concurrent comparisons')
    audit_parser.add_argument('--store', action='store_true', help='Store every comparison summary')
    audit_parser.set_defaults(func=cmd_audit)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    # Run the async command
    asyncio.run(args.func(args))


if __name__ == '__main__':
    main()
