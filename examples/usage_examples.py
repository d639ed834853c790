#!/usr/bin/env python3
"""
Example script showing how to use the recent-changes tool.
"""

from pathlib import Path

from recent_changes.analyzer import RecentChangesAnalyzer
from recent_changes.manifest import build_package_xml
from recent_changes.reporting import group_changes
from recent_changes.salesforce import SalesforceConnection


def example_basic_run():
    """Example: Last 15 days of changes to the default types."""
    print("="*60)
    print("Example 1: Basic Run")
    print("="*60)

    connection = SalesforceConnection.from_org("my-org")
    analyzer = RecentChangesAnalyzer(
        connection,
        days=15,
        output_dir=Path("./output/example1")
    )

    records = analyzer.run()
    print(f"\nChanged components: {len(records)}")


def example_created_by_me():
    """Example: Components I created this week, across every type."""
    print("\n" + "="*60)
    print("Example 2: Created By Me")
    print("="*60)

    connection = SalesforceConnection.from_org("my-org")
    analyzer = RecentChangesAnalyzer(
        connection,
        days=7,
        created=True,
        types="all",
        mine=True,
    )

    result = analyzer.analyze()

    print(f"Filtering for: {result.author or 'everyone'}")
    for type_name, table in group_changes(result.records, result.mode).items():
        print(f"{type_name}: {len(table)}")


def example_manifest_only():
    """Example: Build the package.xml text without writing it."""
    print("\n" + "="*60)
    print("Example 3: Manifest Only")
    print("="*60)

    connection = SalesforceConnection.from_env()
    analyzer = RecentChangesAnalyzer(
        connection,
        days=30,
        types="ApexClass, ApexTrigger, LightningComponentBundle",
        show_progress=False,
    )

    result = analyzer.analyze()
    print(build_package_xml(result.manifest, result.api_version))


if __name__ == "__main__":
    print("Recent Changes - Usage Examples")
    print("="*60)
    print("\nNote: These examples need an org authorized with the sf CLI.\n")

    # Uncomment to run examples:
    # example_basic_run()
    # example_created_by_me()
    # example_manifest_only()

    print("\nTo run examples, uncomment the function calls in this script.")
