#!/usr/bin/env python3
"""
Spixi Directory CLI

Command-line interface for regenerating and browsing the app catalog.
"""

import argparse
import logging
import sys
from pathlib import Path

from common.exceptions import ConfigError, SiteError
from common.logging_config import LogContext, setup_logging
from site_builder.browse import CatalogView
from site_builder.catalog import Catalog, CatalogStore
from site_builder.config import BuildConfig
from site_builder.pipeline import RegenerationPipeline

logger = logging.getLogger(__name__)


def load_config(args) -> BuildConfig:
    """Build the config from --config and command-line overrides."""
    config = BuildConfig.load(args.config) if args.config else BuildConfig()
    return config.with_overrides(
        catalog_path=getattr(args, "catalog", None),
        html_path=getattr(args, "html", None),
        workers=getattr(args, "workers", None),
        timeout=getattr(args, "timeout", None),
        check_icons=False if getattr(args, "no_icon_check", False) else None,
    )


def get_catalog(config: BuildConfig) -> Catalog:
    """Load the local catalog or exit."""
    try:
        catalog = CatalogStore(config.catalog_path).read()
    except SiteError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    if catalog is None:
        print(f"Error: catalog not found: {config.catalog_path}", file=sys.stderr)
        sys.exit(1)
    return catalog


def cmd_update(args, config: BuildConfig) -> int:
    """Regenerate the catalog and page from upstream."""
    pipeline = RegenerationPipeline(config)

    with LogContext(repo=f"{config.owner}/{config.repo}", branch=config.branch):
        try:
            summary = pipeline.run(dry_run=args.dry_run)
        except OSError as e:
            logger.error(f"Failed to write site artifacts: {e}")
            return 1

    for line in summary.lines():
        print(line)
    return 0 if summary.success else 1


def cmd_list(args, config: BuildConfig) -> int:
    """List apps as the directory page would show them."""
    view = CatalogView(
        get_catalog(config),
        initial_page_size=args.limit or config.initial_page_size,
        page_increment=config.page_increment,
    )
    if args.category:
        if args.category not in view.categories:
            print(f"Unknown category: {args.category}", file=sys.stderr)
            print(f"Valid categories: {', '.join(view.categories)}")
            return 1
        view.filter_by_category(args.category)
    if args.query:
        view.search(args.query)

    matches = view.matches()
    if not matches:
        print(f"No apps found for: {args.query or '(all)'}")
        return 0

    print(f"Found {len(matches)} app(s):\n")
    for app in view.visible():
        star = " *" if app.featured else ""
        print(f"  {app.id}{star}")
        print(f"    {app.name} v{app.version} by {app.publisher} [{app.category}]")
        if app.description:
            print(f"    {app.description[:80]}")
        print()

    if view.has_more:
        print(f"  ... and {len(matches) - len(view.visible())} more (use --limit)")
    return 0


def cmd_show(args, config: BuildConfig) -> int:
    """Show one app record."""
    app = CatalogView(get_catalog(config)).get(args.app_id)
    if not app:
        print(f"App not found: {args.app_id}", file=sys.stderr)
        return 1

    print(f"{app.name} ({app.id})")
    print(f"  Publisher:   {app.publisher}")
    print(f"  Version:     {app.version}")
    print(f"  Category:    {app.category}")
    print(f"  Featured:    {'yes' if app.featured else 'no'}")
    print(f"  Description: {app.description}")
    print(f"  Open:        {app.spixi_url}")
    print(f"  Source:      {app.github}")
    if app.website:
        print(f"  Website:     {app.website}")
    if app.capabilities:
        print(f"  Modes:       {', '.join(app.capabilities)}")
    return 0


def cmd_categories(args, config: BuildConfig) -> int:
    """Print the category set."""
    catalog = get_catalog(config)
    for category in catalog.categories:
        count = len(catalog.apps) if category == "All" else sum(
            1 for app in catalog.apps if app.category == category
        )
        print(f"  {category} ({count})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spixi-directory",
        description="Spixi Mini Apps Directory site builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  spixi-directory update                  # Regenerate data/apps.json and index.html
  spixi-directory update --dry-run        # Report what would change
  spixi-directory list --category Games   # Browse the local catalog
  spixi-directory show chess              # Show one app
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-c", "--config", type=Path, help="JSON configuration file")
    parser.add_argument("--log-file", type=Path, help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true", help="Write the log file as JSON lines")
    parser.add_argument("--catalog", type=Path, help="Path to apps.json")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    update_parser = subparsers.add_parser("update", help="Regenerate catalog and page")
    update_parser.add_argument("--dry-run", action="store_true", help="Do not write any files")
    update_parser.add_argument("--html", type=Path, help="Path to index.html")
    update_parser.add_argument("--workers", type=int, help="Concurrent manifest fetches")
    update_parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    update_parser.add_argument("--no-icon-check", action="store_true",
                               help="Skip icon existence checks")
    update_parser.set_defaults(func=cmd_update)

    list_parser = subparsers.add_parser("list", help="List apps")
    list_parser.add_argument("-q", "--query", help="Search name, description and publisher")
    list_parser.add_argument("--category", help="Filter by category")
    list_parser.add_argument("--limit", type=int, help="Number of apps to show")
    list_parser.set_defaults(func=cmd_list)

    show_parser = subparsers.add_parser("show", help="Show app details")
    show_parser.add_argument("app_id", help="App ID")
    show_parser.set_defaults(func=cmd_show)

    categories_parser = subparsers.add_parser("categories", help="List categories")
    categories_parser.set_defaults(func=cmd_categories)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=level, log_file=args.log_file, json_logs=args.json_logs)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
