# etcd2s3/cli/main.py
"""
etcd2s3 command line interface.

Usage:
    etcd2s3 list --format json
    etcd2s3 cleanup --dry-run
    etcd2s3 snapshot /tmp/etcd.db --compression zstd
    etcd2s3 restore etcd-snapshot-20240106-153000.db
    python -m etcd2s3 version
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from etcd2s3 import __version__
from etcd2s3.config import Settings, get_settings
from etcd2s3.errors import Etcd2S3Error
from etcd2s3.logging_config import configure_logging, log_command
from etcd2s3.retention.names import CompressionAlgorithm
from etcd2s3.services.listing_service import OUTPUT_FORMATS

# CLI flag -> settings field
_OVERRIDES = {
    "snapshot_dir": "SNAPSHOT_DIR",
    "bucket": "S3_BUCKET",
    "prefix": "S3_PREFIX",
    "region": "S3_REGION",
    "endpoint_url": "S3_ENDPOINT_URL",
    "keep_last": "POLICY_KEEP_LAST",
    "keep_hours": "POLICY_KEEP_LAST_HOURS",
    "keep_days": "POLICY_KEEP_LAST_DAYS",
    "keep_weeks": "POLICY_KEEP_LAST_WEEKS",
    "keep_months": "POLICY_KEEP_LAST_MONTHS",
    "keep_years": "POLICY_KEEP_LAST_YEARS",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
}


def resolve_settings(args) -> Settings:
    """Environment settings with CLI flags layered on top."""
    update = {}
    for flag, field_name in _OVERRIDES.items():
        value = getattr(args, flag, None)
        if value is not None:
            update[field_name] = value
    settings = get_settings()
    if update:
        # Re-validate so flags go through the same checks as env vars
        settings = Settings.model_validate({**settings.model_dump(), **update})
    return settings


def _stores(settings: Settings):
    from etcd2s3.storage import build_local_store, build_remote_store

    return build_local_store(settings), build_remote_store(settings)


def _print_store(label: str, outcome) -> None:
    if outcome is None:
        return
    print(f"{label}: {outcome.kept} kept, {outcome.deleted} deleted, {outcome.failed} failed")
    for name in outcome.deleted_names:
        print(f"  - {name}")


def cmd_list(args, settings: Settings):
    """List snapshots with their retention status."""
    from etcd2s3.services.listing_service import list_snapshots, render

    local_store, remote_store = _stores(settings)
    rows = list_snapshots(
        local_store,
        remote_store,
        settings.retention_policy(),
        unified=not args.separate,
        include_local=not args.remote,
        include_remote=not args.local,
    )
    print(render(rows, args.format))


def cmd_cleanup(args, settings: Settings):
    """Apply retention policies."""
    from etcd2s3.services.cleanup_service import apply_retention

    local_store, remote_store = _stores(settings)
    print(f"\n{'DRY RUN - ' if args.dry_run else ''}Applying retention ({settings.retention_policy().describe()})...\n")

    result = apply_retention(
        local_store,
        remote_store,
        settings.retention_policy(),
        unified=not args.separate,
        include_local=not args.remote,
        include_remote=not args.local,
        dry_run=args.dry_run,
    )

    _print_store("Local", result.local)
    _print_store("Remote", result.remote)

    if result.errors:
        print("\nErrors:")
        for error in result.errors:
            print(f"  - {error}")

    if not result.success:
        sys.exit(1)


def cmd_snapshot(args, settings: Settings):
    """Store, compress, upload and prune a snapshot file."""
    from etcd2s3.services.snapshot_service import publish_snapshot

    local_store, remote_store = _stores(settings)
    algorithm = CompressionAlgorithm.parse(args.compression) if args.compression else settings.compression_algorithm()

    result = publish_snapshot(
        Path(args.source),
        local_store,
        remote_store,
        settings.retention_policy(),
        algorithm=algorithm,
        name=args.name,
        upload=not args.no_upload,
        remove_local=args.remove_local or settings.POLICY_REMOVE_LOCAL,
        apply_retention_after=not args.no_retention,
        unified=not args.separate,
    )

    print(f"Snapshot: {result.name}")
    if result.local_path:
        print(f"  Local: {result.local_path}")
    if result.uploaded:
        print(f"  Uploaded: {remote_store.describe()}/{result.name}")
    if result.catch_up_uploaded:
        print(f"  Catch-up uploads: {', '.join(result.catch_up_uploaded)}")
    if result.catch_up_skipped:
        print("  Catch-up skipped: remote listing unavailable")

    if result.errors:
        print("\nWarnings:")
        for error in result.errors:
            print(f"  - {error}")

    if not result.success:
        sys.exit(1)


def cmd_restore(args, settings: Settings):
    """Fetch and decompress a snapshot for etcdutl restore."""
    from etcd2s3.services.restore_service import fetch_snapshot

    _, remote_store = _stores(settings)
    output_dir = Path(args.output_dir or settings.SNAPSHOT_DIR)
    path = fetch_snapshot(args.source, remote_store, output_dir, default=settings.compression_algorithm())
    print(path)


def cmd_version(args, settings: Settings):
    """Show version."""
    print(f"etcd2s3 {__version__}")


def _add_scope_flags(parser: argparse.ArgumentParser, verb: str) -> None:
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--local", action="store_true", help=f"{verb} local snapshots only")
    scope.add_argument("--remote", action="store_true", help=f"{verb} remote snapshots only")
    parser.add_argument(
        "--separate",
        action="store_true",
        help="Evaluate each store on its own instead of one unified verdict",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="etcd2s3",
        description="etcd snapshot retention and S3 replication",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show every snapshot and whether the policy keeps it
  etcd2s3 list

  # Preview a cleanup of both stores
  etcd2s3 cleanup --dry-run

  # Publish a snapshot taken with etcdctl snapshot save
  etcd2s3 snapshot /tmp/etcd.db

  # Fetch a snapshot for etcdutl snapshot restore
  etcd2s3 restore s3://backups/etcd/etcd-snapshot-20240106-153000.db.zst
        """,
    )

    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--log-format", choices=["console", "json"], help="Log format (default: LOG_FORMAT or console)")
    parser.add_argument("--snapshot-dir", help="Local snapshot directory (default: SNAPSHOT_DIR)")
    parser.add_argument("--bucket", help="S3 bucket (default: S3_BUCKET)")
    parser.add_argument("--prefix", help="S3 key prefix (default: S3_PREFIX)")
    parser.add_argument("--region", help="S3 region (default: S3_REGION)")
    parser.add_argument("--endpoint-url", help="S3-compatible endpoint (default: S3_ENDPOINT_URL)")
    parser.add_argument("--keep-last", type=int, help="Keep the N newest snapshots")
    parser.add_argument("--keep-hours", type=int, help="Keep snapshots younger than N hours")
    parser.add_argument("--keep-days", type=int, help="Keep snapshots younger than N days")
    parser.add_argument("--keep-weeks", type=int, help="Keep snapshots younger than N weeks")
    parser.add_argument("--keep-months", type=int, help="Keep snapshots younger than N months (30 days)")
    parser.add_argument("--keep-years", type=int, help="Keep snapshots younger than N years (365 days)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # list command
    list_parser = subparsers.add_parser("list", help="List snapshots")
    _add_scope_flags(list_parser, "List")
    list_parser.add_argument("--format", choices=OUTPUT_FORMATS, default="table", help="Output format (default: table)")
    list_parser.set_defaults(func=cmd_list)

    # cleanup command
    cleanup_parser = subparsers.add_parser("cleanup", help="Apply retention policies")
    _add_scope_flags(cleanup_parser, "Clean")
    cleanup_parser.add_argument("--dry-run", action="store_true", help="Preview only, don't delete")
    cleanup_parser.set_defaults(func=cmd_cleanup)

    # snapshot command
    snapshot_parser = subparsers.add_parser("snapshot", help="Publish a raw snapshot file")
    snapshot_parser.add_argument("source", help="Raw snapshot file produced by etcdctl snapshot save")
    snapshot_parser.add_argument("--name", help="Custom snapshot name (.db is appended if missing)")
    snapshot_parser.add_argument("--no-upload", action="store_true", help="Keep the snapshot local only")
    snapshot_parser.add_argument("--remove-local", action="store_true", help="Remove local copy after upload")
    snapshot_parser.add_argument("--no-retention", action="store_true", help="Skip retention after publishing")
    snapshot_parser.add_argument(
        "--separate",
        action="store_true",
        help="Evaluate each store on its own instead of one unified verdict",
    )
    snapshot_parser.add_argument(
        "--compression",
        choices=[a.value for a in CompressionAlgorithm],
        help="Compression algorithm (default: COMPRESSION or zstd)",
    )
    snapshot_parser.set_defaults(func=cmd_snapshot)

    # restore command
    restore_parser = subparsers.add_parser("restore", help="Fetch a snapshot as a raw .db file")
    restore_parser.add_argument("source", help="s3:// URL, local path, or snapshot name")
    restore_parser.add_argument("--output-dir", help="Directory for the restored file (default: SNAPSHOT_DIR)")
    restore_parser.set_defaults(func=cmd_restore)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None):
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = resolve_settings(args)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(json_format=settings.LOG_FORMAT == "json", level=settings.LOG_LEVEL)

    try:
        with log_command(args.command):
            args.func(args, settings)
    except Etcd2S3Error as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
