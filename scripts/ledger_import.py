#!/usr/bin/env python3
"""
Import Tally XML and Vyapar spreadsheets into the ledger.

Usage:
    python3 scripts/ledger_import.py [--db-url URL] <command> [options]

Commands:
    init-db                          Create all tables.
    tally FILE                       Import a Tally masters or vouchers XML export.
    stage FILE --type TYPE           Stage a spreadsheet (customers|products|invoices).
    sync IMPORT_ID                   Apply a staged spreadsheet to the ledger.
    status                           Show the import lock and masters flags.
    history [--limit N] [--tally]    List recent staged (or Tally) imports.

Examples:
    python3 scripts/ledger_import.py init-db
    python3 scripts/ledger_import.py tally masters.xml
    python3 scripts/ledger_import.py tally daybook.xml
    python3 scripts/ledger_import.py stage parties.xlsx --type customers
    python3 scripts/ledger_import.py sync 0b6f...

The database URL defaults to $DATABASE_URL, then a local SQLite file.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

DB_URL = "sqlite:///ledger_sync.db"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tally / Vyapar import into the canonical ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DATABASE_URL", DB_URL),
        help=f"Database URL (default: $DATABASE_URL or {DB_URL!r}).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Ingestion config YAML (default: $LEDGER_SYNC_CONFIG or bundled defaults).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables.")

    tally = sub.add_parser("tally", help="Import a Tally XML export.")
    tally.add_argument("file", type=Path)

    stage = sub.add_parser("stage", help="Stage a spreadsheet for review.")
    stage.add_argument("file", type=Path)
    stage.add_argument("--type", dest="import_type", default=None, help="customers, products or invoices (default: invoices).")

    sync = sub.add_parser("sync", help="Apply a staged spreadsheet.")
    sync.add_argument("import_id")

    sub.add_parser("status", help="Show import flags.")

    history = sub.add_parser("history", help="List recent imports.")
    history.add_argument("--limit", type=int, default=None)
    history.add_argument("--tally", action="store_true", help="List Tally imports (audit log) instead of staged uploads.")

    return parser.parse_args(argv)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from ledger_config import get_active_config
    from ledger_ingestion.domain.types import error_response
    from ledger_ingestion.services import (
        AuditLog,
        ImportLock,
        StagedImportService,
        TallyImportService,
    )
    from ledger_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from ledger_kernel.exceptions import LedgerSyncError

    try:
        config = get_active_config(args.config)
    except Exception as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    try:
        init_engine_from_url(args.db_url)
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    factory = get_session_factory()

    if args.command == "init-db":
        create_tables()
        print("Tables created.")
        return 0

    try:
        if args.command == "tally":
            result = TallyImportService(factory, config=config).import_file(args.file)
            _print_json(result.to_response())
        elif args.command == "stage":
            result = StagedImportService(factory, config=config).upload(
                args.file, import_type=args.import_type
            )
            _print_json(result.to_response())
        elif args.command == "sync":
            result = StagedImportService(factory, config=config).sync(args.import_id)
            if result is None:
                print("Import already processed; nothing to do.")
            else:
                _print_json(result.to_response())
        elif args.command == "status":
            lock = ImportLock(factory)
            _print_json({
                "isImporting": lock.is_importing(),
                "firstImportDone": lock.is_masters_done(),
            })
        elif args.command == "history":
            limit = args.limit or config.history_limit
            if args.tally:
                for entry in AuditLog(factory).recent(limit):
                    print(
                        f"{entry.created_at}  {entry.session_id}  {entry.import_type.value:<7} "
                        f"{entry.status.value:<7} {entry.processed_rows}/{entry.total_rows}"
                        + (f"  {entry.error_summary}" if entry.error_summary else "")
                    )
            else:
                imports = StagedImportService(factory, config=config).list_recent(limit)
                _print_json([i.to_response() for i in imports])
    except LedgerSyncError as e:
        _print_json(error_response(e))
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
