#!/usr/bin/env python3
"""
StockLedger management CLI.

Usage:
    python manage.py migrate                     Apply pending database migrations
    python manage.py status                      Show migration status and schema checks
    python manage.py serve                       Start the API server
    python manage.py generate-alerts             Raise reorder alerts for low stock
    python manage.py import-adjustments FILE     Apply a bulk adjustment CSV
    python manage.py export-valuation            Write the valuation CSV
    python manage.py export-transactions         Write the transaction ledger CSV
    python manage.py reconcile PRODUCT_ID        Check stock against the ledger
"""

import argparse
import asyncio
import subprocess
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path

from stockledger.config import bind_context, configure_logging, get_settings
from stockledger.core.exceptions import StockLedgerError

ROOT_DIR = Path(__file__).resolve().parent


def _run(factory: Callable[[], Awaitable[int]]) -> None:
    """Run an async command against the database and exit with its code."""

    async def wrapper() -> int:
        from stockledger.infrastructure.storage.sqlite import close_pool
        from stockledger.infrastructure.storage.sqlite.migrations import run_migrations

        try:
            await run_migrations(create_backup_before=False)
            return await factory()
        except StockLedgerError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1
        finally:
            await close_pool()

    sys.exit(asyncio.run(wrapper()))


def _write_output(content: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(content)
        return
    output.write_text(content, encoding="utf-8")
    print(f"Wrote {output}")


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO date: {value}") from None


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

    results = asyncio.run(initialize_database(create_backup_before=not args.no_backup))
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "SUCCESS" if result.success else "FAILED"
        print(f"[{state}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    if any(not r.success for r in results):
        sys.exit(1)


def cmd_status(args: argparse.Namespace) -> None:
    """Show migration status and integrity checks."""
    from stockledger.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        verify_schema_integrity,
    )

    settings = get_settings()
    status = asyncio.run(get_migration_status())
    print(f"Database:           {settings.storage.db_path}")
    print(f"Exists:             {status['exists']}")
    print(f"Current version:    {status.get('current_version') or 'N/A'}")
    print(f"Applied migrations: {status.get('applied_migrations', [])}")
    print(f"Pending migrations: {status.get('pending_migrations', [])}")

    if status["exists"]:
        for check in asyncio.run(verify_schema_integrity()):
            print(f"[{check['status']}] {check['check']}")


def cmd_serve(args: argparse.Namespace) -> None:
    """Start uvicorn in the foreground."""
    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port

    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "stockledger.api.main:app",
        "--host", host,
        "--port", str(port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")

    print(f"Starting server on {host}:{port}...")
    try:
        subprocess.run(uvicorn_cmd, cwd=str(ROOT_DIR), check=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")


def cmd_generate_alerts(args: argparse.Namespace) -> None:
    async def run() -> int:
        from stockledger.application.services import get_reorder_analytics_service

        service = await get_reorder_analytics_service()
        alerts = await service.generate_alerts()
        print(f"Created {len(alerts)} alert(s).")
        for alert in alerts:
            print(
                f"  [{alert.priority.value.upper():8}] {alert.product_id}: "
                f"stock {alert.current_stock} / reorder point {alert.reorder_point} "
                f"- {alert.recommended_action}"
            )
        return 0

    _run(run)


def cmd_import_adjustments(args: argparse.Namespace) -> None:
    async def run() -> int:
        from stockledger.application.services import get_bulk_adjustment_service

        content = args.file.read_text(encoding="utf-8-sig")
        service = await get_bulk_adjustment_service()
        result = await service.process_bulk_adjustments(content, args.actor)
        print(
            f"Rows: {result.total}  applied: {result.successful}  "
            f"failed: {result.failed}"
        )
        for error in result.errors:
            print(f"  row {error.row} ({error.product_id or '-'}): {error.error}")
        return 1 if result.failed else 0

    _run(run)


def cmd_export_valuation(args: argparse.Namespace) -> None:
    async def run() -> int:
        from stockledger.application.services import get_bulk_adjustment_service

        service = await get_bulk_adjustment_service()
        _write_output(await service.export_valuation_csv(), args.output)
        return 0

    _run(run)


def cmd_export_transactions(args: argparse.Namespace) -> None:
    async def run() -> int:
        from stockledger.application.services import get_bulk_adjustment_service

        service = await get_bulk_adjustment_service()
        content = await service.export_transactions_csv(start=args.start, end=args.end)
        _write_output(content, args.output)
        return 0

    _run(run)


def cmd_reconcile(args: argparse.Namespace) -> None:
    async def run() -> int:
        from stockledger.application.services import get_ledger_service

        service = await get_ledger_service()
        if args.repair:
            status = await service.repair(args.product_id, args.actor)
        else:
            status = await service.reconcile(args.product_id)

        print(f"Product:        {status.product_id}")
        print(f"Initial stock:  {status.initial_stock}")
        print(f"Ledger total:   {status.ledger_total}")
        print(f"Current stock:  {status.current_stock}")
        print(f"Drift:          {status.drift}")
        print(f"Flagged:        {status.needs_reconciliation}")
        return 0 if status.is_balanced else 2

    _run(run)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="StockLedger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.set_defaults(func=cmd_status)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None, help="Bind host (default from settings)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default from settings)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # generate-alerts
    p_alerts = sub.add_parser("generate-alerts", help="Raise reorder alerts")
    p_alerts.set_defaults(func=cmd_generate_alerts)

    # import-adjustments
    p_import = sub.add_parser("import-adjustments", help="Apply a bulk adjustment CSV")
    p_import.add_argument("file", type=Path, help="CSV file with a header row")
    p_import.add_argument("--actor", default="cli", help="Actor recorded on transactions (default: cli)")
    p_import.set_defaults(func=cmd_import_adjustments)

    # export-valuation
    p_val = sub.add_parser("export-valuation", help="Write the valuation CSV")
    p_val.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
    p_val.set_defaults(func=cmd_export_valuation)

    # export-transactions
    p_tx = sub.add_parser("export-transactions", help="Write the transaction ledger CSV")
    p_tx.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
    p_tx.add_argument("--start", type=_parse_date, default=None, help="ISO start date")
    p_tx.add_argument("--end", type=_parse_date, default=None, help="ISO end date")
    p_tx.set_defaults(func=cmd_export_transactions)

    # reconcile
    p_rec = sub.add_parser("reconcile", help="Check stock against the ledger")
    p_rec.add_argument("product_id", help="Product to check")
    p_rec.add_argument("--repair", action="store_true", help="Record the drift as an adjustment")
    p_rec.add_argument("--actor", default="cli", help="Actor recorded on the repair (default: cli)")
    p_rec.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()
    configure_logging()
    bind_context(command=args.command, actor_id=getattr(args, "actor", None))
    args.func(args)


if __name__ == "__main__":
    main()
