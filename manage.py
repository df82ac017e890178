#!/usr/bin/env python3
"""
Intendance management CLI.

Usage:
    python manage.py migrate                    Apply pending schema migrations
    python manage.py status                     Show schema version and integrity
    python manage.py add NAME QTY THRESHOLD     Create a stock item
    python manage.py supply ID QTY [-d TEXT]    Record a supply
    python manage.py withdraw ID QTY [-d TEXT]  Record a withdrawal
    python manage.py card ID                    Print the equipment card
    python manage.py alerts                     List critical and low stock
    python manage.py delete ID                  Delete a stock item and its history
    python manage.py history [--table NAME]     Show recent modifications

Movements and edits are stamped with --user (default: the anonymous actor).
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

from intendance.application import (
    CreateStockItemRequest,
    get_check_stock_alerts_use_case,
    get_create_stock_item_use_case,
    get_ledger_manager,
    get_session,
    reset_services,
)
from intendance.config import configure_logging
from intendance.core.exceptions import IntendanceError
from intendance.infrastructure.storage.sqlite import close_pool, get_audit_log
from intendance.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    run_migrations,
    verify_schema_integrity,
)

STOCK_TABLE = "stocks"


async def _login(args: argparse.Namespace) -> None:
    """Open the session as --user and check that its service may edit stocks."""
    session = await get_session()
    if args.user:
        await session.login(args.user, args.service)
        session.require_access(STOCK_TABLE)


def _run(coro_fn: Callable[[argparse.Namespace], Awaitable[None]]):
    """Wrap an async command: run it, report domain errors, close the pool."""

    def command(args: argparse.Namespace) -> None:
        async def main() -> None:
            try:
                await coro_fn(args)
            finally:
                await close_pool()
                reset_services()

        try:
            asyncio.run(main())
        except IntendanceError as e:
            print(f"Error [{e.code}]: {e.message}")
            sys.exit(1)

    return command


async def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    results = await run_migrations(create_backup_before=False if args.no_backup else None)
    if not results:
        print("Database is up to date.")
        return
    for r in results:
        state = "ok" if r.success else f"FAILED ({r.error})"
        print(f"  v{r.version} {r.name}: {state} [{r.execution_time_ms} ms]")
    if not all(r.success for r in results):
        sys.exit(1)


async def cmd_status(args: argparse.Namespace) -> None:
    """Show migration status and schema checks."""
    status = await get_migration_status()
    if not status["exists"]:
        print("Database does not exist. Run 'migrate' first.")
        return

    print(f"Schema version: {status['current_version']}")
    print(f"Applied:        {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending:        {', '.join(status['pending_migrations']) or '-'}")
    for check in await verify_schema_integrity():
        print(f"  {check['check']}: {check['status']}")


async def cmd_add(args: argparse.Namespace) -> None:
    """Create a stock item."""
    await _login(args)
    use_case = await get_create_stock_item_use_case()
    item = await use_case.execute(
        CreateStockItemRequest(
            designation=args.designation,
            quantity=args.quantity,
            critical_value=args.critical_value,
            state=args.state,
            description=args.description,
        )
    )
    print(f"Created stock #{item.id}: {item.designation} ({item.status_label})")


async def cmd_supply(args: argparse.Namespace) -> None:
    """Record a supply."""
    await _login(args)
    ledger = await get_ledger_manager()
    result = await ledger.supply(args.stock_id, args.amount, args.description)
    print(
        f"{result.movement}  ->  {result.stock.quantity} "
        f"({result.stock.status_label})"
    )


async def cmd_withdraw(args: argparse.Namespace) -> None:
    """Record a withdrawal."""
    await _login(args)
    ledger = await get_ledger_manager()
    result = await ledger.withdraw(args.stock_id, args.amount, args.description)
    print(
        f"{result.movement}  ->  {result.stock.quantity} "
        f"({result.stock.status_label})"
    )


async def cmd_card(args: argparse.Namespace) -> None:
    """Print the equipment card of a stock item."""
    ledger = await get_ledger_manager()
    card = await ledger.get_equipment_card(args.stock_id)
    print(card.generate_summary(), end="")
    for warning in card.warnings:
        print(f"Warning: {warning}")


async def cmd_alerts(args: argparse.Namespace) -> None:
    """List stock items in critical or low status."""
    use_case = await get_check_stock_alerts_use_case()
    alerts = await use_case.execute(limit=args.limit)
    if not alerts:
        print("No stock alerts.")
        return
    for alert in alerts:
        print(alert.message)


async def cmd_delete(args: argparse.Namespace) -> None:
    """Delete a stock item with its movement history."""
    await _login(args)
    ledger = await get_ledger_manager()
    card = await ledger.get_equipment_card(args.stock_id)
    result = await ledger.delete_stock_item(args.stock_id, card.stock.designation)
    print(
        f"Deleted stock #{result.stock_id} ({result.designation}), "
        f"{result.movements_deleted} movement(s) removed."
    )


async def cmd_history(args: argparse.Namespace) -> None:
    """Show recent modifications."""
    audit_log = await get_audit_log()
    records = await audit_log.list_modifications(table=args.table, limit=args.limit)
    if not records:
        print("No modifications recorded.")
        return
    for r in records:
        print(
            f"{r.date:%Y-%m-%d %H:%M:%S}  {r.table:<12} {r.type.value:<12} "
            f"{r.user:<12} {r.details}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Intendance management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--user", help="Actor recorded on movements and edits")
    parser.add_argument("--service", default="Logistique", help="Service of --user (default: Logistique)")
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending schema migrations")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=_run(cmd_migrate))

    # status
    p_status = sub.add_parser("status", help="Show schema version and integrity")
    p_status.set_defaults(func=_run(cmd_status))

    # add
    p_add = sub.add_parser("add", help="Create a stock item")
    p_add.add_argument("designation", help="Equipment designation")
    p_add.add_argument("quantity", type=int, help="Opening quantity")
    p_add.add_argument("critical_value", type=int, help="Critical threshold")
    p_add.add_argument("--state", default="", help="Physical condition")
    p_add.add_argument("-d", "--description", default="", help="Free text")
    p_add.set_defaults(func=_run(cmd_add))

    # supply / withdraw
    for name, handler, help_text in (
        ("supply", cmd_supply, "Record a supply"),
        ("withdraw", cmd_withdraw, "Record a withdrawal"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("stock_id", type=int, help="Stock item id")
        p.add_argument("amount", type=int, help="Units moved (> 0)")
        p.add_argument("-d", "--description", default="", help="Movement description")
        p.set_defaults(func=_run(handler))

    # card
    p_card = sub.add_parser("card", help="Print the equipment card")
    p_card.add_argument("stock_id", type=int, help="Stock item id")
    p_card.set_defaults(func=_run(cmd_card))

    # alerts
    p_alerts = sub.add_parser("alerts", help="List critical and low stock")
    p_alerts.add_argument("--limit", type=int, default=500, help="Maximum items (default: 500)")
    p_alerts.set_defaults(func=_run(cmd_alerts))

    # delete
    p_delete = sub.add_parser("delete", help="Delete a stock item and its history")
    p_delete.add_argument("stock_id", type=int, help="Stock item id")
    p_delete.set_defaults(func=_run(cmd_delete))

    # history
    p_history = sub.add_parser("history", help="Show recent modifications")
    p_history.add_argument("--table", help="Only this table label (e.g. Stocks)")
    p_history.add_argument("--limit", type=int, default=50, help="Maximum entries (default: 50)")
    p_history.set_defaults(func=_run(cmd_history))

    args = parser.parse_args()
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
