"""CLI commands for scheduled billing tasks."""

import asyncio
import logging
import sys
from uuid import UUID

from institute_billing.core.config import settings
from institute_billing.core.database import async_session_maker
from institute_billing.core.exceptions import BillingError
from institute_billing.services.bulk import generate_all
from institute_billing.services.invoice_sync import sync_invoice
from institute_billing.services.period import BillingPeriod

USAGE = """Usage: python -m institute_billing.cli <command>
Commands:
  generate-invoices [<month> <year>]
  sync-student <student_id> [<month> <year>]"""


async def generate_invoices(period: BillingPeriod | None) -> None:
    """Run bulk generation, typically from cron on the 1st of the month."""
    async with async_session_maker() as db:
        summary = await generate_all(db, period, actor_id="cli")

    print(f"Invoices for {summary.month}/{summary.year}:")
    print(f"  Created:  {summary.created}")
    print(f"  Updated:  {summary.updated}")
    print(f"  Existing: {summary.existed}")
    print(f"  Skipped:  {summary.skipped}")
    print(f"  Errors:   {summary.errors}")
    if summary.errors:
        sys.exit(1)


async def sync_student(student_id: UUID, period: BillingPeriod | None) -> None:
    """Synchronize one student's period invoice."""
    async with async_session_maker() as db:
        try:
            result = await sync_invoice(db, student_id, period)
        except BillingError as exc:
            print(f"Error: {exc.message}")
            sys.exit(1)

    print(f"Outcome: {result.outcome.value}")
    if result.invoice is not None:
        invoice = result.invoice
        print(f"  Invoice: {invoice.id}")
        print(f"  Period:  {invoice.month}/{invoice.year}")
        print(f"  Amount:  {invoice.amount}")
        print(f"  Status:  {invoice.status}")


def parse_period(args: list[str]) -> BillingPeriod | None:
    if not args:
        return None
    if len(args) != 2:
        print(USAGE)
        sys.exit(1)
    try:
        month, year = int(args[0]), int(args[1])
    except ValueError:
        print(f"Error: invalid period {' '.join(args)}")
        sys.exit(1)
    if not 1 <= month <= 12:
        print(f"Error: month must be 1-12, got {month}")
        sys.exit(1)
    return BillingPeriod(month, year)


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(level=settings.LOG_LEVEL)

    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "generate-invoices":
        asyncio.run(generate_invoices(parse_period(sys.argv[2:])))
    elif command == "sync-student":
        if len(sys.argv) < 3:
            print(USAGE)
            sys.exit(1)
        try:
            student_id = UUID(sys.argv[2])
        except ValueError:
            print(f"Error: invalid student id {sys.argv[2]}")
            sys.exit(1)
        asyncio.run(sync_student(student_id, parse_period(sys.argv[3:])))
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
