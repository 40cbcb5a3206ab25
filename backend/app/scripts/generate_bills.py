"""CLI utility to generate the bills of a semi-monthly billing period."""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Optional

from ..database import session_scope
from ..services.billing_periods import BillingPeriodService, business_today
from ..services.bills import BillService
from ..services.money import format_currency

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Generate one bill per client for the billing period containing the "
            "given date. Suitable for cron on the 15th and the last day of the month."
        )
    )
    parser.add_argument(
        "--period-start",
        type=date.fromisoformat,
        default=None,
        help="Any date inside the period to bill (YYYY-MM-DD); defaults to today.",
    )
    parser.add_argument(
        "--inter-state",
        dest="inter_state",
        action="append",
        default=[],
        metavar="CLIENT_ID",
        help="Client billed with IGST instead of CGST and SGST. May be repeated.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute the bills without storing them or consuming invoice numbers.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every bill line and skipped journey.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    period = BillingPeriodService.period_containing(args.period_start or business_today())
    LOGGER.info("Billing period %s (%s)", period.key, period.label)

    with session_scope() as db:
        result = BillService.generate_for_period(
            db,
            period,
            inter_state_client_ids=args.inter_state,
            dry_run=args.dry_run,
        )
        for bill in result.bills:
            LOGGER.info(
                "%s %s: %s lines, net payable %s",
                bill.bill_number,
                bill.client_name,
                len(bill.line_items),
                format_currency(bill.net_payable),
            )
            for item in bill.line_items:
                LOGGER.debug(
                    "  %s %s -> %s %s",
                    item.truck_number,
                    item.from_location,
                    item.to_location,
                    format_currency(item.freight_amount),
                )
        for journey in result.skipped_journeys:
            LOGGER.debug("Skipped journey %s of trip %s", journey.id, journey.trip_id)

    if result.skipped_count:
        LOGGER.warning("%s journeys could not be billed", result.skipped_count)
    if result.already_billed_client_ids:
        LOGGER.info(
            "%s clients were already billed for this period",
            len(result.already_billed_client_ids),
        )

    LOGGER.info(
        "%s %s bills", "Previewed" if args.dry_run else "Generated", len(result.bills)
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
