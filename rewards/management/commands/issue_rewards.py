"""
Management command to issue payouts for already calculated reward entries.

Runs as a dry run unless --commit is given. Safe to re-run: entries that were
already paid out are skipped.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from rewards.entities import RewardsQueryOpts
from rewards.services.manager import RewardsManager
from rewards.windows import parse_window, window_label, yesterday_ts


class Command(BaseCommand):
    help = "Issue reward payouts to the transaction ledger for one day."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            dest="date",
            help="Day to pay out (YYYY-MM-DD, UTC). Defaults to yesterday.",
        )
        parser.add_argument(
            "--commit",
            action="store_true",
            help="Write transactions. Without this flag nothing is persisted.",
        )

    def handle(self, *args, **options):
        try:
            date_ts = parse_window(options["date"]) if options.get("date") else yesterday_ts()
        except ValueError as exc:
            raise CommandError(f"Invalid --date: {exc}")

        dry_run = not options.get("commit")
        report = RewardsManager().issue_tokens(RewardsQueryOpts(date_ts=date_ts), dry_run=dry_run)

        self.stdout.write(f"↪ Payouts for {window_label(date_ts)}")
        for transaction in report.transactions:
            self.stdout.write(
                f"  • {transaction.user_guid} {transaction.data.get('reward_type')}: "
                f"{transaction.amount} base units (tx={transaction.tx})"
            )

        self.stdout.write(
            f"  • skipped: {report.skipped_zero} without tokens, {report.skipped_paid} already paid"
        )

        if report.failures:
            for failure in report.failures:
                self.stdout.write(
                    self.style.ERROR(
                        f"  • Failed {failure.entry.user_guid} {failure.entry.reward_type.value}: {failure.error}"
                    )
                )
            raise CommandError(f"{len(report.failures)} payout(s) failed")

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f"  • Dry run complete ({report.issued} payouts)."))
        else:
            self.stdout.write(self.style.SUCCESS(f"  • Issued {report.issued} payouts."))
