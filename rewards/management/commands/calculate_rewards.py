"""
Management command to score a day's contributions and convert them into
token amounts.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from rewards.entities import RewardsQueryOpts
from rewards.exceptions import TokenomicsConfigurationError
from rewards.services.manager import RewardsManager
from rewards.windows import parse_window, today_ts, window_label


class Command(BaseCommand):
    help = "Calculate reward scores and token amounts for one day."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            dest="date",
            help="Day to calculate (YYYY-MM-DD, UTC). Defaults to today.",
        )

    def handle(self, *args, **options):
        try:
            date_ts = parse_window(options["date"]) if options.get("date") else today_ts()
        except ValueError as exc:
            raise CommandError(f"Invalid --date: {exc}")

        try:
            report = RewardsManager().calculate(RewardsQueryOpts(date_ts=date_ts))
        except TokenomicsConfigurationError as exc:
            raise CommandError(str(exc))

        self.stdout.write(f"↪ Rewards for {window_label(date_ts)}")
        for reward_type, count in sorted(report.scored.items()):
            self.stdout.write(f"  • {reward_type}: {count} scored")
        for reward_type, amount in sorted(report.tokens_allocated.items()):
            self.stdout.write(f"  • {reward_type}: {amount} tokens allocated")
        if report.disqualified:
            self.stdout.write(self.style.WARNING(f"  • {report.disqualified} entries disqualified"))
        for reward_type in report.failed_reward_types:
            self.stdout.write(self.style.ERROR(f"  • {reward_type} scoring failed; see logs"))

        self.stdout.write(self.style.SUCCESS(f"  • {report.converted} entries converted"))
