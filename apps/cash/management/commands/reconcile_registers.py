"""
Management command to print the cash overview of one or more branches.

Usage:
    python manage.py reconcile_registers
    python manage.py reconcile_registers BRANCH-1 BRANCH-2 --date 2024-05-01
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from apps.cash.services import aggregate_branches, open_branch_refs
from apps.pricing.money import format_currency


class Command(BaseCommand):
    help = 'Show expected cash, today\'s income/expenses and balance since opening per branch'

    def add_arguments(self, parser):
        parser.add_argument(
            'branches',
            nargs='*',
            help='Branch refs to include (default: every branch with an open register)',
        )
        parser.add_argument(
            '--date',
            help='Day used for the "today" figures, YYYY-MM-DD (default: today)',
        )

    def handle(self, *args, **options):
        today = None
        if options['date']:
            try:
                today = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date: {options['date']}")

        branches = options['branches'] or open_branch_refs()
        if not branches:
            self.stdout.write(self.style.WARNING('No open registers.'))
            return

        report = aggregate_branches(branches, today=today)

        self.stdout.write(f'\n{report.total_branches} branch(es), {report.open_count} open:\n')
        for result in report.branches:
            if not result.ok:
                self.stdout.write(self.style.ERROR(f'  - {result.branch_ref} | ERROR: {result.error}'))
                continue
            if not result.is_open:
                self.stdout.write(f'  - {result.branch_ref} | closed')
                continue
            balances = result.balances
            self.stdout.write(
                f'  - {result.branch_ref} | expected {format_currency(balances.expected_cash)}'
                f' | in {format_currency(balances.income_today)}'
                f' | out {format_currency(balances.expenses_today)}'
                f' | since opening {format_currency(balances.balance_since_opening)}'
            )

        totals = report.totals
        self.stdout.write(
            self.style.SUCCESS(
                f'\nTotal expected cash: {format_currency(totals.expected_cash)}'
                f' | in {format_currency(totals.income_today)}'
                f' | out {format_currency(totals.expenses_today)}'
                f' | since opening {format_currency(totals.balance_since_opening)}'
            )
        )
        if report.errors:
            self.stdout.write(
                self.style.WARNING(f'{len(report.errors)} branch(es) could not be loaded.')
            )
