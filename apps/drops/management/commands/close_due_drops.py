"""
Management command to close drops whose end_time has passed.

Meant to run from cron every few minutes. Funded drops are completed and
settled, the others expire and release their holds.

Usage:
    python manage.py close_due_drops
    python manage.py close_due_drops --dry-run
"""

from django.core.management.base import BaseCommand

from apps.drops.services import process_due_drops


class Command(BaseCommand):
    help = 'Complete or expire active drops past their end time'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show which drops would be closed without changing them',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        results = process_due_drops(dry_run=dry_run)

        if not results:
            self.stdout.write(self.style.SUCCESS('No drops are due. All good!'))
            return

        self.stdout.write(f'\nFound {len(results)} due drop(s):\n')
        for result in results:
            line = f'  - {result.drop_name} | {result.action}'
            if result.succeeded:
                self.stdout.write(line)
            else:
                self.stdout.write(self.style.ERROR(f'{line} | failed: {result.error}'))

        if dry_run:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        failed = sum(1 for r in results if not r.succeeded)
        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Closed {len(results) - failed} drop(s), {failed} failed.')
        )
