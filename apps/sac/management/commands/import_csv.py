"""
Management command to bulk-import users or booths from a CSV file.

Runs the same import as the SAC upload endpoints, for setups where the
class lists arrive as files on the server.

Usage:
    python manage.py import_csv users students.csv --by sac@school.example.com
    python manage.py import_csv booths booths.csv --by sac@school.example.com
    python manage.py import_csv users students.csv --by sac@school.example.com --dry-run
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.sac.csv_import import (
    parse_csv,
    validate_user_csv,
    validate_booth_csv,
    import_users,
    import_booths,
)
from apps.sac.exceptions import SACServiceError

User = get_user_model()


class Command(BaseCommand):
    help = 'Import users or booths from a CSV file'

    def add_arguments(self, parser):
        parser.add_argument('kind', choices=['users', 'booths'])
        parser.add_argument('path', help='Path to the CSV file')
        parser.add_argument(
            '--by',
            required=True,
            help='Email of the SAC member recorded as importer (booth manager, fund issuer)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Parse and validate the file without writing anything',
        )

    def handle(self, *args, **options):
        try:
            importer = User.objects.get(email__iexact=options['by'])
        except User.DoesNotExist:
            raise CommandError(f"No user with email {options['by']}")
        if not importer.is_sac:
            raise CommandError(f"{importer.email} is not a SAC member")

        try:
            with open(options['path'], encoding='utf-8-sig') as f:
                text = f.read()
        except OSError as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        kind = options['kind']
        try:
            rows = parse_csv(text)
            if kind == 'users':
                validate_user_csv(rows)
            else:
                validate_booth_csv(rows)
        except SACServiceError as e:
            raise CommandError(str(e))

        self.stdout.write(f'Parsed {len(rows)} row(s).')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
            return

        if kind == 'users':
            summary = import_users(rows, imported_by=importer)
            created = f"{summary['created']} user(s) created"
        else:
            summary = import_booths(rows, created_by=importer)
            created = (
                f"{summary['booths_created']} booth(s) and "
                f"{summary['products_created']} product(s) created"
            )

        for result in summary['results']:
            if result['status'] == 'error':
                self.stdout.write(self.style.ERROR(f"  row {result['row']}: {result['message']}"))
            elif result['status'] == 'skipped':
                self.stdout.write(self.style.WARNING(f"  row {result['row']}: {result['message']}"))

        self.stdout.write(self.style.SUCCESS(
            f"{created}, {summary['skipped']} skipped, {summary['failed']} failed."
        ))
