"""
Management command to hash the admin access key, or replace it with a new one
Usage: python manage.py hash_access_key [--new-key KEY] [--dry-run]
"""
from django.core.management.base import BaseCommand, CommandError
from storefront.core.models import SiteSetting
from storefront.core.utils import get_setting, hash_access_key, is_hashed, is_strong_access_key


class Command(BaseCommand):
    help = 'Hash a plain-text admin access key stored in site settings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--new-key',
            help='Replace the admin access key with this value (stored hashed)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would change without saving',
        )

    def handle(self, *args, **options):
        new_key = options.get('new_key')
        dry_run = options['dry_run']

        if new_key:
            if not is_strong_access_key(new_key):
                raise CommandError(
                    'Access key must be at least 8 characters and contain upper and lower case letters, '
                    'a digit and a special character'
                )
            raw_key = new_key
        else:
            current = get_setting(SiteSetting.ADMIN_ACCESS_KEY)
            if current is None:
                raise CommandError('No admin access key found. Run cleanup_site_settings or pass --new-key.')
            if is_hashed(current):
                self.stdout.write(self.style.SUCCESS('Admin access key is already hashed. Nothing to do.'))
                return
            raw_key = current

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - the admin access key would be hashed and saved'))
            return

        SiteSetting.objects.update_or_create(
            key=SiteSetting.ADMIN_ACCESS_KEY,
            defaults={'value': hash_access_key(raw_key), 'description': 'Hashed key required by admin registration'},
        )
        self.stdout.write(self.style.SUCCESS('Admin access key has been hashed successfully!'))
        self.stdout.write('Use the original key to access admin registration.')
