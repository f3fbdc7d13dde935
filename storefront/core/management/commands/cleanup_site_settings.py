"""
Management command to remove every site setting except the admin access key
Usage: python manage.py cleanup_site_settings [--dry-run]
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from storefront.core.models import SiteSetting
from storefront.core.utils import hash_access_key, is_hashed


class Command(BaseCommand):
    help = 'Delete all site settings except admin_access_key, creating a hashed default key when missing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        self.stdout.write('Cleaning up site settings table...\n')
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        current = list(SiteSetting.objects.order_by('key'))
        self.stdout.write('Current site settings:')
        for setting in current:
            self.stdout.write(f'  - {setting.key}: {self._display_value(setting)}')
        self.stdout.write('')

        to_delete = [s for s in current if s.key != SiteSetting.ADMIN_ACCESS_KEY]
        access_key = next((s for s in current if s.key == SiteSetting.ADMIN_ACCESS_KEY), None)

        with transaction.atomic():
            for setting in to_delete:
                self.stdout.write(f'  Deleting: {setting.key}')
                if not dry_run:
                    setting.delete()

            if access_key:
                if not is_hashed(access_key.value):
                    self.stdout.write(self.style.WARNING(
                        'Admin access key is stored in plain text. Run hash_access_key to secure it.'
                    ))
            else:
                self.stdout.write('No admin access key found. Creating one from DEFAULT_ADMIN_ACCESS_KEY...')
                if not dry_run:
                    SiteSetting.objects.create(
                        key=SiteSetting.ADMIN_ACCESS_KEY,
                        value=hash_access_key(settings.DEFAULT_ADMIN_ACCESS_KEY),
                        description='Hashed key required by admin registration',
                    )
                self.stdout.write(self.style.WARNING('  Change the default admin access key immediately!'))

        self.stdout.write('')
        self.stdout.write(self.style.SUCCESS(
            f'Cleanup completed! Deleted {len(to_delete)} setting(s); only admin_access_key remains.'
        ))

    def _display_value(self, setting):
        if setting.key == SiteSetting.ADMIN_ACCESS_KEY:
            return '[HASHED]' if is_hashed(setting.value) else '[PLAIN TEXT]'
        return setting.value
