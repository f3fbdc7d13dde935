"""
Management command to inspect the admin access key configuration
Usage: python manage.py check_access_key [--test KEY]
"""
from django.core.management.base import BaseCommand
from storefront.core.models import SiteSetting, AccessKey
from storefront.core.utils import get_setting, is_hashed, verify_access_key


class Command(BaseCommand):
    help = 'Show whether an admin access key is configured and hashed, optionally testing a candidate key'

    def add_arguments(self, parser):
        parser.add_argument(
            '--test',
            dest='candidate',
            help='Check whether this key would be accepted by admin registration',
        )

    def handle(self, *args, **options):
        self.stdout.write('Checking admin access key in database...\n')

        stored = get_setting(SiteSetting.ADMIN_ACCESS_KEY)
        if stored is None:
            self.stdout.write(self.style.ERROR('No admin access key found in database!'))
        else:
            self.stdout.write(self.style.SUCCESS('Admin access key found:'))
            self.stdout.write(f'  - Is hashed: {"Yes" if is_hashed(stored) else "No"}')
            if not is_hashed(stored):
                self.stdout.write(self.style.WARNING('  Plain-text keys are rejected; run hash_access_key'))

        active_keys = AccessKey.objects.filter(is_active=True).count()
        self.stdout.write(f'  - Active additional access keys: {active_keys}')

        candidate = options.get('candidate')
        if candidate:
            self.stdout.write('')
            if verify_access_key(candidate):
                self.stdout.write(self.style.SUCCESS('Key match: YES'))
            else:
                self.stdout.write(self.style.ERROR('Key match: NO'))
