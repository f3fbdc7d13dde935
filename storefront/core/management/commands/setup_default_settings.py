"""
Management command to configure the default homepage curation and admin access key
Usage: python manage.py setup_default_settings [--dry-run]
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from storefront.core.models import SiteSetting
from storefront.core.utils import get_setting, hash_access_key, set_json_setting
from storefront.pricing.models import Offer, Sale

HOMEPAGE_OFFER_COUNT = 3


class Command(BaseCommand):
    help = 'Select the first active offers and all active sales for the homepage; ensure an admin access key exists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show the settings that would be written',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        self.stdout.write('Setting up default settings...')

        offer_ids = list(Offer.objects.filter(is_active=True).order_by('created_at', 'pk')
                         .values_list('pk', flat=True)[:HOMEPAGE_OFFER_COUNT])
        sale_ids = list(Sale.objects.filter(is_active=True).order_by('created_at', 'pk').values_list('pk', flat=True))
        needs_access_key = get_setting(SiteSetting.ADMIN_ACCESS_KEY) is None

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))
        else:
            with transaction.atomic():
                set_json_setting(SiteSetting.HOMEPAGE_OFFERS, offer_ids, description='Homepage offers')
                set_json_setting(SiteSetting.HOMEPAGE_SALES, sale_ids, description='Homepage sales')
                if needs_access_key:
                    SiteSetting.objects.create(
                        key=SiteSetting.ADMIN_ACCESS_KEY,
                        value=hash_access_key(settings.DEFAULT_ADMIN_ACCESS_KEY),
                        description='Hashed key required by admin registration',
                    )

        self.stdout.write('Default settings configured:')
        self.stdout.write(f'  - Homepage offers: {len(offer_ids)} offers')
        self.stdout.write(f'  - Homepage sales: {len(sale_ids)} sales')
        if needs_access_key:
            self.stdout.write(self.style.WARNING('  - Admin access key created from DEFAULT_ADMIN_ACCESS_KEY'))
        self.stdout.write(self.style.SUCCESS('Settings are now ready for the admin panel!'))
