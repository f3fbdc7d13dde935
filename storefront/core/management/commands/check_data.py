"""
Management command to print the active offers, active sales and homepage settings
Usage: python manage.py check_data
"""
from django.core.management.base import BaseCommand
from storefront.core.models import SiteSetting
from storefront.pricing.models import Offer, Sale


class Command(BaseCommand):
    help = 'Print active offers, active sales and the homepage curation settings'

    def handle(self, *args, **options):
        self.stdout.write('Checking current data...\n')

        offers = Offer.objects.filter(is_active=True).order_by('created_at', 'pk')
        self.stdout.write(f'Active Offers: {offers.count()}')
        for offer in offers:
            self.stdout.write(f'  - {offer.title} ({offer.discount}% OFF): {offer.description}')
        self.stdout.write('')

        sales = Sale.objects.filter(is_active=True).select_related('collection').order_by('created_at', 'pk')
        self.stdout.write(f'Active Sales: {sales.count()}')
        for sale in sales:
            self.stdout.write(f'  - {sale.name} ({sale.discount_percent}% OFF): {sale.description or "No description"}')
            if sale.collection:
                self.stdout.write(f'    Collection: {sale.collection.name}')
        self.stdout.write('')

        self.stdout.write('Current Settings:')
        keys = [SiteSetting.HOMEPAGE_OFFERS, SiteSetting.HOMEPAGE_SALES]
        for setting in SiteSetting.objects.filter(key__in=keys).order_by('key'):
            self.stdout.write(f'  - {setting.key}: {setting.value}')
