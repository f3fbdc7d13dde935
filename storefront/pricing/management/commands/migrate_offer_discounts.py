"""
Management command to move legacy offer discount values into the discount column
Usage: python manage.py migrate_offer_discounts [--dry-run]
"""
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from storefront.pricing.models import Offer


class Command(BaseCommand):
    help = 'Copy the legacy discount_value of offers without a discount into discount and clear discount_value'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be migrated without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        offers = Offer.objects.filter(discount__isnull=True, discount_value__isnull=False).order_by('pk')
        self.stdout.write(f'Found {offers.count()} offers with a legacy discount value')

        migrated = 0
        skipped = 0
        with transaction.atomic():
            for offer in offers:
                if not Decimal('0') <= offer.discount_value <= Decimal('100'):
                    self.stdout.write(self.style.WARNING(
                        f'  ⊘ Skipped "{offer.title}": {offer.discount_value} is not a percentage'
                    ))
                    skipped += 1
                    continue
                self.stdout.write(f'  ✓ "{offer.title}": discount_value {offer.discount_value} -> discount')
                if not dry_run:
                    offer.discount = offer.discount_value
                    offer.discount_value = None
                    offer.save(update_fields=['discount', 'discount_value', 'updated_at'])
                migrated += 1

        self.stdout.write(self.style.SUCCESS(f'\nMigrated: {migrated}'))
        if skipped:
            self.stdout.write(self.style.WARNING(f'Skipped: {skipped}'))
