"""
Management command to fill offers with randomised promotional data
Usage: python manage.py populate_offers [--only-missing] [--seed N] [--dry-run]
"""
import random
from datetime import datetime, timedelta
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from storefront.catalog.models import Product, Collection
from storefront.pricing.models import Offer

VARIANT_COUNT = 8


class Command(BaseCommand):
    help = 'Assign random discounts, windows, types and flags to offers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--only-missing',
            action='store_true',
            help='Only fill fields that are empty instead of re-randomising every offer',
        )
        parser.add_argument(
            '--seed',
            type=int,
            help='Seed for the random generator, for repeatable output',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be changed without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        self.rng = random.Random(options.get('seed'))
        self.now = timezone.now()
        self.products = list(Product.objects.filter(is_active=True).values_list('pk', flat=True))
        self.collections = list(Collection.objects.filter(is_active=True).values_list('pk', flat=True))

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        offers = list(Offer.objects.order_by('pk'))
        if not offers:
            self.stdout.write(self.style.WARNING('No offers found'))
            return

        with transaction.atomic():
            for offer in offers:
                if options['only_missing']:
                    changed = self.fill_missing(offer)
                else:
                    changed = self.randomise(offer)
                if not changed:
                    self.stdout.write(f'  ⊘ "{offer.title}" already complete')
                    continue
                self.stdout.write(self.style.SUCCESS(
                    f'  ✓ "{offer.title}": {offer.discount}% {offer.type}, '
                    f'active={offer.is_active}, new users={offer.is_for_new_user}'
                ))
                if not dry_run:
                    offer.save()

        self.stdout.write(self.style.SUCCESS(f'\nProcessed {len(offers)} offers'))

    def randomise(self, offer):
        rng = self.rng
        offer.discount = Decimal(rng.randint(5, 25))
        offer.minimum_order_amount = (
            Decimal(rng.random() * 100).quantize(Decimal('0.01')) if rng.random() > 0.5 else None
        )
        year_start = self.now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
        next_year = year_start.replace(year=year_start.year + 1)
        offer.start_date = self._between(year_start, self.now) if rng.random() > 0.5 else None
        offer.end_date = self._between(self.now, next_year) if rng.random() > 0.5 else None
        self._assign_type(offer, rng.choice([choice for choice, _ in Offer.TYPE_CHOICES]))
        offer.is_active = rng.random() > 0.2
        offer.is_for_new_user = rng.random() > 0.7
        offer.variant = rng.randrange(VARIANT_COUNT)
        return True

    def fill_missing(self, offer):
        rng = self.rng
        changed = False
        if not offer.title:
            offer.title = f'Special Offer {offer.pk}'
            changed = True
        if not offer.description:
            offer.description = 'Limited time promotional offer'
            changed = True
        if offer.discount is None:
            offer.discount = Decimal(rng.randint(5, 25))
            changed = True
        if offer.start_date is None:
            offer.start_date = self.now
            changed = True
        if offer.end_date is None:
            offer.end_date = max(offer.start_date, self.now) + timedelta(days=7)
            changed = True
        if offer.minimum_order_amount is None:
            offer.minimum_order_amount = Decimal(rng.randint(10, 109))
            changed = True
        return changed

    def _assign_type(self, offer, offer_type):
        # Targeted types need something to target
        if offer_type == Offer.TYPE_PRODUCT and not self.products:
            offer_type = Offer.TYPE_ALL
        if offer_type == Offer.TYPE_COLLECTION and not self.collections:
            offer_type = Offer.TYPE_ALL
        offer.type = offer_type
        offer.target_product_id = self.rng.choice(self.products) if offer_type == Offer.TYPE_PRODUCT else None
        offer.target_collection_id = (
            self.rng.choice(self.collections) if offer_type == Offer.TYPE_COLLECTION else None
        )

    def _between(self, start: datetime, end: datetime) -> datetime:
        span = (end - start).total_seconds()
        return start + timedelta(seconds=self.rng.random() * max(span, 0))
