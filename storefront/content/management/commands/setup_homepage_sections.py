"""
Management command to create the default homepage sections
Usage: python manage.py setup_homepage_sections [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from storefront.content.models import HomepageSection

DEFAULT_SECTIONS = [
    ('Featured Products', 'featured-products', 'Handpicked products we love'),
    ('New Arrivals', 'new-arrivals', 'The latest additions to our store'),
    ('Special Offers', 'special-offers', 'Limited time deals and discounts'),
    ('Collections', 'collections', 'Curated collections for every occasion'),
    ('Sale Items', 'sale-items', 'Products currently on sale'),
]


class Command(BaseCommand):
    help = 'Create the default homepage sections when none exist'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show the sections that would be created',
        )

    def handle(self, *args, **options):
        existing = HomepageSection.objects.count()
        if existing:
            self.stdout.write(self.style.WARNING(
                f'Homepage sections already exist ({existing}), skipping setup'
            ))
            return

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        with transaction.atomic():
            for order, (name, slug, description) in enumerate(DEFAULT_SECTIONS, start=1):
                if not options['dry_run']:
                    HomepageSection.objects.create(
                        name=name, slug=slug, description=description, display_order=order, is_active=True
                    )
                self.stdout.write(self.style.SUCCESS(f'  ✓ {order}. {name} ({slug})'))

        self.stdout.write(self.style.SUCCESS(f'\nCreated {len(DEFAULT_SECTIONS)} homepage sections'))
