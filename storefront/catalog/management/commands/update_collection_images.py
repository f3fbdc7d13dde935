"""
Management command to fill or clear collection images
Usage: python manage.py update_collection_images [--clear] [--force] [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q
from storefront.catalog.models import Collection
from storefront.catalog.utils import default_collection_image


class Command(BaseCommand):
    help = 'Give collections without an image a generated placeholder, or clear every collection image'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Remove the image of every collection instead',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Replace existing images with the generated placeholder as well',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be changed without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        if options['clear']:
            collections = Collection.objects.filter(image_url__isnull=False)
            count = collections.count()
            if not dry_run:
                collections.update(image_url=None)
            self.stdout.write(self.style.SUCCESS(f'Cleared images of {count} collections'))
            return

        collections = Collection.objects.order_by('name')
        if not options['force']:
            collections = collections.filter(Q(image_url__isnull=True) | Q(image_url=''))

        updated = 0
        with transaction.atomic():
            for collection in collections:
                self.stdout.write(f'  ✓ {collection.name}')
                if not dry_run:
                    collection.image_url = default_collection_image(collection.name)
                    collection.save(update_fields=['image_url', 'updated_at'])
                updated += 1

        self.stdout.write(self.style.SUCCESS(f'\nUpdated images of {updated} collections'))
