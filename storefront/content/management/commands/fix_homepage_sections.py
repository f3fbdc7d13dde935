"""
Management command to regenerate homepage section slugs from their names
Usage: python manage.py fix_homepage_sections [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from storefront.content.models import HomepageSection
from storefront.content.utils import section_slug


class Command(BaseCommand):
    help = 'Set the slug of every homepage section to the slug derived from its name'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be changed without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        sections = list(HomepageSection.objects.order_by('display_order', 'pk'))
        taken = {section.slug for section in sections}
        fixed = 0

        with transaction.atomic():
            for section in sections:
                slug = section_slug(section.name)
                if not slug or slug == section.slug:
                    continue
                if slug in taken:
                    self.stdout.write(self.style.WARNING(
                        f'  ⊘ "{section.name}": slug "{slug}" is already used by another section'
                    ))
                    continue
                self.stdout.write(f'  ✓ "{section.name}": {section.slug} -> {slug}')
                taken.discard(section.slug)
                taken.add(slug)
                if not dry_run:
                    section.slug = slug
                    section.save(update_fields=['slug', 'updated_at'])
                fixed += 1

        self.stdout.write(self.style.SUCCESS(f'\nFixed {fixed} of {len(sections)} sections'))
