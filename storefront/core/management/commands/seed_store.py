"""
Management command to seed the store with sample accounts, catalogue, pricing and content
Usage: python manage.py seed_store [--clear] [--dry-run]
"""
from decimal import Decimal
from datetime import timedelta
from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from storefront.catalog.models import Category, Product, Collection, ProductCollection, Review
from storefront.content.models import HeroBackground
from storefront.core.cache_signals import suspend_cache_signals, invalidate_all_caches
from storefront.core.models import User, SiteSetting
from storefront.core.utils import hash_access_key
from storefront.orders.models import Order
from storefront.pricing.models import Sale, SaleItem, Offer, PromoCodeUsage

ACCOUNTS = [
    {'email': 'admin@storefront.local', 'password': 'admin123', 'first_name': 'Admin', 'last_name': 'User',
     'role': User.ROLE_ADMIN, 'phone': '+977-1-2345678'},
    {'email': 'customer@example.com', 'password': 'customer123', 'first_name': 'John', 'last_name': 'Doe',
     'role': User.ROLE_CUSTOMER, 'phone': '+977-98-7654321'},
    {'email': 'promoter@example.com', 'password': 'promoter123', 'first_name': 'Sarah', 'last_name': 'Promoter',
     'role': User.ROLE_PROMOTER, 'phone': '+977-97-1234567', 'promo_code': 'SARA42', 'commission': Decimal('10.00')},
]

CATEGORIES = [
    ('Gunyu Cholo', 'gunyu-cholo', 'women', "Traditional Nepali women's dress"),
    ('Haku Patasi', 'haku-patasi', 'women', 'Newari traditional dress'),
    ('Dhimal Dress', 'dhimal-dress', 'women', 'Dhimal ethnic dress'),
    ('Lehenga', 'lehenga', 'women', 'Traditional Lehenga'),
    ('Saari', 'saari', 'women', 'Traditional Saari'),
    ('Daura Suruwal', 'daura-suruwal', 'men', "Traditional Nepali men's dress"),
    ('Bhangra Suruwal', 'bhangra-suruwal', 'men', 'Traditional Bhangra dress'),
    ('Dhaka Topi', 'dhaka-topi', 'men', 'Traditional Dhaka Topi'),
    ('Kurta Pajama', 'kurta-pajama', 'kids', 'Kids traditional Kurta Pajama'),
    ('Waistcoats', 'waistcoats', 'kids', 'Kids traditional Waistcoats'),
    ('Bindi', 'bindi', 'accessories', 'Traditional Bindi'),
    ('Earrings', 'earrings', 'accessories', 'Traditional earrings'),
    ('Bangles', 'bangles', 'accessories', 'Traditional bangles'),
]

# name, category slug, price, original price, sizes, colors, stock, featured, new arrival, tags
PRODUCTS = [
    ('Traditional Gunyu Cholo Set', 'gunyu-cholo', '89.99', '120.00', ['S', 'M', 'L', 'XL'],
     ['Red', 'Blue', 'Green'], 25, True, False, ['traditional', 'women']),
    ('Wedding Gunyu Cholo', 'gunyu-cholo', '299.99', '399.00', ['XS', 'S', 'M', 'L', 'XL', 'XXL'],
     ['Red', 'Maroon', 'Gold'], 10, True, False, ['wedding', 'traditional', 'women']),
    ('Festival Haku Patasi', 'haku-patasi', '159.99', '200.00', ['S', 'M', 'L', 'XL'],
     ['Red', 'Green', 'Purple'], 20, True, False, ['festival', 'newari', 'traditional']),
    ('New Arrival Dhimal Dress', 'dhimal-dress', '89.99', '120.00', ['S', 'M', 'L', 'XL'],
     ['Red', 'Orange'], 18, True, True, ['new-arrival', 'dhimal', 'ethnic']),
    ('Bridesmaid Lehenga', 'lehenga', '199.99', '280.00', ['XS', 'S', 'M', 'L', 'XL'],
     ['Pink', 'Mint', 'Peach'], 12, True, False, ['bridesmaid', 'wedding', 'lehenga']),
    ('Traditional Saari', 'saari', '65.99', '85.00', ['One Size'],
     ['Red', 'Blue', 'Purple'], 30, False, False, ['traditional', 'saari']),
    ('Daura Suruwal Set', 'daura-suruwal', '79.99', '100.00', ['S', 'M', 'L', 'XL'],
     ['White', 'Cream'], 30, True, True, ['traditional', 'men']),
    ('Engagement Daura Suruwal', 'daura-suruwal', '189.99', '250.00', ['S', 'M', 'L', 'XL', 'XXL'],
     ['White', 'Light Blue'], 15, True, False, ['engagement', 'traditional', 'men']),
    ('Bhangra Suruwal Set', 'bhangra-suruwal', '95.99', '120.00', ['S', 'M', 'L', 'XL'],
     ['White', 'Blue'], 20, False, False, ['festival', 'men']),
    ('Festival Dhaka Topi', 'dhaka-topi', '14.99', None, ['One Size'],
     ['Multicolor'], 4, False, True, ['festival', 'men']),
    ('Kids Kurta Pajama Set', 'kurta-pajama', '29.99', '45.00', ['2-3Y', '4-5Y', '6-7Y', '8-9Y'],
     ['Blue', 'Green', 'Red'], 40, False, False, ['kids', 'traditional']),
    ('Kids Waistcoat', 'waistcoats', '19.99', '28.00', ['2-3Y', '4-5Y', '6-7Y'],
     ['Blue', 'Red'], 35, False, False, ['kids', 'waistcoat']),
    ('Traditional Bindi Set', 'bindi', '12.99', '18.00', ['One Size'],
     ['Red', 'Gold', 'Silver'], 100, False, False, ['jewellery', 'bindi']),
    ('Wedding Earrings', 'earrings', '24.99', '35.00', ['One Size'],
     ['Gold', 'Silver'], 0, False, False, ['jewellery', 'wedding']),
    ('Engagement Bangles Set', 'bangles', '15.99', '22.00', ['Small', 'Medium', 'Large'],
     ['Gold', 'Red'], 75, False, False, ['jewellery', 'engagement']),
]

# Collection name, description, discount percent, product tag that selects its products
COLLECTIONS = [
    ('Wedding Collection', 'Exclusive wedding dresses and accessories', Decimal('30'), 'wedding'),
    ('Festival Special', 'Special festival dresses and traditional wear', Decimal('25'), 'festival'),
    ('Engagement Collection', 'Perfect engagement dresses and accessories', Decimal('20'), 'engagement'),
]

OFFERS = [
    {'title': 'Free Shipping on Orders Over $100', 'description': 'Enjoy free shipping on all orders above $100',
     'discount': Decimal('0'), 'minimum_order_amount': Decimal('100.00'), 'link': '/products',
     'display_location': 'home', 'variant': 1},
    {'title': 'New Customer Discount', 'description': 'Get 10% off on your first order',
     'discount': Decimal('10'), 'type': Offer.TYPE_NEW_USER, 'is_for_new_user': True, 'link': '/register',
     'display_location': 'home', 'variant': 2},
    {'title': 'Festive Cart Saver', 'description': '15% off carts over $150',
     'discount': Decimal('15'), 'minimum_order_amount': Decimal('150.00'), 'type': Offer.TYPE_CART,
     'display_location': 'sale', 'variant': 3, 'usage_limit': 200},
]

REVIEWS = [
    ('Traditional Gunyu Cholo Set', 5, 'Beautiful traditional dress, perfect fit and excellent quality!'),
    ('Daura Suruwal Set', 4, 'Great traditional wear, very comfortable and well-made.'),
    ('Kids Kurta Pajama Set', 5, 'Perfect for my child, adorable design and good quality fabric.'),
]


class Command(BaseCommand):
    help = 'Seed the database with sample accounts, categories, products, collections, sales, offers and reviews'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing store data (superusers are kept) before seeding',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the seed inside a transaction that is rolled back',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING STORE"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - all changes will be rolled back'))

        with suspend_cache_signals(), transaction.atomic():
            if options['clear']:
                self.clear_store()
            accounts = self.seed_accounts()
            self.seed_categories()
            self.seed_products()
            self.seed_collections_and_sales()
            self.seed_offers()
            self.seed_reviews(accounts['customer@example.com'])
            self.seed_content()
            if dry_run:
                transaction.set_rollback(True)

        invalidate_all_caches()

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS("Store seeded successfully!" if not dry_run else "Dry run finished."))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        for account in ACCOUNTS:
            self.stdout.write(f"  {account['role'].title()}: {account['email']} / {account['password']}")

    def clear_store(self):
        self.stdout.write(self.style.WARNING('Clearing existing data...'))
        PromoCodeUsage.objects.all().delete()
        Order.objects.all().delete()
        Review.objects.all().delete()
        Offer.objects.all().delete()
        Sale.objects.all().delete()
        Collection.objects.all().delete()
        Product.objects.all().delete()
        Category.objects.all().delete()
        HeroBackground.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        self.stdout.write(self.style.SUCCESS('  ✓ Cleared existing data'))

    def seed_accounts(self):
        accounts = {}
        for data in ACCOUNTS:
            data = dict(data)
            password = data.pop('password')
            user, created = User.objects.get_or_create(
                email=data['email'],
                defaults={**data, 'username': data['email'], 'is_staff': data['role'] == User.ROLE_ADMIN},
            )
            if created:
                user.set_password(password)
                user.save(update_fields=['password'])
            accounts[user.email] = user
            self._report(created, f"{data['role'].title()} {user.email}")

        SiteSetting.objects.get_or_create(
            key=SiteSetting.ADMIN_ACCESS_KEY,
            defaults={'value': hash_access_key(settings.DEFAULT_ADMIN_ACCESS_KEY),
                      'description': 'Hashed key required by admin registration'},
        )
        return accounts

    def seed_categories(self):
        created_count = 0
        for name, slug, parent, description in CATEGORIES:
            _, created = Category.objects.get_or_create(
                slug=slug, defaults={'name': name, 'parent_category': parent, 'description': description}
            )
            created_count += created
        self.stdout.write(self.style.SUCCESS(f'  ✓ Categories: {created_count} created, {len(CATEGORIES)} total'))

    def seed_products(self):
        categories = {category.slug: category for category in Category.objects.all()}
        created_count = 0
        for name, slug, price, original, sizes, colors, stock, featured, new_arrival, tags in PRODUCTS:
            category = categories.get(slug)
            if category is None:
                self.stdout.write(self.style.WARNING(f'  Category not found for slug: {slug}'))
                continue
            _, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    'description': f'{name} from our {category.name} range',
                    'price': Decimal(price),
                    'original_price': Decimal(original) if original else None,
                    'category': category,
                    'sizes': sizes,
                    'colors': colors,
                    'stock': stock,
                    'is_featured': featured,
                    'is_new_arrival': new_arrival,
                    'tags': tags,
                },
            )
            created_count += created
        self.stdout.write(self.style.SUCCESS(f'  ✓ Products: {created_count} created'))

    def seed_collections_and_sales(self):
        now = timezone.now()
        for name, description, discount, tag in COLLECTIONS:
            collection, created = Collection.objects.get_or_create(
                name=name, defaults={'description': description, 'discount_percent': discount}
            )
            self._report(created, f'Collection {name}')
            # JSON containment lookups are not portable to SQLite, so match tags in Python
            tagged = [p for p in Product.objects.filter(is_active=True) if tag in (p.tags or [])]
            for product in tagged:
                ProductCollection.objects.get_or_create(collection=collection, product=product)

            sale, created = Sale.objects.get_or_create(
                name=name,
                defaults={
                    'description': description,
                    'discount_percent': discount,
                    'start_date': now - timedelta(days=1),
                    'end_date': now + timedelta(days=60),
                    'collection': collection,
                },
            )
            self._report(created, f'Sale {name}')
            for product in tagged:
                SaleItem.objects.get_or_create(sale=sale, product=product)
            Product.objects.filter(pk__in=[p.pk for p in tagged]).update(is_on_sale=True)

    def seed_offers(self):
        for data in OFFERS:
            data = dict(data)
            _, created = Offer.objects.get_or_create(title=data.pop('title'), defaults=data)
        self.stdout.write(self.style.SUCCESS(f'  ✓ Offers: {Offer.objects.count()} total'))

    def seed_reviews(self, customer):
        for product_name, rating, comment in REVIEWS:
            product = Product.objects.filter(name=product_name).first()
            if product is None:
                continue
            Review.objects.get_or_create(user=customer, product=product,
                                         defaults={'rating': rating, 'comment': comment})
        self.stdout.write(self.style.SUCCESS(f'  ✓ Reviews: {Review.objects.count()} total'))

    def seed_content(self):
        if HeroBackground.current() is None:
            HeroBackground.activate(image_url=None, is_default=True)
            self.stdout.write(self.style.SUCCESS('  ✓ Default hero background'))

    def _report(self, created, label):
        if created:
            self.stdout.write(self.style.SUCCESS(f'  ✓ Created: {label}'))
        else:
            self.stdout.write(self.style.WARNING(f'  ⊘ Skipped (already exists): {label}'))
