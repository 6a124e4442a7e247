"""
Management command to create sample data for testing the API.

Usage:
    python manage.py create_sample_data

This creates:
- 1 SAC account and 4 students
- 3 booths with products and members
- Opening funds for every student
- A few purchases
- 1 pending booth request
"""

from django.core.management.base import BaseCommand
from django.db import transaction
import random

from apps.accounts.models import User, UserRole
from apps.booths.models import Booth, BoothMembership, BoothRole, Product, PendingBooth
from apps.booths.services import create_booth, add_product
from apps.ledger.models import Transaction, TransactionItem
from apps.ledger.services import PaymentService


BOOTHS = [
    {
        'name': 'Bake Sale',
        'description': 'Cookies, brownies and banana bread from the baking club',
        'pin': '482913',
        'products': [('Cookie', 150), ('Brownie', 300), ('Banana Bread', 250)],
    },
    {
        'name': 'Lemonade Stand',
        'description': 'Fresh lemonade and iced tea',
        'pin': '731502',
        'products': [('Lemonade', 200), ('Iced Tea', 200)],
    },
    {
        'name': 'Robotics Raffle',
        'description': 'Raffle tickets for the robotics team trip',
        'pin': '246810',
        'products': [('Raffle Ticket', 100), ('Raffle Strip (6)', 500)],
    },
]


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        # Create users
        users = self.create_users()

        # Create booths
        booths = self.create_booths(users)

        # Fund students
        self.create_funds(users)

        # Create purchases
        self.create_purchases(users, booths)

        # Create booth request
        self.create_booth_request()

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  sac@example.com / sac12345 (SAC, superuser)')
        self.stdout.write('  alice@example.com / password123 (manages Bake Sale)')
        self.stdout.write('  bob@example.com / password123')
        self.stdout.write('  charlie@example.com / password123')
        self.stdout.write('  dana@example.com / password123')
        self.stdout.write('')
        self.stdout.write('Booth PINs:')
        for data in BOOTHS:
            self.stdout.write(f"  {data['name']}: {data['pin']}")

    def clear_data(self):
        """Clear all data from the database."""
        TransactionItem.objects.all().delete()
        Transaction.objects.all().delete()
        PendingBooth.objects.all().delete()
        Product.objects.all().delete()
        BoothMembership.objects.all().delete()
        Booth.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='sac@example.com').delete()

    def create_users(self):
        """Create the SAC account and students."""
        self.stdout.write('  Creating users...')

        sac, _ = User.objects.get_or_create(
            email='sac@example.com',
            defaults={
                'name': 'SAC Admin',
                'student_number': '9000001',
                'role': UserRole.SAC,
                'is_staff': True,
                'is_superuser': True,
            }
        )
        sac.set_password('sac12345')
        sac.save()

        students = {}
        for key, name, number in [
            ('alice', 'Alice Chen', '1000001'),
            ('bob', 'Bob Singh', '1000002'),
            ('charlie', 'Charlie Okafor', '1000003'),
            ('dana', 'Dana Kowalski', '1000004'),
        ]:
            student, _ = User.objects.get_or_create(
                email=f'{key}@example.com',
                defaults={
                    'name': name,
                    'student_number': number,
                }
            )
            student.set_password('password123')
            student.save()
            students[key] = student

        return {'sac': sac, **students}

    def create_booths(self, users):
        """Create booths, their menus and memberships."""
        self.stdout.write('  Creating booths...')

        booths = {}
        for data in BOOTHS:
            booth = Booth.objects.filter(name=data['name']).first()
            if booth is None:
                booth = create_booth(
                    name=data['name'],
                    description=data['description'],
                    pin=data['pin'],
                    creator=users['sac'],
                )
                for name, price_cents in data['products']:
                    add_product(booth_id=booth.id, user=users['sac'], name=name, price_cents=price_cents)
            booths[data['name']] = booth

        # Alice runs the bake sale, Bob helps at the lemonade stand
        BoothMembership.objects.get_or_create(
            user=users['alice'],
            booth=booths['Bake Sale'],
            defaults={'role': BoothRole.MANAGER}
        )
        BoothMembership.objects.get_or_create(
            user=users['bob'],
            booth=booths['Lemonade Stand'],
            defaults={'role': BoothRole.MEMBER}
        )
        return booths

    def create_funds(self, users):
        """Give every student without history an opening balance."""
        self.stdout.write('  Adding funds...')

        for key in ['alice', 'bob', 'charlie', 'dana']:
            student = users[key]
            if Transaction.objects.filter(buyer=student).exists():
                continue
            PaymentService.add_funds(
                student=student,
                amount_cents=random.choice([1000, 2000, 2500]),
                sac_member=users['sac'],
                payment_method=random.choice(['cash', 'card']),
                note='Sample opening balance',
            )

    def create_purchases(self, users, booths):
        """Ring up a few purchases at each booth."""
        self.stdout.write('  Creating purchases...')

        sellers = {
            'Bake Sale': users['alice'],
            'Lemonade Stand': users['bob'],
            'Robotics Raffle': users['sac'],
        }
        for key in ['bob', 'charlie', 'dana']:
            buyer = users[key]
            for booth_name, booth in booths.items():
                product = booth.products.available().order_by('name').first()
                PaymentService.process_purchase(
                    booth_id=booth.id,
                    buyer=buyer,
                    items=[(product.id, 1)],
                    seller=sellers[booth_name],
                    idempotency_key=f'sample-{key}-{booth.pin}',
                )

    def create_booth_request(self):
        """Create a pending booth request for SAC review."""
        self.stdout.write('  Creating booth request...')

        PendingBooth.objects.get_or_create(
            initiative_name='Grade 10 Fundraiser',
            defaults={
                'teacher_name': 'Ms. Rivera',
                'teacher_email': 'rivera@example.com',
                'initiative_description': 'Hot chocolate sale for the grade 10 trip',
                'products': [
                    {'name': 'Hot Chocolate', 'price_cents': 200},
                    {'name': 'Cupcake', 'price_cents': 250},
                ],
            }
        )
