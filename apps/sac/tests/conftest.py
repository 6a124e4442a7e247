import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.booths.models import Booth, BoothMembership, BoothRole, Product


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def sac_user(db):
    """Create a SAC staff member."""
    return User.objects.create_user(
        email='sac@example.com',
        password='TestPass123!',
        student_number='9000001',
        name='SAC Staff',
        role=UserRole.SAC,
    )


@pytest.fixture
def student(db):
    """Create a student with $20.00."""
    return User.objects.create_user(
        email='student@example.com',
        password='TestPass123!',
        student_number='4000001',
        name='Riley Student',
        balance_cents=2000,
    )


@pytest.fixture
def booth(db, sac_user):
    booth = Booth.objects.create(name='Bake Sale', pin='482913', created_by=sac_user)
    BoothMembership.objects.create(user=sac_user, booth=booth, role=BoothRole.MANAGER)
    return booth


@pytest.fixture
def cookie(booth):
    return Product.objects.create(booth=booth, name='Cookie', price_cents=150)


@pytest.fixture
def sac_client(sac_user):
    """Return API client authenticated as SAC."""
    return _client_for(sac_user)


@pytest.fixture
def student_client(student):
    """Return API client authenticated as a student."""
    return _client_for(student)


@pytest.fixture
def user_csv():
    return (
        'studentNumber,name,email,role,tickets\n'
        '5000001,"Doe, John",john@example.com,student,500\n'
        '\n'
        '5000002,Jane Smith,jane@example.com,admin,\n'
        '5000003,Sac Helper,helper@example.com,sac,0\n'
    )


@pytest.fixture
def booth_csv():
    return (
        'name,description,pin,product_name,product_price,product_image\n'
        'Food Booth,Delicious food items,1234,Hot Dog,5.99,\n'
        'Food Booth,Delicious food items,1234,Fries,3.50,\n'
        'Drink Booth,Refreshing beverages,,Soda,2.50,\n'
    )


@pytest.fixture
def api_client():
    return APIClient()
