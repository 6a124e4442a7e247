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
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def student(db):
    """Create a student with $25.00."""
    return User.objects.create_user(
        email='student@example.com',
        password='TestPass123!',
        student_number='2000001',
        name='Sam Student',
        balance_cents=2500,
    )


@pytest.fixture
def broke_student(db):
    """Create a student with an empty balance."""
    return User.objects.create_user(
        email='broke@example.com',
        password='TestPass123!',
        student_number='2000002',
        name='Broke Student',
    )


@pytest.fixture
def seller(db):
    """Create a student who works the bake sale booth."""
    return User.objects.create_user(
        email='seller@example.com',
        password='TestPass123!',
        student_number='2000003',
        name='Booth Seller',
    )


@pytest.fixture
def outsider(db):
    """Create a student with no booth access."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        student_number='2000004',
        name='Outsider',
    )


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
def booth(db, seller):
    """Create a booth with the seller as manager."""
    booth = Booth.objects.create(name='Bake Sale', pin='482913', created_by=seller)
    BoothMembership.objects.create(user=seller, booth=booth, role=BoothRole.MANAGER)
    return booth


@pytest.fixture
def other_booth(db):
    """Create a second booth with its own menu."""
    return Booth.objects.create(name='Lemonade Stand', pin='731146')


@pytest.fixture
def cookie(booth):
    return Product.objects.create(booth=booth, name='Cookie', price_cents=150)


@pytest.fixture
def brownie(booth):
    return Product.objects.create(booth=booth, name='Brownie', price_cents=300)


@pytest.fixture
def lemonade(other_booth):
    return Product.objects.create(booth=other_booth, name='Lemonade', price_cents=200)


@pytest.fixture
def student_client(student):
    """Return API client authenticated as the student."""
    return _client_for(student)


@pytest.fixture
def seller_client(seller):
    """Return API client authenticated as the booth seller."""
    return _client_for(seller)


@pytest.fixture
def outsider_client(outsider):
    """Return API client authenticated as a student without booth access."""
    return _client_for(outsider)


@pytest.fixture
def sac_client(sac_user):
    """Return API client authenticated as SAC."""
    return _client_for(sac_user)
