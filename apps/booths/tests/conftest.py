import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.booths.models import Booth, BoothMembership, BoothRole, Product, PendingBooth


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
def manager(db):
    """Create a student who manages the booth."""
    return User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        student_number='3000001',
        name='Booth Manager',
    )


@pytest.fixture
def member(db):
    """Create a student with member access to the booth."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        student_number='3000002',
        name='Booth Member',
    )


@pytest.fixture
def outsider(db):
    """Create a student with no booth access."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        student_number='3000003',
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
def booth(db, manager, member):
    """Create a booth with one manager and one member."""
    booth = Booth.objects.create(
        name='Robotics Club',
        description='Snacks for the build season',
        pin='246810',
        created_by=manager,
    )
    BoothMembership.objects.create(user=manager, booth=booth, role=BoothRole.MANAGER)
    BoothMembership.objects.create(user=member, booth=booth, role=BoothRole.MEMBER)
    return booth


@pytest.fixture
def product(booth):
    return Product.objects.create(booth=booth, name='Granola Bar', price_cents=125)


@pytest.fixture
def pending_request(db):
    """A teacher booth request awaiting review."""
    return PendingBooth.objects.create(
        teacher_name='Ms. Rivera',
        teacher_email='rivera@school.example.com',
        initiative_name='Grade 10 Fundraiser',
        initiative_description='Raising money for the field trip',
        products=[
            {'name': 'Hot Chocolate', 'price_cents': 200},
            {'name': 'Cupcake', 'price_cents': 250},
        ],
    )


@pytest.fixture
def manager_client(manager):
    """Return API client authenticated as the booth manager."""
    return _client_for(manager)


@pytest.fixture
def member_client(member):
    """Return API client authenticated as a booth member."""
    return _client_for(member)


@pytest.fixture
def outsider_client(outsider):
    """Return API client authenticated as a student without booth access."""
    return _client_for(outsider)


@pytest.fixture
def sac_client(sac_user):
    """Return API client authenticated as SAC."""
    return _client_for(sac_user)
