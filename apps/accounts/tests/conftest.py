import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a test student."""
    return User.objects.create_user(
        email='testuser@example.com',
        password='TestPass123!',
        student_number='1000001',
        name='Test User',
        balance_cents=2500,
    )


@pytest.fixture
def user_inactive(db):
    """Create and return an inactive user."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        student_number='1000002',
        name='Inactive User',
        is_active=False,
    )


@pytest.fixture
def other_user(db):
    """Create and return another test student."""
    return User.objects.create_user(
        email='otheruser@example.com',
        password='OtherPass123!',
        student_number='1000003',
        name='Other User',
    )


@pytest.fixture
def sac_user(db):
    """Create and return a SAC staff member."""
    return User.objects.create_user(
        email='sac@example.com',
        password='TestPass123!',
        student_number='9000001',
        name='SAC Staff',
        role=UserRole.SAC,
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def sac_client(sac_user):
    """Return an API client authenticated as SAC."""
    client = APIClient()
    refresh = RefreshToken.for_user(sac_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def user_with_reset_token(db):
    """Create a user with a password reset token."""
    user = User.objects.create_user(
        email='resetuser@example.com',
        password='OldPass123!',
        student_number='1000004',
        name='Reset User',
    )
    user.verification_token = 'valid-reset-token-12345'
    user.save()
    return user
