"""User authentication service."""

import logging

from django.db import transaction
from django.db.models import Q
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def authenticate_user(*, identifier: str, password: str) -> User:
    """
    Authenticate with a student number or email plus password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        identifier: Student number or email
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    identifier = identifier.strip()
    try:
        user = (
            User.objects
            .select_for_update()
            .get(Q(student_number=identifier) | Q(email__iexact=identifier))
        )
    except (User.DoesNotExist, User.MultipleObjectsReturned):
        logger.warning("Login failed for unknown identifier %r", identifier)
        raise InvalidCredentialsError("Invalid student number or password")

    if not user.check_password(password):
        logger.warning("Login failed for user %s: bad password", user.id)
        raise InvalidCredentialsError("Invalid student number or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return user
