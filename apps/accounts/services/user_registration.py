"""User registration service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from apps.accounts.models import UserRole
from .exceptions import DuplicateAccountError, UserRegistrationError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    student_number: str,
    name: str,
    email: str,
    password: str = None,
    role: str = UserRole.STUDENT,
) -> User:
    """
    Register a new account.

    Students start with an empty balance. A ``None`` password leaves the
    account with an unusable password (bulk imports); the holder sets one
    through password reset.

    Args:
        student_number: School-issued student number
        name: Full name
        email: Email address
        password: Raw password (will be hashed), or None
        role: 'student' or 'sac'

    Returns:
        Created User instance

    Raises:
        DuplicateAccountError: If student number or email is already taken
        UserRegistrationError: If registration fails for another reason
    """
    email = User.objects.normalize_email(email).lower()

    if User.objects.filter(student_number=student_number).exists() or \
            User.objects.filter(email__iexact=email).exists():
        raise DuplicateAccountError('Student number or email already registered')

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                student_number=student_number,
                name=name,
                role=role,
            )
    except IntegrityError:
        raise DuplicateAccountError('Student number or email already registered')
    except ValueError as e:
        raise UserRegistrationError(f"Registration failed: {e}")

    logger.info("Registered %s account %s (%s)", role, user.id, student_number)
    return user
