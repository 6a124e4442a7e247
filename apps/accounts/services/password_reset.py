"""
Password reset.

Accounts created by a CSV import start without a usable password, so this
is also how an imported student sets their first one.
"""

import logging
import secrets

from django.db import transaction
from django.db.models import Q
from django.contrib.auth import get_user_model

from .exceptions import UserNotFoundError, InvalidTokenError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def request_password_reset(*, identifier: str) -> str:
    """
    Issue a reset token for the account with this student number or email.

    A new request replaces any earlier token.

    Raises:
        UserNotFoundError: If no active account matches
    """
    identifier = identifier.strip()
    try:
        user = (
            User.objects
            .select_for_update()
            .get(Q(student_number=identifier) | Q(email__iexact=identifier), is_active=True)
        )
    except (User.DoesNotExist, User.MultipleObjectsReturned):
        raise UserNotFoundError(f"No active account for {identifier}")

    user.verification_token = secrets.token_urlsafe(32)
    user.save(update_fields=['verification_token'])

    logger.info("Password reset requested for user %s", user.id)
    return user.verification_token


@transaction.atomic
def confirm_password_reset(*, token: str, new_password: str) -> User:
    """
    Set a new password and burn the token.

    Raises:
        InvalidTokenError: If no active account holds this token
    """
    if not token:
        raise InvalidTokenError("Invalid or expired reset token")
    try:
        user = (
            User.objects
            .select_for_update()
            .get(verification_token=token, is_active=True)
        )
    except User.DoesNotExist:
        raise InvalidTokenError("Invalid or expired reset token")

    had_password = user.has_usable_password()
    user.set_password(new_password)
    user.verification_token = None
    user.save(update_fields=['password', 'verification_token'])

    logger.info(
        "Password %s for user %s", 'reset' if had_password else 'set', user.id
    )
    return user
