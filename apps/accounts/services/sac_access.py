"""SAC role elevation."""

import hmac
import logging

from django.conf import settings
from django.db import transaction
from django.contrib.auth import get_user_model

from apps.accounts.models import UserRole
from .exceptions import InvalidSACPinError

User = get_user_model()

logger = logging.getLogger(__name__)


def check_sac_pin(pin: str) -> bool:
    """Constant-time comparison against the configured SAC PIN."""
    expected = str(settings.FRASERPAY_SAC_PIN)
    return hmac.compare_digest(str(pin or ''), expected)


@transaction.atomic
def verify_sac_access(*, user: User, pin: str) -> User:
    """
    Promote a user to the SAC role if the PIN matches.

    Already-SAC users are returned unchanged.

    Raises:
        InvalidSACPinError: If the PIN is wrong
    """
    if not check_sac_pin(pin):
        logger.warning("Rejected SAC PIN for user %s", user.id)
        raise InvalidSACPinError("Invalid PIN")

    user = User.objects.select_for_update().get(id=user.id)
    if user.role != UserRole.SAC:
        user.role = UserRole.SAC
        user.save(update_fields=['role', 'updated_at'])
        logger.info("Granted SAC access to user %s", user.id)

    return user
