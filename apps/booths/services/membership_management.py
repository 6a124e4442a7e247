"""
Membership management service.

Booth access is granted by entering the booth's PIN.
"""

import logging
from typing import Tuple
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.booths.models import Booth, BoothMembership, BoothRole

from .exceptions import (
    BoothNotFoundError,
    InvalidPinError,
    NotMemberError,
    LastManagerError,
    InsufficientPermissionsError,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def join_booth_by_pin(*, user: User, pin: str) -> Tuple[BoothMembership, bool]:
    """
    Join whichever active booth uses this PIN.

    Joining a booth the user already has access to is not an error; the
    existing membership is returned.

    Args:
        user: User entering the PIN
        pin: Booth PIN

    Returns:
        (membership, created) tuple

    Raises:
        InvalidPinError: If no active booth has this PIN
    """
    pin = (pin or '').strip()
    try:
        booth = (
            Booth.objects
            .select_for_update()
            .get(pin=pin, is_active=True)
        )
    except Booth.DoesNotExist:
        logger.warning("User %s entered an unknown booth PIN", user.id)
        raise InvalidPinError("Invalid booth PIN")

    existing = BoothMembership.objects.filter(user=user, booth=booth).first()
    if existing:
        return existing, False

    try:
        with transaction.atomic():
            membership = BoothMembership.objects.create(
                user=user,
                booth=booth,
                role=BoothRole.MEMBER
            )
    except IntegrityError:
        return BoothMembership.objects.get(user=user, booth=booth), False

    logger.info("User %s joined booth %s", user.id, booth.id)
    return membership, True


def _only_manager(booth: Booth, user_id) -> bool:
    managers = booth.memberships.filter(role=BoothRole.MANAGER)
    return managers.count() == 1 and managers.filter(user_id=user_id).exists()


@transaction.atomic
def leave_booth(*, booth_id: UUID, user: User) -> None:
    """
    Give up access to a booth.

    Raises:
        BoothNotFoundError: If booth doesn't exist
        NotMemberError: If user is not a member
        LastManagerError: If user is the booth's only manager
    """
    try:
        booth = Booth.objects.select_for_update().get(id=booth_id)
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    try:
        membership = (
            BoothMembership.objects
            .select_for_update()
            .get(user=user, booth=booth)
        )
    except BoothMembership.DoesNotExist:
        raise NotMemberError(f"User is not a member of {booth.name}")

    if membership.role == BoothRole.MANAGER and _only_manager(booth, user.id):
        raise LastManagerError("The only manager cannot leave the booth")

    membership.delete()


@transaction.atomic
def remove_member(
    *,
    booth_id: UUID,
    user_id: UUID,
    removed_by: User
) -> None:
    """
    Remove someone's access to a booth (manager or SAC).

    Raises:
        BoothNotFoundError: If booth doesn't exist
        InsufficientPermissionsError: If removed_by cannot manage the booth
        NotMemberError: If target user is not a member
        LastManagerError: If target is the only manager
    """
    try:
        booth = Booth.objects.select_for_update().get(id=booth_id)
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    if not booth.can_manage(removed_by):
        raise InsufficientPermissionsError("Only booth managers can remove members")

    try:
        membership = (
            BoothMembership.objects
            .select_for_update()
            .get(booth=booth, user_id=user_id)
        )
    except (BoothMembership.DoesNotExist, ValidationError):
        raise NotMemberError("User is not a member of this booth")

    if membership.role == BoothRole.MANAGER and _only_manager(booth, user_id):
        raise LastManagerError("Cannot remove the booth's only manager")

    membership.delete()
    logger.info("User %s removed from booth %s by %s", user_id, booth.id, removed_by.id)


def get_booth_members(*, booth_id: UUID) -> QuerySet[BoothMembership]:
    """
    Get all members of a booth, managers first.

    Raises:
        BoothNotFoundError: If booth doesn't exist
    """
    if not Booth.objects.filter(id=booth_id).exists():
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    return (
        BoothMembership.objects
        .filter(booth_id=booth_id)
        .select_related('user')
        .order_by('role', 'joined_at')
    )
