"""
Booth management service.

Handles booth CRUD operations with proper transaction safety.
"""

import logging
import secrets
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import Prefetch, QuerySet

from apps.accounts.models import User
from apps.booths.models import Booth, BoothMembership, BoothRole, Product

from .exceptions import (
    BoothNotFoundError,
    DuplicatePinError,
    InvalidPinError,
    InsufficientPermissionsError,
)

logger = logging.getLogger(__name__)


def generate_booth_pin() -> str:
    """Random numeric PIN with no leading zero (e.g. 6 digits: 100000-999999)."""
    length = settings.FRASERPAY_BOOTH_PIN_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def validate_pin(pin: str) -> str:
    pin = (pin or '').strip()
    if not pin.isdigit() or not 4 <= len(pin) <= 12:
        raise InvalidPinError("PIN must be 4 to 12 digits")
    return pin


def create_booth(
    *,
    name: str,
    creator: User,
    description: str = '',
    pin: Optional[str] = None,
    max_retries: int = 5
) -> Booth:
    """
    Create a new booth and give the creator manager access.

    This is a multi-step operation wrapped in a transaction:
    1. Pick the PIN (given, or random)
    2. Create the booth
    3. Create manager membership

    Args:
        name: Booth name
        creator: User who will manage the booth
        description: Optional booth description
        pin: Optional custom PIN; must be unused
        max_retries: Maximum attempts to generate a unique random PIN

    Returns:
        Created Booth instance

    Raises:
        InvalidPinError: If a custom PIN is malformed
        DuplicatePinError: If a custom PIN is already taken
        RuntimeError: If cannot generate unique PIN after retries
    """
    if pin is not None:
        pin = validate_pin(pin)
        try:
            with transaction.atomic():
                booth = _create_with_manager(name, description, pin, creator)
        except IntegrityError:
            raise DuplicatePinError(f"PIN {pin} is already used by another booth")
        logger.info("Booth %s (%s) created by %s", booth.id, booth.name, creator.id)
        return booth

    # Retry logic outside transaction to handle PIN collisions
    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                booth = _create_with_manager(name, description, generate_booth_pin(), creator)
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique booth PIN after {max_retries} attempts"
                )
            continue
        logger.info("Booth %s (%s) created by %s", booth.id, booth.name, creator.id)
        return booth

    raise RuntimeError("Unexpected error in booth creation")


def _create_with_manager(name, description, pin, creator):
    booth = Booth.objects.create(
        name=name,
        description=description,
        pin=pin,
        created_by=creator,
    )
    BoothMembership.objects.create(
        user=creator,
        booth=booth,
        role=BoothRole.MANAGER
    )
    return booth


def get_booth_by_id(*, booth_id: UUID) -> Booth:
    """
    Get a booth with its members and available products.

    Raises:
        BoothNotFoundError: If booth doesn't exist
    """
    try:
        return (
            Booth.objects
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=BoothMembership.objects.select_related('user')
                ),
                Prefetch(
                    'products',
                    queryset=Product.objects.available()
                ),
            )
            .get(id=booth_id)
        )
    except (Booth.DoesNotExist, ValidationError):
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")


def get_booths_for_user(*, user: User) -> QuerySet[Booth]:
    """Booths the user has access to, in join order."""
    return (
        Booth.objects
        .filter(memberships__user=user, is_active=True)
        .order_by('memberships__joined_at')
        .distinct()
    )


def list_booths(*, include_inactive: bool = False) -> QuerySet[Booth]:
    booths = Booth.objects.all()
    if not include_inactive:
        booths = booths.filter(is_active=True)
    return booths.order_by('name')


def get_leaderboard(*, limit: Optional[int] = None) -> QuerySet[Booth]:
    """Active booths ranked by total sales, highest first."""
    booths = Booth.objects.filter(is_active=True).order_by('-sales_cents', 'name')
    if limit:
        booths = booths[:limit]
    return booths


@transaction.atomic
def update_booth(
    *,
    booth_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
    pin: Optional[str] = None,
    is_active: Optional[bool] = None
) -> Booth:
    """
    Update booth details (manager or SAC).

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        BoothNotFoundError: If booth doesn't exist
        InsufficientPermissionsError: If user cannot manage the booth
        InvalidPinError: If the new PIN is malformed
        DuplicatePinError: If the new PIN is taken
    """
    try:
        booth = (
            Booth.objects
            .select_for_update()
            .get(id=booth_id)
        )
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    if not booth.can_manage(user):
        raise InsufficientPermissionsError("Only booth managers can update the booth")

    update_fields = ['updated_at']

    if name is not None:
        booth.name = name
        update_fields.append('name')

    if description is not None:
        booth.description = description
        update_fields.append('description')

    if pin is not None:
        booth.pin = validate_pin(pin)
        update_fields.append('pin')

    if is_active is not None:
        booth.is_active = is_active
        update_fields.append('is_active')

    try:
        with transaction.atomic():
            booth.save(update_fields=update_fields)
    except IntegrityError:
        raise DuplicatePinError(f"PIN {booth.pin} is already used by another booth")

    return booth


@transaction.atomic
def delete_booth(*, booth_id: UUID, user: User) -> bool:
    """
    Delete a booth (SAC only).

    A booth with recorded transactions is deactivated instead, so its
    sales history stays intact.

    Returns:
        True if the booth was deleted, False if it was deactivated

    Raises:
        BoothNotFoundError: If booth doesn't exist
        InsufficientPermissionsError: If user is not SAC
    """
    if not user.is_sac:
        raise InsufficientPermissionsError("Only SAC can delete booths")

    try:
        booth = (
            Booth.objects
            .select_for_update()
            .get(id=booth_id)
        )
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    if booth.transactions.exists():
        booth.is_active = False
        booth.save(update_fields=['is_active', 'updated_at'])
        logger.info("Booth %s has transactions; deactivated instead of deleted", booth.id)
        return False

    booth.delete()
    logger.info("Booth %s deleted by %s", booth_id, user.id)
    return True


@transaction.atomic
def regenerate_pin(
    *,
    booth_id: UUID,
    user: User,
    max_retries: int = 5
) -> str:
    """
    Give a booth a fresh random PIN (manager or SAC).

    Raises:
        BoothNotFoundError: If booth doesn't exist
        InsufficientPermissionsError: If user cannot manage the booth
        RuntimeError: If cannot generate unique PIN after retries
    """
    try:
        booth = (
            Booth.objects
            .select_for_update()
            .get(id=booth_id)
        )
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    if not booth.can_manage(user):
        raise InsufficientPermissionsError("Only booth managers can regenerate the PIN")

    for attempt in range(max_retries):
        booth.pin = generate_booth_pin()
        try:
            with transaction.atomic():
                booth.save(update_fields=['pin', 'updated_at'])
            return booth.pin
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique booth PIN after {max_retries} attempts"
                )
            continue

    raise RuntimeError("Unexpected error in PIN generation")
