"""
Teacher booth requests.

Teachers submit an initiative without an account; SAC staff approve it
(creating the booth and its products) or reject it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.booths.models import Booth, BoothRequestStatus, PendingBooth, Product

from .booth_management import create_booth
from .exceptions import (
    BoothRequestNotFoundError,
    BoothRequestAlreadyReviewedError,
    InsufficientPermissionsError,
    InvalidProductError,
)

logger = logging.getLogger(__name__)


def _clean_requested_products(products) -> List[dict]:
    cleaned = []
    for item in products or []:
        name = str(item.get('name', '')).strip()
        price_cents = item.get('price_cents')
        if not name:
            raise InvalidProductError("Each requested product needs a name")
        if not isinstance(price_cents, int) or isinstance(price_cents, bool) or price_cents <= 0:
            raise InvalidProductError(f"Invalid price for product {name!r}")
        cleaned.append({'name': name, 'price_cents': price_cents})
    return cleaned


def submit_booth_request(
    *,
    teacher_name: str,
    teacher_email: str,
    initiative_name: str,
    initiative_description: str = '',
    products: Optional[List[dict]] = None
) -> PendingBooth:
    """
    Record a teacher's booth request for SAC review.

    Raises:
        InvalidProductError: If a requested product has no name or a bad price
    """
    request = PendingBooth.objects.create(
        teacher_name=teacher_name,
        teacher_email=teacher_email,
        initiative_name=initiative_name,
        initiative_description=initiative_description,
        products=_clean_requested_products(products),
    )
    logger.info("Booth request %s submitted by %s", request.id, teacher_email)
    return request


def list_pending_booths(*, status: Optional[str] = BoothRequestStatus.PENDING) -> QuerySet[PendingBooth]:
    requests = PendingBooth.objects.select_related('reviewed_by', 'booth')
    if status:
        requests = requests.filter(status=status)
    return requests.order_by('-created_at')


def _lock_pending(request_id) -> PendingBooth:
    try:
        request = PendingBooth.objects.select_for_update().get(id=request_id)
    except PendingBooth.DoesNotExist:
        raise BoothRequestNotFoundError(f"Booth request {request_id} not found")

    if request.status != BoothRequestStatus.PENDING:
        raise BoothRequestAlreadyReviewedError(f"Booth request is already {request.status}")
    return request


@transaction.atomic
def approve_booth_request(*, request_id: UUID, reviewer: User) -> Booth:
    """
    Approve a request: create the booth with a random PIN and the requested
    products. The reviewing SAC member becomes the booth's manager.

    Raises:
        InsufficientPermissionsError: If reviewer is not SAC
        BoothRequestNotFoundError: If the request doesn't exist
        BoothRequestAlreadyReviewedError: If it was already approved or rejected
    """
    if not reviewer.is_sac:
        raise InsufficientPermissionsError("Only SAC can review booth requests")

    request = _lock_pending(request_id)

    booth = create_booth(
        name=request.initiative_name,
        description=request.initiative_description,
        creator=reviewer,
    )
    Product.objects.bulk_create([
        Product(booth=booth, name=item['name'], price_cents=item['price_cents'])
        for item in request.products
    ])

    request.status = BoothRequestStatus.APPROVED
    request.reviewed_by = reviewer
    request.reviewed_at = timezone.now()
    request.booth = booth
    request.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'booth'])

    logger.info("Booth request %s approved by %s as booth %s", request.id, reviewer.id, booth.id)
    return booth


@transaction.atomic
def reject_booth_request(*, request_id: UUID, reviewer: User, reason: str = '') -> PendingBooth:
    """
    Reject a request. The row is kept with its status for the record.

    Raises:
        InsufficientPermissionsError: If reviewer is not SAC
        BoothRequestNotFoundError: If the request doesn't exist
        BoothRequestAlreadyReviewedError: If it was already approved or rejected
    """
    if not reviewer.is_sac:
        raise InsufficientPermissionsError("Only SAC can review booth requests")

    request = _lock_pending(request_id)
    request.status = BoothRequestStatus.REJECTED
    request.rejection_reason = reason
    request.reviewed_by = reviewer
    request.reviewed_at = timezone.now()
    request.save(update_fields=['status', 'rejection_reason', 'reviewed_by', 'reviewed_at'])

    logger.info("Booth request %s rejected by %s", request.id, reviewer.id)
    return request
