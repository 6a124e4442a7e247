"""
Product management service.

Products are never hard-deleted: transaction items keep pointing at them.
"""

import logging
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.booths.models import Booth, Product

from .exceptions import (
    BoothNotFoundError,
    ProductNotFoundError,
    InvalidProductError,
    InsufficientPermissionsError,
)

logger = logging.getLogger(__name__)


def _get_booth_for_edit(booth_id, user) -> Booth:
    try:
        booth = Booth.objects.get(id=booth_id)
    except Booth.DoesNotExist:
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    if not booth.can_sell(user):
        raise InsufficientPermissionsError("Only booth members can manage products")
    return booth


def _check_price(price_cents):
    if price_cents is None or int(price_cents) <= 0:
        raise InvalidProductError("Price must be a positive number of cents")


@transaction.atomic
def add_product(
    *,
    booth_id: UUID,
    user: User,
    name: str,
    price_cents: int,
    image: str = ''
) -> Product:
    """
    Add a product to a booth's menu.

    Raises:
        BoothNotFoundError: If booth doesn't exist
        InsufficientPermissionsError: If user has no access to the booth
        InvalidProductError: If name is blank or price is not positive
    """
    booth = _get_booth_for_edit(booth_id, user)

    name = (name or '').strip()
    if not name:
        raise InvalidProductError("Product name is required")
    _check_price(price_cents)

    product = Product.objects.create(
        booth=booth,
        name=name,
        price_cents=price_cents,
        image=image or '',
    )
    logger.info("Product %s added to booth %s", product.id, booth.id)
    return product


@transaction.atomic
def update_product(
    *,
    booth_id: UUID,
    product_id: UUID,
    user: User,
    name: Optional[str] = None,
    price_cents: Optional[int] = None,
    image: Optional[str] = None
) -> Product:
    """
    Edit a product. Past transactions keep their own price snapshot.

    Raises:
        ProductNotFoundError: If the product is not an available product of the booth
        InvalidProductError: If the new values are invalid
    """
    booth = _get_booth_for_edit(booth_id, user)

    try:
        product = (
            Product.objects
            .available()
            .select_for_update()
            .get(id=product_id, booth=booth)
        )
    except (Product.DoesNotExist, ValidationError):
        raise ProductNotFoundError("Product not found in this booth")

    update_fields = ['updated_at']

    if name is not None:
        name = name.strip()
        if not name:
            raise InvalidProductError("Product name is required")
        product.name = name
        update_fields.append('name')

    if price_cents is not None:
        _check_price(price_cents)
        product.price_cents = price_cents
        update_fields.append('price_cents')

    if image is not None:
        product.image = image
        update_fields.append('image')

    product.save(update_fields=update_fields)
    return product


@transaction.atomic
def remove_product(*, booth_id: UUID, product_id: UUID, user: User) -> None:
    """
    Soft-delete a product: hidden from the menu, kept for history.

    Raises:
        ProductNotFoundError: If the product is not an available product of the booth
    """
    booth = _get_booth_for_edit(booth_id, user)

    updated = (
        Product.objects
        .available()
        .filter(id=product_id, booth=booth)
        .update(is_deleted=True, deleted_at=timezone.now(), updated_at=timezone.now())
    )
    if not updated:
        raise ProductNotFoundError("Product not found in this booth")

    logger.info("Product %s removed from booth %s", product_id, booth.id)


def get_booth_products(*, booth_id: UUID) -> QuerySet[Product]:
    """Available products of a booth."""
    if not Booth.objects.filter(id=booth_id).exists():
        raise BoothNotFoundError(f"Booth with ID {booth_id} not found")

    return Product.objects.available().filter(booth_id=booth_id).order_by('name')
