"""
Ledger Services Module
======================

This module provides the business logic for every balance movement in
FraserPay: booth purchases, SAC fund/refund entries and manual balance
adjustments.

Classes:
    PaymentService: Applies balance changes and writes the matching
        transaction rows.

Example:
    Ringing up a purchase at a booth::

        from apps.ledger.services import PaymentService

        txn, created = PaymentService.process_purchase(
            booth_id=booth.id,
            buyer=student,
            items=[(cookie.id, 2), (lemonade.id, 1)],
            seller=request.user,
            idempotency_key='b7c1d0e2-checkout-1',
        )
        print(f"Charged {txn.amount_cents} cents, {txn.balance_after_cents} left")

Note:
    Every method runs inside a single database transaction and locks the
    student's row with SELECT ... FOR UPDATE before reading the balance.
    Debits are also conditional on the stored balance, so two concurrent
    purchases can never both spend the same money.
"""

import logging
from collections import OrderedDict

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import F

from apps.accounts.services import check_sac_pin
from apps.booths.models import Booth, Product
from .models import Transaction, TransactionItem, TransactionType, PaymentMethod
from .exceptions import (
    EmptyCartError,
    InvalidQuantityError,
    ProductUnavailableError,
    BoothUnavailableError,
    BuyerUnavailableError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidVerificationPinError,
    NotAuthorizedError,
    IdempotencyConflictError,
)

User = get_user_model()

logger = logging.getLogger(__name__)


def format_cents(cents):
    return f"${cents / 100:.2f}"


class PaymentService:
    """
    Service for applying balance changes.

    Methods:
        process_purchase: Charge a student for a booth cart.
        add_funds: Record a SAC-desk top-up (positive) or refund (negative).
        adjust_balance: Set a balance directly after SAC PIN re-entry.
    """

    @staticmethod
    def _normalize_items(items):
        """
        Merge a cart into an ordered ``{product_id: quantity}`` mapping.

        Args:
            items (list[tuple]): ``(product_id, quantity)`` pairs. The same
                product may appear more than once.

        Raises:
            EmptyCartError: If there are no items.
            InvalidQuantityError: If a quantity is not a positive integer.
        """
        if not items:
            raise EmptyCartError("Cart is empty")

        merged = OrderedDict()
        for product_id, quantity in items:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidQuantityError(f"Invalid quantity {quantity!r} for product {product_id}")
            key = str(product_id)
            merged[key] = merged.get(key, 0) + quantity
        return merged

    @staticmethod
    def _lock_user(user):
        return User.objects.select_for_update().get(pk=user.pk)

    @staticmethod
    def _debit(user_row, amount_cents):
        """
        Subtract from the stored balance only if it still covers the amount.

        The condition is part of the UPDATE, so a charge racing a stale read
        cannot push the balance below zero on any database backend.

        Returns:
            int: Balance after the debit.
        """
        updated = (
            User.objects
            .filter(pk=user_row.pk, balance_cents__gte=amount_cents)
            .update(balance_cents=F('balance_cents') - amount_cents)
        )
        current = User.objects.values_list('balance_cents', flat=True).get(pk=user_row.pk)
        if not updated:
            logger.warning(
                "Debit of %s rejected for %s: stored balance is %s",
                amount_cents, user_row.pk, current
            )
            raise InsufficientBalanceError(
                f"Insufficient balance: {format_cents(current)} available, "
                f"{format_cents(amount_cents)} required"
            )
        return current

    @staticmethod
    def _find_by_key(idempotency_key):
        return Transaction.objects.filter(idempotency_key=idempotency_key).first()

    @staticmethod
    def _is_same_purchase(existing, buyer_row, booth, cart):
        if existing.type != TransactionType.PURCHASE:
            return False
        if existing.buyer_id != buyer_row.pk or existing.booth_id != booth.pk:
            return False
        stored = {str(item.product_id): item.quantity for item in existing.items.all()}
        return stored == dict(cart)

    @staticmethod
    def process_purchase(booth_id, buyer, items, seller=None, idempotency_key=None):
        """
        Charge a student for a cart of booth products.

        The whole purchase is one database transaction:
            1. Lock the buyer row and re-check the idempotency key
            2. Total the cart from current product prices
            3. Reject if the balance does not cover the total
            4. Debit the buyer, write the transaction and its items
            5. Credit booth sales and product sales counts

        Args:
            booth_id (UUID): Booth making the sale.
            buyer (User): Student being charged.
            items (list[tuple]): ``(product_id, quantity)`` pairs.
            seller (User, optional): Booth member ringing up the sale. Must
                have access to the booth (or be SAC). Defaults to None.
            idempotency_key (str, optional): Client key for safe retries.
                Defaults to None.

        Returns:
            tuple: ``(Transaction, created)``. ``created`` is False when the
            key matched an earlier purchase, which is returned unchanged.

        Raises:
            EmptyCartError: If the cart is empty.
            InvalidQuantityError: If any quantity is below 1.
            BoothUnavailableError: If the booth is missing or inactive.
            NotAuthorizedError: If the seller has no access to the booth.
            ProductUnavailableError: If a product is missing, deleted or
                belongs to a different booth.
            InvalidAmountError: If the total exceeds the single-purchase limit.
            BuyerUnavailableError: If the buyer account is inactive.
            InsufficientBalanceError: If the balance does not cover the total.
            IdempotencyConflictError: If the key was already used for a
                different buyer, booth or cart.
        """
        cart = PaymentService._normalize_items(items)

        with transaction.atomic():
            buyer_row = PaymentService._lock_user(buyer)

            try:
                booth = Booth.objects.get(id=booth_id)
            except (Booth.DoesNotExist, ValidationError):
                raise BoothUnavailableError("Booth not found or inactive")

            if seller is not None and not booth.can_sell(seller):
                raise NotAuthorizedError("Seller does not have access to this booth")

            if idempotency_key:
                existing = PaymentService._find_by_key(idempotency_key)
                if existing:
                    if not PaymentService._is_same_purchase(existing, buyer_row, booth, cart):
                        raise IdempotencyConflictError("Idempotency key already used for another transaction")
                    logger.info("Replayed purchase %s for key %s", existing.id, idempotency_key)
                    return existing, False

            if not booth.is_active:
                raise BoothUnavailableError("Booth not found or inactive")

            try:
                products = {
                    str(p.id): p
                    for p in Product.objects.available().filter(booth=booth, id__in=list(cart))
                }
            except ValidationError:
                raise ProductUnavailableError("Invalid product id")
            missing = [pid for pid in cart if pid not in products]
            if missing:
                raise ProductUnavailableError(
                    f"Products not available at this booth: {', '.join(missing)}"
                )

            total_cents = sum(products[pid].price_cents * qty for pid, qty in cart.items())
            if total_cents > settings.FRASERPAY_MAX_PURCHASE_CENTS:
                raise InvalidAmountError(
                    f"Purchase total {format_cents(total_cents)} exceeds the limit of "
                    f"{format_cents(settings.FRASERPAY_MAX_PURCHASE_CENTS)}"
                )

            if not buyer_row.is_active:
                raise BuyerUnavailableError("Buyer account is deactivated")

            if buyer_row.balance_cents < total_cents:
                logger.warning(
                    "Purchase rejected for %s at booth %s: balance %s < total %s",
                    buyer_row.pk, booth.id, buyer_row.balance_cents, total_cents
                )
                raise InsufficientBalanceError(
                    f"Insufficient balance: {format_cents(buyer_row.balance_cents)} available, "
                    f"{format_cents(total_cents)} required"
                )

            new_balance = PaymentService._debit(buyer_row, total_cents)

            try:
                with transaction.atomic():
                    txn = Transaction.objects.create(
                        buyer=buyer_row,
                        booth=booth,
                        seller=seller,
                        amount_cents=total_cents,
                        type=TransactionType.PURCHASE,
                        balance_after_cents=new_balance,
                        idempotency_key=idempotency_key or None,
                        buyer_name=buyer_row.get_display_name(),
                        booth_name=booth.name,
                    )
            except IntegrityError:
                # Same key committed concurrently under another buyer's lock
                raise IdempotencyConflictError("Idempotency key already used for another transaction")

            TransactionItem.objects.bulk_create([
                TransactionItem(
                    transaction=txn,
                    product=products[pid],
                    product_name=products[pid].name,
                    quantity=qty,
                    price_cents=products[pid].price_cents,
                )
                for pid, qty in cart.items()
            ])

            Booth.objects.filter(pk=booth.pk).update(sales_cents=F('sales_cents') + total_cents)
            for pid, qty in cart.items():
                Product.objects.filter(pk=pid).update(sales_count=F('sales_count') + qty)

        buyer.balance_cents = new_balance
        logger.info(
            "Purchase %s: %s charged %s at booth %s",
            txn.id, buyer_row.pk, format_cents(total_cents), booth.id
        )
        return txn, True

    @staticmethod
    def add_funds(student, amount_cents, sac_member, payment_method=PaymentMethod.CASH, note=''):
        """
        Top up or refund a student's balance at the SAC desk.

        A positive amount records a ``fund``; a negative amount records a
        ``refund`` of the absolute value. A refund can never take the
        balance below zero.

        Args:
            student (User): Account being credited or debited.
            amount_cents (int): Signed amount in cents.
            sac_member (User): SAC staff member handling the money.
            payment_method (str, optional): 'cash' or 'card'. Defaults to 'cash'.
            note (str, optional): Free-text note. Defaults to empty string.

        Returns:
            Transaction: The recorded fund or refund.

        Raises:
            NotAuthorizedError: If sac_member is not SAC.
            InvalidAmountError: If the amount is zero or over the limit.
            InsufficientBalanceError: If a refund exceeds the balance.
        """
        if not sac_member.is_sac:
            raise NotAuthorizedError("Only SAC can add or refund funds")

        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents == 0:
            raise InvalidAmountError("Amount must be a non-zero number of cents")

        if abs(amount_cents) > settings.FRASERPAY_MAX_FUND_CENTS:
            raise InvalidAmountError(
                f"Amount exceeds the limit of {format_cents(settings.FRASERPAY_MAX_FUND_CENTS)}"
            )

        if payment_method not in PaymentMethod.values:
            raise InvalidAmountError(f"Unknown payment method: {payment_method}")

        with transaction.atomic():
            student_row = PaymentService._lock_user(student)

            if amount_cents < 0 and student_row.balance_cents < -amount_cents:
                logger.warning(
                    "Refund of %s rejected for %s: balance is %s",
                    -amount_cents, student_row.pk, student_row.balance_cents
                )
                raise InsufficientBalanceError(
                    f"Cannot refund {format_cents(-amount_cents)}: balance is "
                    f"{format_cents(student_row.balance_cents)}"
                )

            if amount_cents < 0:
                new_balance = PaymentService._debit(student_row, -amount_cents)
            else:
                User.objects.filter(pk=student_row.pk).update(balance_cents=F('balance_cents') + amount_cents)
                new_balance = User.objects.values_list('balance_cents', flat=True).get(pk=student_row.pk)

            txn = Transaction.objects.create(
                buyer=student_row,
                sac_member=sac_member,
                amount_cents=abs(amount_cents),
                type=TransactionType.FUND if amount_cents > 0 else TransactionType.REFUND,
                payment_method=payment_method,
                note=note,
                balance_after_cents=new_balance,
                buyer_name=student_row.get_display_name(),
            )

        student.balance_cents = new_balance
        logger.info(
            "%s of %s for %s by SAC %s",
            txn.get_type_display(), format_cents(txn.amount_cents), student_row.pk, sac_member.pk
        )
        return txn

    @staticmethod
    def adjust_balance(student, new_balance_cents, sac_member, verification_pin):
        """
        Set a student's balance to an exact value.

        The SAC member re-enters the SAC PIN to confirm. The difference is
        recorded as a ``fund`` or ``refund`` so the ledger still sums to the
        balance.

        Args:
            student (User): Account being corrected.
            new_balance_cents (int): Target balance in cents, >= 0.
            sac_member (User): SAC staff member making the correction.
            verification_pin (str): The SAC PIN.

        Returns:
            Transaction or None: The recorded difference, or None when the
            balance already equals the target.

        Raises:
            NotAuthorizedError: If sac_member is not SAC.
            InvalidVerificationPinError: If the PIN is wrong.
            InvalidAmountError: If the target balance is negative or the
                change exceeds the single fund limit.
        """
        if not sac_member.is_sac:
            raise NotAuthorizedError("Only SAC can adjust balances")

        if not check_sac_pin(verification_pin):
            logger.warning("Balance adjustment by %s rejected: wrong PIN", sac_member.pk)
            raise InvalidVerificationPinError("Invalid verification code")

        if isinstance(new_balance_cents, bool) or not isinstance(new_balance_cents, int) or new_balance_cents < 0:
            raise InvalidAmountError("Balance must be zero or a positive number of cents")

        with transaction.atomic():
            student_row = PaymentService._lock_user(student)
            old_balance = student_row.balance_cents
            difference = new_balance_cents - old_balance

            if difference == 0:
                return None

            if abs(difference) > settings.FRASERPAY_MAX_FUND_CENTS:
                raise InvalidAmountError(
                    f"Adjustment of {format_cents(abs(difference))} exceeds the limit of "
                    f"{format_cents(settings.FRASERPAY_MAX_FUND_CENTS)}"
                )

            User.objects.filter(pk=student_row.pk).update(balance_cents=new_balance_cents)

            txn = Transaction.objects.create(
                buyer=student_row,
                sac_member=sac_member,
                amount_cents=abs(difference),
                type=TransactionType.FUND if difference > 0 else TransactionType.REFUND,
                note=f"Balance adjusted from {format_cents(old_balance)} to {format_cents(new_balance_cents)}",
                balance_after_cents=new_balance_cents,
                buyer_name=student_row.get_display_name(),
            )

        student.balance_cents = new_balance_cents
        logger.info(
            "Balance of %s adjusted from %s to %s by SAC %s",
            student_row.pk, old_balance, new_balance_cents, sac_member.pk
        )
        return txn
