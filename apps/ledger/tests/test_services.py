"""
Service layer unit tests for ledger app.
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.accounts.models import User
from apps.booths.models import Product
from apps.ledger.models import Transaction, TransactionType, PaymentMethod
from apps.ledger.queries import TransactionQueries
from apps.ledger.services import PaymentService, format_cents
from apps.ledger.exceptions import (
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


def test_format_cents():
    assert format_cents(0) == '$0.00'
    assert format_cents(1999) == '$19.99'


# =============================================================================
# Purchases
# =============================================================================

@pytest.mark.django_db
class TestProcessPurchase:

    def test_purchase_debits_buyer_and_credits_booth(self, student, seller, booth, cookie, brownie):
        txn, created = PaymentService.process_purchase(
            booth_id=booth.id,
            buyer=student,
            items=[(cookie.id, 2), (brownie.id, 1)],
            seller=seller,
        )

        assert created is True
        assert txn.type == TransactionType.PURCHASE
        assert txn.amount_cents == 600
        assert txn.balance_after_cents == 1900
        assert txn.buyer_name == 'Sam Student'
        assert txn.booth_name == 'Bake Sale'
        assert txn.seller == seller

        student.refresh_from_db()
        booth.refresh_from_db()
        cookie.refresh_from_db()
        assert student.balance_cents == 1900
        assert booth.sales_cents == 600
        assert cookie.sales_count == 2

    def test_line_items_capture_price_at_sale_time(self, student, booth, cookie):
        txn, _ = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)]
        )
        cookie.price_cents = 999
        cookie.save()

        item = txn.items.get()
        assert item.product_name == 'Cookie'
        assert item.price_cents == 150
        assert item.subtotal_cents == 150

    def test_repeated_product_lines_are_merged(self, student, booth, cookie):
        txn, _ = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1), (str(cookie.id), 2)]
        )

        assert txn.items.count() == 1
        assert txn.items.get().quantity == 3
        assert txn.amount_cents == 450

    def test_exact_balance_can_be_spent(self, student, booth):
        product = Product.objects.create(booth=booth, name='Everything', price_cents=2500)

        txn, _ = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(product.id, 1)]
        )

        student.refresh_from_db()
        assert txn.balance_after_cents == 0
        assert student.balance_cents == 0

    def test_insufficient_balance_changes_nothing(self, broke_student, booth, cookie):
        with pytest.raises(InsufficientBalanceError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=broke_student, items=[(cookie.id, 1)]
            )

        broke_student.refresh_from_db()
        booth.refresh_from_db()
        cookie.refresh_from_db()
        assert broke_student.balance_cents == 0
        assert booth.sales_cents == 0
        assert cookie.sales_count == 0
        assert not Transaction.objects.exists()

    def test_empty_cart_rejected(self, student, booth):
        with pytest.raises(EmptyCartError):
            PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[])

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, True])
    def test_invalid_quantity_rejected(self, student, booth, cookie, quantity):
        with pytest.raises(InvalidQuantityError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, quantity)]
            )

    def test_product_from_another_booth_rejected(self, student, booth, lemonade):
        with pytest.raises(ProductUnavailableError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(lemonade.id, 1)]
            )

    def test_removed_product_rejected(self, student, booth, cookie):
        cookie.is_deleted = True
        cookie.deleted_at = timezone.now()
        cookie.save()

        with pytest.raises(ProductUnavailableError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)]
            )

    def test_unknown_booth_rejected(self, student, cookie):
        with pytest.raises(BoothUnavailableError):
            PaymentService.process_purchase(
                booth_id=uuid.uuid4(), buyer=student, items=[(cookie.id, 1)]
            )

    def test_inactive_booth_rejected(self, student, booth, cookie):
        booth.is_active = False
        booth.save()

        with pytest.raises(BoothUnavailableError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)]
            )

    def test_seller_without_booth_access_rejected(self, student, outsider, booth, cookie):
        with pytest.raises(NotAuthorizedError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], seller=outsider
            )

    def test_sac_can_sell_at_any_booth(self, student, sac_user, booth, cookie):
        txn, created = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], seller=sac_user
        )
        assert created is True
        assert txn.seller == sac_user

    def test_inactive_buyer_rejected(self, student, booth, cookie):
        student.is_active = False
        student.save()

        with pytest.raises(BuyerUnavailableError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)]
            )

    def test_total_over_limit_rejected(self, student, booth, settings):
        settings.FRASERPAY_MAX_PURCHASE_CENTS = 1000
        product = Product.objects.create(booth=booth, name='Hoodie', price_cents=600)

        with pytest.raises(InvalidAmountError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(product.id, 2)]
            )


@pytest.mark.django_db
class TestPurchaseIdempotency:

    def test_repeated_key_returns_original_transaction(self, student, booth, cookie):
        first, created_first = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 2)], idempotency_key='checkout-1'
        )
        second, created_second = PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 2)], idempotency_key='checkout-1'
        )

        assert created_first is True
        assert created_second is False
        assert second.id == first.id

        student.refresh_from_db()
        assert student.balance_cents == 2200
        assert Transaction.objects.count() == 1

    def test_key_reused_by_another_buyer_conflicts(self, student, seller, booth, cookie):
        seller.balance_cents = 1000
        seller.save()
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='shared-key'
        )

        with pytest.raises(IdempotencyConflictError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=seller, items=[(cookie.id, 1)], idempotency_key='shared-key'
            )

    def test_key_reused_at_another_booth_conflicts(self, student, booth, other_booth, cookie, lemonade):
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='k1'
        )

        with pytest.raises(IdempotencyConflictError):
            PaymentService.process_purchase(
                booth_id=other_booth.id, buyer=student, items=[(lemonade.id, 3)], idempotency_key='k1'
            )

        student.refresh_from_db()
        assert student.balance_cents == 2350
        assert Transaction.objects.count() == 1

    def test_key_reused_with_different_cart_conflicts(self, student, booth, cookie, brownie):
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='k1'
        )

        with pytest.raises(IdempotencyConflictError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1), (brownie.id, 1)], idempotency_key='k1'
            )

    def test_replay_requires_booth_access(self, student, seller, outsider, booth, cookie):
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], seller=seller, idempotency_key='k2'
        )

        with pytest.raises(NotAuthorizedError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], seller=outsider, idempotency_key='k2'
            )

    def test_key_committed_concurrently_conflicts(self, student, broke_student, booth, cookie, monkeypatch):
        Transaction.objects.create(
            buyer=broke_student,
            amount_cents=100,
            type=TransactionType.FUND,
            balance_after_cents=100,
            idempotency_key='race',
        )
        # The other request commits after this one has looked the key up
        monkeypatch.setattr(PaymentService, '_find_by_key', staticmethod(lambda key: None))

        with pytest.raises(IdempotencyConflictError):
            PaymentService.process_purchase(
                booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='race'
            )

        student.refresh_from_db()
        assert student.balance_cents == 2500

    def test_distinct_keys_charge_twice(self, student, booth, cookie):
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='a'
        )
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 1)], idempotency_key='b'
        )

        student.refresh_from_db()
        assert student.balance_cents == 2200


# =============================================================================
# Funds, refunds and adjustments
# =============================================================================

@pytest.mark.django_db
class TestAddFunds:

    def test_positive_amount_records_fund(self, student, sac_user):
        txn = PaymentService.add_funds(
            student=student, amount_cents=1000, sac_member=sac_user, payment_method=PaymentMethod.CARD
        )

        student.refresh_from_db()
        assert student.balance_cents == 3500
        assert txn.type == TransactionType.FUND
        assert txn.amount_cents == 1000
        assert txn.signed_amount_cents == 1000
        assert txn.payment_method == 'card'
        assert txn.sac_member == sac_user
        assert txn.booth is None

    def test_negative_amount_records_refund(self, student, sac_user):
        txn = PaymentService.add_funds(student=student, amount_cents=-500, sac_member=sac_user)

        student.refresh_from_db()
        assert student.balance_cents == 2000
        assert txn.type == TransactionType.REFUND
        assert txn.amount_cents == 500
        assert txn.signed_amount_cents == -500

    def test_refund_larger_than_balance_rejected(self, student, sac_user):
        with pytest.raises(InsufficientBalanceError):
            PaymentService.add_funds(student=student, amount_cents=-2501, sac_member=sac_user)

        student.refresh_from_db()
        assert student.balance_cents == 2500

    def test_zero_amount_rejected(self, student, sac_user):
        with pytest.raises(InvalidAmountError):
            PaymentService.add_funds(student=student, amount_cents=0, sac_member=sac_user)

    def test_amount_over_limit_rejected(self, student, sac_user, settings):
        settings.FRASERPAY_MAX_FUND_CENTS = 5000
        with pytest.raises(InvalidAmountError):
            PaymentService.add_funds(student=student, amount_cents=5001, sac_member=sac_user)

    def test_unknown_payment_method_rejected(self, student, sac_user):
        with pytest.raises(InvalidAmountError):
            PaymentService.add_funds(
                student=student, amount_cents=100, sac_member=sac_user, payment_method='bitcoin'
            )

    def test_non_sac_rejected(self, student, seller):
        with pytest.raises(NotAuthorizedError):
            PaymentService.add_funds(student=student, amount_cents=100, sac_member=seller)


@pytest.mark.django_db
class TestAdjustBalance:

    def test_raise_balance_records_fund(self, student, sac_user):
        txn = PaymentService.adjust_balance(
            student=student, new_balance_cents=4000, sac_member=sac_user, verification_pin='123456'
        )

        student.refresh_from_db()
        assert student.balance_cents == 4000
        assert txn.type == TransactionType.FUND
        assert txn.amount_cents == 1500
        assert txn.note == 'Balance adjusted from $25.00 to $40.00'

    def test_lower_balance_records_refund(self, student, sac_user):
        txn = PaymentService.adjust_balance(
            student=student, new_balance_cents=0, sac_member=sac_user, verification_pin='123456'
        )

        student.refresh_from_db()
        assert student.balance_cents == 0
        assert txn.type == TransactionType.REFUND
        assert txn.amount_cents == 2500
        assert txn.balance_after_cents == 0

    def test_unchanged_balance_records_nothing(self, student, sac_user):
        txn = PaymentService.adjust_balance(
            student=student, new_balance_cents=2500, sac_member=sac_user, verification_pin='123456'
        )

        assert txn is None
        assert not Transaction.objects.exists()

    def test_wrong_pin_rejected(self, student, sac_user):
        with pytest.raises(InvalidVerificationPinError):
            PaymentService.adjust_balance(
                student=student, new_balance_cents=0, sac_member=sac_user, verification_pin='000000'
            )

        student.refresh_from_db()
        assert student.balance_cents == 2500

    def test_change_over_fund_limit_rejected(self, student, sac_user, settings):
        settings.FRASERPAY_MAX_FUND_CENTS = 50000

        with pytest.raises(InvalidAmountError):
            PaymentService.adjust_balance(
                student=student, new_balance_cents=10_000_000, sac_member=sac_user, verification_pin='123456'
            )

        student.refresh_from_db()
        assert student.balance_cents == 2500
        assert not Transaction.objects.exists()

    def test_negative_target_rejected(self, student, sac_user):
        with pytest.raises(InvalidAmountError):
            PaymentService.adjust_balance(
                student=student, new_balance_cents=-1, sac_member=sac_user, verification_pin='123456'
            )

    def test_non_sac_rejected(self, student, seller):
        with pytest.raises(NotAuthorizedError):
            PaymentService.adjust_balance(
                student=student, new_balance_cents=0, sac_member=seller, verification_pin='123456'
            )


@pytest.mark.django_db
class TestStaleBalanceRead:
    """The debit re-checks the stored balance, not the row read earlier."""

    def _stale_lock(self, monkeypatch, student, balance_cents):
        stale = User.objects.get(pk=student.pk)
        User.objects.filter(pk=student.pk).update(balance_cents=balance_cents)
        monkeypatch.setattr(PaymentService, '_lock_user', staticmethod(lambda user: stale))

    def test_second_purchase_cannot_spend_same_balance(self, student, booth, cookie, monkeypatch):
        # Another purchase already took all but $1.00
        self._stale_lock(monkeypatch, student, 100)

        with pytest.raises(InsufficientBalanceError):
            PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(cookie.id, 1)])

        student.refresh_from_db()
        assert student.balance_cents == 100
        assert not Transaction.objects.exists()
        booth.refresh_from_db()
        assert booth.sales_cents == 0

    def test_balance_after_reflects_stored_balance(self, student, booth, cookie, monkeypatch):
        self._stale_lock(monkeypatch, student, 1000)

        txn, _ = PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(cookie.id, 1)])

        assert txn.balance_after_cents == 850
        student.refresh_from_db()
        assert student.balance_cents == 850

    def test_refund_cannot_overdraw(self, student, sac_user, monkeypatch):
        self._stale_lock(monkeypatch, student, 100)

        with pytest.raises(InsufficientBalanceError):
            PaymentService.add_funds(student=student, amount_cents=-500, sac_member=sac_user)

        student.refresh_from_db()
        assert student.balance_cents == 100


@pytest.mark.django_db
class TestBalanceMatchesLedger:
    """A balance always equals the signed sum of its transactions."""

    def test_ledger_sums_to_balance(self, broke_student, sac_user, booth, cookie, brownie):
        PaymentService.add_funds(student=broke_student, amount_cents=2000, sac_member=sac_user)
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=broke_student, items=[(cookie.id, 3), (brownie.id, 1)]
        )
        PaymentService.add_funds(student=broke_student, amount_cents=-200, sac_member=sac_user)
        PaymentService.adjust_balance(
            student=broke_student, new_balance_cents=1000, sac_member=sac_user, verification_pin='123456'
        )

        broke_student.refresh_from_db()
        ledger_total = sum(t.signed_amount_cents for t in broke_student.transactions.all())
        assert ledger_total == broke_student.balance_cents == 1000


# =============================================================================
# Queries
# =============================================================================

@pytest.mark.django_db
class TestTransactionQueries:

    def test_booth_transactions_are_purchases_only(self, student, sac_user, booth, cookie):
        PaymentService.add_funds(student=student, amount_cents=500, sac_member=sac_user)
        PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(cookie.id, 1)])

        qs = TransactionQueries.get_booth_transactions(booth.id)
        assert qs.count() == 1
        assert qs.get().type == TransactionType.PURCHASE

    def test_user_fund_transactions(self, student, sac_user, booth, cookie):
        PaymentService.add_funds(student=student, amount_cents=500, sac_member=sac_user)
        PaymentService.add_funds(student=student, amount_cents=-100, sac_member=sac_user)
        PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(cookie.id, 1)])

        assert TransactionQueries.get_user_transactions(student.id).count() == 3
        assert TransactionQueries.get_user_fund_transactions(student.id).count() == 2
        assert TransactionQueries.get_sac_transactions().count() == 2

    def test_date_range_filters(self, student, booth, cookie):
        PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(cookie.id, 1)])
        today = timezone.localdate()

        assert TransactionQueries.get_user_transactions(
            student.id, start_date=today, end_date=today
        ).count() == 1
        assert TransactionQueries.get_user_transactions(
            student.id, start_date=today + timedelta(days=1)
        ).count() == 0

    def test_transaction_stats(self, student, booth, cookie, brownie):
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(cookie.id, 3), (brownie.id, 1)]
        )
        PaymentService.process_purchase(booth_id=booth.id, buyer=student, items=[(brownie.id, 1)])

        stats = TransactionQueries.get_transaction_stats(booth_id=booth.id)

        assert stats['total_sales_cents'] == 1050
        assert stats['transaction_count'] == 2
        assert sum(stats['daily_sales'].values()) == 1050
        assert [p['product_name'] for p in stats['top_products']] == ['Cookie', 'Brownie']
        assert stats['top_products'][0]['count'] == 3

    def test_stats_limited_to_five_products(self, student, booth):
        student.balance_cents = 10000
        student.save()
        products = [
            Product.objects.create(booth=booth, name=f'Item {i}', price_cents=100)
            for i in range(7)
        ]
        PaymentService.process_purchase(
            booth_id=booth.id, buyer=student, items=[(p.id, i + 1) for i, p in enumerate(products)]
        )

        stats = TransactionQueries.get_transaction_stats(booth_id=booth.id)

        assert len(stats['top_products']) == 5
        assert stats['top_products'][0]['product_name'] == 'Item 6'

    def test_stats_for_empty_booth(self, booth):
        stats = TransactionQueries.get_transaction_stats(booth_id=booth.id)

        assert stats == {
            'daily_sales': {},
            'top_products': [],
            'total_sales_cents': 0,
            'transaction_count': 0,
        }
