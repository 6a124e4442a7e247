from django.db import models
import uuid


class TransactionType(models.TextChoices):
    PURCHASE = 'purchase', 'Purchase'
    FUND = 'fund', 'Fund'
    REFUND = 'refund', 'Refund'


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    CARD = 'card', 'Card'


class Transaction(models.Model):
    """
    One balance movement.

    Purchases debit the buyer and credit a booth; funds and refunds are
    SAC-desk top-ups and withdrawals. ``amount_cents`` is always positive,
    the direction follows from ``type``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    buyer = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    booth = models.ForeignKey(
        'booths.Booth',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    # Booth member who rang up the sale
    seller = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sales_rung_up'
    )
    # SAC member who handled a fund/refund
    sac_member = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='funds_processed'
    )

    amount_cents = models.PositiveIntegerField()
    type = models.CharField(max_length=20, choices=TransactionType.choices)
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, blank=True)
    note = models.CharField(max_length=255, blank=True)

    # Buyer balance right after this transaction was applied
    balance_after_cents = models.PositiveIntegerField()

    # Client-supplied key; a retried request returns the original row
    idempotency_key = models.CharField(max_length=64, unique=True, null=True, blank=True)

    # Snapshots so history survives renames
    buyer_name = models.CharField(max_length=150, blank=True)
    booth_name = models.CharField(max_length=200, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['buyer', 'created_at'], name='transaction_buyer_i_2b7c0e_idx'),
            models.Index(fields=['booth', 'type', 'created_at'], name='transaction_booth_i_8e31d5_idx'),
            models.Index(fields=['type', 'created_at'], name='transaction_type_6f0a94_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_type_display()} ${self.amount_cents / 100:.2f} - {self.buyer_name}"

    @property
    def signed_amount_cents(self):
        """Effect on the buyer's balance."""
        if self.type == TransactionType.FUND:
            return self.amount_cents
        return -self.amount_cents


class TransactionItem(models.Model):
    """Line item of a purchase, with name and unit price captured at sale time."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction = models.ForeignKey(Transaction, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'booths.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transaction_items'
    )
    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField()
    price_cents = models.PositiveIntegerField()

    class Meta:
        db_table = 'transaction_products'
        indexes = [
            models.Index(fields=['product'], name='transaction_product_c4d9a3_idx'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"

    @property
    def subtotal_cents(self):
        return self.quantity * self.price_cents
