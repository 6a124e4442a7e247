"""
Serializers for ledger app.

Input serializers validate request bodies and query parameters; output
serializers shape transactions and statistics.
"""

from rest_framework import serializers
from apps.accounts.models import User
from .models import Transaction, TransactionItem, TransactionType, PaymentMethod

# Largest value a PositiveIntegerField holds on every backend
MAX_BALANCE_CENTS = 2147483647


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj) -> str:
        return obj.get_display_name()


# =============================================================================
# Output Serializers
# =============================================================================

class TransactionItemSerializer(serializers.ModelSerializer):
    subtotal_cents = serializers.IntegerField(read_only=True)

    class Meta:
        model = TransactionItem
        fields = ['id', 'product', 'product_name', 'quantity', 'price_cents', 'subtotal_cents']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """Full transaction with line items."""

    seller = UserMinimalSerializer(read_only=True)
    sac_member = UserMinimalSerializer(read_only=True)
    items = TransactionItemSerializer(many=True, read_only=True)
    signed_amount_cents = serializers.IntegerField(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'type',
            'amount_cents',
            'signed_amount_cents',
            'balance_after_cents',
            'payment_method',
            'note',
            'buyer',
            'buyer_name',
            'booth',
            'booth_name',
            'seller',
            'sac_member',
            'items',
            'created_at',
        ]
        read_only_fields = fields


class TopProductSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(allow_null=True)
    product_name = serializers.CharField()
    count = serializers.IntegerField()


class TransactionStatsSerializer(serializers.Serializer):
    daily_sales = serializers.DictField(child=serializers.IntegerField())
    top_products = TopProductSerializer(many=True)
    total_sales_cents = serializers.IntegerField()
    transaction_count = serializers.IntegerField()


# =============================================================================
# Input Serializers
# =============================================================================

class StudentReferenceSerializer(serializers.Serializer):
    """
    Identify the student by exactly one of: id, student number, scanned QR code.
    """

    buyer_id = serializers.UUIDField(required=False)
    student_number = serializers.CharField(max_length=32, required=False)
    qr_code = serializers.CharField(max_length=64, required=False)

    def validate(self, attrs):
        given = [key for key in ('buyer_id', 'student_number', 'qr_code') if attrs.get(key)]
        if len(given) != 1:
            raise serializers.ValidationError(
                'Provide exactly one of buyer_id, student_number or qr_code'
            )
        return attrs


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class PurchaseInputSerializer(StudentReferenceSerializer):
    booth_id = serializers.UUIDField()
    items = CartItemSerializer(many=True)
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_blank=True)


class FundInputSerializer(StudentReferenceSerializer):
    amount_cents = serializers.IntegerField(help_text="Positive adds funds, negative refunds")
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class AdjustBalanceInputSerializer(StudentReferenceSerializer):
    new_balance_cents = serializers.IntegerField(min_value=0, max_value=MAX_BALANCE_CENTS)
    verification_pin = serializers.CharField(max_length=32)


class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate transaction list query parameters.

    Query Parameters:
        start_date (date): First day included
        end_date (date): Last day included
        type (str): purchase, fund or refund
        user (UUID): Another user's history (SAC only)
    """

    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    user = serializers.UUIDField(required=False)

    def validate(self, attrs):
        start = attrs.get('start_date')
        end = attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError({
                'start_date': 'Start date must be before end date'
            })
        return attrs
