# ==========================================
# apps/ledger/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Transaction, TransactionItem, TransactionType


class TransactionItemInline(admin.TabularInline):
    """Inline admin for purchase line items."""
    model = TransactionItem
    extra = 0
    fields = ['product', 'product_name', 'quantity', 'price_cents']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        """Line items are written by the payment service only."""
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Admin interface for the ledger.

    Transactions are append-only: balances are derived from them, so the
    admin shows them read-only and never deletes them.
    """

    list_display = [
        'created_at',
        'type_badge',
        'amount_display',
        'buyer_name',
        'booth_name',
        'balance_after_display',
        'payment_method',
    ]

    list_filter = [
        'type',
        'payment_method',
        'created_at',
    ]

    search_fields = [
        'buyer_name',
        'booth_name',
        'buyer__email',
        'buyer__student_number',
        'note',
        'idempotency_key',
    ]

    readonly_fields = [
        'id',
        'buyer',
        'booth',
        'seller',
        'sac_member',
        'amount_cents',
        'type',
        'payment_method',
        'note',
        'balance_after_cents',
        'idempotency_key',
        'buyer_name',
        'booth_name',
        'created_at',
    ]

    inlines = [TransactionItemInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Transaction', {
            'fields': ('id', 'type', 'amount_cents', 'balance_after_cents', 'created_at')
        }),
        ('Parties', {
            'fields': ('buyer', 'buyer_name', 'booth', 'booth_name', 'seller', 'sac_member')
        }),
        ('Details', {
            'fields': ('payment_method', 'note', 'idempotency_key'),
            'classes': ('collapse',),
        }),
    )

    def type_badge(self, obj):
        """Display transaction type as colored badge."""
        colors = {
            TransactionType.PURCHASE: ('#A47449', 'white'),
            TransactionType.FUND: ('#6B8E5E', 'white'),
            TransactionType.REFUND: ('#B85C5C', 'white'),
        }
        bg, fg = colors.get(obj.type, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_type_display()
        )
    type_badge.short_description = 'Type'
    type_badge.admin_order_field = 'type'

    def amount_display(self, obj):
        return f"{obj.signed_amount_cents / 100:+.2f}"
    amount_display.short_description = 'Amount ($)'
    amount_display.admin_order_field = 'amount_cents'

    def balance_after_display(self, obj):
        return f"{obj.balance_after_cents / 100:.2f}"
    balance_after_display.short_description = 'Balance after ($)'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        """Optimize query with select_related."""
        qs = super().get_queryset(request)
        return qs.select_related('buyer', 'booth', 'seller', 'sac_member')
