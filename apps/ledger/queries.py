"""
Transaction Queries
===================

Read-only listings and statistics over the ledger. All methods are static
and return querysets or plain dictionaries ready for serialization.

Example:
    Booth dashboard for the last week::

        from apps.ledger.queries import TransactionQueries

        stats = TransactionQueries.get_transaction_stats(
            booth_id=booth.id,
            start_date=date.today() - timedelta(days=7),
            end_date=date.today(),
        )
        print(stats['total_sales_cents'])
"""

from django.db.models import Sum, Count
from django.db.models.functions import TruncDate

from .models import Transaction, TransactionItem, TransactionType


FUND_TYPES = [TransactionType.FUND, TransactionType.REFUND]


class TransactionQueries:
    """
    Transaction listings, newest first, each with an optional inclusive
    ``start_date``/``end_date`` range on the local calendar date.
    """

    TOP_PRODUCTS_LIMIT = 5

    @staticmethod
    def _base():
        return (
            Transaction.objects
            .select_related('buyer', 'booth', 'seller', 'sac_member')
            .prefetch_related('items')
            .order_by('-created_at')
        )

    @staticmethod
    def _in_range(queryset, start_date=None, end_date=None):
        if start_date:
            queryset = queryset.filter(created_at__date__gte=start_date)
        if end_date:
            queryset = queryset.filter(created_at__date__lte=end_date)
        return queryset

    @staticmethod
    def get_user_transactions(user_id, start_date=None, end_date=None):
        """Everything that touched one student's balance."""
        qs = TransactionQueries._base().filter(buyer_id=user_id)
        return TransactionQueries._in_range(qs, start_date, end_date)

    @staticmethod
    def get_user_fund_transactions(user_id, start_date=None, end_date=None):
        """A student's funds and refunds only."""
        qs = TransactionQueries._base().filter(buyer_id=user_id, type__in=FUND_TYPES)
        return TransactionQueries._in_range(qs, start_date, end_date)

    @staticmethod
    def get_booth_transactions(booth_id, start_date=None, end_date=None):
        """Purchases made at one booth."""
        qs = TransactionQueries._base().filter(booth_id=booth_id, type=TransactionType.PURCHASE)
        return TransactionQueries._in_range(qs, start_date, end_date)

    @staticmethod
    def get_sac_transactions(start_date=None, end_date=None):
        """All funds and refunds handled at the SAC desk."""
        qs = TransactionQueries._base().filter(type__in=FUND_TYPES)
        return TransactionQueries._in_range(qs, start_date, end_date)

    @staticmethod
    def get_all_transactions(start_date=None, end_date=None, type=None):
        qs = TransactionQueries._base()
        if type:
            qs = qs.filter(type=type)
        return TransactionQueries._in_range(qs, start_date, end_date)

    @staticmethod
    def get_transaction_stats(booth_id, start_date=None, end_date=None):
        """
        Sales statistics for a booth dashboard.

        Only purchases count; funds and refunds never belong to a booth.

        Args:
            booth_id (UUID): The booth.
            start_date (date, optional): First day included.
            end_date (date, optional): Last day included.

        Returns:
            dict: Statistics with the following keys:
                - daily_sales (dict): ``{'YYYY-MM-DD': cents}`` in date order
                - top_products (list): Up to five dicts with ``product_id``,
                  ``product_name`` and ``count`` (units sold), most sold first
                - total_sales_cents (int): Sum of all purchases
                - transaction_count (int): Number of purchases
        """
        purchases = TransactionQueries._in_range(
            Transaction.objects.filter(booth_id=booth_id, type=TransactionType.PURCHASE),
            start_date,
            end_date,
        )

        daily = (
            purchases
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(total=Sum('amount_cents'))
            .order_by('day')
        )
        daily_sales = {row['day'].isoformat(): row['total'] for row in daily}

        top = (
            TransactionItem.objects
            .filter(transaction__in=purchases)
            .values('product_id', 'product_name')
            .annotate(count=Sum('quantity'))
            .order_by('-count', 'product_name')[:TransactionQueries.TOP_PRODUCTS_LIMIT]
        )
        top_products = [
            {
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'count': row['count'],
            }
            for row in top
        ]

        totals = purchases.aggregate(total=Sum('amount_cents'), count=Count('id'))

        return {
            'daily_sales': daily_sales,
            'top_products': top_products,
            'total_sales_cents': totals['total'] or 0,
            'transaction_count': totals['count'],
        }
