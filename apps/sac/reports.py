"""
SAC Reports
===========

Daily transaction report (CSV download) and the totals shown on the SAC
dashboard.

Example:
    Yesterday's report::

        from apps.sac.reports import build_transaction_report

        csv_text = build_transaction_report(
            Transaction.objects.all(),
            day=date.today() - timedelta(days=1),
        )
"""

import csv
import io
from datetime import date

from django.contrib.auth import get_user_model
from django.db.models import Sum, Count, Q
from django.utils import timezone

from apps.booths.models import Booth
from apps.ledger.models import Transaction, TransactionType
from .exceptions import InvalidReportDateError

User = get_user_model()


REPORT_COLUMNS = ['Time', 'Type', 'Buyer', 'Student Number', 'Description', 'Payment Method', 'Amount']


def _dollars(cents):
    return f"{cents / 100:.2f}"


def _as_day(day):
    if isinstance(day, date):
        return day
    try:
        return date.fromisoformat(str(day))
    except ValueError:
        raise InvalidReportDateError(f"Invalid report date: {day!r}. Use YYYY-MM-DD")


def _describe(txn):
    if txn.type == TransactionType.PURCHASE:
        items = ', '.join(f"{item.quantity} x {item.product_name}" for item in txn.items.all())
        booth = txn.booth_name or 'Unknown Booth'
        return f"Purchase at {booth}: {items}" if items else f"Purchase at {booth}"
    if txn.type == TransactionType.FUND:
        return txn.note or 'Added funds to account'
    return txn.note or 'Refund from account'


def build_transaction_report(transactions, day):
    """
    Render one local calendar day of transactions as CSV text.

    Rows are in time order and amounts are signed dollars (purchases and
    refunds negative). After the table come summary rows: total purchases,
    total funds added, total refunds and the transaction count.

    Args:
        transactions: Queryset or iterable of Transaction objects; anything
            outside ``day`` is ignored.
        day (date | str): Report day (``YYYY-MM-DD`` if a string).

    Returns:
        str: CSV document.

    Raises:
        InvalidReportDateError: If ``day`` is not a valid date.
    """
    day = _as_day(day)

    if hasattr(transactions, 'select_related'):
        transactions = transactions.select_related('buyer').prefetch_related('items')

    selected = sorted(
        (t for t in transactions if timezone.localtime(t.created_at).date() == day),
        key=lambda t: t.created_at,
    )

    totals = {
        TransactionType.PURCHASE: 0,
        TransactionType.FUND: 0,
        TransactionType.REFUND: 0,
    }

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([f"Daily Transaction Report: {day.isoformat()}"])
    writer.writerow(REPORT_COLUMNS)

    for txn in selected:
        totals[txn.type] += txn.amount_cents
        writer.writerow([
            timezone.localtime(txn.created_at).strftime('%H:%M'),
            txn.get_type_display(),
            txn.buyer_name,
            txn.buyer.student_number or '',
            _describe(txn),
            txn.get_payment_method_display() if txn.payment_method else '',
            _dollars(txn.signed_amount_cents),
        ])

    writer.writerow([])
    writer.writerow(['Total Purchases', _dollars(totals[TransactionType.PURCHASE])])
    writer.writerow(['Total Funds Added', _dollars(totals[TransactionType.FUND])])
    writer.writerow(['Total Refunds', _dollars(totals[TransactionType.REFUND])])
    writer.writerow(['Total Transactions', len(selected)])

    return output.getvalue()


def dashboard_stats():
    """
    Totals for the SAC dashboard.

    Returns:
        dict: ``user_count`` (active accounts), ``booth_count`` (active
        booths), ``total_balance_cents`` (money currently held by users),
        ``total_sales_cents``, ``total_funds_cents``, ``total_refunds_cents``
        and ``transaction_count``.
    """
    users = User.objects.filter(is_active=True).aggregate(
        count=Count('id'),
        balance=Sum('balance_cents'),
    )
    ledger = Transaction.objects.aggregate(
        count=Count('id'),
        sales=Sum('amount_cents', filter=Q(type=TransactionType.PURCHASE)),
        funds=Sum('amount_cents', filter=Q(type=TransactionType.FUND)),
        refunds=Sum('amount_cents', filter=Q(type=TransactionType.REFUND)),
    )

    return {
        'user_count': users['count'],
        'booth_count': Booth.objects.filter(is_active=True).count(),
        'total_balance_cents': users['balance'] or 0,
        'total_sales_cents': ledger['sales'] or 0,
        'total_funds_cents': ledger['funds'] or 0,
        'total_refunds_cents': ledger['refunds'] or 0,
        'transaction_count': ledger['count'],
    }
