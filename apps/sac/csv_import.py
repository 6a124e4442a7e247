"""
CSV Import Module
=================

Bulk creation of student accounts and booths from spreadsheets exported by
the school office.

Functions:
    parse_csv: Turn CSV text into a list of ``{header: value}`` rows.
    validate_user_csv / validate_booth_csv: Check the columns an import needs.
    import_users: Create one account per row.
    import_booths: Create booths (and optionally a product per row).

Example:
    Importing a class list::

        from apps.sac.csv_import import parse_csv, import_users

        rows = parse_csv(uploaded_file.read().decode('utf-8'))
        summary = import_users(rows, imported_by=request.user)
        print(f"{summary['created']} created, {summary['failed']} failed")

Note:
    Every row is written in its own database transaction. A bad row is
    reported in the summary and never undoes the rows before it.
"""

import csv
import io
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction

from apps.accounts.models import UserRole
from apps.accounts.services import (
    register_user,
    DuplicateAccountError,
    UserRegistrationError,
)
from apps.booths.models import Booth
from apps.booths.services import create_booth, add_product, BoothsServiceError
from apps.ledger.exceptions import LedgerServiceError
from apps.ledger.services import PaymentService
from .exceptions import CSVParseError, CSVValidationError

logger = logging.getLogger(__name__)


USER_REQUIRED_FIELDS = ['studentNumber', 'name', 'email', 'role']
BOOTH_REQUIRED_FIELDS = ['name', 'description', 'pin']

ROW_CREATED = 'created'
ROW_PRODUCT_ADDED = 'product_added'
ROW_SKIPPED = 'skipped'
ROW_ERROR = 'error'


# =============================================================================
# Templates
# =============================================================================

USER_CSV_TEMPLATE = (
    'studentNumber,name,email,role,tickets\n'
    '123456,John Doe,john@example.com,student,500\n'
    '789012,Jane Smith,jane@example.com,student,1000\n'
    '345678,Admin User,admin@example.com,sac,0\n'
)

BOOTH_CSV_TEMPLATE = (
    'name,description,pin\n'
    'Food Booth,Delicious food items available here,1234\n'
    'Game Booth,Play fun games and win prizes,5678\n'
    'Craft Booth,Creative crafts and DIY activities,9012\n'
)

BOOTH_WITH_PRODUCTS_CSV_TEMPLATE = (
    'name,description,pin,product_name,product_price,product_image\n'
    'Food Booth,Delicious food items,1234,Hot Dog,5.99,\n'
    'Food Booth,Delicious food items,1234,Fries,3.50,\n'
    'Drink Booth,Refreshing beverages,5678,Soda,2.50,\n'
    'Game Booth,Fun games and prizes,9012,Game Ticket,1.00,\n'
)

CSV_TEMPLATES = {
    'users': ('user_template.csv', USER_CSV_TEMPLATE),
    'booths': ('booth_template.csv', BOOTH_CSV_TEMPLATE),
    'booths-with-products': ('booth_with_products_template.csv', BOOTH_WITH_PRODUCTS_CSV_TEMPLATE),
}


# =============================================================================
# Parsing and validation
# =============================================================================

def parse_csv(text):
    """
    Parse CSV text with a header row into a list of dicts.

    Quoted values may contain commas. Blank lines are skipped and rows whose
    column count differs from the header are dropped. Keys and values are
    stripped of surrounding whitespace.

    Raises:
        CSVParseError: If the text is not CSV or holds no usable data row.
    """
    text = (text or '').lstrip('\ufeff')
    try:
        records = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise CSVParseError(f"Failed to parse CSV file: {e}")

    if len(records) < 2:
        raise CSVParseError("CSV must have a header row and at least one data row")

    headers = [header.strip() for header in records[0]]
    rows = [
        dict(zip(headers, (value.strip() for value in record)))
        for record in records[1:]
        if len(record) == len(headers)
    ]
    if not rows:
        raise CSVParseError("CSV has no data rows matching the header")
    return rows


def _check_fields(rows, required):
    if not rows:
        raise CSVValidationError("CSV file is empty")
    missing = [field for field in required if field not in rows[0]]
    if missing:
        raise CSVValidationError(f"Missing required fields: {', '.join(missing)}")


def validate_user_csv(rows):
    _check_fields(rows, USER_REQUIRED_FIELDS)


def validate_booth_csv(rows):
    """Product columns are optional; ``name``, ``description`` and ``pin`` are not."""
    _check_fields(rows, BOOTH_REQUIRED_FIELDS)


def dollars_to_cents(value):
    """'5.99' -> 599. Raises ValueError for anything but a positive amount."""
    try:
        amount = Decimal(str(value).strip().lstrip('$'))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Invalid price: {value!r}")
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _summary(results, **counts):
    return {
        'total': len(results),
        **counts,
        'failed': sum(1 for r in results if r['status'] == ROW_ERROR),
        'skipped': sum(1 for r in results if r['status'] == ROW_SKIPPED),
        'results': results,
    }


# =============================================================================
# Imports
# =============================================================================

def import_users(rows, imported_by):
    """
    Create a student (or SAC) account for every row.

    Columns ``studentNumber``, ``name``, ``email`` and ``role`` are required;
    ``tickets`` is an optional opening balance in cents, recorded as a fund
    transaction by ``imported_by``. Roles other than ``student``/``sac`` fall
    back to ``student``. Accounts get an unusable password until the holder
    resets it.

    Args:
        rows (list[dict]): Output of :func:`parse_csv`.
        imported_by (User): SAC member running the import.

    Returns:
        dict: ``total``, ``created``, ``skipped``, ``failed`` and per-row
        ``results`` (``row``, ``status``, ``message``).

    Raises:
        CSVValidationError: If required columns are missing.
    """
    validate_user_csv(rows)

    results = []
    for index, row in enumerate(rows, start=1):
        student_number = row.get('studentNumber', '').strip()
        name = row.get('name', '').strip()
        email = row.get('email', '').strip()
        role = row.get('role', '').strip().lower()
        if role not in UserRole.values:
            role = UserRole.STUDENT

        if not student_number or not name or not email:
            results.append({'row': index, 'status': ROW_ERROR, 'message': 'studentNumber, name and email are required'})
            continue

        tickets = row.get('tickets', '').strip()
        try:
            opening_cents = int(tickets) if tickets else 0
        except ValueError:
            results.append({'row': index, 'status': ROW_ERROR, 'message': f'Invalid tickets value: {tickets!r}'})
            continue
        if opening_cents < 0:
            results.append({'row': index, 'status': ROW_ERROR, 'message': 'tickets cannot be negative'})
            continue

        try:
            with transaction.atomic():
                user = register_user(
                    student_number=student_number,
                    name=name,
                    email=email,
                    password=None,
                    role=role,
                )
                if opening_cents:
                    PaymentService.add_funds(
                        student=user,
                        amount_cents=opening_cents,
                        sac_member=imported_by,
                        note='Opening balance (CSV import)',
                    )
        except DuplicateAccountError:
            results.append({
                'row': index,
                'status': ROW_SKIPPED,
                'message': f'User with student number {student_number} or email {email} already exists',
            })
            continue
        except (UserRegistrationError, LedgerServiceError) as e:
            results.append({'row': index, 'status': ROW_ERROR, 'message': str(e)})
            continue

        results.append({'row': index, 'status': ROW_CREATED, 'message': f'Created {user.email}'})

    summary = _summary(results, created=sum(1 for r in results if r['status'] == ROW_CREATED))
    logger.info(
        "User import by %s: %s created, %s skipped, %s failed",
        imported_by.pk, summary['created'], summary['skipped'], summary['failed']
    )
    return summary


def import_booths(rows, created_by):
    """
    Create booths from CSV rows.

    Rows sharing a booth name describe one booth; the first such row creates
    it (with the given PIN, or a random one when blank) and every row with
    ``product_name`` and ``product_price`` (dollars) adds a product to it.
    Names that already belong to a booth before the import are skipped.

    Args:
        rows (list[dict]): Output of :func:`parse_csv`.
        created_by (User): SAC member running the import; becomes manager.

    Returns:
        dict: ``total``, ``booths_created``, ``products_created``,
        ``skipped``, ``failed`` and per-row ``results``.

    Raises:
        CSVValidationError: If required columns are missing.
    """
    validate_booth_csv(rows)

    names = {row.get('name', '').strip() for row in rows}
    existing = set(Booth.objects.filter(name__in=names).values_list('name', flat=True))
    imported = {}
    products_created = 0

    results = []
    for index, row in enumerate(rows, start=1):
        name = row.get('name', '').strip()
        if not name:
            results.append({'row': index, 'status': ROW_ERROR, 'message': 'name is required'})
            continue
        if name in existing:
            results.append({'row': index, 'status': ROW_SKIPPED, 'message': f'Booth {name!r} already exists'})
            continue

        product_name = row.get('product_name', '').strip()
        product_price = row.get('product_price', '').strip()
        if name in imported and not (product_name and product_price):
            results.append({'row': index, 'status': ROW_SKIPPED, 'message': f'Duplicate row for booth {name!r}'})
            continue

        try:
            with transaction.atomic():
                booth = imported.get(name)
                is_new = booth is None
                if is_new:
                    booth = create_booth(
                        name=name,
                        description=row.get('description', '').strip(),
                        pin=row.get('pin', '').strip() or None,
                        creator=created_by,
                    )
                if product_name and product_price:
                    add_product(
                        booth_id=booth.id,
                        user=created_by,
                        name=product_name,
                        price_cents=dollars_to_cents(product_price),
                        image=row.get('product_image', '').strip(),
                    )
        except (BoothsServiceError, ValueError) as e:
            results.append({'row': index, 'status': ROW_ERROR, 'message': str(e)})
            continue

        imported[name] = booth
        if product_name and product_price:
            products_created += 1
        if is_new:
            results.append({'row': index, 'status': ROW_CREATED, 'message': f'Created booth {name} (PIN {booth.pin})'})
        else:
            results.append({'row': index, 'status': ROW_PRODUCT_ADDED, 'message': f'Added {product_name} to {name}'})

    summary = _summary(
        results,
        booths_created=len(imported),
        products_created=products_created,
    )
    logger.info(
        "Booth import by %s: %s booths, %s products, %s skipped, %s failed",
        created_by.pk, summary['booths_created'], products_created, summary['skipped'], summary['failed']
    )
    return summary
