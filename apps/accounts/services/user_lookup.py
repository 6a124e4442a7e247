"""Lookups used by booths and SAC staff to identify a student."""

from django.contrib.auth import get_user_model
from django.db.models import Q, QuerySet

from .exceptions import UserNotFoundError

User = get_user_model()


def find_user_by_student_number(*, student_number: str) -> User:
    try:
        return User.objects.get(student_number=student_number.strip(), is_active=True)
    except User.DoesNotExist:
        raise UserNotFoundError(f"No student with number {student_number}")


def find_user_by_qr_code(*, qr_code: str) -> User:
    """Resolve the ``USER:<id>`` value scanned from a student's QR code."""
    try:
        return User.objects.get(qr_code=qr_code.strip(), is_active=True)
    except User.DoesNotExist:
        raise UserNotFoundError("No student matches this QR code")


def search_users(*, query: str = '', role: str = None) -> QuerySet:
    """Case-insensitive search over name, email and student number."""
    users = User.objects.filter(is_active=True)
    if query:
        users = users.filter(
            Q(name__icontains=query) |
            Q(email__icontains=query) |
            Q(student_number__icontains=query)
        )
    if role:
        users = users.filter(role=role)
    return users.order_by('name', 'email')
