# ==========================================
# apps/booths/models.py
# ==========================================

from django.core.validators import MinValueValidator
from django.db import models
import uuid


class BoothRole(models.TextChoices):
    MANAGER = 'manager', 'Manager'
    MEMBER = 'member', 'Member'


class Booth(models.Model):
    """Club or class sales point, unlocked for staff by its PIN."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    pin = models.CharField(max_length=12, unique=True, db_index=True)

    # Cumulative purchase revenue, integer cents
    sales_cents = models.PositiveBigIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_booths'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'booths'
        indexes = [
            models.Index(fields=['-sales_cents'], name='booths_sales_c_3e1f7a_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def get_user_role(self, user):
        try:
            return self.memberships.get(user=user).role
        except BoothMembership.DoesNotExist:
            return None

    def is_manager(self, user):
        return self.get_user_role(user) == BoothRole.MANAGER

    def can_manage(self, user):
        """Managers and SAC staff may edit the booth itself."""
        return user.is_sac or self.is_manager(user)

    def can_sell(self, user):
        """Any booth member (or SAC) may ring up sales and edit products."""
        return user.is_sac or self.has_member(user)


class BoothMembership(models.Model):
    """User access to a booth with role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='booth_memberships')
    booth = models.ForeignKey(Booth, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=BoothRole.choices, default=BoothRole.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booth_memberships'
        unique_together = [['user', 'booth']]
        indexes = [
            models.Index(fields=['booth', 'role'], name='booth_membe_booth_i_7c0d2b_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.booth.name} ({self.role})"


class ProductQuerySet(models.QuerySet):

    def available(self):
        return self.filter(is_deleted=False)


class Product(models.Model):
    """Item sold at a booth. Removed products are soft-deleted to keep history."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booth = models.ForeignKey(Booth, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=200)
    price_cents = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    image = models.URLField(max_length=500, blank=True)
    sales_count = models.PositiveIntegerField(default=0)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        db_table = 'products'
        indexes = [
            models.Index(fields=['booth', 'is_deleted'], name='products_booth_i_9a4e60_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (${self.price_cents / 100:.2f})"


class BoothRequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


class PendingBooth(models.Model):
    """A teacher's request to open a booth for an initiative, awaiting SAC review."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    teacher_name = models.CharField(max_length=150)
    teacher_email = models.EmailField(max_length=255)
    initiative_name = models.CharField(max_length=200)
    initiative_description = models.TextField(blank=True)

    # [{"name": str, "price_cents": int}, ...]
    products = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=20,
        choices=BoothRequestStatus.choices,
        default=BoothRequestStatus.PENDING
    )
    rejection_reason = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_booth_requests'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    booth = models.OneToOneField(
        Booth,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='request'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pending_booths'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='pending_boo_status_4d8b21_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.initiative_name} ({self.teacher_name}, {self.status})"
