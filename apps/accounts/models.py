from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
import uuid


class UserRole(models.TextChoices):
    STUDENT = 'student', 'Student'
    SAC = 'sac', 'SAC'


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.SAC)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Student or SAC account holding a spendable balance in cents."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    student_number = models.CharField(
        max_length=32,
        unique=True,
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.STUDENT)

    # Spendable credit ("tickets"), integer cents
    balance_cents = models.PositiveIntegerField(default=0)

    # Value encoded in the student's QR code, read by booth scanners
    qr_code = models.CharField(max_length=64, unique=True, editable=False)

    # Password reset
    verification_token = models.CharField(max_length=64, blank=True, null=True)

    # Permissions
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['student_number'], name='users_student_a1c2e4_idx'),
            models.Index(fields=['role', 'created_at'], name='users_role_5b7d19_idx'),
        ]
        ordering = ['name', 'email']

    def __str__(self):
        if self.student_number:
            return f"{self.get_display_name()} ({self.student_number})"
        return self.email

    def save(self, *args, **kwargs):
        if not self.qr_code:
            self.qr_code = f"USER:{self.id}"
        super().save(*args, **kwargs)

    def get_display_name(self):
        """Return name or email prefix."""
        return self.name or self.email.split('@')[0]

    @property
    def is_sac(self):
        return self.role == UserRole.SAC or self.is_superuser

    @property
    def balance(self):
        """Balance in dollars, for display only."""
        return self.balance_cents / 100
