# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, UserRole


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for student and SAC accounts.

    Balances are read-only here; staff change them through the
    fund/adjust endpoints so every change leaves a transaction row.
    """

    list_display = [
        'email',
        'name',
        'student_number',
        'role_badge',
        'balance_display',
        'is_active_badge',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
        'student_number',
    ]

    ordering = ['name', 'email']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'student_number', 'name', 'password')
        }),
        ('FraserPay', {
            'fields': ('role', 'balance_cents', 'qr_code'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'student_number', 'name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = [
        'balance_cents',
        'qr_code',
        'created_at',
        'updated_at',
        'last_login',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    def role_badge(self, obj):
        """Display role as colored badge."""
        if obj.role == UserRole.SAC:
            return format_html(
                '<span style="background: #1F4E79; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">SAC</span>'
            )
        return format_html(
            '<span style="background: #ccc; color: #333; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Student</span>'
        )
    role_badge.short_description = 'Role'
    role_badge.admin_order_field = 'role'

    def balance_display(self, obj):
        return f"${obj.balance_cents / 100:.2f}"
    balance_display.short_description = 'Balance'
    balance_display.admin_order_field = 'balance_cents'

    def is_active_badge(self, obj):
        """Display active status as colored badge."""
        if obj.is_active:
            return format_html(
                '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">Active</span>'
            )
        return format_html(
            '<span style="background: #B85C5C; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Inactive</span>'
        )
    is_active_badge.short_description = 'Status'
    is_active_badge.admin_order_field = 'is_active'

    actions = [
        'activate_users',
        'deactivate_users',
    ]

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'Activated {count} user(s).')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Deactivate selected users (superusers are skipped)."""
        safe_queryset = queryset.filter(is_superuser=False)
        count = safe_queryset.update(is_active=False)
        skipped = queryset.count() - count
        msg = f'Deactivated {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s).'
        self.message_user(request, msg)
