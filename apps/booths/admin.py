# ==========================================
# apps/booths/admin.py
# ==========================================

from django.contrib import admin
from apps.booths.models import Booth, BoothMembership, Product, PendingBooth
from apps.booths.services import generate_booth_pin


class BoothMembershipInline(admin.TabularInline):
    """Inline admin for booth memberships."""
    model = BoothMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ['name', 'price_cents', 'sales_count', 'is_deleted']
    readonly_fields = ['sales_count']


@admin.register(Booth)
class BoothAdmin(admin.ModelAdmin):
    """Admin interface for Booths."""

    list_display = [
        'name',
        'pin',
        'sales_display',
        'member_count',
        'is_active',
        'created_at'
    ]
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'description', 'pin']
    readonly_fields = ['sales_cents', 'created_at', 'updated_at']
    inlines = [BoothMembershipInline, ProductInline]
    date_hierarchy = 'created_at'
    ordering = ['name']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'is_active', 'created_by')
        }),
        ('Access', {
            'fields': ('pin',)
        }),
        ('Sales', {
            'fields': ('sales_cents',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def sales_display(self, obj):
        return f"${obj.sales_cents / 100:.2f}"
    sales_display.short_description = 'Sales'
    sales_display.admin_order_field = 'sales_cents'

    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    member_count.short_description = 'Members'

    actions = ['regenerate_pins']

    def regenerate_pins(self, request, queryset):
        """Give selected booths new random PINs."""
        for booth in queryset:
            booth.pin = generate_booth_pin()
            booth.save(update_fields=['pin', 'updated_at'])
        self.message_user(request, f"Regenerated PINs for {queryset.count()} booths")
    regenerate_pins.short_description = "Regenerate PINs"


@admin.register(BoothMembership)
class BoothMembershipAdmin(admin.ModelAdmin):
    """Admin interface for Booth Memberships."""

    list_display = ['user', 'booth', 'role', 'joined_at']
    list_filter = ['role', 'joined_at']
    search_fields = ['user__email', 'user__student_number', 'booth__name']
    readonly_fields = ['joined_at']
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'booth')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):

    list_display = ['name', 'booth', 'price_cents', 'sales_count', 'is_deleted']
    list_filter = ['is_deleted', 'booth']
    search_fields = ['name', 'booth__name']
    readonly_fields = ['sales_count', 'deleted_at', 'created_at', 'updated_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('booth')


@admin.register(PendingBooth)
class PendingBoothAdmin(admin.ModelAdmin):
    """Admin interface for teacher booth requests."""

    list_display = ['initiative_name', 'teacher_name', 'teacher_email', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['initiative_name', 'teacher_name', 'teacher_email']
    readonly_fields = ['reviewed_by', 'reviewed_at', 'booth', 'created_at']
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('reviewed_by', 'booth')
