from rest_framework import serializers
from .models import Booth, BoothMembership, Product, PendingBooth
from apps.accounts.models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'student_number', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj) -> str:
        return obj.get_display_name()


# =============================================================================
# Products
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):

    class Meta:
        model = Product
        fields = [
            'id',
            'booth',
            'name',
            'price_cents',
            'image',
            'sales_count',
            'created_at',
        ]
        read_only_fields = fields


class ProductInputSerializer(serializers.Serializer):
    """Create or edit a product. Prices are integer cents."""

    name = serializers.CharField(max_length=200)
    price_cents = serializers.IntegerField(min_value=1)
    image = serializers.URLField(max_length=500, required=False, allow_blank=True)


# =============================================================================
# Booths
# =============================================================================

class BoothSerializer(serializers.ModelSerializer):
    """Booth detail with menu; the PIN is only shown to managers and SAC."""

    pin = serializers.SerializerMethodField()
    products = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Booth
        fields = [
            'id',
            'name',
            'description',
            'pin',
            'sales_cents',
            'is_active',
            'products',
            'member_count',
            'user_role',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def _user(self):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return request.user
        return None

    def get_pin(self, obj):
        user = self._user()
        if user and obj.can_manage(user):
            return obj.pin
        return None

    def get_products(self, obj) -> list:
        products = obj.products.filter(is_deleted=False).order_by('name')
        return ProductSerializer(products, many=True).data

    def get_member_count(self, obj) -> int:
        return obj.memberships.count()

    def get_user_role(self, obj):
        user = self._user()
        if user:
            return obj.get_user_role(user)
        return None


class BoothListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Booth
        fields = [
            'id',
            'name',
            'description',
            'sales_cents',
            'is_active',
            'member_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj) -> int:
        return obj.memberships.count()


class BoothCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    pin = serializers.CharField(max_length=12, required=False)


class BoothUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    pin = serializers.CharField(max_length=12, required=False)
    is_active = serializers.BooleanField(required=False)


class BoothMemberSerializer(serializers.ModelSerializer):
    """Detailed member information."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = BoothMembership
        fields = ['id', 'user', 'role', 'joined_at']
        read_only_fields = fields


class JoinBoothSerializer(serializers.Serializer):
    """Serializer for joining a booth with its PIN."""

    pin = serializers.CharField(max_length=12, required=True)


class RemoveMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()


class LeaderboardEntrySerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    booth_id = serializers.UUIDField()
    booth_name = serializers.CharField()
    sales_cents = serializers.IntegerField()


# =============================================================================
# Teacher booth requests
# =============================================================================

class RequestedProductSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    price_cents = serializers.IntegerField(min_value=1)


class BoothRequestSubmitSerializer(serializers.Serializer):
    teacher_name = serializers.CharField(max_length=150)
    teacher_email = serializers.EmailField()
    initiative_name = serializers.CharField(max_length=200)
    initiative_description = serializers.CharField(required=False, allow_blank=True, default='')
    products = RequestedProductSerializer(many=True, required=False, default=list)


class PendingBoothSerializer(serializers.ModelSerializer):
    reviewed_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PendingBooth
        fields = [
            'id',
            'teacher_name',
            'teacher_email',
            'initiative_name',
            'initiative_description',
            'products',
            'status',
            'rejection_reason',
            'reviewed_by',
            'reviewed_at',
            'booth',
            'created_at',
        ]
        read_only_fields = fields


class RejectBoothRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
