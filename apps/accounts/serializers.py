from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, UserRole


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    booth_access = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'student_number',
            'name',
            'email',
            'role',
            'balance_cents',
            'qr_code',
            'booth_access',
            'created_at',
            'last_login',
        ]
        read_only_fields = [
            'id', 'student_number', 'email', 'role', 'balance_cents',
            'qr_code', 'booth_access', 'created_at', 'last_login',
        ]

    def get_booth_access(self, obj) -> list:
        return [str(booth_id) for booth_id in obj.booth_memberships.values_list('booth_id', flat=True)]


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    student_number = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    def validate_student_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Student number is required')
        return value

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Login with a student number or an email address."""

    identifier = serializers.CharField(
        required=True,
        help_text="Student number or email"
    )
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class SACAccessSerializer(serializers.Serializer):
    pin = serializers.CharField(max_length=32)


class PasswordResetRequestSerializer(serializers.Serializer):
    """Student number or email of the account to reset."""

    identifier = serializers.CharField(required=True, max_length=255)


class PasswordResetConfirmSerializer(serializers.Serializer):
    """Serializer for password reset confirmation."""

    token = serializers.CharField(required=True)
    new_password = serializers.CharField(
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    new_password_confirm = serializers.CharField(
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({
                'new_password_confirm': 'Passwords do not match'
            })
        return attrs


class StudentLookupSerializer(serializers.ModelSerializer):
    """What a booth or SAC scanner sees after identifying a student."""

    class Meta:
        model = User
        fields = ['id', 'student_number', 'name', 'balance_cents']
        read_only_fields = fields


class UserAdminSerializer(serializers.ModelSerializer):
    """Full user row for SAC listings."""

    class Meta:
        model = User
        fields = [
            'id',
            'student_number',
            'name',
            'email',
            'role',
            'balance_cents',
            'is_active',
            'created_at',
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    """SAC creates a single account; password is optional."""

    student_number = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=UserRole.choices, default=UserRole.STUDENT)
    password = serializers.CharField(
        required=False,
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    balance_cents = serializers.IntegerField(min_value=0, default=0)
