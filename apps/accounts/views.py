from rest_framework import status, generics, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from django.db import transaction
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .models import User
from .permissions import IsSACMember, CanLookupStudents
from .serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
    SACAccessSerializer,
    PasswordResetRequestSerializer,
    PasswordResetConfirmSerializer,
    StudentLookupSerializer,
    UserAdminSerializer,
    UserCreateSerializer,
)
from .services import (
    register_user,
    authenticate_user,
    verify_sac_access,
    request_password_reset as request_password_reset_service,
    confirm_password_reset as confirm_password_reset_service,
    find_user_by_student_number,
    find_user_by_qr_code,
    search_users,
    # Exceptions
    UserRegistrationError,
    DuplicateAccountError,
    InvalidCredentialsError,
    InactiveAccountError,
    InvalidTokenError,
    UserNotFoundError,
    InvalidSACPinError,
)
from apps.ledger.exceptions import LedgerServiceError
from apps.ledger.services import PaymentService


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class LogoutRequestSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, help_text="Refresh token being discarded")


def _auth_payload(user, message):
    refresh = RefreshToken.for_user(user)
    return {
        'message': message,
        'user': UserSerializer(user).data,
        'tokens': {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
        }
    }


@extend_schema(
    request=UserRegistrationSerializer,
    responses={
        201: AuthResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Register a new student account and receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new student account."""
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data.copy()
    data.pop('password_confirm', None)

    try:
        user = register_user(**data)
    except UserRegistrationError as e:
        return Response(
            {'error': str(e)},
            status=status.HTTP_400_BAD_REQUEST
        )

    return Response(
        _auth_payload(user, 'Registration successful'),
        status=status.HTTP_201_CREATED
    )


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with student number (or email) and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with student number or email."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(_auth_payload(user, 'Login successful'))


@extend_schema(
    request=LogoutRequestSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Logout. Tokens are stateless; the client discards them.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Logout, validating the refresh token if one is sent."""
    refresh_token = request.data.get('refresh')
    if refresh_token:
        try:
            RefreshToken(refresh_token)
        except TokenError:
            return Response({
                'error': 'Invalid token'
            }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Logout successful'
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current user's profile, balance and booth access.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    request=UserSerializer,
    responses={
        200: UserSerializer,
        400: ErrorResponseSerializer,
    },
    description="Update the current user's profile (name).",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """Update user profile."""
    serializer = UserSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@extend_schema(
    request=SACAccessSerializer,
    responses={
        200: UserSerializer,
        403: ErrorResponseSerializer,
    },
    description="Enter the SAC PIN to gain SAC access.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sac_access(request):
    """Promote current user to SAC."""
    serializer = SACAccessSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = verify_sac_access(user=request.user, pin=serializer.validated_data['pin'])
    except InvalidSACPinError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(UserSerializer(user).data)


@extend_schema(
    request=PasswordResetRequestSerializer,
    responses={200: MessageResponseSerializer},
    description="Request a password reset. Always returns success.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def request_password_reset(request):
    """Request password reset."""
    serializer = PasswordResetRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        request_password_reset_service(identifier=serializer.validated_data['identifier'])
    except UserNotFoundError:
        # Same answer either way
        pass

    return Response({
        'message': 'If account exists, password reset instructions have been sent'
    })


@extend_schema(
    request=PasswordResetConfirmSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Confirm password reset with token and set new password.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def confirm_password_reset(request):
    """Confirm password reset with token."""
    serializer = PasswordResetConfirmSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        confirm_password_reset_service(
            token=serializer.validated_data['token'],
            new_password=serializer.validated_data['new_password'],
        )
    except InvalidTokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Password reset successful'
    })


@extend_schema(
    parameters=[
        OpenApiParameter('student_number', str, description='Student number'),
        OpenApiParameter('qr_code', str, description='Scanned QR value (USER:<id>)'),
    ],
    responses={
        200: StudentLookupSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Find a student by number or QR code. Booth members and SAC only.",
    tags=['users'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanLookupStudents])
def lookup_student(request):
    """Identify a student at a booth or SAC desk."""
    student_number = request.query_params.get('student_number')
    qr_code = request.query_params.get('qr_code')

    try:
        if student_number:
            user = find_user_by_student_number(student_number=student_number)
        elif qr_code:
            user = find_user_by_qr_code(qr_code=qr_code)
        else:
            return Response(
                {'error': 'student_number or qr_code is required'},
                status=status.HTTP_400_BAD_REQUEST
            )
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(StudentLookupSerializer(user).data)


class UserPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class UserListView(generics.ListAPIView):
    """
    SAC listing of all accounts.

    GET /api/auth/users/?search=&role=
    """
    serializer_class = UserAdminSerializer
    permission_classes = [IsAuthenticated, IsSACMember]
    pagination_class = UserPagination

    def get_queryset(self):
        return search_users(
            query=self.request.query_params.get('search', ''),
            role=self.request.query_params.get('role'),
        )

    @extend_schema(
        request=UserCreateSerializer,
        responses={
            201: UserAdminSerializer,
            400: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        description="Create a single account (SAC only).",
        tags=['users'],
    )
    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        opening_cents = data.pop('balance_cents')

        try:
            with transaction.atomic():
                user = register_user(**data)
                if opening_cents:
                    PaymentService.add_funds(
                        student=user,
                        amount_cents=opening_cents,
                        sac_member=request.user,
                        note='Opening balance',
                    )
        except DuplicateAccountError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except (UserRegistrationError, LedgerServiceError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(UserAdminSerializer(user).data, status=status.HTTP_201_CREATED)


class UserDetailView(generics.RetrieveAPIView):
    """
    Get any account by ID (SAC only).

    GET /api/auth/users/{id}/
    """
    queryset = User.objects.all()
    serializer_class = UserAdminSerializer
    permission_classes = [IsAuthenticated, IsSACMember]
