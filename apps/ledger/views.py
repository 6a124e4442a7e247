from rest_framework import viewsets, status, serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.models import User
from apps.accounts.permissions import IsSACMember
from apps.accounts.services import (
    find_user_by_student_number,
    find_user_by_qr_code,
    UserNotFoundError,
)
from apps.booths.models import Booth
from .models import Transaction
from .permissions import CanViewTransaction
from .queries import TransactionQueries
from .services import PaymentService
from .serializers import (
    TransactionSerializer,
    TransactionStatsSerializer,
    PurchaseInputSerializer,
    FundInputSerializer,
    AdjustBalanceInputSerializer,
    TransactionFilterSerializer,
)
from .exceptions import (
    LedgerServiceError,
    ProductUnavailableError,
    BoothUnavailableError,
    InsufficientBalanceError,
    InvalidVerificationPinError,
    NotAuthorizedError,
    IdempotencyConflictError,
    TransactionNotFoundError,
)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class PurchaseResponseSerializer(serializers.Serializer):
    transaction = TransactionSerializer()
    balance_cents = serializers.IntegerField()
    replayed = serializers.BooleanField()


class TransactionPagination(PageNumberPagination):
    """Custom pagination for transactions."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


DATE_RANGE_PARAMETERS = [
    OpenApiParameter('start_date', OpenApiTypes.DATE, description='First day included (YYYY-MM-DD)'),
    OpenApiParameter('end_date', OpenApiTypes.DATE, description='Last day included (YYYY-MM-DD)'),
]


def _error_status(error):
    """HTTP status for a ledger service error."""
    if isinstance(error, (NotAuthorizedError, InvalidVerificationPinError)):
        return status.HTTP_403_FORBIDDEN
    if isinstance(error, (BoothUnavailableError, ProductUnavailableError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (InsufficientBalanceError, IdempotencyConflictError)):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _resolve_student(data):
    """Find the student named by buyer_id, student_number or qr_code."""
    if data.get('buyer_id'):
        return get_object_or_404(User, id=data['buyer_id'], is_active=True)
    if data.get('student_number'):
        return find_user_by_student_number(student_number=data['student_number'])
    return find_user_by_qr_code(qr_code=data['qr_code'])


def _paginated(request, queryset):
    paginator = TransactionPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(TransactionSerializer(page, many=True).data)


def _date_filters(request):
    filter_serializer = TransactionFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)
    return filter_serializer.validated_data


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the ledger.

    list: Current user's transactions (SAC may pass ?user=<id>)
    retrieve: One transaction (buyer, booth members, SAC)
    funds: Current user's funds and refunds
    sac: Every fund and refund (SAC only)
    """

    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = TransactionPagination
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        if self.action == 'retrieve':
            return Transaction.objects.select_related('booth').prefetch_related('items')

        params = _date_filters(self.request)
        user = self.request.user
        user_id = user.id
        if params.get('user') and user.is_sac:
            user_id = params['user']

        queryset = TransactionQueries.get_user_transactions(
            user_id,
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
        if params.get('type'):
            queryset = queryset.filter(type=params['type'])
        return queryset

    def get_permissions(self):
        if self.action == 'retrieve':
            return [IsAuthenticated(), CanViewTransaction()]
        if self.action == 'sac':
            return [IsAuthenticated(), IsSACMember()]
        return [IsAuthenticated()]

    def get_object(self):
        try:
            transaction = Transaction.objects.select_related('booth').prefetch_related('items').get(
                pk=self.kwargs['pk']
            )
        except Transaction.DoesNotExist:
            raise TransactionNotFoundError()
        self.check_object_permissions(self.request, transaction)
        return transaction

    @extend_schema(parameters=DATE_RANGE_PARAMETERS, responses={200: TransactionSerializer(many=True)})
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(parameters=DATE_RANGE_PARAMETERS, responses={200: TransactionSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def funds(self, request):
        """Current user's funds and refunds."""
        params = _date_filters(request)
        queryset = TransactionQueries.get_user_fund_transactions(
            request.user.id,
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
        return _paginated(request, queryset)

    @extend_schema(parameters=DATE_RANGE_PARAMETERS, responses={200: TransactionSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def sac(self, request):
        """Every fund and refund handled at the SAC desk."""
        params = _date_filters(request)
        queryset = TransactionQueries.get_sac_transactions(
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
        return _paginated(request, queryset)


@extend_schema(
    request=PurchaseInputSerializer,
    responses={
        200: PurchaseResponseSerializer,
        201: PurchaseResponseSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description=(
        "Charge a student for a booth cart. Send an idempotency_key to make "
        "retries safe: a repeated key returns the original transaction (200)."
    ),
    tags=['transactions'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase(request):
    """Ring up a purchase - thin HTTP handler."""
    serializer = PurchaseInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        buyer = _resolve_student(data)
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    try:
        txn, created = PaymentService.process_purchase(
            booth_id=data['booth_id'],
            buyer=buyer,
            items=[(item['product_id'], item['quantity']) for item in data['items']],
            seller=request.user,
            idempotency_key=data.get('idempotency_key') or None,
        )
    except LedgerServiceError as e:
        return Response({'error': str(e)}, status=_error_status(e))

    if not created:
        buyer.refresh_from_db(fields=['balance_cents'])

    return Response({
        'transaction': TransactionSerializer(txn).data,
        'balance_cents': buyer.balance_cents,
        'replayed': not created,
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@extend_schema(
    request=FundInputSerializer,
    responses={
        201: TransactionSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Add funds (positive amount) or refund (negative amount). SAC only.",
    tags=['transactions'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def add_funds(request):
    serializer = FundInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        student = _resolve_student(data)
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    try:
        txn = PaymentService.add_funds(
            student=student,
            amount_cents=data['amount_cents'],
            sac_member=request.user,
            payment_method=data['payment_method'],
            note=data['note'],
        )
    except LedgerServiceError as e:
        return Response({'error': str(e)}, status=_error_status(e))

    return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=AdjustBalanceInputSerializer,
    responses={
        200: TransactionSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Set a balance to an exact value after re-entering the SAC PIN. SAC only.",
    tags=['transactions'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def adjust_balance(request):
    serializer = AdjustBalanceInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        student = _resolve_student(data)
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    try:
        txn = PaymentService.adjust_balance(
            student=student,
            new_balance_cents=data['new_balance_cents'],
            sac_member=request.user,
            verification_pin=data['verification_pin'],
        )
    except LedgerServiceError as e:
        return Response({'error': str(e)}, status=_error_status(e))

    if txn is None:
        return Response({'message': 'Balance unchanged', 'balance_cents': student.balance_cents})
    return Response(TransactionSerializer(txn).data)


def _booth_for_staff(request, booth_id):
    booth = get_object_or_404(Booth, id=booth_id)
    if not booth.can_sell(request.user):
        return booth, Response(
            {'error': 'You do not have access to this booth.'},
            status=status.HTTP_403_FORBIDDEN
        )
    return booth, None


@extend_schema(
    parameters=DATE_RANGE_PARAMETERS,
    responses={200: TransactionSerializer(many=True), 403: ErrorResponseSerializer},
    description="Purchases made at a booth (booth members and SAC).",
    tags=['transactions'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booth_transactions(request, booth_id):
    booth, denied = _booth_for_staff(request, booth_id)
    if denied:
        return denied

    params = _date_filters(request)
    queryset = TransactionQueries.get_booth_transactions(
        booth.id,
        start_date=params.get('start_date'),
        end_date=params.get('end_date'),
    )
    return _paginated(request, queryset)


@extend_schema(
    parameters=DATE_RANGE_PARAMETERS,
    responses={200: TransactionStatsSerializer, 403: ErrorResponseSerializer},
    description="Daily sales, top products and totals for a booth.",
    tags=['transactions'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booth_stats(request, booth_id):
    booth, denied = _booth_for_staff(request, booth_id)
    if denied:
        return denied

    params = _date_filters(request)
    data = TransactionQueries.get_transaction_stats(
        booth_id=booth.id,
        start_date=params.get('start_date'),
        end_date=params.get('end_date'),
    )
    return Response(TransactionStatsSerializer(data).data)
