from rest_framework import viewsets, status, serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSACMember
from .models import Booth
from .permissions import IsBoothMember, IsBoothManager
from .serializers import (
    BoothSerializer,
    BoothListSerializer,
    BoothCreateSerializer,
    BoothUpdateSerializer,
    BoothMemberSerializer,
    JoinBoothSerializer,
    RemoveMemberSerializer,
    ProductSerializer,
    ProductInputSerializer,
    LeaderboardEntrySerializer,
    BoothRequestSubmitSerializer,
    PendingBoothSerializer,
    RejectBoothRequestSerializer,
)

from apps.booths.services import (
    create_booth,
    get_booths_for_user,
    list_booths,
    get_leaderboard,
    update_booth,
    delete_booth,
    regenerate_pin,
    join_booth_by_pin,
    leave_booth,
    remove_member,
    get_booth_members,
    add_product,
    update_product,
    remove_product,
    get_booth_products,
    submit_booth_request,
    list_pending_booths,
    approve_booth_request,
    reject_booth_request,
    # Exceptions
    BoothNotFoundError,
    InvalidPinError,
    DuplicatePinError,
    NotMemberError,
    LastManagerError,
    InsufficientPermissionsError,
    ProductNotFoundError,
    InvalidProductError,
    BoothRequestNotFoundError,
    BoothRequestAlreadyReviewedError,
)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class BoothPagination(PageNumberPagination):
    """Custom pagination for booths."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class BoothViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Booth CRUD operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Booths the user has access to (SAC: ?all=true for every booth)
    create: Create a new booth (SAC only)
    retrieve: Booth detail with menu (members and SAC)
    partial_update: Edit booth (manager or SAC)
    destroy: Delete booth, or deactivate it if it has sales (SAC only)
    """

    queryset = Booth.objects.all()
    serializer_class = BoothSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = BoothPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        if self.action == 'list':
            user = self.request.user
            if user.is_sac and self.request.query_params.get('all') in ('1', 'true'):
                return list_booths(include_inactive=True)
            return get_booths_for_user(user=user)
        return Booth.objects.all()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return BoothListSerializer
        elif self.action == 'create':
            return BoothCreateSerializer
        elif self.action == 'partial_update':
            return BoothUpdateSerializer
        return BoothSerializer

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action in ['create', 'destroy']:
            return [IsAuthenticated(), IsSACMember()]
        if self.action in ['partial_update', 'regenerate_pin', 'remove_member']:
            return [IsAuthenticated(), IsBoothManager()]
        if self.action in ['retrieve', 'members', 'products', 'product_detail']:
            return [IsAuthenticated(), IsBoothMember()]
        return [IsAuthenticated()]

    @extend_schema(
        request=BoothCreateSerializer,
        responses={201: BoothSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    )
    def create(self, request, *args, **kwargs):
        """Create a new booth; a random PIN is generated when none is given."""
        serializer = BoothCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booth = create_booth(
                name=serializer.validated_data['name'],
                description=serializer.validated_data.get('description', ''),
                pin=serializer.validated_data.get('pin'),
                creator=request.user,
            )
        except InvalidPinError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except DuplicatePinError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        output_serializer = BoothSerializer(booth, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=BoothUpdateSerializer,
        responses={200: BoothSerializer, 400: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    )
    def partial_update(self, request, *args, **kwargs):
        booth = self.get_object()
        serializer = BoothUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booth = update_booth(booth_id=booth.id, user=request.user, **serializer.validated_data)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidPinError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except DuplicatePinError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(BoothSerializer(booth, context={'request': request}).data)

    def destroy(self, request, *args, **kwargs):
        """Delete a booth; booths with sales are deactivated instead."""
        booth = self.get_object()
        try:
            deleted = delete_booth(booth_id=booth.id, user=request.user)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        if deleted:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response({
            'message': 'Booth has transactions and was deactivated instead of deleted'
        })

    @extend_schema(responses={200: BoothMemberSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Get everyone with access to the booth."""
        booth = self.get_object()
        memberships = get_booth_members(booth_id=booth.id)
        serializer = BoothMemberSerializer(memberships, many=True)
        return Response(serializer.data)

    @extend_schema(
        request=JoinBoothSerializer,
        responses={200: BoothSerializer, 201: BoothSerializer, 400: ErrorResponseSerializer},
    )
    @action(detail=False, methods=['post'])
    def join(self, request):
        """Gain access to a booth by entering its PIN."""
        serializer = JoinBoothSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership, created = join_booth_by_pin(
                user=request.user,
                pin=serializer.validated_data['pin']
            )
        except InvalidPinError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        output_serializer = BoothSerializer(membership.booth, context={'request': request})
        return Response(
            output_serializer.data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        """Give up access to the booth."""
        try:
            leave_booth(booth_id=pk, user=request.user)
        except BoothNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (LastManagerError, NotMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def regenerate_pin(self, request, pk=None):
        """Issue a fresh random PIN (manager or SAC)."""
        booth = self.get_object()
        try:
            new_pin = regenerate_pin(booth_id=booth.id, user=request.user)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        return Response({
            'pin': new_pin,
            'message': 'PIN regenerated successfully'
        })

    @extend_schema(request=RemoveMemberSerializer, responses={204: None, 400: ErrorResponseSerializer})
    @action(detail=True, methods=['post'])
    def remove_member(self, request, pk=None):
        """Remove a member from the booth (manager or SAC)."""
        booth = self.get_object()
        serializer = RemoveMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            remove_member(
                booth_id=booth.id,
                user_id=serializer.validated_data['user_id'],
                removed_by=request.user
            )
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (LastManagerError, NotMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=ProductInputSerializer,
        responses={200: ProductSerializer(many=True), 201: ProductSerializer, 400: ErrorResponseSerializer},
    )
    @action(detail=True, methods=['get', 'post'])
    def products(self, request, pk=None):
        """List the menu, or add a product to it."""
        booth = self.get_object()

        if request.method == 'GET':
            products = get_booth_products(booth_id=booth.id)
            return Response(ProductSerializer(products, many=True).data)

        serializer = ProductInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = add_product(booth_id=booth.id, user=request.user, **serializer.validated_data)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidProductError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=ProductInputSerializer,
        responses={200: ProductSerializer, 204: None, 404: ErrorResponseSerializer},
    )
    @action(
        detail=True,
        methods=['patch', 'delete'],
        url_path=r'products/(?P<product_id>[0-9a-f-]{36})',
        url_name='product-detail',
    )
    def product_detail(self, request, pk=None, product_id=None):
        """Edit a product, or remove it from the menu."""
        booth = self.get_object()

        try:
            if request.method == 'DELETE':
                remove_product(booth_id=booth.id, product_id=product_id, user=request.user)
                return Response(status=status.HTTP_204_NO_CONTENT)

            serializer = ProductInputSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            product = update_product(
                booth_id=booth.id,
                product_id=product_id,
                user=request.user,
                **serializer.validated_data
            )
        except ProductNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidProductError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ProductSerializer(product).data)


@extend_schema(
    parameters=[OpenApiParameter('limit', int, description='Number of booths to return')],
    responses={200: LeaderboardEntrySerializer(many=True)},
    description="Booths ranked by total sales.",
    tags=['booths'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def leaderboard(request):
    """Booths ranked by total sales."""
    try:
        limit = int(request.query_params.get('limit', 0)) or None
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    entries = [
        {
            'rank': rank,
            'booth_id': booth.id,
            'booth_name': booth.name,
            'sales_cents': booth.sales_cents,
        }
        for rank, booth in enumerate(get_leaderboard(limit=limit), start=1)
    ]
    return Response(LeaderboardEntrySerializer(entries, many=True).data)


@extend_schema(
    request=BoothRequestSubmitSerializer,
    responses={201: PendingBoothSerializer, 400: ErrorResponseSerializer},
    description="Teachers request a booth for an initiative. No account needed.",
    tags=['booth-requests'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def submit_request(request):
    """Submit a booth request for SAC review."""
    serializer = BoothRequestSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        pending = submit_booth_request(**serializer.validated_data)
    except InvalidProductError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(PendingBoothSerializer(pending).data, status=status.HTTP_201_CREATED)


@extend_schema(
    parameters=[OpenApiParameter('status', str, description="pending (default), approved, rejected or 'all'")],
    responses={200: PendingBoothSerializer(many=True)},
    description="Teacher booth requests (SAC only).",
    tags=['booth-requests'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSACMember])
def pending_requests(request):
    """List booth requests, pending ones by default."""
    status_filter = request.query_params.get('status', 'pending')
    requests = list_pending_booths(status=None if status_filter == 'all' else status_filter)
    return Response(PendingBoothSerializer(requests, many=True).data)


@extend_schema(
    request=None,
    responses={201: BoothSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Approve a request, creating the booth and its products (SAC only).",
    tags=['booth-requests'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def approve_request(request, pk):
    try:
        booth = approve_booth_request(request_id=pk, reviewer=request.user)
    except BoothRequestNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except BoothRequestAlreadyReviewedError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(
        BoothSerializer(booth, context={'request': request}).data,
        status=status.HTTP_201_CREATED
    )


@extend_schema(
    request=RejectBoothRequestSerializer,
    responses={200: PendingBoothSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Reject a request (SAC only).",
    tags=['booth-requests'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def reject_request(request, pk):
    serializer = RejectBoothRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        pending = reject_booth_request(
            request_id=pk,
            reviewer=request.user,
            reason=serializer.validated_data['reason']
        )
    except BoothRequestNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except BoothRequestAlreadyReviewedError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(PendingBoothSerializer(pending).data)
