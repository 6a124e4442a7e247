from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsSACMember
from apps.ledger.queries import TransactionQueries
from .csv_import import CSV_TEMPLATES, parse_csv, import_users, import_booths
from .reports import build_transaction_report, dashboard_stats
from .serializers import (
    CSVUploadSerializer,
    ReportQuerySerializer,
    UserImportResultSerializer,
    BoothImportResultSerializer,
    DashboardStatsSerializer,
    ErrorSerializer,
)
from .exceptions import SACServiceError


def _csv_response(content, filename):
    response = HttpResponse(content, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@extend_schema(
    request={'multipart/form-data': CSVUploadSerializer, 'application/json': CSVUploadSerializer},
    responses={200: UserImportResultSerializer, 400: ErrorSerializer},
    description="Create accounts from a CSV (studentNumber, name, email, role, optional tickets).",
    tags=['sac'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def import_users_view(request):
    """Bulk user import - thin HTTP handler."""
    upload = CSVUploadSerializer(data=request.data)
    upload.is_valid(raise_exception=True)

    try:
        rows = parse_csv(upload.get_text())
        summary = import_users(rows, imported_by=request.user)
    except SACServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(UserImportResultSerializer(summary).data)


@extend_schema(
    request={'multipart/form-data': CSVUploadSerializer, 'application/json': CSVUploadSerializer},
    responses={200: BoothImportResultSerializer, 400: ErrorSerializer},
    description="Create booths from a CSV (name, description, pin, optional product columns).",
    tags=['sac'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSACMember])
def import_booths_view(request):
    """Bulk booth import - thin HTTP handler."""
    upload = CSVUploadSerializer(data=request.data)
    upload.is_valid(raise_exception=True)

    try:
        rows = parse_csv(upload.get_text())
        summary = import_booths(rows, created_by=request.user)
    except SACServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(BoothImportResultSerializer(summary).data)


@extend_schema(
    responses={(200, 'text/csv'): OpenApiTypes.STR, 404: ErrorSerializer},
    description="Download an example CSV: users, booths or booths-with-products.",
    tags=['sac'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSACMember])
def csv_template(request, kind):
    if kind not in CSV_TEMPLATES:
        return Response(
            {'error': f"Unknown template '{kind}'. Options: {', '.join(CSV_TEMPLATES)}"},
            status=status.HTTP_404_NOT_FOUND
        )
    filename, content = CSV_TEMPLATES[kind]
    return _csv_response(content, filename)


@extend_schema(
    parameters=[OpenApiParameter('date', OpenApiTypes.DATE, description='Report day (YYYY-MM-DD), default today')],
    responses={(200, 'text/csv'): OpenApiTypes.STR},
    description=(
        "Daily transaction report for one day as a CSV file download: one row per "
        "transaction, then totals. Served as CSV rather than PDF so it opens in any spreadsheet."
    ),
    tags=['sac'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSACMember])
def transaction_report(request):
    query = ReportQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    day = query.validated_data['date']

    transactions = TransactionQueries.get_all_transactions(start_date=day, end_date=day)
    content = build_transaction_report(transactions, day)
    return _csv_response(content, f"transactions-{day.isoformat()}.csv")


@extend_schema(
    responses={200: DashboardStatsSerializer},
    description="User, booth and money totals for the SAC dashboard.",
    tags=['sac'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSACMember])
def dashboard(request):
    return Response(DashboardStatsSerializer(dashboard_stats()).data)
