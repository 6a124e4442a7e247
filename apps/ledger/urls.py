from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'ledger'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # Transaction ViewSet routes
    # GET    /api/transactions/             - Own history (SAC: ?user=<id>)
    # GET    /api/transactions/{id}/        - Transaction detail
    # GET    /api/transactions/funds/       - Own funds and refunds
    # GET    /api/transactions/sac/         - All funds and refunds (SAC)

    # Balance changes
    path('purchase/', views.purchase, name='purchase'),
    path('funds/add/', views.add_funds, name='add-funds'),
    path('adjust/', views.adjust_balance, name='adjust-balance'),

    # Booth reporting
    path('booth/<uuid:booth_id>/', views.booth_transactions, name='booth-transactions'),
    path('booth/<uuid:booth_id>/stats/', views.booth_stats, name='booth-stats'),

    # Include router URLs
    path('', include(router.urls)),
]
