from django.urls import path
from . import views

app_name = 'sac'

urlpatterns = [
    # Bulk imports
    path('import/users/', views.import_users_view, name='import-users'),
    path('import/booths/', views.import_booths_view, name='import-booths'),
    path('templates/<slug:kind>/', views.csv_template, name='csv-template'),

    # Reporting
    path('reports/transactions/', views.transaction_report, name='transaction-report'),
    path('dashboard/', views.dashboard, name='dashboard'),
]
