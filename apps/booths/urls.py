from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'booths'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.BoothViewSet, basename='booth')

urlpatterns = [
    # Booth ViewSet routes
    # GET    /api/booths/                       - List user's booths
    # POST   /api/booths/                       - Create booth (SAC)
    # GET    /api/booths/{id}/                  - Booth detail with menu
    # PATCH  /api/booths/{id}/                  - Update booth (manager)
    # DELETE /api/booths/{id}/                  - Delete or deactivate (SAC)

    # Custom booth actions
    # POST   /api/booths/join/                  - Join with PIN
    # GET    /api/booths/{id}/members/          - List members
    # POST   /api/booths/{id}/leave/            - Leave booth
    # POST   /api/booths/{id}/regenerate_pin/   - New PIN (manager)
    # POST   /api/booths/{id}/remove_member/    - Remove member (manager)
    # GET    /api/booths/{id}/products/         - Menu
    # POST   /api/booths/{id}/products/         - Add product
    # PATCH  /api/booths/{id}/products/{pid}/   - Edit product
    # DELETE /api/booths/{id}/products/{pid}/   - Remove product

    # Additional endpoints
    path('leaderboard/', views.leaderboard, name='leaderboard'),
    path('requests/', views.pending_requests, name='request-list'),
    path('requests/submit/', views.submit_request, name='request-submit'),
    path('requests/<uuid:pk>/approve/', views.approve_request, name='request-approve'),
    path('requests/<uuid:pk>/reject/', views.reject_request, name='request-reject'),

    # Include router URLs
    path('', include(router.urls)),
]
