"""
Root URL configuration for the expedition journal backend.

URL Structure:
- /admin/: Django admin (jazzmin themed), including billing admin actions
- /api/token/: JWT token management
- /api/sponsorships/: Sponsorship listing and admin reconciliation
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/sponsorships/", include("sponsorships.urls")),
]
