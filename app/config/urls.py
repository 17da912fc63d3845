"""
URL configuration for the revenue distribution service.

URL Structure:
    /admin/                        - Django admin (distributions, transfers, events)
    /health/                       - Health check endpoint (for load balancers, Docker)
    /api/v1/payments/              - Payment endpoints
        webhooks/stripe/           - Stripe webhook endpoint (POST)
    /api/v1/catalog/               - Product lifecycle endpoints
        products/                  - List active offerings (GET)
        products/create/           - Create offering (POST)
        products/archive/          - Archive product and prices (POST)
        products/update/           - Schedule next month's amount (POST)
        products/replace-price/    - Replace the active price (POST)
        connected-accounts/        - Connected account overview (GET)
"""

from django.contrib import admin
from django.urls import include, path

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("payments/", include("payments.urls")),
    path("catalog/", include("catalog.urls")),
]

# =============================================================================
# Main URL Configuration
# =============================================================================
urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]
