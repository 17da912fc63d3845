"""
URL configuration for catalog app.

Mounted at /api/v1/catalog/. Every view is wrapped in cors_enabled so
preflight OPTIONS requests get a 204 before DRF dispatches them.
"""

from django.urls import path

from core.decorators import cors_enabled

from .views import (
    ActiveOfferingListView,
    ArchiveProductView,
    ConnectedAccountListView,
    CreateOfferingView,
    ReplacePriceView,
    SchedulePriceChangeView,
)

app_name = "catalog"

urlpatterns = [
    path("products/", cors_enabled(ActiveOfferingListView.as_view()), name="product_list"),
    path(
        "products/create/",
        cors_enabled(CreateOfferingView.as_view()),
        name="product_create",
    ),
    path(
        "products/archive/",
        cors_enabled(ArchiveProductView.as_view()),
        name="product_archive",
    ),
    path(
        "products/update/",
        cors_enabled(SchedulePriceChangeView.as_view()),
        name="product_update",
    ),
    path(
        "products/replace-price/",
        cors_enabled(ReplacePriceView.as_view()),
        name="product_replace_price",
    ),
    path(
        "connected-accounts/",
        cors_enabled(ConnectedAccountListView.as_view()),
        name="connected_accounts",
    ),
]
