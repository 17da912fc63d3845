"""
DRF views for the catalog app.

Internal HTTP surface over ProductLifecycleService. Errors are rendered by
core.exception_handlers.api_exception_handler:
    - Missing/invalid input -> 400 {"error": "...", "error_code": "VALIDATION_ERROR"}
    - Unknown product -> 404
    - Upstream (Stripe) failure -> 500 with the upstream body in details

Related files:
    - services.py: ProductLifecycleService
    - serializers.py: Request serializers
    - urls.py: URL routing (wraps each view in cors_enabled)

Endpoints:
    GET /api/v1/catalog/products/ - List active offerings
    POST /api/v1/catalog/products/create/ - Create offering
    POST /api/v1/catalog/products/archive/ - Archive product and its prices
    POST /api/v1/catalog/products/update/ - Schedule next month's amount
    POST /api/v1/catalog/products/replace-price/ - Replace the active price
    GET /api/v1/catalog/connected-accounts/ - Connected account overview

Security:
    - Internal endpoints; deploy behind the platform's network boundary
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    ArchiveProductSerializer,
    CreateOfferingSerializer,
    ReplacePriceSerializer,
    SchedulePriceChangeSerializer,
)
from .services import ProductLifecycleService, product_to_dict


class CatalogAPIView(APIView):
    """Base view for catalog endpoints (no authentication, JSON only)."""

    authentication_classes: list = []
    permission_classes = [AllowAny]


class ActiveOfferingListView(CatalogAPIView):
    """
    List active prices joined with their active products.

    GET /api/v1/catalog/products/

    Returns:
        [{"productId", "productName", "priceId", "unitAmount", ...}]
    """

    def get(self, request):
        offerings = ProductLifecycleService.list_active_offerings()
        return Response([offering.to_dict() for offering in offerings])


class CreateOfferingView(CatalogAPIView):
    """
    Create a product, its monthly price and optionally a dynamic companion.

    POST /api/v1/catalog/products/create/

    Request body:
        {
            "name": "Gold Plan",
            "price": 19.99,
            "currency": "usd",
            "accountId": "acct_xxx",
            "includeDynamicCharge": true
        }

    Returns:
        {"product": {...}, "price": {...}, "dynamicProduct": {...} | null,
         "dynamicPrice": {...} | null}
    """

    def post(self, request):
        serializer = CreateOfferingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        offering = ProductLifecycleService.create_offering(serializer.to_offering_request())
        return Response(offering.to_dict(), status=status.HTTP_200_OK)


class ArchiveProductView(CatalogAPIView):
    """
    Archive a product and, unless archivePrices is false, its active prices.

    POST /api/v1/catalog/products/archive/

    Request body:
        {"productId": "prod_xxx", "archivePrices": true}
    """

    def post(self, request):
        serializer = ArchiveProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProductLifecycleService.archive_product(**serializer.validated_data)
        return Response(result.to_dict())


class SchedulePriceChangeView(CatalogAPIView):
    """
    Record the amount to bill from next month.

    POST /api/v1/catalog/products/update/

    Request body:
        {"productId": "prod_xxx", "amountNextMonth": 25.5}

    Returns:
        {"success": true, "product": {...}}
    """

    def post(self, request):
        serializer = SchedulePriceChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = ProductLifecycleService.schedule_price_change(**serializer.validated_data)
        return Response({"success": True, "product": product_to_dict(product)})


class ReplacePriceView(CatalogAPIView):
    """
    Create a new price and archive the old ones of the same frequency.

    POST /api/v1/catalog/products/replace-price/

    Request body:
        {"productId": "prod_xxx", "unitAmount": 2500, "currency": "usd",
         "interval": "month"}
    """

    def post(self, request):
        serializer = ReplacePriceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProductLifecycleService.replace_price(**serializer.validated_data)
        return Response(result.to_dict())


class ConnectedAccountListView(CatalogAPIView):
    """
    Platform account, connected accounts and onboarding summary.

    GET /api/v1/catalog/connected-accounts/
    """

    def get(self, request):
        overview = ProductLifecycleService.list_connected_accounts()
        return Response(overview.to_dict())
