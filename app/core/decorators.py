"""
Custom decorators for views.

This module provides infrastructure decorators shared by the webhook and
catalog endpoints:
- cors_enabled: Answer CORS preflight requests and tag every response
- log_request: Request/response logging

Usage:
    from core.decorators import cors_enabled, log_request

    @cors_enabled
    @csrf_exempt
    @require_POST
    def stripe_webhook_view(request):
        ...

Note:
    cors_enabled must be the outermost decorator so that preflight OPTIONS
    requests are answered before method restrictions reject them.
"""

from __future__ import annotations

import functools
import logging
from typing import Callable

from django.conf import settings
from django.http import HttpResponse

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = (
    "Content-Type, Authorization, apikey, X-Client-Info, Stripe-Signature"
)


def get_cors_headers() -> dict[str, str]:
    """Return the permissive CORS headers sent by every endpoint."""
    return {
        "Access-Control-Allow-Origin": settings.CORS_ALLOW_ORIGIN,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
    }


def cors_enabled(func: Callable):
    """
    Answer OPTIONS preflight with 204 and add CORS headers to responses.

    Example:
        path("products/archive/", cors_enabled(ArchiveProductView.as_view()))
    """

    @functools.wraps(func)
    def wrapper(request, *args, **kwargs):
        if request.method == "OPTIONS":
            response = HttpResponse(status=204)
        else:
            response = func(request, *args, **kwargs)

        for header, value in get_cors_headers().items():
            response[header] = value
        return response

    return wrapper


def log_request(logger_name: str | None = None):
    """
    Log request/response for debugging.

    Logs request method, path, and response status.

    Args:
        logger_name: Optional logger name (defaults to view module)

    Example:
        @log_request()
        def my_view(request):
            ...
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(request, *args, **kwargs):
            log = logging.getLogger(logger_name or func.__module__)

            log.debug(
                f"Request: {request.method} {request.path}",
                extra={
                    "method": request.method,
                    "path": request.path,
                },
            )

            response = func(request, *args, **kwargs)

            status_code = getattr(response, "status_code", "unknown")
            log.debug(
                f"Response: {status_code} for {request.method} {request.path}",
                extra={
                    "status_code": status_code,
                    "method": request.method,
                    "path": request.path,
                },
            )

            return response

        return wrapper

    return decorator
