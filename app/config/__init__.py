# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, root URL configuration, and the ASGI/WSGI entry points.
# =============================================================================
