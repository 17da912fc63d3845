"""
URL configuration for payments app.

Routes:
    webhooks/stripe/ - Stripe webhook endpoint (POST)
"""

from django.urls import path

from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
]
