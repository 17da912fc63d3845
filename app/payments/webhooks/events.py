"""
Stripe event kinds and payload extraction.

WebhookEventType lists the event kinds this service knows about. parse()
returns None for anything else, so dispatch can match on the enum and send
unknown kinds to an explicit acknowledge-and-ignore arm.

InvoicePayment pulls what distribution needs out of an invoice object.
Depending on the API version the subscription reference is either the
top-level ``subscription`` field or
``parent.subscription_details.subscription``; both are checked, and either
may be a bare id or an expanded object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class WebhookEventType(models.TextChoices):
    """Stripe event types the dispatcher recognizes."""

    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded", "Invoice Payment Succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed", "Invoice Payment Failed"
    INVOICE_PAID = "invoice.paid", "Invoice Paid"
    CUSTOMER_SUBSCRIPTION_CREATED = (
        "customer.subscription.created",
        "Subscription Created",
    )
    CUSTOMER_SUBSCRIPTION_UPDATED = (
        "customer.subscription.updated",
        "Subscription Updated",
    )
    CUSTOMER_SUBSCRIPTION_DELETED = (
        "customer.subscription.deleted",
        "Subscription Deleted",
    )
    TRANSFER_CREATED = "transfer.created", "Transfer Created"
    TRANSFER_REVERSED = "transfer.reversed", "Transfer Reversed"

    @classmethod
    def parse(cls, value: Any) -> WebhookEventType | None:
        """Return the matching member, or None for unknown or missing types."""
        try:
            return cls(value)
        except ValueError:
            return None


def _reference_id(value: Any) -> str | None:
    """Id from a bare string reference or an expanded object."""
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_subscription_id(invoice: dict[str, Any]) -> str | None:
    """
    Subscription id of an invoice, or None for one-time invoices.

    Checks the top-level field first, then the nested parent path.
    """
    subscription_id = _reference_id(invoice.get("subscription"))
    if subscription_id:
        return subscription_id

    parent = invoice.get("parent")
    if not isinstance(parent, dict):
        return None
    details = parent.get("subscription_details")
    if not isinstance(details, dict):
        return None
    return _reference_id(details.get("subscription"))


@dataclass(frozen=True)
class InvoicePayment:
    """
    A paid invoice, reduced to the fields revenue distribution uses.

    Attributes:
        invoice_id: Invoice ID (in_xxx)
        amount_paid: Amount paid in minor units
        currency: Lowercase currency code, empty when absent
        customer_id: Customer ID, if any
        subscription_id: None for one-time invoices
    """

    invoice_id: str
    amount_paid: int
    currency: str = ""
    customer_id: str | None = None
    subscription_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_invoice(cls, invoice: dict[str, Any]) -> InvoicePayment:
        """
        Build from an invoice object (event data.object or an API response).

        Raises:
            ValueError: The object has no invoice id
        """
        invoice_id = _reference_id(invoice.get("id"))
        if not invoice_id:
            raise ValueError("Invoice payload has no id")

        return cls(
            invoice_id=invoice_id,
            amount_paid=int(invoice.get("amount_paid") or 0),
            currency=(invoice.get("currency") or "").lower(),
            customer_id=_reference_id(invoice.get("customer")),
            subscription_id=extract_subscription_id(invoice),
            raw=invoice,
        )
