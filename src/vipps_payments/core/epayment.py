"""
ePayment API: create, fetch, capture, refund and cancel payments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .models import (
    Amount,
    Customer,
    CustomerInteraction,
    OrderCategory,
    PaymentAggregate,
    PaymentDetails,
    PaymentMethodType,
    PaymentState,
    UserFlow,
)
from .order_management import ReceiptRequest, add_category, add_receipt
from .payloads import build_create_payment_body, build_modification_body

if TYPE_CHECKING:
    from .client import VippsClient

__all__ = [
    "Payment",
    "PaymentRequest",
    "cancel_payment",
    "capture_payment",
    "create_payment",
    "fetch_payment",
    "refund_payment",
]

PAYMENTS_PATH = "/epayment/v1/payments"


@dataclass
class PaymentRequest:
    """
    Everything needed to create a payment.

    The request is plain data: fill it in, then pass it to
    :meth:`VippsClient.create_payment`. Sending it twice sends the same
    ``reference`` twice, which the API rejects as a duplicate.
    """

    amount: Amount
    reference: str
    customer: Optional[Customer] = None
    customer_interaction: CustomerInteraction = CustomerInteraction.CUSTOMER_NOT_PRESENT
    payment_method: PaymentMethodType = PaymentMethodType.WALLET
    profile_scope: Optional[str] = None
    return_url: Optional[str] = None
    user_flow: UserFlow = UserFlow.WEB_REDIRECT
    payment_description: Optional[str] = None

    def validate(self) -> None:
        if self.amount.value <= 0:
            raise ValueError("Payment amount must be greater than zero")
        if not self.reference or not self.reference.strip():
            raise ValueError("Payment reference must not be empty")
        if self.user_flow is UserFlow.PUSH_MESSAGE and self.customer is None:
            raise ValueError("The PUSH_MESSAGE user flow needs a customer")


def _apply_adjustment(details: PaymentDetails, payload: Mapping[str, Any]) -> PaymentDetails:
    adjusted = PaymentDetails.from_response(
        {
            "reference": payload.get("reference", details.reference),
            "amount": payload.get("amount"),
            "state": payload.get("state"),
            "paymentMethod": {"type": details.payment_method.value},
        }
    )
    aggregate = payload.get("aggregate")
    return replace(
        details,
        amount=adjusted.amount,
        state=adjusted.state,
        psp_reference=payload.get("pspReference", details.psp_reference),
        aggregate=PaymentAggregate.from_payload(aggregate) if aggregate else details.aggregate,
    )


class Payment:
    """A payment as last seen by this client."""

    def __init__(self, client: "VippsClient", details: PaymentDetails) -> None:
        self.client = client
        self.details = details

    def __repr__(self) -> str:
        return f"Payment(reference={self.reference!r}, state={self.state.value})"

    @property
    def reference(self) -> str:
        return self.details.reference

    @property
    def redirect_url(self) -> Optional[str]:
        return self.details.redirect_url

    @property
    def sub(self) -> Optional[str]:
        return self.details.profile_sub

    @property
    def amount(self) -> Amount:
        return self.details.amount

    @property
    def state(self) -> PaymentState:
        return self.details.state

    @property
    def aggregate(self) -> Optional[PaymentAggregate]:
        return self.details.aggregate

    def capture(self, amount: Amount) -> None:
        self.details = _apply_adjustment(
            self.details, capture_payment(self.client, self.reference, amount)
        )

    def refund(self, amount: Amount) -> None:
        self.details = _apply_adjustment(
            self.details, refund_payment(self.client, self.reference, amount)
        )

    def cancel(self) -> None:
        self.details = _apply_adjustment(
            self.details, cancel_payment(self.client, self.reference)
        )

    def update(self) -> None:
        """Reload the payment from the API."""
        self.details = fetch_payment(self.client, self.reference).details
        logging.debug("Updated payment %s", self.reference)

    def add_category(
        self,
        category: OrderCategory,
        details_url: str,
        *,
        image_id: Optional[str] = None,
    ) -> None:
        add_category(self.client, self.reference, category, details_url, image_id=image_id)

    def add_receipt(self, receipt: ReceiptRequest) -> None:
        add_receipt(self.client, self.reference, receipt)


def create_payment(client: "VippsClient", request: PaymentRequest) -> Payment:
    request.validate()
    outcome = client.call(
        "POST",
        PAYMENTS_PATH,
        body=build_create_payment_body(request),
        idempotent=True,
    )
    payload = outcome.json_object()
    details = PaymentDetails(
        reference=payload.get("reference", request.reference),
        amount=request.amount,
        state=PaymentState.CREATED,
        payment_method=request.payment_method,
        redirect_url=payload.get("redirectUrl"),
    )
    logging.debug("Created payment %s", details.reference)
    return Payment(client, details)


def fetch_payment(client: "VippsClient", reference: str) -> Payment:
    outcome = client.call("GET", f"{PAYMENTS_PATH}/{reference}")
    return Payment(client, PaymentDetails.from_response(outcome.json_object()))


def _modify(
    client: "VippsClient",
    reference: str,
    action: str,
    amount: Optional[Amount] = None,
) -> Mapping[str, Any]:
    body = build_modification_body(amount) if amount is not None else None
    outcome = client.call(
        "POST",
        f"{PAYMENTS_PATH}/{reference}/{action}",
        body=body,
        idempotent=True,
    )
    logging.debug("Payment %s: %s done", reference, action)
    return outcome.json_object()


def capture_payment(client: "VippsClient", reference: str, amount: Amount) -> Mapping[str, Any]:
    return _modify(client, reference, "capture", amount)


def refund_payment(client: "VippsClient", reference: str, amount: Amount) -> Mapping[str, Any]:
    return _modify(client, reference, "refund", amount)


def cancel_payment(client: "VippsClient", reference: str) -> Mapping[str, Any]:
    return _modify(client, reference, "cancel")
