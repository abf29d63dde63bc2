"""
Helpers for constructing the JSON bodies sent to the Vipps API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from .models import Amount, Currency, OrderCategory, OrderLine

if TYPE_CHECKING:
    from .epayment import PaymentRequest

__all__ = [
    "build_category_body",
    "build_create_payment_body",
    "build_modification_body",
    "build_receipt_body",
    "build_redirect_qr_body",
    "build_redirect_update_body",
]


def _compact(body: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset optional fields."""
    return {key: value for key, value in body.items() if value is not None}


def build_create_payment_body(request: "PaymentRequest") -> Dict[str, Any]:
    """Build the body for ``POST /epayment/v1/payments``."""
    return _compact(
        {
            "amount": request.amount.to_payload(),
            "customer": request.customer.to_payload() if request.customer else None,
            "customerInteraction": request.customer_interaction.value,
            "paymentMethod": {"type": request.payment_method.value},
            "profile": {"scope": request.profile_scope} if request.profile_scope else None,
            "reference": request.reference,
            "returnUrl": request.return_url,
            "userFlow": request.user_flow.value,
            "paymentDescription": request.payment_description,
        }
    )


def build_modification_body(amount: Amount) -> Dict[str, Any]:
    """Body shared by capture and refund."""
    return {"modificationAmount": amount.to_payload()}


def build_category_body(
    category: OrderCategory,
    details_url: str,
    image_id: Optional[str] = None,
) -> Dict[str, Any]:
    return _compact(
        {
            "category": category.value,
            "orderDetailsUrl": details_url,
            "imageId": image_id,
        }
    )


def build_receipt_body(order_lines: Iterable[OrderLine], currency: Currency) -> Dict[str, Any]:
    return {
        "orderLines": [_compact(line.to_payload()) for line in order_lines],
        "bottomLine": {"currency": currency.value},
    }


def build_redirect_qr_body(qr_id: str, redirect_url: str) -> Dict[str, Any]:
    return {"id": qr_id, "redirectUrl": redirect_url}


def build_redirect_update_body(redirect_url: str) -> Dict[str, Any]:
    return {"redirectUrl": redirect_url}
