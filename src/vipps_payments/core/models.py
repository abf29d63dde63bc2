"""
Plain data types shared by the ePayment, Order Management and QR APIs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import TransportError

__all__ = [
    "Amount",
    "Currency",
    "Customer",
    "CustomerInteraction",
    "OrderCategory",
    "OrderLine",
    "PaymentAggregate",
    "PaymentDetails",
    "PaymentMethodType",
    "PaymentState",
    "RedirectQrData",
    "UnitInfo",
    "UserFlow",
]


def _require(payload: Mapping[str, Any], key: str, kind: str) -> Any:
    try:
        return payload[key]
    except (KeyError, TypeError) as exc:
        raise TransportError(f"{kind} response is missing '{key}'") from exc


def _enum(enum_cls: Any, raw: Any, kind: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise TransportError(f"{kind} response has unknown value {raw!r}") from exc


class Currency(str, Enum):
    NOK = "NOK"
    DKK = "DKK"
    EUR = "EUR"


class PaymentMethodType(str, Enum):
    WALLET = "WALLET"
    CARD = "CARD"


class UserFlow(str, Enum):
    PUSH_MESSAGE = "PUSH_MESSAGE"
    NATIVE_REDIRECT = "NATIVE_REDIRECT"
    WEB_REDIRECT = "WEB_REDIRECT"
    QR = "QR"


class CustomerInteraction(str, Enum):
    CUSTOMER_NOT_PRESENT = "CUSTOMER_NOT_PRESENT"
    CUSTOMER_PRESENT = "CUSTOMER_PRESENT"


class PaymentState(str, Enum):
    CREATED = "CREATED"
    ABORTED = "ABORTED"
    EXPIRED = "EXPIRED"
    AUTHORIZED = "AUTHORIZED"
    TERMINATED = "TERMINATED"

    @property
    def completed(self) -> bool:
        """True once the user has acted on the payment (or it timed out)."""
        return self is not PaymentState.CREATED


class OrderCategory(str, Enum):
    GENERAL = "GENERAL"
    RECEIPT = "RECEIPT"
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    DELIVERY = "DELIVERY"
    TICKET = "TICKET"
    BOOKING = "BOOKING"


@dataclass(frozen=True)
class Amount:
    """An amount in minor units (øre, cents)."""

    currency: Currency
    value: int

    @classmethod
    def nok(cls, value: int) -> "Amount":
        return cls(Currency.NOK, value)

    @classmethod
    def dkk(cls, value: int) -> "Amount":
        return cls(Currency.DKK, value)

    @classmethod
    def eur(cls, value: int) -> "Amount":
        return cls(Currency.EUR, value)

    def to_payload(self) -> Dict[str, Any]:
        return {"currency": self.currency.value, "value": self.value}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Amount":
        currency = _enum(Currency, _require(payload, "currency", "Amount"), "Amount")
        value = _require(payload, "value", "Amount")
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransportError(f"Amount response has a non-integer value {value!r}")
        return cls(currency, value)


@dataclass(frozen=True)
class Customer:
    """
    Identifies the paying user by phone number, personal QR or customer token.

    Use the named constructors rather than building one directly.
    """

    key: str
    value: str = field(repr=False)

    @classmethod
    def phone_number(cls, phone_number: str) -> "Customer":
        return cls("phoneNumber", phone_number)

    @classmethod
    def personal_qr(cls, personal_qr: str) -> "Customer":
        return cls("personalQr", personal_qr)

    @classmethod
    def customer_token(cls, customer_token: str) -> "Customer":
        return cls("customerToken", customer_token)

    def to_payload(self) -> Dict[str, str]:
        return {self.key: self.value}


@dataclass(frozen=True)
class PaymentAggregate:
    authorized_amount: Amount
    cancelled_amount: Amount
    captured_amount: Amount
    refunded_amount: Amount

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PaymentAggregate":
        return cls(
            authorized_amount=Amount.from_payload(_require(payload, "authorizedAmount", "Aggregate")),
            cancelled_amount=Amount.from_payload(_require(payload, "cancelledAmount", "Aggregate")),
            captured_amount=Amount.from_payload(_require(payload, "capturedAmount", "Aggregate")),
            refunded_amount=Amount.from_payload(_require(payload, "refundedAmount", "Aggregate")),
        )


@dataclass(frozen=True)
class PaymentDetails:
    reference: str
    amount: Amount
    state: PaymentState
    payment_method: PaymentMethodType
    card_bin: Optional[str] = None
    profile_sub: Optional[str] = None
    redirect_url: Optional[str] = None
    psp_reference: Optional[str] = None
    aggregate: Optional[PaymentAggregate] = None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "PaymentDetails":
        method = _require(payload, "paymentMethod", "Payment")
        profile = payload.get("profile") or {}
        if not isinstance(profile, Mapping):
            raise TransportError(f"Payment response has a malformed profile {profile!r}")
        aggregate = payload.get("aggregate")
        return cls(
            reference=_require(payload, "reference", "Payment"),
            amount=Amount.from_payload(_require(payload, "amount", "Payment")),
            state=_enum(PaymentState, _require(payload, "state", "Payment"), "Payment"),
            payment_method=_enum(
                PaymentMethodType, _require(method, "type", "Payment"), "Payment"
            ),
            card_bin=method.get("cardBin"),
            profile_sub=profile.get("sub"),
            redirect_url=payload.get("redirectUrl"),
            psp_reference=payload.get("pspReference"),
            aggregate=PaymentAggregate.from_payload(aggregate) if aggregate else None,
        )


@dataclass(frozen=True)
class UnitInfo:
    unit_price: int
    quantity: str

    def to_payload(self) -> Dict[str, Any]:
        return {"unitPrice": self.unit_price, "quantity": self.quantity}


@dataclass(frozen=True)
class OrderLine:
    """A single line of a receipt. Amounts are in minor units."""

    name: str
    id: str
    total_amount: int
    total_amount_excluding_tax: int
    total_tax_amount: int
    tax_percentage: int
    unit_info: Optional[UnitInfo] = None
    discount: Optional[int] = None
    product_url: Optional[str] = None
    is_return: Optional[bool] = None
    is_shipping: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "totalAmount": self.total_amount,
            "totalAmountExcludingTax": self.total_amount_excluding_tax,
            "totalTaxAmount": self.total_tax_amount,
            "taxPercentage": self.tax_percentage,
            "unitInfo": self.unit_info.to_payload() if self.unit_info else None,
            "discount": self.discount,
            "productUrl": self.product_url,
            "isReturn": self.is_return,
            "isShipping": self.is_shipping,
        }


@dataclass(frozen=True)
class RedirectQrData:
    id: str
    url: str
    redirect_url: str

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "RedirectQrData":
        return cls(
            id=_require(payload, "id", "QR"),
            url=_require(payload, "url", "QR"),
            redirect_url=_require(payload, "redirectUrl", "QR"),
        )
