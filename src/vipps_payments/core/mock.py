"""
In-memory stand-in for the Vipps API.

:class:`MockSession` is a :class:`requests.Session` that answers the
endpoints used by :class:`~vipps_payments.core.client.VippsClient` from local
state instead of the network. It is meant for local development and tests:

    session = MockSession()
    client = VippsClient(config, session=session)
    payment = client.create_payment(client.payment_request(Amount.nok(1000)))
    session.set_payment_state(payment.reference, PaymentState.AUTHORIZED)
"""

from __future__ import annotations

import json
import re
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from .models import PaymentState

__all__ = [
    "MockSession",
    "RecordedCall",
]

PROBLEM_TYPE = "https://developer.vippsmobilepay.com/docs/APIs/epayment-api/api-guide/errors"

_PAYMENT_PATH = re.compile(r"^/epayment/v1/payments/(?P<reference>[^/]+)$")
_ADJUST_PATH = re.compile(r"^/epayment/v1/payments/(?P<reference>[^/]+)/(?P<action>capture|refund|cancel)$")
_CATEGORY_PATH = re.compile(r"^/order-management/v2/ecom/categories/(?P<reference>[^/]+)$")
_RECEIPT_PATH = re.compile(r"^/order-management/v2/ecom/receipts/(?P<reference>[^/]+)$")
_QR_PATH = re.compile(r"^/qr/v1/merchant-redirect/(?P<qr_id>[^/]+)$")

_Reply = Tuple[int, Optional[Any]]


@dataclass(frozen=True)
class RecordedCall:
    method: str
    path: str
    headers: Mapping[str, str]
    body: Any


def _problem(status: int, title: str, detail: str, instance: str, **extra: Any) -> _Reply:
    body = {"type": PROBLEM_TYPE, "title": title, "detail": detail, "instance": instance}
    body.update(extra)
    return status, body


def _build_response(
    status: int,
    url: str,
    content: bytes,
    headers: Optional[Mapping[str, str]] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response._content = content
    response.encoding = "utf-8"
    if headers:
        response.headers.update(headers)
    return response


@dataclass
class _MockPayment:
    reference: str
    currency: str
    value: int
    payment_method: str
    return_url: Optional[str]
    state: PaymentState = PaymentState.CREATED
    authorized: int = 0
    captured: int = 0
    refunded: int = 0
    cancelled: int = 0
    adjustments: int = 0

    def _amount(self, value: int) -> Dict[str, Any]:
        return {"currency": self.currency, "value": value}

    def aggregate(self) -> Dict[str, Any]:
        return {
            "authorizedAmount": self._amount(self.authorized),
            "cancelledAmount": self._amount(self.cancelled),
            "capturedAmount": self._amount(self.captured),
            "refundedAmount": self._amount(self.refunded),
        }

    def psp_reference(self) -> str:
        return f"mock-psp-{self.reference}-{self.adjustments}"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "aggregate": self.aggregate(),
            "amount": self._amount(self.value),
            "state": self.state.value,
            "paymentMethod": {"type": self.payment_method},
            "profile": {},
            "pspReference": self.psp_reference(),
            "redirectUrl": f"https://mock.vipps.no/payment/{self.reference}",
            "reference": self.reference,
        }

    def adjustment_payload(self) -> Dict[str, Any]:
        return {
            "aggregate": self.aggregate(),
            "amount": self._amount(self.value),
            "state": self.state.value,
            "pspReference": self.psp_reference(),
            "reference": self.reference,
        }


class MockSession(requests.Session):
    """
    A session that serves the Vipps endpoints from memory.

    Every request is appended to :attr:`calls`. Tests can queue a canned reply
    or exception with :meth:`inject_response` / :meth:`inject_error`; queued
    items are consumed before normal routing.
    """

    def __init__(self, *, token_ttl: Any = "3600") -> None:
        super().__init__()
        self.token_ttl = token_ttl
        self.calls: List[RecordedCall] = []
        self.issued_tokens: List[str] = []
        self.receipts: Dict[str, List[Any]] = {}
        self.categories: Dict[str, Any] = {}
        self._payments: Dict[str, _MockPayment] = {}
        self._qrs: Dict[str, Dict[str, str]] = {}
        self._injected: Deque[Union[BaseException, Tuple[int, bytes, Dict[str, str]]]] = deque()
        self._lock = threading.Lock()

    def inject_response(
        self,
        status: int,
        content: Union[bytes, str, Any] = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        elif not isinstance(content, bytes):
            content = json.dumps(content).encode("utf-8")
        self._injected.append((status, content, dict(headers or {})))

    def inject_error(self, error: BaseException) -> None:
        self._injected.append(error)

    def token_exchanges(self) -> int:
        return sum(1 for call in self.calls if call.path == "/accesstoken/get")

    def set_payment_state(self, reference: str, state: PaymentState) -> None:
        """Pretend the user acted on the payment in the app."""
        with self._lock:
            payment = self._payments[reference]
            payment.state = state
            if state is PaymentState.AUTHORIZED:
                payment.authorized = payment.value

    def return_url(self, reference: str) -> Optional[str]:
        with self._lock:
            return self._payments[reference].return_url

    def request(  # type: ignore[override]
        self,
        method: str,
        url: str,
        params: Any = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
        **kwargs: Any,
    ) -> requests.Response:
        merged: CaseInsensitiveDict = CaseInsensitiveDict(self.headers)
        merged.update(headers or {})
        method = method.upper()
        path = urlsplit(url).path

        with self._lock:
            self.calls.append(RecordedCall(method, path, merged, json))
            if self._injected:
                injected = self._injected.popleft()
                if isinstance(injected, BaseException):
                    raise injected
                status, content, reply_headers = injected
                return _build_response(status, url, content, reply_headers)
            status, payload = self._dispatch(method, path, merged, json)

        if payload is None:
            return _build_response(status, url, b"")
        content = _encode(payload)
        return _build_response(status, url, content, {"Content-Type": "application/json"})

    def _dispatch(self, method: str, path: str, headers: Mapping[str, str], body: Any) -> _Reply:
        if path == "/accesstoken/get" and method == "POST":
            return self._issue_token(path, headers)

        token = headers.get("Authorization", "")
        if not token.startswith("Bearer ") or token[len("Bearer "):] not in self.issued_tokens:
            return _problem(401, "Unauthorized", "Missing or invalid access token", path)

        if path == "/epayment/v1/payments" and method == "POST":
            return self._create_payment(path, body)
        match = _PAYMENT_PATH.match(path)
        if match and method == "GET":
            payment = self._payments.get(match["reference"])
            if payment is None:
                return _problem(404, "Not Found", "Payment not found", path)
            return 200, payment.to_payload()
        match = _ADJUST_PATH.match(path)
        if match and method == "POST":
            return self._adjust(path, match["reference"], match["action"], body)
        match = _CATEGORY_PATH.match(path)
        if match and method == "PUT":
            return self._order_management(path, match["reference"], body, self.categories)
        match = _RECEIPT_PATH.match(path)
        if match and method == "POST":
            return self._order_management(path, match["reference"], body, self.receipts)

        if path == "/qr/v1/merchant-redirect":
            if method == "POST":
                return self._create_qr(path, body)
            if method == "GET":
                return 200, list(self._qrs.values())
        match = _QR_PATH.match(path)
        if match:
            return self._qr(path, method, match["qr_id"], body)

        return _problem(404, "Not Found", f"No route for {method} {path}", path)

    def _issue_token(self, path: str, headers: Mapping[str, str]) -> _Reply:
        if not headers.get("client_id") or not headers.get("client_secret"):
            return _problem(401, "Unauthorized", "Client credentials missing", path)
        token = f"mock-token-{len(self.issued_tokens) + 1}"
        self.issued_tokens.append(token)
        return 200, {
            "token_type": "Bearer",
            "expires_in": self.token_ttl,
            "access_token": token,
        }

    def _create_payment(self, path: str, body: Any) -> _Reply:
        if not isinstance(body, Mapping) or "amount" not in body or "reference" not in body:
            return _problem(
                400,
                "Bad Request",
                "Request body is invalid",
                path,
                invalidParams=[{"name": "body", "reason": "amount and reference are required"}],
            )
        reference = body["reference"]
        if reference in self._payments:
            return _problem(409, "Conflict", f"Payment {reference} already exists", path)
        amount = body["amount"]
        self._payments[reference] = _MockPayment(
            reference=reference,
            currency=amount["currency"],
            value=amount["value"],
            payment_method=body.get("paymentMethod", {}).get("type", "WALLET"),
            return_url=body.get("returnUrl"),
        )
        return 201, {
            "redirectUrl": f"https://mock.vipps.no/payment/{reference}",
            "reference": reference,
        }

    def _adjust(self, path: str, reference: str, action: str, body: Any) -> _Reply:
        payment = self._payments.get(reference)
        if payment is None:
            return _problem(404, "Not Found", "Payment not found", path)

        if action == "cancel":
            if payment.state not in (PaymentState.CREATED, PaymentState.AUTHORIZED):
                return _problem(400, "Bad Request", f"Cannot cancel a {payment.state.value} payment", path)
            payment.cancelled = payment.authorized - payment.captured
            payment.state = PaymentState.TERMINATED
            payment.adjustments += 1
            return 200, payment.adjustment_payload()

        amount = (body or {}).get("modificationAmount") or {}
        value = amount.get("value")
        if amount.get("currency") != payment.currency or not isinstance(value, int) or value <= 0:
            return _problem(
                400,
                "Bad Request",
                "Invalid modification amount",
                path,
                invalidParams=[{"name": "modificationAmount", "reason": "must be positive, same currency"}],
            )

        if action == "capture":
            if payment.state is not PaymentState.AUTHORIZED:
                return _problem(400, "Bad Request", f"Cannot capture a {payment.state.value} payment", path)
            if payment.captured + value > payment.authorized - payment.cancelled:
                return _problem(400, "Bad Request", "Capture amount too high", path)
            payment.captured += value
        else:
            if payment.refunded + value > payment.captured:
                return _problem(400, "Bad Request", "Refund amount too high", path)
            payment.refunded += value

        payment.adjustments += 1
        return 200, payment.adjustment_payload()

    def _order_management(
        self,
        path: str,
        reference: str,
        body: Any,
        store: Dict[str, Any],
    ) -> _Reply:
        if reference not in self._payments:
            return _problem(404, "Not Found", "Order not found", path)
        if store is self.receipts:
            store.setdefault(reference, []).append(body)
        else:
            store[reference] = body
        return 204, None

    def _create_qr(self, path: str, body: Any) -> _Reply:
        qr_id = (body or {}).get("id")
        redirect_url = (body or {}).get("redirectUrl")
        if not qr_id or not redirect_url:
            return _problem(400, "Bad Request", "id and redirectUrl are required", path)
        if qr_id in self._qrs:
            return _problem(409, "Conflict", f"QR {qr_id} already exists", path)
        self._qrs[qr_id] = {
            "id": qr_id,
            "url": f"https://qr.mock.vipps.no/generate/qr/{qr_id}",
            "redirectUrl": redirect_url,
        }
        return 201, self._qrs[qr_id]

    def _qr(self, path: str, method: str, qr_id: str, body: Any) -> _Reply:
        qr = self._qrs.get(qr_id)
        if qr is None:
            return _problem(404, "Not Found", f"QR {qr_id} not found", path)
        if method == "GET":
            return 200, qr
        if method == "PUT":
            redirect_url = (body or {}).get("redirectUrl")
            if not redirect_url:
                return _problem(400, "Bad Request", "redirectUrl is required", path)
            qr["redirectUrl"] = redirect_url
            return 200, qr
        if method == "DELETE":
            del self._qrs[qr_id]
            return 204, None
        return _problem(405, "Method Not Allowed", f"{method} is not supported", path)


def _encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")
