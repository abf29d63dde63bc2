"""
HTTP client for the Vipps API.

:class:`VippsClient` is the long-lived handle shared by every operation. It
owns the HTTP session (with the static merchant headers installed once) and
the access token cache, and runs every call through the same pipeline: fetch
a valid token, send, classify the response.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from .accesstoken import AccessToken, TokenCache, utc_now
from .config import VippsConfig
from .epayment import Payment, PaymentRequest, create_payment, fetch_payment
from .errors import ApiError, TransportError
from .models import Amount
from .qr import (
    DEFAULT_QR_FORMAT,
    RedirectQr,
    create_redirect_qr,
    get_redirect_qr,
    list_redirect_qrs,
)
from .responses import Absent, ApiFailure, Success, classify, classify_lookup

__all__ = [
    "VippsClient",
]

_BODYLESS_METHODS = frozenset({"GET", "DELETE"})


class VippsClient:
    """
    Entry point for the ePayment, Order Management and QR APIs.

    One instance can be shared between threads; the cached access token is
    refreshed at most once per expiry no matter how many calls are in flight.
    """

    def __init__(
        self,
        config: VippsConfig,
        *,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(config.default_headers())
        self.tokens = TokenCache(self._issue_access_token, clock=clock)

    @classmethod
    def test(cls, config: VippsConfig, **kwargs: Any) -> "VippsClient":
        """Client bound to the test environment."""
        return cls(replace(config, environment="test"), **kwargs)

    @classmethod
    def production(cls, config: VippsConfig, **kwargs: Any) -> "VippsClient":
        return cls(replace(config, environment="production"), **kwargs)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def new_reference(self) -> str:
        return str(uuid.uuid4())

    def new_idempotency_key(self) -> str:
        return str(uuid.uuid4())

    def _send(
        self,
        method: str,
        path: str,
        *,
        headers: Dict[str, str],
        body: Optional[Any] = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {"timeout": self.config.timeout_seconds}
        if body is not None:
            kwargs["json"] = body
        elif method not in _BODYLESS_METHODS:
            # Some gateways reject an empty POST/PUT without an explicit length.
            headers["Content-Length"] = "0"
            kwargs["data"] = b""

        logging.debug("%s %s", method, path)
        try:
            return self.session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def _issue_access_token(self) -> Any:
        response = self._send(
            "POST",
            "/accesstoken/get",
            headers=self.config.client_secret_headers(),
        )
        outcome = classify(response)
        if isinstance(outcome, ApiFailure):
            raise ApiError.from_failure(outcome)
        return outcome.json()

    def access_token(self) -> AccessToken:
        """Return a token that stays valid for at least the safety margin."""
        return self.tokens.get_valid_credential()

    def call(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Any] = None,
        idempotent: bool = False,
        accept: Optional[str] = None,
        allow_absent: bool = False,
    ) -> Union[Success, Absent]:
        """
        Perform an authenticated call and classify the response.

        ``idempotent`` attaches a freshly generated ``Idempotency-Key``;
        state-changing ePayment calls must set it. With ``allow_absent`` a 404
        comes back as :class:`Absent` instead of raising. Any other failure
        raises :class:`ApiError`.
        """
        headers = {"Authorization": self.access_token().bearer()}
        if idempotent:
            headers["Idempotency-Key"] = self.new_idempotency_key()
        if accept is not None:
            headers["Accept"] = accept

        response = self._send(method, path, headers=headers, body=body)
        outcome = classify_lookup(response) if allow_absent else classify(response)
        if isinstance(outcome, ApiFailure):
            raise ApiError.from_failure(outcome)
        return outcome

    def payment_request(self, amount: Amount, **fields: Any) -> PaymentRequest:
        """Start a new payment request with a freshly generated reference."""
        fields.setdefault("reference", self.new_reference())
        return PaymentRequest(amount=amount, **fields)

    def create_payment(self, request: PaymentRequest) -> Payment:
        return create_payment(self, request)

    def payment(self, reference: str) -> Payment:
        return fetch_payment(self, reference)

    def create_redirect_qr(
        self,
        qr_id: str,
        redirect_url: str,
        *,
        image_format: str = DEFAULT_QR_FORMAT,
    ) -> RedirectQr:
        return create_redirect_qr(self, qr_id, redirect_url, image_format=image_format)

    def get_redirect_qr(
        self,
        qr_id: str,
        *,
        image_format: str = DEFAULT_QR_FORMAT,
    ) -> Optional[RedirectQr]:
        return get_redirect_qr(self, qr_id, image_format=image_format)

    def list_redirect_qrs(self, *, image_format: str = DEFAULT_QR_FORMAT) -> List[RedirectQr]:
        return list_redirect_qrs(self, image_format=image_format)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "VippsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
