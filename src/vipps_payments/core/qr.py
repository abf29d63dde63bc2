"""
QR API: merchant redirect codes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from .errors import TransportError
from .models import RedirectQrData
from .payloads import build_redirect_qr_body, build_redirect_update_body
from .responses import Absent

if TYPE_CHECKING:
    from .client import VippsClient

__all__ = [
    "DEFAULT_QR_FORMAT",
    "RedirectQr",
    "create_redirect_qr",
    "delete_redirect_qr",
    "get_redirect_qr",
    "list_redirect_qrs",
    "update_redirect_qr",
]

REDIRECT_PATH = "/qr/v1/merchant-redirect"

# The Accept header picks the image format behind the returned QR url.
DEFAULT_QR_FORMAT = "image/svg+xml"


class RedirectQr:
    def __init__(
        self,
        client: "VippsClient",
        data: RedirectQrData,
        *,
        image_format: str = DEFAULT_QR_FORMAT,
    ) -> None:
        self.client = client
        self.data = data
        self.image_format = image_format

    def __repr__(self) -> str:
        return f"RedirectQr(id={self.id!r}, redirect_url={self.redirect_url!r})"

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def url(self) -> str:
        """Location of the QR image itself."""
        return self.data.url

    @property
    def redirect_url(self) -> str:
        return self.data.redirect_url

    def update_redirect_url(self, redirect_url: str) -> None:
        self.data = update_redirect_qr(
            self.client, self.id, redirect_url, image_format=self.image_format
        )

    def delete(self) -> None:
        delete_redirect_qr(self.client, self.id)


def create_redirect_qr(
    client: "VippsClient",
    qr_id: str,
    redirect_url: str,
    *,
    image_format: str = DEFAULT_QR_FORMAT,
) -> RedirectQr:
    outcome = client.call(
        "POST",
        REDIRECT_PATH,
        body=build_redirect_qr_body(qr_id, redirect_url),
        accept=image_format,
    )
    data = RedirectQrData.from_response(outcome.json_object())
    logging.debug("Created redirect QR %s", data.id)
    return RedirectQr(client, data, image_format=image_format)


def get_redirect_qr(
    client: "VippsClient",
    qr_id: str,
    *,
    image_format: str = DEFAULT_QR_FORMAT,
) -> Optional[RedirectQr]:
    """Fetch a redirect QR, or ``None`` if no QR with that id exists."""
    outcome = client.call(
        "GET",
        f"{REDIRECT_PATH}/{qr_id}",
        accept=image_format,
        allow_absent=True,
    )
    if isinstance(outcome, Absent):
        logging.debug("Redirect QR %s not found", qr_id)
        return None
    data = RedirectQrData.from_response(outcome.json_object())
    return RedirectQr(client, data, image_format=image_format)


def list_redirect_qrs(
    client: "VippsClient",
    *,
    image_format: str = DEFAULT_QR_FORMAT,
) -> List[RedirectQr]:
    outcome = client.call("GET", REDIRECT_PATH, accept=image_format)
    payload = outcome.json()
    if not isinstance(payload, list):
        raise TransportError("Expected a JSON list of redirect QR codes")
    logging.debug("Listed %d redirect QR codes", len(payload))
    return [
        RedirectQr(client, RedirectQrData.from_response(entry), image_format=image_format)
        for entry in payload
    ]


def update_redirect_qr(
    client: "VippsClient",
    qr_id: str,
    redirect_url: str,
    *,
    image_format: str = DEFAULT_QR_FORMAT,
) -> RedirectQrData:
    outcome = client.call(
        "PUT",
        f"{REDIRECT_PATH}/{qr_id}",
        body=build_redirect_update_body(redirect_url),
        accept=image_format,
    )
    logging.debug("Updated redirect QR %s", qr_id)
    return RedirectQrData.from_response(outcome.json_object())


def delete_redirect_qr(client: "VippsClient", qr_id: str) -> None:
    client.call("DELETE", f"{REDIRECT_PATH}/{qr_id}")
    logging.debug("Deleted redirect QR %s", qr_id)
