"""
Order Management API: categories and receipts attached to a payment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from .models import Currency, OrderCategory, OrderLine
from .payloads import build_category_body, build_receipt_body

if TYPE_CHECKING:
    from .client import VippsClient

__all__ = [
    "ReceiptRequest",
    "add_category",
    "add_receipt",
]

ECOM_PATH = "/order-management/v2/ecom"


@dataclass
class ReceiptRequest:
    currency: Currency
    order_lines: List[OrderLine] = field(default_factory=list)

    def add_order_line(self, order_line: OrderLine) -> "ReceiptRequest":
        self.order_lines.append(order_line)
        return self

    def validate(self) -> None:
        if not self.order_lines:
            raise ValueError("A receipt needs at least one order line")


def add_category(
    client: "VippsClient",
    reference: str,
    category: OrderCategory,
    details_url: str,
    *,
    image_id: Optional[str] = None,
) -> None:
    client.call(
        "PUT",
        f"{ECOM_PATH}/categories/{reference}",
        body=build_category_body(category, details_url, image_id),
    )
    logging.debug("Added category %s to order %s", category.value, reference)


def add_receipt(client: "VippsClient", reference: str, receipt: ReceiptRequest) -> None:
    receipt.validate()
    client.call(
        "POST",
        f"{ECOM_PATH}/receipts/{reference}",
        body=build_receipt_body(receipt.order_lines, receipt.currency),
    )
    logging.debug("Added receipt with %d lines to order %s", len(receipt.order_lines), reference)
