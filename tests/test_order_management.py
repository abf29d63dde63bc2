from dataclasses import replace

import pytest

from vipps_payments import (
    Amount,
    ApiError,
    Currency,
    MockSession,
    OrderCategory,
    OrderLine,
    ReceiptRequest,
    UnitInfo,
    VippsClient,
)


def _line(**overrides) -> OrderLine:
    fields = dict(
        name="Wool socks",
        id="sku-42",
        total_amount=25000,
        total_amount_excluding_tax=20000,
        total_tax_amount=5000,
        tax_percentage=25,
    )
    fields.update(overrides)
    return OrderLine(**fields)


def test_add_category(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(25000)))

    payment.add_category(OrderCategory.ORDER_CONFIRMATION, "https://shop.example/orders/1")

    call = session.calls[-1]
    assert call.method == "PUT"
    assert call.path == f"/order-management/v2/ecom/categories/{payment.reference}"
    assert call.body == {
        "category": "ORDER_CONFIRMATION",
        "orderDetailsUrl": "https://shop.example/orders/1",
    }
    assert session.categories[payment.reference]["category"] == "ORDER_CONFIRMATION"


def test_add_receipt(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(27900)))
    receipt = ReceiptRequest(Currency.NOK)
    receipt.add_order_line(
        _line(unit_info=UnitInfo(unit_price=12500, quantity="2"), discount=0)
    ).add_order_line(
        _line(name="Shipping", id="shipping", total_amount=2900, total_amount_excluding_tax=2320,
              total_tax_amount=580, is_shipping=True)
    )

    payment.add_receipt(receipt)

    call = session.calls[-1]
    assert call.path == f"/order-management/v2/ecom/receipts/{payment.reference}"
    assert call.body["bottomLine"] == {"currency": "NOK"}
    first, second = call.body["orderLines"]
    assert first["unitInfo"] == {"unitPrice": 12500, "quantity": "2"}
    assert first["totalAmountExcludingTax"] == 20000
    assert first["discount"] == 0
    assert "productUrl" not in first
    assert second["isShipping"] is True
    assert len(session.receipts[payment.reference]) == 1


def test_empty_receipt_is_rejected(client: VippsClient) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(100)))

    with pytest.raises(ValueError):
        payment.add_receipt(ReceiptRequest(Currency.NOK))


def test_receipt_for_unknown_order_fails(client: VippsClient) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(100)))
    payment.details = replace(payment.details, reference="unknown")

    with pytest.raises(ApiError) as excinfo:
        payment.add_receipt(ReceiptRequest(Currency.NOK, [_line()]))

    assert excinfo.value.code == 404
