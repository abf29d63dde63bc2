import pytest

from vipps_payments import (
    Amount,
    ApiError,
    Currency,
    Customer,
    MockSession,
    PaymentMethodType,
    PaymentState,
    TransportError,
    UserFlow,
    VippsClient,
)


def test_payment_request_gets_a_fresh_reference(client: VippsClient) -> None:
    first = client.payment_request(Amount.nok(100))
    second = client.payment_request(Amount.nok(100))

    assert first.reference and second.reference
    assert first.reference != second.reference


def test_create_payment_sends_camel_case_body(client: VippsClient, session: MockSession) -> None:
    request = client.payment_request(
        Amount.nok(4990),
        customer=Customer.phone_number("4791234567"),
        user_flow=UserFlow.PUSH_MESSAGE,
        return_url="https://shop.example/return",
        payment_description="Two socks",
        profile_scope="name phoneNumber",
    )

    payment = client.create_payment(request)

    body = session.calls[-1].body
    assert body == {
        "amount": {"currency": "NOK", "value": 4990},
        "customer": {"phoneNumber": "4791234567"},
        "customerInteraction": "CUSTOMER_NOT_PRESENT",
        "paymentMethod": {"type": "WALLET"},
        "profile": {"scope": "name phoneNumber"},
        "reference": request.reference,
        "returnUrl": "https://shop.example/return",
        "userFlow": "PUSH_MESSAGE",
        "paymentDescription": "Two socks",
    }
    assert payment.reference == request.reference
    assert payment.state is PaymentState.CREATED
    assert payment.amount == Amount.nok(4990)
    assert payment.redirect_url == f"https://mock.vipps.no/payment/{request.reference}"
    assert session.return_url(payment.reference) == "https://shop.example/return"


def test_optional_fields_are_left_out(client: VippsClient, session: MockSession) -> None:
    client.create_payment(client.payment_request(Amount.eur(100), reference="order-1"))

    body = session.calls[-1].body
    assert set(body) == {
        "amount",
        "customerInteraction",
        "paymentMethod",
        "reference",
        "userFlow",
    }
    assert body["userFlow"] == "WEB_REDIRECT"


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"amount": Amount.nok(0)}, "greater than zero"),
        ({"amount": Amount.nok(10), "reference": "  "}, "reference"),
        ({"amount": Amount.nok(10), "user_flow": UserFlow.PUSH_MESSAGE}, "customer"),
    ],
)
def test_invalid_requests_are_rejected_before_sending(
    client: VippsClient, session: MockSession, fields: dict, message: str
) -> None:
    amount = fields.pop("amount")
    request = client.payment_request(amount, **fields)

    with pytest.raises(ValueError, match=message):
        client.create_payment(request)
    assert session.calls == []


def test_duplicate_reference_is_an_api_error(client: VippsClient) -> None:
    request = client.payment_request(Amount.nok(100))
    client.create_payment(request)

    with pytest.raises(ApiError) as excinfo:
        client.create_payment(request)

    assert excinfo.value.code == 409


def test_fetch_payment_decodes_details(client: VippsClient, session: MockSession) -> None:
    created = client.create_payment(
        client.payment_request(Amount.dkk(2500), payment_method=PaymentMethodType.CARD)
    )
    session.set_payment_state(created.reference, PaymentState.AUTHORIZED)

    payment = client.payment(created.reference)

    assert payment.state is PaymentState.AUTHORIZED
    assert payment.amount == Amount(Currency.DKK, 2500)
    assert payment.details.payment_method is PaymentMethodType.CARD
    assert payment.aggregate is not None
    assert payment.aggregate.authorized_amount.value == 2500
    assert payment.state.completed


def test_update_reloads_state(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(100)))
    assert not payment.state.completed

    session.set_payment_state(payment.reference, PaymentState.ABORTED)
    payment.update()

    assert payment.state is PaymentState.ABORTED


def test_capture_and_refund_update_the_aggregate(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(1000)))
    session.set_payment_state(payment.reference, PaymentState.AUTHORIZED)

    payment.capture(Amount.nok(600))
    assert payment.aggregate.captured_amount.value == 600
    assert payment.details.psp_reference

    payment.refund(Amount.nok(200))
    assert payment.aggregate.refunded_amount.value == 200
    assert payment.state is PaymentState.AUTHORIZED

    capture_call = next(call for call in session.calls if call.path.endswith("/capture"))
    assert capture_call.body == {"modificationAmount": {"currency": "NOK", "value": 600}}


def test_capture_beyond_authorized_amount_fails(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(1000)))
    session.set_payment_state(payment.reference, PaymentState.AUTHORIZED)

    with pytest.raises(ApiError) as excinfo:
        payment.capture(Amount.nok(1001))

    assert excinfo.value.code == 400
    assert excinfo.value.detail == "Capture amount too high"
    assert excinfo.value.problem is not None
    assert payment.aggregate is None


def test_cancel_terminates_the_payment(client: VippsClient, session: MockSession) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(1000)))

    payment.cancel()

    assert payment.state is PaymentState.TERMINATED
    cancel_call = session.calls[-1]
    assert cancel_call.path.endswith("/cancel")
    assert cancel_call.body is None
    assert cancel_call.headers["Content-Length"] == "0"
    assert cancel_call.headers["Idempotency-Key"]


def test_each_adjustment_gets_its_own_idempotency_key(
    client: VippsClient, session: MockSession
) -> None:
    payment = client.create_payment(client.payment_request(Amount.nok(1000)))
    session.set_payment_state(payment.reference, PaymentState.AUTHORIZED)

    payment.capture(Amount.nok(100))
    payment.capture(Amount.nok(100))

    keys = [call.headers["Idempotency-Key"] for call in session.calls if call.path.endswith("/capture")]
    assert len(set(keys)) == 2


def test_malformed_profile_is_a_transport_error(client: VippsClient, session: MockSession) -> None:
    client.access_token()
    session.inject_response(
        200,
        {
            "reference": "order-9",
            "amount": {"currency": "NOK", "value": 100},
            "state": "CREATED",
            "paymentMethod": {"type": "WALLET"},
            "profile": "not-an-object",
        },
    )

    with pytest.raises(TransportError, match="profile"):
        client.payment("order-9")
