import threading
from dataclasses import replace
from datetime import timedelta

import pytest
import requests

from vipps_payments import (
    Amount,
    ApiError,
    MockSession,
    TransportError,
    VippsClient,
    VippsConfig,
)

from .conftest import START, FakeClock


def test_static_headers_are_installed_once(client: VippsClient, session: MockSession) -> None:
    client.access_token()

    headers = session.calls[0].headers
    assert headers["Ocp-Apim-Subscription-Key"] == "subscription-key"
    assert headers["Merchant-Serial-Number"] == "123456"
    assert headers["Vipps-System-Name"] == "acme-shop"
    assert headers["Vipps-System-Version"] == "2.1.0"
    assert "Vipps-System-Plugin-Name" not in headers


def test_plugin_headers_carry_name_and_version(config: VippsConfig) -> None:
    session = MockSession()
    plugin_config = replace(config, plugin_name="woo-vipps", plugin_version="3.4")
    VippsClient(plugin_config, session=session).access_token()

    headers = session.calls[0].headers
    assert headers["Vipps-System-Plugin-Name"] == "woo-vipps"
    assert headers["Vipps-System-Plugin-Version"] == "3.4"


def test_token_exchange_uses_client_secrets_and_empty_body(
    client: VippsClient, session: MockSession
) -> None:
    token = client.access_token()

    call = session.calls[0]
    assert call.method == "POST"
    assert call.path == "/accesstoken/get"
    assert call.headers["client_id"] == "client-id"
    assert call.headers["client_secret"] == "client-secret"
    assert call.headers["Content-Length"] == "0"
    assert "Authorization" not in call.headers
    assert call.body is None
    assert token.token == "mock-token-1"
    assert token.expires_at == START + timedelta(seconds=3600)


def test_domain_calls_present_the_bearer_token(client: VippsClient, session: MockSession) -> None:
    client.list_redirect_qrs()

    call = session.calls[-1]
    assert call.path == "/qr/v1/merchant-redirect"
    assert call.headers["Authorization"] == "Bearer mock-token-1"


def test_fresh_token_is_not_refreshed_between_calls(client: VippsClient, session: MockSession) -> None:
    for _ in range(5):
        client.list_redirect_qrs()

    assert session.token_exchanges() == 1
    assert len(session.calls) == 6


def test_stale_token_triggers_exactly_one_exchange(
    client: VippsClient, session: MockSession, clock: FakeClock
) -> None:
    client.list_redirect_qrs()
    clock.advance(minutes=55)
    client.list_redirect_qrs()
    client.list_redirect_qrs()

    assert session.token_exchanges() == 2
    assert session.calls[-1].headers["Authorization"] == "Bearer mock-token-2"


def test_token_endpoint_failure_raises_api_error(client: VippsClient, session: MockSession) -> None:
    session.inject_response(
        401,
        {"title": "Unauthorized", "detail": "Bad client secret", "instance": "/accesstoken/get"},
    )

    with pytest.raises(ApiError) as excinfo:
        client.access_token()

    assert excinfo.value.code == 401
    assert excinfo.value.title == "Unauthorized"
    assert client.tokens.current is None


def test_undecodable_token_response_is_a_transport_error(
    client: VippsClient, session: MockSession
) -> None:
    session.inject_response(200, b"not json")

    with pytest.raises(TransportError):
        client.access_token()


def test_network_failure_is_wrapped(client: VippsClient, session: MockSession) -> None:
    session.inject_error(requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError) as excinfo:
        client.access_token()

    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_not_found_outside_lookups_is_an_api_error(client: VippsClient) -> None:
    with pytest.raises(ApiError) as excinfo:
        client.payment("does-not-exist")

    assert excinfo.value.code == 404
    assert excinfo.value.title == "Not Found"


def test_idempotency_keys_are_fresh_per_call(client: VippsClient, session: MockSession) -> None:
    client.create_payment(client.payment_request(Amount.nok(1000)))
    client.create_payment(client.payment_request(Amount.nok(2000)))

    keys = [
        call.headers.get("Idempotency-Key")
        for call in session.calls
        if call.path == "/epayment/v1/payments"
    ]
    assert len(keys) == 2
    assert None not in keys
    assert keys[0] != keys[1]


def test_reads_do_not_send_idempotency_keys(client: VippsClient, session: MockSession) -> None:
    client.list_redirect_qrs()

    assert "Idempotency-Key" not in session.calls[-1].headers


def test_environment_selects_base_url(config: VippsConfig) -> None:
    assert VippsClient.test(config, session=MockSession()).base_url == "https://apitest.vipps.no"
    assert VippsClient.production(config, session=MockSession()).base_url == "https://api.vipps.no"


def test_requests_use_configured_timeout(config: VippsConfig) -> None:
    seen = {}

    class RecordingSession(MockSession):
        def request(self, method, url, **kwargs):  # type: ignore[override]
            seen[url] = kwargs.get("timeout")
            return super().request(method, url, **kwargs)

    VippsClient(replace(config, timeout_seconds=7.5), session=RecordingSession()).access_token()

    assert seen == {"https://apitest.vipps.no/accesstoken/get": 7.5}


def test_shared_client_across_threads(client: VippsClient, session: MockSession) -> None:
    errors: list = []

    def worker() -> None:
        try:
            for _ in range(10):
                client.list_redirect_qrs()
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(10)

    assert errors == []
    assert session.token_exchanges() == 1
    assert client.tokens.current is not None
    assert client.tokens.current.token == "mock-token-1"


def test_client_is_a_context_manager(config: VippsConfig) -> None:
    with VippsClient(config, session=MockSession()) as client:
        assert client.access_token().token == "mock-token-1"
