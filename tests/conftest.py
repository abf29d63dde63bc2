"""Shared fixtures: a config, a fake clock and a client backed by MockSession."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
import requests

from vipps_payments import MockSession, VippsClient, VippsConfig

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def make_response(
    status: int,
    payload: Any = None,
    *,
    content: Optional[bytes] = None,
    url: str = "https://apitest.vipps.no/test",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    if content is None:
        content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response._content = content
    response.encoding = "utf-8"
    return response


@pytest.fixture
def config() -> VippsConfig:
    return VippsConfig(
        client_id="client-id",
        client_secret="client-secret",
        subscription_key="subscription-key",
        merchant_serial_number="123456",
        system_name="acme-shop",
        system_version="2.1.0",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> MockSession:
    return MockSession()


@pytest.fixture
def client(config: VippsConfig, session: MockSession, clock: FakeClock) -> VippsClient:
    return VippsClient(config, session=session, clock=clock)
