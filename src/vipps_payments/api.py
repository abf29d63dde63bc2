"""
Public, high-level helpers for building a Vipps client.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from .core.client import VippsClient
from .core.config import ClientParameters, VippsConfig, load_config
from .core.mock import MockSession

__all__ = [
    "create_client",
    "create_mock_client",
]


def _resolve_config(
    config: Optional[VippsConfig],
    *,
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[ClientParameters],
    fields: Mapping[str, Any],
) -> VippsConfig:
    if config is None:
        return load_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            **fields,
        )

    extras = (overrides, base, parameters, *fields.values())
    if any(item is not None and item != {} for item in extras):
        raise ValueError(
            "Provide either a pre-built VippsConfig or individual parameters, not both."
        )
    return config


def create_client(
    *,
    config: Optional[VippsConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    subscription_key: Optional[str] = None,
    merchant_serial_number: Optional[str] = None,
    system_name: Optional[str] = None,
    system_version: Optional[str] = None,
    plugin_name: Optional[str] = None,
    plugin_version: Optional[str] = None,
    environment: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
) -> VippsClient:
    """
    Construct a :class:`VippsClient`.

    Callers can either supply a ready-made :class:`VippsConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    cfg = _resolve_config(
        config,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        fields={
            "client_id": client_id,
            "client_secret": client_secret,
            "subscription_key": subscription_key,
            "merchant_serial_number": merchant_serial_number,
            "system_name": system_name,
            "system_version": system_version,
            "plugin_name": plugin_name,
            "plugin_version": plugin_version,
            "environment": environment,
            "timeout_seconds": timeout_seconds,
        },
    )
    return VippsClient(cfg, session=session)


def create_mock_client(
    *,
    config: Optional[VippsConfig] = None,
    token_ttl: Any = "3600",
) -> VippsClient:
    """
    Build a client backed by :class:`MockSession`; nothing leaves the process.

    Without a config, placeholder credentials for the test environment are used.
    """
    if config is None:
        config = VippsConfig(
            client_id="mock-client-id",
            client_secret="mock-client-secret",
            subscription_key="mock-subscription-key",
            merchant_serial_number="123456",
            system_name="vipps-payments-mock",
            system_version="1",
        )
    return VippsClient(config, session=MockSession(token_ttl=token_ttl))
