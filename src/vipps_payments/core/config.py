"""
Configuration objects and helpers for the Vipps API client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment

__all__ = [
    "BASE_URLS",
    "ClientParameters",
    "ConfigError",
    "VippsConfig",
    "load_config",
]

BASE_URLS = {
    "test": "https://apitest.vipps.no",
    "production": "https://api.vipps.no",
}

_PARAMETER_TO_ENV_KEY = {
    "client_id": "VIPPS_CLIENT_ID",
    "client_secret": "VIPPS_CLIENT_SECRET",
    "subscription_key": "VIPPS_SUBSCRIPTION_KEY",
    "merchant_serial_number": "VIPPS_MERCHANT_SERIAL_NUMBER",
    "system_name": "VIPPS_SYSTEM_NAME",
    "system_version": "VIPPS_SYSTEM_VERSION",
    "plugin_name": "VIPPS_SYSTEM_PLUGIN_NAME",
    "plugin_version": "VIPPS_SYSTEM_PLUGIN_VERSION",
    "environment": "VIPPS_ENVIRONMENT",
    "timeout_seconds": "VIPPS_TIMEOUT_SECONDS",
}


def _stringify(value: Any) -> str:
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`VippsConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_config`.
    """

    client_id: Optional[str] = None
    client_secret: Optional[str] = field(default=None, repr=False)
    subscription_key: Optional[str] = field(default=None, repr=False)
    merchant_serial_number: Optional[str] = None
    system_name: Optional[str] = None
    system_version: Optional[str] = None
    plugin_name: Optional[str] = None
    plugin_version: Optional[str] = None
    environment: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


def _header_value(values: Mapping[str, str], key: str, *, required: bool = True) -> Optional[str]:
    raw = values.get(key)
    if raw is None:
        if required:
            raise ConfigError(f"{key} must be provided")
        return None
    value = raw.strip()
    if not value:
        if required:
            raise ConfigError(f"{key} must not be empty")
        return None
    if "\n" in value or "\r" in value:
        raise ConfigError(f"{key} must be a single line")
    return value


def _environment_name(raw: str) -> str:
    name = raw.strip().lower()
    if name not in BASE_URLS:
        choices = ", ".join(sorted(BASE_URLS))
        raise ConfigError(f"VIPPS_ENVIRONMENT must be one of {choices}, got '{raw}'")
    return name


def _timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"VIPPS_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigError("VIPPS_TIMEOUT_SECONDS must be greater than zero")
    return timeout


@dataclass(frozen=True)
class VippsConfig:
    client_id: str
    client_secret: str = field(repr=False)
    subscription_key: str = field(repr=False)
    merchant_serial_number: str
    system_name: str
    system_version: str
    plugin_name: Optional[str] = None
    plugin_version: Optional[str] = None
    environment: str = "test"
    timeout_seconds: float = 30.0

    @property
    def base_url(self) -> str:
        return BASE_URLS[self.environment]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def default_headers(self) -> Dict[str, str]:
        """Headers sent with every request made by a client."""
        headers = {
            "Ocp-Apim-Subscription-Key": self.subscription_key,
            "Merchant-Serial-Number": self.merchant_serial_number,
            "Vipps-System-Name": self.system_name,
            "Vipps-System-Version": self.system_version,
        }
        if self.plugin_name is not None:
            headers["Vipps-System-Plugin-Name"] = self.plugin_name
        if self.plugin_version is not None:
            headers["Vipps-System-Plugin-Version"] = self.plugin_version
        return headers

    def client_secret_headers(self) -> Dict[str, str]:
        """Long-lived credentials presented to the access token endpoint."""
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "VippsConfig":
        return cls(
            client_id=_header_value(values, "VIPPS_CLIENT_ID"),
            client_secret=_header_value(values, "VIPPS_CLIENT_SECRET"),
            subscription_key=_header_value(values, "VIPPS_SUBSCRIPTION_KEY"),
            merchant_serial_number=_header_value(values, "VIPPS_MERCHANT_SERIAL_NUMBER"),
            system_name=_header_value(values, "VIPPS_SYSTEM_NAME"),
            system_version=_header_value(values, "VIPPS_SYSTEM_VERSION"),
            plugin_name=_header_value(values, "VIPPS_SYSTEM_PLUGIN_NAME", required=False),
            plugin_version=_header_value(
                values, "VIPPS_SYSTEM_PLUGIN_VERSION", required=False
            ),
            environment=_environment_name(values.get("VIPPS_ENVIRONMENT", "test")),
            timeout_seconds=_timeout(values.get("VIPPS_TIMEOUT_SECONDS", "30")),
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[ClientParameters] = None,
        **fields: Any,
    ) -> "VippsConfig":
        merged_overrides = dict(overrides or {})
        merged_overrides.update(_collect_parameter_overrides(parameters, fields))

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def load_config(
    *,
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
) -> VippsConfig:
    """
    Convenience wrapper that mirrors :meth:`VippsConfig.from_env`.

    Settings can come from environment variables, a ``.env`` file, direct
    keyword arguments, or any combination of the three.
    """
    return VippsConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        client_id=client_id,
        client_secret=client_secret,
        subscription_key=subscription_key,
        merchant_serial_number=merchant_serial_number,
        system_name=system_name,
        system_version=system_version,
        plugin_name=plugin_name,
        plugin_version=plugin_version,
        environment=environment,
        timeout_seconds=timeout_seconds,
    )
