"""
Public facade for the Vipps payments client package.

The most useful pieces are re-exported here so integrators can
``from vipps_payments import ...`` without navigating the package.
"""

from .api import create_client, create_mock_client
from .core import (
    Absent,
    AccessToken,
    Amount,
    ApiError,
    ApiFailure,
    ClientParameters,
    ConfigError,
    Currency,
    Customer,
    CustomerInteraction,
    MockSession,
    OrderCategory,
    OrderLine,
    Payment,
    PaymentMethodType,
    PaymentRequest,
    PaymentState,
    ProblemDetails,
    ReceiptRequest,
    RedirectQr,
    Success,
    TransportError,
    UnitInfo,
    UserFlow,
    VippsClient,
    VippsConfig,
    VippsError,
    build_environment,
    classify,
    classify_lookup,
    load_config,
    load_env_file,
)

__all__ = (
    "Absent",
    "AccessToken",
    "Amount",
    "ApiError",
    "ApiFailure",
    "ClientParameters",
    "ConfigError",
    "Currency",
    "Customer",
    "CustomerInteraction",
    "MockSession",
    "OrderCategory",
    "OrderLine",
    "Payment",
    "PaymentMethodType",
    "PaymentRequest",
    "PaymentState",
    "ProblemDetails",
    "ReceiptRequest",
    "RedirectQr",
    "Success",
    "TransportError",
    "UnitInfo",
    "UserFlow",
    "VippsClient",
    "VippsConfig",
    "VippsError",
    "build_environment",
    "classify",
    "classify_lookup",
    "create_client",
    "create_mock_client",
    "load_config",
    "load_env_file",
)
