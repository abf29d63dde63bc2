"""
Core primitives: configuration, access tokens, response classification and
the ePayment, Order Management and QR operations.
"""

from .accesstoken import AccessToken, TokenCache, is_usable
from .client import VippsClient
from .config import ClientParameters, ConfigError, VippsConfig, load_config
from .environment import VippsEnvironment, build_environment, load_env_file
from .epayment import Payment, PaymentRequest
from .errors import ApiError, TransportError, VippsError
from .mock import MockSession
from .models import (
    Amount,
    Currency,
    Customer,
    CustomerInteraction,
    OrderCategory,
    OrderLine,
    PaymentAggregate,
    PaymentDetails,
    PaymentMethodType,
    PaymentState,
    RedirectQrData,
    UnitInfo,
    UserFlow,
)
from .order_management import ReceiptRequest
from .qr import RedirectQr
from .responses import (
    Absent,
    ApiFailure,
    InvalidParam,
    ProblemDetails,
    Success,
    classify,
    classify_lookup,
)

__all__ = [
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
    "InvalidParam",
    "MockSession",
    "OrderCategory",
    "OrderLine",
    "Payment",
    "PaymentAggregate",
    "PaymentDetails",
    "PaymentMethodType",
    "PaymentRequest",
    "PaymentState",
    "ProblemDetails",
    "ReceiptRequest",
    "RedirectQr",
    "RedirectQrData",
    "Success",
    "TokenCache",
    "TransportError",
    "UnitInfo",
    "UserFlow",
    "VippsClient",
    "VippsConfig",
    "VippsEnvironment",
    "VippsError",
    "build_environment",
    "classify",
    "classify_lookup",
    "is_usable",
    "load_config",
    "load_env_file",
]
