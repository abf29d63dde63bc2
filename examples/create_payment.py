"""
Minimal script that uses the public API to start a Vipps payment.

Run against the in-memory mock with ``--mock`` to try it without credentials.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Tuple

from vipps_payments import (
    Amount,
    ApiError,
    ConfigError,
    Currency,
    PaymentState,
    TransportError,
    create_client,
    create_mock_client,
    load_config,
)


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a Vipps payment using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing VIPPS_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the in-memory mock instead of the Vipps test environment",
    )
    parser.add_argument(
        "--amount",
        type=int,
        default=1000,
        help="Amount in minor units (default: 1000, i.e. 10.00)",
    )
    parser.add_argument(
        "--currency",
        default=Currency.NOK.value,
        choices=[currency.value for currency in Currency],
    )
    parser.add_argument(
        "--return-url",
        default="https://example.com/vipps/return",
        help="Where the user lands after approving the payment",
    )
    parser.add_argument(
        "--description",
        default="Example payment",
        help="Text shown to the user in the app",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.mock:
        client = create_mock_client()
    else:
        try:
            config = load_config(
                env_file=args.env_file,
                overrides=_build_overrides(args.set or ()),
            )
        except (KeyError, ConfigError, ValueError) as exc:
            logging.error("Invalid configuration: %s", exc)
            return 1
        client = create_client(config=config)

    request = client.payment_request(
        Amount(Currency(args.currency), args.amount),
        return_url=args.return_url,
        payment_description=args.description,
    )

    try:
        payment = client.create_payment(request)
    except (ApiError, TransportError) as exc:
        logging.error("Payment creation failed: %s", exc)
        return 1

    logging.info("Created payment %s", payment.reference)
    logging.info("Send the user to %s", payment.redirect_url)

    if args.mock:
        client.session.set_payment_state(payment.reference, PaymentState.AUTHORIZED)
        payment.update()
        payment.capture(payment.amount)
        logging.info("Mock payment captured, state is %s", payment.state.value)

    return 0


if __name__ == "__main__":
    sys.exit(main())
