"""
Command-line interface for exercising the Vipps APIs.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

import requests

from .api import create_client
from .core import (
    Amount,
    ConfigError,
    Currency,
    VippsClient,
    VippsError,
    load_config,
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _amount(args: argparse.Namespace) -> Amount:
    return Amount(Currency(args.currency), args.amount)


def _token(client: VippsClient, args: argparse.Namespace) -> int:
    token = client.access_token()
    _emit({"expires_at": token.expires_at.isoformat()})
    return 0


def _payment(client: VippsClient, args: argparse.Namespace) -> int:
    payment = client.payment(args.reference)
    if args.action == "capture":
        payment.capture(_amount(args))
    elif args.action == "refund":
        payment.refund(_amount(args))
    elif args.action == "cancel":
        payment.cancel()
    _emit(dataclasses.asdict(payment.details))
    return 0


def _qr(client: VippsClient, args: argparse.Namespace) -> int:
    if args.action == "list":
        _emit([dataclasses.asdict(qr.data) for qr in client.list_redirect_qrs()])
        return 0
    if args.action == "create":
        qr = client.create_redirect_qr(args.qr_id, args.redirect_url)
        _emit(dataclasses.asdict(qr.data))
        return 0

    found = client.get_redirect_qr(args.qr_id)
    if found is None:
        logging.error("No redirect QR with id %s", args.qr_id)
        return 1
    if args.action == "update":
        found.update_redirect_url(args.redirect_url)
    elif args.action == "delete":
        found.delete()
        _emit({"deleted": found.id})
        return 0
    _emit(dataclasses.asdict(found.data))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vipps-payments",
        description="Call the Vipps ePayment and QR APIs",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing VIPPS_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    token = commands.add_parser("token", help="Fetch an access token and show its expiry")
    token.set_defaults(handler=_token)

    payment = commands.add_parser("payment", help="Inspect or adjust a payment")
    payment.set_defaults(handler=_payment)
    payment_actions = payment.add_subparsers(dest="action", required=True)
    show = payment_actions.add_parser("show")
    show.add_argument("reference")
    cancel = payment_actions.add_parser("cancel")
    cancel.add_argument("reference")
    for name in ("capture", "refund"):
        adjust = payment_actions.add_parser(name)
        adjust.add_argument("reference")
        adjust.add_argument("amount", type=int, help="Amount in minor units")
        adjust.add_argument(
            "--currency",
            default=Currency.NOK.value,
            choices=[currency.value for currency in Currency],
        )

    qr = commands.add_parser("qr", help="Manage merchant redirect QR codes")
    qr.set_defaults(handler=_qr)
    qr_actions = qr.add_subparsers(dest="action", required=True)
    qr_actions.add_parser("list")
    for name in ("show", "delete"):
        qr_actions.add_parser(name).add_argument("qr_id")
    for name in ("create", "update"):
        sub = qr_actions.add_parser(name)
        sub.add_argument("qr_id")
        sub.add_argument("redirect_url")
    return parser


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    session: Optional[requests.Session] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        config = load_config(env_file=args.env_file, overrides=overrides)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    handler: Callable[[VippsClient, argparse.Namespace], int] = args.handler
    with create_client(config=config, session=session) as client:
        try:
            return handler(client, args)
        except VippsError as exc:
            logging.error("Request failed: %s", exc)
            return 1


def main() -> None:
    sys.exit(run_cli())
