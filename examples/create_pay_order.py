"""
Minimal script that uses the public API to create a BlockPay order.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Tuple

from blockcity_client import BlockcityError, ConfigError, create_client, load_client_config


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a BlockPay order using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing BLOCKCITY_* settings",
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
    parser.add_argument("--out-trade-no", required=True, help="Merchant order number")
    parser.add_argument("--amount", required=True, help="Order amount, e.g. 9.90")
    parser.add_argument("--subject", default="Blockcity order", help="Order subject")
    parser.add_argument("--notify-url", required=True, help="Callback URL for the order")
    parser.add_argument(
        "--private-key-file",
        help="Path to the merchant's PEM private key (overrides BLOCKCITY_PRIVATE_KEY_FILE)",
    )
    parser.add_argument(
        "--pay-expire",
        help="Order expiry window understood by the platform (default: 30m)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    overrides = _build_overrides(args.set or ())

    try:
        config = load_client_config(
            env_file=args.env_file,
            overrides=overrides,
            private_key_file=args.private_key_file,
            pay_expire=args.pay_expire,
        )
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_client(config=config)
    biz_content = {
        "out_trade_no": args.out_trade_no,
        "total_amount": args.amount,
        "subject": args.subject,
    }

    try:
        order = client.create_pay_order(biz_content, args.notify_url)
    except BlockcityError as exc:
        logging.error("Pay order failed: %s", exc)
        return 1

    logging.info("Pay order %s created", args.out_trade_no)
    print(json.dumps(order.data, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
