"""
Command-line interface for exercising the Blockcity client.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, TextIO, Tuple

import requests

from .api import create_client
from .core.client import BlockcityClient
from .core.config import SANDBOX_GATEWAY, load_client_config
from .core.errors import BlockcityError, ConfigError


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


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockcity",
        description="Call the Blockcity open platform from the command line",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing BLOCKCITY_* settings (default: .env)",
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
        "--sandbox",
        action="store_true",
        help=f"Use the sandbox gateway ({SANDBOX_GATEWAY})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    authorize = commands.add_parser("authorize-url", help="Print the authorization URL")
    authorize.add_argument("return_url", help="URL the platform redirects back to")

    token = commands.add_parser("token", help="Exchange an authorization code")
    token.add_argument("auth_code")

    user = commands.add_parser("user", help="Fetch the user's base info")
    user.add_argument("access_token")
    user.add_argument("--url", default=None, help="User-info endpoint override")

    pay = commands.add_parser("pay", help="Create a pay order")
    pay.add_argument("biz_content", help="Pre-serialized biz_content JSON")
    pay.add_argument("--notify-url", required=True, help="Callback URL for the order")

    verify = commands.add_parser("verify-callback", help="Check a callback body's signature")
    verify.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File holding the JSON callback body (default: stdin)",
    )
    return parser


def _print_json(value: Any, stream: TextIO) -> None:
    stream.write(json.dumps(value, ensure_ascii=False, indent=2) + "\n")


def _dispatch(args: argparse.Namespace, client: BlockcityClient, stream: TextIO) -> int:
    if args.command == "authorize-url":
        stream.write(client.authorization_url(args.return_url) + "\n")
        return 0

    if args.command == "token":
        _print_json(client.exchange_token(args.auth_code).data, stream)
        return 0

    if args.command == "user":
        _print_json(client.fetch_user(args.access_token, args.url).data, stream)
        return 0

    if args.command == "pay":
        _print_json(client.create_pay_order(args.biz_content, args.notify_url).data, stream)
        return 0

    if args.command == "verify-callback":
        content = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
        valid = client.verify_callback(content)
        stream.write(("valid" if valid else "invalid") + "\n")
        return 0 if valid else 1

    raise ValueError(f"Unknown command {args.command!r}")


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    session: Optional[requests.Session] = None,
    stream: Optional[TextIO] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    out = stream if stream is not None else sys.stdout

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())
    if args.sandbox:
        overrides.setdefault("BLOCKCITY_GATEWAY", SANDBOX_GATEWAY)

    try:
        config = load_client_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_client(config=config, session=session)

    try:
        return _dispatch(args, client, out)
    except BlockcityError as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1
    except requests.RequestException as exc:
        logging.error("%s request failed: %s", args.command, exc)
        return 1
    except OSError as exc:
        logging.error("Cannot read callback body: %s", exc)
        return 1


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
