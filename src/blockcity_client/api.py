"""
Public, high-level helpers for integrating with the Blockcity open platform.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

import requests

from .core.client import BlockcityClient
from .core.config import ClientConfig, ClientParameters, load_client_config
from .core.verification import check_rsa_sign

__all__ = [
    "create_client",
    "verify_callback",
]


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    gateway: Optional[str] = None,
    auth_url: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    private_key_file: Optional[str | Path] = None,
    private_key_pem: Optional[str] = None,
    user_info_url: Optional[str] = None,
    pay_expire: Optional[str] = None,
    timeout_seconds: Optional[int | str] = None,
) -> BlockcityClient:
    """
    Construct a :class:`BlockcityClient`.

    Callers either supply a ready-made :class:`ClientConfig` or let the helper
    assemble one from environment data and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            gateway,
            auth_url,
            client_id,
            client_secret,
            private_key_file,
            private_key_pem,
            user_info_url,
            pay_expire,
            timeout_seconds,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_client_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            gateway=gateway,
            auth_url=auth_url,
            client_id=client_id,
            client_secret=client_secret,
            private_key_file=private_key_file,
            private_key_pem=private_key_pem,
            user_info_url=user_info_url,
            pay_expire=pay_expire,
            timeout_seconds=timeout_seconds,
        )
    return BlockcityClient(cfg, session=session)


def verify_callback(
    content: str | bytes | Mapping[str, Any],
    *,
    config: Optional[ClientConfig] = None,
    private_key_pem: Optional[bytes | str] = None,
) -> bool:
    """
    Check a payment callback body without building a full client.

    Exactly one of ``config`` or ``private_key_pem`` must be given.
    """
    if (config is None) == (private_key_pem is None):
        raise ValueError("Provide exactly one of config or private_key_pem.")
    key = private_key_pem if private_key_pem is not None else config.read_private_key()
    return check_rsa_sign(content, key)
