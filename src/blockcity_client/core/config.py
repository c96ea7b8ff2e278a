"""
Configuration objects and helpers for the Blockcity client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment
from .errors import ConfigError, KeyLoadError

__all__ = [
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "DEFAULT_GATEWAY",
    "SANDBOX_GATEWAY",
    "load_client_config",
]

DEFAULT_GATEWAY = "https://open.blockcity.gxb.io"
SANDBOX_GATEWAY = "https://sandbox.blockcity.gxb.io"

_PARAMETER_TO_ENV_KEY = {
    "gateway": "BLOCKCITY_GATEWAY",
    "auth_url": "BLOCKCITY_AUTH_URL",
    "client_id": "BLOCKCITY_CLIENT_ID",
    "client_secret": "BLOCKCITY_CLIENT_SECRET",
    "private_key_file": "BLOCKCITY_PRIVATE_KEY_FILE",
    "private_key_pem": "BLOCKCITY_PRIVATE_KEY",
    "user_info_url": "BLOCKCITY_USER_INFO_URL",
    "pay_expire": "BLOCKCITY_PAY_EXPIRE",
    "timeout_seconds": "BLOCKCITY_TIMEOUT_SECONDS",
}


def _stringify(value: Any) -> str:
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Equivalent to passing the same keyword arguments to
    :func:`load_client_config`.
    """

    gateway: Optional[str] = None
    auth_url: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    private_key_file: Optional[str | Path] = None
    private_key_pem: Optional[str] = None
    user_info_url: Optional[str] = None
    pay_expire: Optional[str] = None
    timeout_seconds: Optional[int | str] = None

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


def _required(values: Mapping[str, str], key: str) -> str:
    raw = values.get(key)
    if raw is None:
        raise ConfigError(f"{key} must be provided")
    value = raw.strip()
    if not value:
        raise ConfigError(f"{key} must not be empty")
    return value


def _optional(values: Mapping[str, str], key: str) -> Optional[str]:
    raw = values.get(key)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _normalize_url(raw_url: str, field_name: str) -> str:
    url = raw_url.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ConfigError(f"{field_name} must be an http(s) URL, got '{raw_url}'")
    return url


def _positive_int(raw: str, field_name: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{field_name} must be greater than zero")
    return value


@dataclass(frozen=True)
class ClientConfig:
    gateway: str
    auth_url: str
    client_id: str
    client_secret: str = field(repr=False)
    user_info_url: str
    private_key_file: Optional[str] = None
    private_key_pem: Optional[str] = field(default=None, repr=False)
    pay_expire: str = "30m"
    timeout_seconds: int = 30

    @property
    def pay_gateway_url(self) -> str:
        return f"{self.gateway}/api/blockpay/api/gateway"

    def read_private_key(self) -> bytes:
        """
        Return the PEM-encoded private key.

        Inline material wins over ``private_key_file``.
        """
        if self.private_key_pem:
            return self.private_key_pem.replace("\\n", "\n").encode("utf-8")
        if not self.private_key_file:
            raise KeyLoadError(
                "No private key configured; set BLOCKCITY_PRIVATE_KEY_FILE or BLOCKCITY_PRIVATE_KEY"
            )
        try:
            return Path(self.private_key_file).expanduser().read_bytes()
        except OSError as exc:
            raise KeyLoadError(
                f"Cannot read private key file '{self.private_key_file}': {exc}"
            ) from exc

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        gateway = _normalize_url(
            values.get("BLOCKCITY_GATEWAY", DEFAULT_GATEWAY), "BLOCKCITY_GATEWAY"
        )
        auth_url = _normalize_url(
            _required(values, "BLOCKCITY_AUTH_URL"), "BLOCKCITY_AUTH_URL"
        )
        client_id = _required(values, "BLOCKCITY_CLIENT_ID")
        client_secret = _required(values, "BLOCKCITY_CLIENT_SECRET")

        user_info_url = _normalize_url(
            values.get("BLOCKCITY_USER_INFO_URL", f"{gateway}/api/user/baseinfo"),
            "BLOCKCITY_USER_INFO_URL",
        )

        pay_expire = values.get("BLOCKCITY_PAY_EXPIRE", "30m").strip()
        if not pay_expire:
            raise ConfigError("BLOCKCITY_PAY_EXPIRE must not be empty")

        timeout_seconds = _positive_int(
            values.get("BLOCKCITY_TIMEOUT_SECONDS", "30"), "BLOCKCITY_TIMEOUT_SECONDS"
        )

        return cls(
            gateway=gateway,
            auth_url=auth_url,
            client_id=client_id,
            client_secret=client_secret,
            user_info_url=user_info_url,
            private_key_file=_optional(values, "BLOCKCITY_PRIVATE_KEY_FILE"),
            private_key_pem=_optional(values, "BLOCKCITY_PRIVATE_KEY"),
            pay_expire=pay_expire,
            timeout_seconds=timeout_seconds,
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "gateway": gateway,
                "auth_url": auth_url,
                "client_id": client_id,
                "client_secret": client_secret,
                "private_key_file": private_key_file,
                "private_key_pem": private_key_pem,
                "user_info_url": user_info_url,
                "pay_expire": pay_expire,
                "timeout_seconds": timeout_seconds,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.settings())


def load_client_config(
    *,
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
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    Settings can come from environment variables, a ``.env`` file, keyword
    arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
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
