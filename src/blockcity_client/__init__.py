"""
Public facade for the Blockcity open platform client.

The most useful pieces are re-exported so integrators can
``from blockcity_client import ...`` without navigating the package.
"""

from .api import create_client, verify_callback
from .core import (
    DEFAULT_GATEWAY,
    SANDBOX_GATEWAY,
    BlockcityClient,
    BlockcityError,
    ClientConfig,
    ClientEnvironment,
    ClientParameters,
    ConfigError,
    DecryptError,
    KeyLoadError,
    MalformedPayloadError,
    MissingSignatureError,
    PayOrderResult,
    RemoteError,
    SignError,
    TokenResult,
    TransportError,
    UserInfo,
    build_environment,
    canonical_callback_string,
    check_rsa_sign,
    decrypt_signature,
    get_millisecond,
    load_client_config,
    load_env_file,
    request_sign,
    rsa_sign,
)

__all__ = (
    "BlockcityClient",
    "BlockcityError",
    "ClientConfig",
    "ClientEnvironment",
    "ClientParameters",
    "ConfigError",
    "DEFAULT_GATEWAY",
    "DecryptError",
    "KeyLoadError",
    "MalformedPayloadError",
    "MissingSignatureError",
    "PayOrderResult",
    "RemoteError",
    "SANDBOX_GATEWAY",
    "SignError",
    "TokenResult",
    "TransportError",
    "UserInfo",
    "build_environment",
    "canonical_callback_string",
    "check_rsa_sign",
    "create_client",
    "decrypt_signature",
    "get_millisecond",
    "load_client_config",
    "load_env_file",
    "request_sign",
    "rsa_sign",
    "verify_callback",
)
