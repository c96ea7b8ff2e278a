"""
Core primitives: configuration, signing, callback verification and the HTTP client.
"""

from .client import BlockcityClient, PayOrderResult, TokenResult, UserInfo
from .config import (
    DEFAULT_GATEWAY,
    SANDBOX_GATEWAY,
    ClientConfig,
    ClientParameters,
    load_client_config,
)
from .environment import ClientEnvironment, build_environment, load_env_file
from .errors import (
    BlockcityError,
    ConfigError,
    DecryptError,
    KeyLoadError,
    MalformedPayloadError,
    MissingSignatureError,
    RemoteError,
    SignError,
    TransportError,
)
from .signing import get_millisecond, load_private_key, request_sign, rsa_sign
from .verification import (
    canonical_callback_string,
    check_rsa_sign,
    decrypt_signature,
    parse_callback,
)

__all__ = [
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
    "decrypt_signature",
    "get_millisecond",
    "load_client_config",
    "load_env_file",
    "load_private_key",
    "parse_callback",
    "request_sign",
    "rsa_sign",
]
