"""
Exception hierarchy raised by the Blockcity client.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "BlockcityError",
    "ConfigError",
    "DecryptError",
    "KeyLoadError",
    "MalformedPayloadError",
    "MissingSignatureError",
    "RemoteError",
    "SignError",
    "TransportError",
]


class BlockcityError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(BlockcityError):
    """Raised when the supplied configuration is invalid."""


class TransportError(BlockcityError):
    """The HTTP exchange completed but did not yield a usable JSON object."""

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class RemoteError(BlockcityError):
    """
    The remote endpoint answered with a non-success envelope.

    ``endpoint`` names the operation (``"user"``, ``"pay"`` or ``"token"``).
    ``payload`` differs per endpoint: the user-info and pay-order calls carry
    the ``errorCode`` field, the token exchange carries the whole response.
    """

    def __init__(self, endpoint: str, payload: Any) -> None:
        super().__init__(f"{endpoint} request failed: {payload!r}")
        self.endpoint = endpoint
        self.payload = payload


class KeyLoadError(BlockcityError):
    """Private key material is missing, unreadable or malformed."""


class SignError(BlockcityError):
    """The signing primitive rejected its input."""


class DecryptError(BlockcityError):
    """A callback signature could not be decrypted."""


class MalformedPayloadError(BlockcityError):
    """A callback body is not a JSON object."""


class MissingSignatureError(BlockcityError):
    """A callback body carries no ``sign`` field."""
