"""
Request signing for the Blockcity open platform.

Generic API calls carry an MD5 digest over the sorted parameters and the
client secret. Payment calls carry an RSA (PKCS#1 v1.5, SHA-256) signature
over the biz content followed by the request timestamp.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .encoding import format_float
from .errors import KeyLoadError, SignError

__all__ = [
    "get_millisecond",
    "load_private_key",
    "request_sign",
    "rsa_sign",
]


def get_millisecond() -> int:
    """
    Current wall-clock time in milliseconds.

    The float product is rounded with ``%.0f``, not truncated.
    """
    return int("%.0f" % (time.time() * 1000))


def _concat_text(value: Any) -> str:
    # Plain string concatenation rules: True -> "1", False/None -> "".
    # Callbacks spell booleans "true"/"false"; request signing does not.
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float):
        return format_float(value)
    return str(value)


def request_sign(params: Mapping[str, Any], client_secret: str) -> str:
    """
    Compute the keyed MD5 signature for a generic API call.

    ``client_secret`` is merged into ``params``, keys are sorted, and every
    ``key + value`` pair is concatenated without separators before hashing.
    The caller's mapping is not modified.
    """
    signed = dict(params)
    signed["client_secret"] = client_secret
    canonical = "".join(key + _concat_text(signed[key]) for key in sorted(signed))
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def _as_bytes(material: bytes | str) -> bytes:
    if isinstance(material, str):
        return material.encode("utf-8")
    return material


@contextmanager
def load_private_key(material: bytes | str) -> Iterator[rsa.RSAPrivateKey]:
    """
    Parse a PEM-encoded RSA private key for the duration of a ``with`` block.

    The key object is released when the block exits, whether or not it raised.
    """
    try:
        key = serialization.load_pem_private_key(_as_bytes(material), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyLoadError(f"Invalid RSA private key: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyLoadError(f"Expected an RSA private key, got {type(key).__name__}")

    try:
        yield key
    finally:
        del key


def rsa_sign(data: str | bytes, private_key_pem: bytes | str) -> str:
    """
    Sign ``data`` with RSASSA-PKCS1-v1_5 over SHA-256 and return base64 text.
    """
    message = data.encode("utf-8") if isinstance(data, str) else data
    with load_private_key(private_key_pem) as key:
        try:
            signature = key.sign(message, padding.PKCS1v15(), hashes.SHA256())
        except (ValueError, TypeError) as exc:
            raise SignError(f"Failed to sign payload: {exc}") from exc
        logging.debug("Signed %d bytes with a %d-bit RSA key", len(message), key.key_size)
    return base64.b64encode(signature).decode("ascii")
