"""
Verification of signed payment callbacks.

The platform signs a callback by encrypting the canonical query string of its
fields with the merchant's public key. The merchant decrypts ``sign`` with its
private key and compares the plaintext with its own canonical string.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from cryptography.hazmat.primitives.asymmetric import padding

from .encoding import form_urlencode, format_float
from .errors import DecryptError, MalformedPayloadError, MissingSignatureError
from .signing import load_private_key

__all__ = [
    "canonical_callback_string",
    "check_rsa_sign",
    "decrypt_signature",
    "parse_callback",
]


def _query_text(value: Any) -> str:
    # Nested booleans reach the query builder untouched: 1 and 0.
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return format_float(value)
    return str(value)


def _top_level_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _query_pairs(name: str, value: Any) -> Iterator[Tuple[str, str]]:
    if value is None:
        return
    if isinstance(value, Mapping):
        items = value.items()
    elif isinstance(value, (list, tuple)):
        items = enumerate(value)
    else:
        yield name, _query_text(value)
        return
    for key, item in items:
        yield from _query_pairs(f"{name}[{key}]", item)


def canonical_callback_string(fields: Mapping[str, Any]) -> str:
    """
    Build the string a callback signature is compared against.

    Top-level keys are sorted and top-level booleans become ``true``/``false``.
    Booleans inside nested values become ``1``/``0``. ``None`` values are
    dropped and nested values use ``key[sub]`` names. The result is
    form-urlencoded and ``&``-joined.
    """
    pairs: List[Tuple[str, str]] = []
    for key in sorted(fields):
        pairs.extend(_query_pairs(str(key), _top_level_value(fields[key])))
    return form_urlencode(pairs)


def parse_callback(content: str | bytes | Mapping[str, Any]) -> Dict[str, Any]:
    if isinstance(content, Mapping):
        return dict(content)
    try:
        decoded = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise MalformedPayloadError(f"Callback body is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise MalformedPayloadError(
            f"Callback body must be a JSON object, got {type(decoded).__name__}"
        )
    return decoded


def decrypt_signature(sign: str, private_key_pem: bytes | str) -> str:
    """
    Decrypt a base64 ``sign`` value block by block with the private key.

    The block size follows the key size (256 bytes for RSA-2048).
    """
    try:
        ciphertext = base64.b64decode(sign)
    except (binascii.Error, ValueError) as exc:
        raise DecryptError(f"Signature is not valid base64: {exc}") from exc
    if not ciphertext:
        raise DecryptError("Signature decodes to an empty ciphertext")

    chunks: List[bytes] = []
    with load_private_key(private_key_pem) as key:
        block_size = (key.key_size + 7) // 8
        for offset in range(0, len(ciphertext), block_size):
            block = ciphertext[offset:offset + block_size]
            try:
                chunks.append(key.decrypt(block, padding.PKCS1v15()))
            except ValueError as exc:
                raise DecryptError(
                    f"Cannot decrypt signature block at offset {offset}: {exc}"
                ) from exc

    try:
        return b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptError("Decrypted signature is not UTF-8 text") from exc


def check_rsa_sign(
    content: str | bytes | Mapping[str, Any],
    private_key_pem: bytes | str,
) -> bool:
    """
    Return ``True`` when the callback's ``sign`` matches its other fields.

    A mismatch is a normal ``False`` result. Malformed input, a missing
    signature or undecryptable ciphertext raise.
    """
    fields = parse_callback(content)
    sign = fields.pop("sign", None)
    if sign is None or sign == "":
        raise MissingSignatureError("Callback body has no 'sign' field")
    if not isinstance(sign, str):
        raise MalformedPayloadError(
            f"Callback 'sign' must be a string, got {type(sign).__name__}"
        )

    expected = canonical_callback_string(fields)
    decrypted = decrypt_signature(sign, private_key_pem)
    matched = hmac.compare_digest(expected.encode("utf-8"), decrypted.encode("utf-8"))
    if not matched:
        logging.warning("Callback signature mismatch for fields %s", sorted(fields))
    return matched
