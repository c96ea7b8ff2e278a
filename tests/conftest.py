import base64
import json
from typing import Any, Mapping
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from blockcity_client.core.client import BlockcityClient
from blockcity_client.core.config import ClientConfig
from blockcity_client.core.verification import canonical_callback_string


CLIENT_ID = "abc"
CLIENT_SECRET = "s3cret"
GATEWAY = "https://sandbox.blockcity.gxb.io"
AUTH_URL = "https://sandbox.blockcity.gxb.io/api/oauth/token"


def _pem(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def encrypt_to_sign(text: str, public_key: rsa.RSAPublicKey) -> str:
    """Encrypt ``text`` block by block the way the platform signs callbacks."""
    data = text.encode("utf-8")
    block = public_key.key_size // 8 - 11
    ciphertext = b"".join(
        public_key.encrypt(data[offset:offset + block], padding.PKCS1v15())
        for offset in range(0, len(data), block)
    )
    return base64.b64encode(ciphertext).decode("ascii")


def make_response(payload: Any, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key):
    return _pem(rsa_key)


@pytest.fixture(scope="session")
def public_key(rsa_key):
    return rsa_key.public_key()


@pytest.fixture(scope="session")
def other_private_key_pem():
    return _pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture
def key_file(tmp_path, private_key_pem):
    path = tmp_path / "merchant_private_key.pem"
    path.write_bytes(private_key_pem)
    return path


@pytest.fixture
def config(key_file):
    return ClientConfig(
        gateway=GATEWAY,
        auth_url=AUTH_URL,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        user_info_url=f"{GATEWAY}/openapi/user/baseinfo",
        private_key_file=str(key_file),
    )


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(config, session):
    return BlockcityClient(config, session=session)


@pytest.fixture
def sign_callback(public_key):
    """Return a callable producing a signed callback body for ``fields``."""

    def _sign(fields: Mapping[str, Any]) -> dict:
        body = dict(fields)
        body["sign"] = encrypt_to_sign(canonical_callback_string(fields), public_key)
        return body

    return _sign


@pytest.fixture(name="make_response")
def make_response_fixture():
    return make_response


@pytest.fixture(name="encrypt_to_sign")
def encrypt_to_sign_fixture(public_key):
    return lambda text: encrypt_to_sign(text, public_key)
