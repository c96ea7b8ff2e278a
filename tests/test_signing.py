import base64
import contextlib
import hashlib
import time
from unittest.mock import MagicMock

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from blockcity_client.core.errors import KeyLoadError, SignError
from blockcity_client.core.signing import (
    get_millisecond,
    load_private_key,
    request_sign,
    rsa_sign,
)


USER_PARAMS = {
    "client_id": "abc",
    "method": "user.baseinfo",
    "access_token": "tok123",
    "timestamp": 1700000000000,
}


class TestRequestSign:
    """Tests for the keyed MD5 request signature."""

    @pytest.mark.unit
    def test_golden_vector(self):
        assert request_sign(USER_PARAMS, "s3cret") == "a7ca49e26f31ed6e604eee7fc676c093"

    @pytest.mark.unit
    def test_matches_sorted_concatenation(self):
        canonical = (
            "access_tokentok123client_idabcclient_secrets3cret"
            "methoduser.baseinfotimestamp1700000000000"
        )
        assert request_sign(USER_PARAMS, "s3cret") == hashlib.md5(canonical.encode()).hexdigest()

    @pytest.mark.unit
    def test_is_deterministic(self):
        assert request_sign(USER_PARAMS, "s3cret") == request_sign(dict(USER_PARAMS), "s3cret")

    @pytest.mark.unit
    def test_insertion_order_does_not_matter(self):
        reversed_params = dict(reversed(list(USER_PARAMS.items())))
        assert request_sign(reversed_params, "s3cret") == request_sign(USER_PARAMS, "s3cret")

    @pytest.mark.unit
    def test_changing_a_value_changes_signature(self):
        changed = dict(USER_PARAMS, timestamp=1700000000001)
        assert request_sign(changed, "s3cret") == "763abfd36a3c77b49370f15563739d2e"
        assert request_sign(changed, "s3cret") != request_sign(USER_PARAMS, "s3cret")

    @pytest.mark.unit
    def test_changing_a_key_changes_signature(self):
        changed = dict(USER_PARAMS)
        changed["token"] = changed.pop("access_token")
        assert request_sign(changed, "s3cret") != request_sign(USER_PARAMS, "s3cret")

    @pytest.mark.unit
    def test_secret_is_part_of_signature(self):
        assert request_sign(USER_PARAMS, "other") != request_sign(USER_PARAMS, "s3cret")

    @pytest.mark.unit
    def test_supplied_client_secret_is_replaced(self):
        with_secret = dict(USER_PARAMS, client_secret="ignored")
        assert request_sign(with_secret, "s3cret") == request_sign(USER_PARAMS, "s3cret")

    @pytest.mark.unit
    def test_does_not_mutate_params(self):
        params = dict(USER_PARAMS)
        request_sign(params, "s3cret")
        assert params == USER_PARAMS

    @pytest.mark.unit
    def test_booleans_use_concatenation_text_not_true_false(self):
        expected_true = hashlib.md5(b"client_secrets3cretflag1").hexdigest()
        expected_false = hashlib.md5(b"client_secrets3cretflag").hexdigest()
        assert request_sign({"flag": True}, "s3cret") == expected_true
        assert request_sign({"flag": False}, "s3cret") == expected_false
        assert request_sign({"flag": True}, "s3cret") != request_sign({"flag": "true"}, "s3cret")

    @pytest.mark.unit
    def test_integral_float_matches_integer(self):
        assert request_sign({"amount": 10.0}, "s3cret") == request_sign({"amount": 10}, "s3cret")
        assert request_sign({"amount": 9.5}, "s3cret") == request_sign({"amount": "9.5"}, "s3cret")


class TestRsaSign:
    """Tests for the RSA/SHA-256 payment signature."""

    @pytest.mark.unit
    def test_signature_verifies_with_public_key(self, private_key_pem, public_key):
        data = '{"out_trade_no":"A1001"}1700000000000'
        signature = base64.b64decode(rsa_sign(data, private_key_pem))
        public_key.verify(signature, data.encode(), padding.PKCS1v15(), hashes.SHA256())

    @pytest.mark.unit
    def test_signature_is_base64_of_key_size(self, private_key_pem):
        signature = rsa_sign("payload", private_key_pem)
        assert len(base64.b64decode(signature)) == 256

    @pytest.mark.unit
    def test_pkcs1v15_signature_is_deterministic(self, private_key_pem):
        assert rsa_sign("payload", private_key_pem) == rsa_sign("payload", private_key_pem)

    @pytest.mark.unit
    def test_accepts_text_key_material(self, private_key_pem):
        assert rsa_sign("payload", private_key_pem.decode()) == rsa_sign("payload", private_key_pem)

    @pytest.mark.unit
    def test_signature_does_not_verify_other_data(self, private_key_pem, public_key):
        signature = base64.b64decode(rsa_sign("payload", private_key_pem))
        with pytest.raises(InvalidSignature):
            public_key.verify(signature, b"tampered", padding.PKCS1v15(), hashes.SHA256())

    @pytest.mark.unit
    def test_garbage_key_raises_key_load_error(self):
        with pytest.raises(KeyLoadError):
            rsa_sign("payload", b"not a key")

    @pytest.mark.unit
    def test_non_rsa_key_raises_key_load_error(self):
        ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(KeyLoadError):
            rsa_sign("payload", ec_pem)

    @pytest.mark.unit
    def test_rejected_input_raises_sign_error(self, monkeypatch):
        cause = ValueError("Digest too big for key size")
        key = MagicMock(key_size=2048)
        key.sign.side_effect = cause

        @contextlib.contextmanager
        def fake_load_private_key(material):
            yield key

        monkeypatch.setattr(
            "blockcity_client.core.signing.load_private_key", fake_load_private_key
        )
        with pytest.raises(SignError) as excinfo:
            rsa_sign("payload", b"unused")
        assert excinfo.value.__cause__ is cause


class TestLoadPrivateKey:
    @pytest.mark.unit
    def test_yields_rsa_key(self, private_key_pem):
        with load_private_key(private_key_pem) as key:
            assert isinstance(key, rsa.RSAPrivateKey)
            assert key.key_size == 2048

    @pytest.mark.unit
    def test_errors_inside_block_propagate(self, private_key_pem):
        with pytest.raises(RuntimeError):
            with load_private_key(private_key_pem):
                raise RuntimeError("boom")


class TestGetMillisecond:
    @pytest.mark.unit
    def test_returns_integer_milliseconds(self):
        before = time.time() * 1000
        value = get_millisecond()
        after = time.time() * 1000
        assert isinstance(value, int)
        assert before - 1 <= value <= after + 1

    @pytest.mark.unit
    def test_non_decreasing_in_succession(self):
        values = [get_millisecond() for _ in range(200)]
        assert values == sorted(values)

    @pytest.mark.unit
    def test_rounds_instead_of_truncating(self, monkeypatch):
        monkeypatch.setattr(time, "time", lambda: 1700000000.0006)
        assert get_millisecond() == 1700000000001
