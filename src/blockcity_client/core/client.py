"""
HTTP client for the Blockcity open platform.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Mapping, Optional

import requests

from .config import ClientConfig
from .encoding import form_quote, form_urlencode
from .errors import RemoteError, TransportError
from .signing import get_millisecond, request_sign, rsa_sign
from .verification import check_rsa_sign

__all__ = [
    "BlockcityClient",
    "PayOrderResult",
    "TokenResult",
    "UserInfo",
]

USER_INFO_METHOD = "user.baseinfo"
PAY_METHOD = "blockpay.trade.app.pay"
PAY_VERSION = "1.0"


def _decode_response(response: requests.Response, url: str) -> Dict[str, Any]:
    if response.status_code >= 400:
        raise TransportError(
            f"Blockcity responded with {response.status_code}: {response.text}",
            url=url,
            status_code=response.status_code,
            body=response.text,
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise TransportError(
            f"Failed to parse JSON from Blockcity at {url}: {response.text}",
            url=url,
            status_code=response.status_code,
            body=response.text,
        ) from exc
    if not isinstance(payload, dict):
        raise TransportError(
            f"Expected a JSON object from Blockcity at {url}, got {type(payload).__name__}",
            url=url,
            status_code=response.status_code,
            body=response.text,
        )
    return payload


def _post_form(
    session: requests.Session,
    url: str,
    params: Mapping[str, Any],
    *,
    timeout: int,
) -> Dict[str, Any]:
    body = form_urlencode(params.items())
    response = session.post(
        url,
        data=body,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=timeout,
    )
    return _decode_response(response, url)


def _post_json(
    session: requests.Session,
    url: str,
    params: Mapping[str, Any],
    *,
    timeout: int,
) -> Dict[str, Any]:
    body = json.dumps(params, separators=(",", ":")).encode("utf-8")
    response = session.post(
        url,
        data=body,
        headers={
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        },
        timeout=timeout,
    )
    return _decode_response(response, url)


@dataclass(frozen=True)
class _EnvelopeResult:
    data: Any
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]):
        return cls(data=payload.get("data"), raw=payload)

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self.data, Mapping):
            return self.data.get(key, default)
        return default


@dataclass(frozen=True)
class UserInfo(_EnvelopeResult):
    """Payload of a successful ``user.baseinfo`` call."""


@dataclass(frozen=True)
class PayOrderResult(_EnvelopeResult):
    """Payload of a successful ``blockpay.trade.app.pay`` call."""


@dataclass(frozen=True)
class TokenResult(_EnvelopeResult):
    """Payload of a successful authorization-code exchange."""

    @property
    def access_token(self) -> Optional[str]:
        return self.get("access_token")

    @property
    def refresh_token(self) -> Optional[str]:
        return self.get("refresh_token")

    @property
    def expires_in(self) -> Optional[int]:
        value = self.get("expires_in")
        return int(float(value)) if value is not None else None


def _user_call_succeeded(payload: Mapping[str, Any]) -> bool:
    # A missing code counts as success.
    code = payload.get("code")
    return code is None or code == 0 or code == "0"


def _pay_call_succeeded(payload: Mapping[str, Any]) -> bool:
    return payload.get("success") is True


def _token_call_succeeded(payload: Mapping[str, Any]) -> bool:
    # Loose truthiness: the string "0" is falsy too.
    success = payload.get("success")
    return bool(success) and success != "0"


class BlockcityClient:
    """
    Client for the authorization, user-info and payment endpoints.

    Every operation issues exactly one POST and raises on a non-success
    envelope. Nothing is retried.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    @cached_property
    def _private_key(self) -> bytes:
        return self.config.read_private_key()

    def authorization_url(self, return_url: str) -> str:
        """
        Build the URL that sends a user to the platform's consent page.

        ``return_url`` is percent-encoded before the query string is built,
        so it appears encoded twice.
        """
        query = form_urlencode(
            [
                ("response_type", "code"),
                ("client_id", self.config.client_id),
                ("redirect_uri", form_quote(return_url)),
            ]
        )
        return f"{self.config.gateway}/#/oauth/authorize?{query}"

    def build_user_request(
        self,
        token: str,
        *,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "client_id": self.config.client_id,
            "method": USER_INFO_METHOD,
            "access_token": token,
            "timestamp": get_millisecond() if timestamp is None else timestamp,
        }
        params["sign"] = request_sign(params, self.config.client_secret)
        return params

    def fetch_user(
        self,
        token: str,
        endpoint_url: Optional[str] = None,
        *,
        timestamp: Optional[int] = None,
    ) -> UserInfo:
        url = endpoint_url or self.config.user_info_url
        params = self.build_user_request(token, timestamp=timestamp)
        logging.info("Requesting user info from %s", url)
        payload = _post_form(self.session, url, params, timeout=self.config.timeout_seconds)
        if not _user_call_succeeded(payload):
            logging.error("User info request failed with code %s", payload.get("code"))
            raise RemoteError("user", payload.get("errorCode"))
        return UserInfo.from_response(payload)

    def build_pay_order_request(
        self,
        biz_content: str | Mapping[str, Any],
        notify_url: str,
        *,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Assemble the signed pay-order body.

        A mapping ``biz_content`` is serialized to compact JSON; a string is
        used as is. The signature covers ``biz_content`` followed directly by
        the timestamp.
        """
        if not isinstance(biz_content, str):
            biz_content = json.dumps(biz_content, separators=(",", ":"))
        millis = get_millisecond() if timestamp is None else timestamp
        params: Dict[str, Any] = {
            "app_id": self.config.client_id,
            "method": PAY_METHOD,
            "timestamp": millis,
            "version": PAY_VERSION,
            "notify_url": notify_url,
            "biz_content": biz_content,
            "pay_expire": self.config.pay_expire,
        }
        params["sign"] = rsa_sign(f"{biz_content}{millis}", self._private_key)
        return params

    def create_pay_order(
        self,
        biz_content: str | Mapping[str, Any],
        notify_url: str,
        *,
        timestamp: Optional[int] = None,
    ) -> PayOrderResult:
        url = self.config.pay_gateway_url
        params = self.build_pay_order_request(biz_content, notify_url, timestamp=timestamp)
        logging.info("Creating pay order at %s", url)
        payload = _post_json(self.session, url, params, timeout=self.config.timeout_seconds)
        if not _pay_call_succeeded(payload):
            logging.error("Pay order rejected with error code %s", payload.get("errorCode"))
            raise RemoteError("pay", payload.get("errorCode"))
        return PayOrderResult.from_response(payload)

    def exchange_token(self, auth_code: str) -> TokenResult:
        """
        Trade an authorization code for an access token.

        On failure the :class:`RemoteError` payload is the whole response.
        """
        params = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": auth_code,
        }
        logging.info("Exchanging authorization code at %s", self.config.auth_url)
        payload = _post_form(
            self.session, self.config.auth_url, params, timeout=self.config.timeout_seconds
        )
        if not _token_call_succeeded(payload):
            logging.error("Token exchange failed: %s", payload)
            raise RemoteError("token", payload)
        return TokenResult.from_response(payload)

    def verify_callback(self, content: str | bytes | Mapping[str, Any]) -> bool:
        return check_rsa_sign(content, self._private_key)
