"""
client.py

WxAPIProxy: one method per remote WeChat operation.

Every call has the same shape:
  build params -> (sign) -> one HTTP request -> decode JSON -> typed record

Wire format (as the remote side expects it):
- parameters always travel in the query string, for GET and POST alike
- POST bodies are raw JSON strings; the storage and midas calls sign them
- non-2xx responses are not errors, the body is decoded anyway
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union
from urllib.parse import urlencode, urlparse

import requests

from .config import WxConfig
from .errors import UnifiedOrderError, UnsupportedMethodError, WxConfigError, WxDecodeError
from .models import (
    GetTokenResponse,
    JsCode2SessionResponse,
    MidasCancelPayResponse,
    MidasGetBalanceResponse,
    MidasPayResponse,
    MidasPresentResponse,
    PaymentRequest,
    SetUserStorageResponse,
    UnifiedOrderResponse,
    WxRecord,
)
from .sign import NonceGenerator, generate_login_status_sign, generate_midas_sign, generate_sign

logger = logging.getLogger(__name__)

LOGIN_URL = "https://api.weixin.qq.com/sns/jscode2session"
ORDER_URL = "https://api.mch.weixin.qq.com/pay/unifiedorder"
GET_TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"
SET_USER_STORAGE_URL = "https://api.weixin.qq.com/wxa/set_user_storage"
MIDAS_GET_BALANCE_URL = "https://api.weixin.qq.com/cgi-bin/midas/getbalance"
MIDAS_GET_BALANCE_SANDBOX_URL = "https://api.weixin.qq.com/cgi-bin/midas/sandbox/getbalance"
MIDAS_PAY_URL = "https://api.weixin.qq.com/cgi-bin/midas/pay"
MIDAS_PAY_SANDBOX_URL = "https://api.weixin.qq.com/cgi-bin/midas/sandbox/pay"
MIDAS_PRESENT_URL = "https://api.weixin.qq.com/cgi-bin/midas/present"
MIDAS_PRESENT_SANDBOX_URL = "https://api.weixin.qq.com/cgi-bin/midas/sandbox/present"
MIDAS_CANCEL_PAY_URL = "https://api.weixin.qq.com/cgi-bin/midas/cancelpay"
MIDAS_CANCEL_PAY_SANDBOX_URL = "https://api.weixin.qq.com/cgi-bin/midas/sandbox/cancelpay"

NONCE_LENGTH = 32
MIDAS_ZONE_ID = "1"

_SENSITIVE = ("secret", "access_token", "sign", "signature", "sig", "mp_sig")
# only access_token keeps a visible prefix in logs
_MASK_KEEP = {"access_token": 4}

R = TypeVar("R", bound=WxRecord)


def _mask(s: str, keep: int = 4) -> str:
    if not s:
        return ""
    if len(s) <= keep:
        return "*" * len(s)
    return s[:keep] + "*" * (len(s) - keep)


def _loggable_url(url: str, params: Mapping[str, str]) -> str:
    safe = {k: (_mask(str(v), _MASK_KEEP.get(k, 0)) if k in _SENSITIVE else v) for k, v in params.items()}
    query = urlencode(safe)
    return f"{url}?{query}" if query else url


class WxAPIProxy:
    def __init__(
        self,
        config: WxConfig,
        *,
        session: Optional[requests.Session] = None,
        nonce: Optional[NonceGenerator] = None,
        clock: Callable[[], float] = time.time,
    ):
        if not isinstance(config, WxConfig):
            raise WxConfigError("WxAPIProxy needs a WxConfig")
        self.config = config
        self.session = session or requests.Session()
        self.nonce = nonce or NonceGenerator()
        self.clock = clock

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, str]] = None,
        *,
        body: Optional[Union[str, bytes]] = None,
    ) -> Dict[str, Any]:
        method_u = method.upper()
        if method_u not in ("GET", "POST"):
            raise UnsupportedMethodError(f"nonsupport method: {method_u}")

        parsed_url = urlparse(url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise WxConfigError(f"Malformed endpoint URL: {url!r}")

        req_params = dict(params or {})
        data = None
        if method_u == "POST" and body is not None:
            data = body.encode("utf-8") if isinstance(body, str) else body

        logger.info("%s %s", method_u, _loggable_url(url, req_params))

        resp = self.session.request(
            method=method_u,
            url=url,
            params=req_params,
            data=data,
            timeout=self.config.timeout_seconds,
        )

        raw = resp.content or b""
        if resp.status_code >= 400:
            logger.warning("wx http %s for %s %s: %s", resp.status_code, method_u, url, raw[:800])

        if not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except ValueError as e:
            if self.config.strict_json:
                raise WxDecodeError(f"Invalid JSON from {url}: {e}", body=raw) from e
            logger.warning("ignoring undecodable body from %s: %s", url, e)
            return {}
        return decoded if isinstance(decoded, dict) else {}

    def _call(
        self,
        record: Type[R],
        method: str,
        url: str,
        params: Mapping[str, str],
        body: Optional[Union[str, bytes]] = None,
    ) -> R:
        return record.from_dict(self.request(method, url, params, body=body))

    def _now(self) -> int:
        return int(self.clock())

    # ------------------------------------------------------------------
    # login / token / storage
    # ------------------------------------------------------------------
    def login(self, js_code: str) -> JsCode2SessionResponse:
        params = {
            "appid": self.config.appid,
            "secret": self.config.secret,
            "js_code": js_code,
            "grant_type": "authorization_code",
        }
        return self._call(JsCode2SessionResponse, "GET", LOGIN_URL, params)

    def get_token(self) -> GetTokenResponse:
        params = {
            "appid": self.config.appid,
            "secret": self.config.secret,
            "grant_type": "client_credential",
        }
        return self._call(GetTokenResponse, "GET", GET_TOKEN_URL, params)

    def set_user_storage(
        self,
        openid: str,
        access_token: str,
        session_key: str,
        kv_list: Union[str, List[Dict[str, str]]],
    ) -> SetUserStorageResponse:
        """
        kv_list is either the raw JSON body or a list of {"key", "value"}
        dicts. The signature covers exactly the body bytes that are sent.
        """
        if isinstance(kv_list, str):
            body = kv_list
        else:
            body = json.dumps({"kv_list": list(kv_list)}, separators=(",", ":"), ensure_ascii=False)

        params = {
            "appid": self.config.appid,
            "openid": openid,
            "access_token": access_token,
            "signature": generate_login_status_sign(body, session_key),
            "sig_method": "hmac_sha256",
        }
        return self._call(SetUserStorageResponse, "POST", SET_USER_STORAGE_URL, params, body=body)

    # ------------------------------------------------------------------
    # merchant payment
    # ------------------------------------------------------------------
    def unified_order(self, openid: str, trade_no: str, body: str, total_fee: str, ipaddr: str) -> PaymentRequest:
        cfg = self.config
        params = {
            "appid": cfg.appid,
            "mch_id": cfg.mch_id,
            "nonce_str": self.nonce.random_string(NONCE_LENGTH),
            "body": body,
            "out_trade_no": trade_no,
            "total_fee": str(total_fee),
            "spbill_create_ip": ipaddr,
            "notify_url": cfg.notify_url,
            "trade_type": cfg.trade_type,
            "openid": openid,
            "sign_type": "MD5",
        }
        params["sign"] = generate_sign(cfg.secret, params)

        response = self._call(UnifiedOrderResponse, "GET", ORDER_URL, params)
        if not response.is_success:
            logger.warning(
                "unified order %s rejected: return_code=%s result_code=%s err_code=%s",
                trade_no, response.return_code, response.result_code, response.err_code,
            )
            raise UnifiedOrderError(response=response)

        req = PaymentRequest(
            timeStamp=str(self._now()),
            nonceStr=response.nonce_str,
            package=f"prepay_id={response.prepay_id}",
            signType="MD5",
        )
        req.paySign = generate_sign(cfg.secret, req.signed_fields(cfg.appid))
        return req

    # ------------------------------------------------------------------
    # midas virtual currency
    # ------------------------------------------------------------------
    def _midas(
        self,
        record: Type[R],
        url: str,
        openid: str,
        access_token: str,
        pf: str,
        extra: Mapping[str, Any],
    ) -> R:
        cfg = self.config
        if not cfg.midas_offer_id or not cfg.midas_secret:
            raise WxConfigError("midas_offer_id / midas_secret are required for virtual currency calls")

        path = urlparse(url).path
        if not path:
            raise WxConfigError(f"Malformed endpoint URL: {url!r}")

        cal_params: Dict[str, Any] = {
            "openid": openid,
            "appid": cfg.appid,
            "offer_id": cfg.midas_offer_id,
            "ts": self._now(),
            "zone_id": MIDAS_ZONE_ID,
            "pf": pf,
        }
        cal_params.update(extra)
        cal_params["sig"] = generate_midas_sign(cfg.midas_secret, path, cal_params)
        cal_params["access_token"] = access_token
        cal_params["mp_sig"] = generate_midas_sign(cfg.midas_secret, path, cal_params)

        body = json.dumps(cal_params, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return self._call(record, "POST", url, {"access_token": access_token}, body=body)

    def midas_get_balance(self, openid: str, access_token: str, pf: str, sandbox: bool = False) -> MidasGetBalanceResponse:
        url = MIDAS_GET_BALANCE_SANDBOX_URL if sandbox else MIDAS_GET_BALANCE_URL
        return self._midas(MidasGetBalanceResponse, url, openid, access_token, pf, {})

    def midas_pay(
        self, openid: str, access_token: str, pf: str, bill_no: str, amt: int, sandbox: bool = False
    ) -> MidasPayResponse:
        url = MIDAS_PAY_SANDBOX_URL if sandbox else MIDAS_PAY_URL
        return self._midas(MidasPayResponse, url, openid, access_token, pf, {"amt": int(amt), "bill_no": bill_no})

    def midas_present(
        self, openid: str, access_token: str, pf: str, bill_no: str, present_counts: int, sandbox: bool = False
    ) -> MidasPresentResponse:
        url = MIDAS_PRESENT_SANDBOX_URL if sandbox else MIDAS_PRESENT_URL
        extra = {"bill_no": bill_no, "present_counts": int(present_counts)}
        return self._midas(MidasPresentResponse, url, openid, access_token, pf, extra)

    def midas_cancel_pay(
        self, openid: str, access_token: str, pf: str, bill_no: str, sandbox: bool = False
    ) -> MidasCancelPayResponse:
        url = MIDAS_CANCEL_PAY_SANDBOX_URL if sandbox else MIDAS_CANCEL_PAY_URL
        return self._midas(MidasCancelPayResponse, url, openid, access_token, pf, {"bill_no": bill_no})
