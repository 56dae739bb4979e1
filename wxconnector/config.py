from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .errors import WxConfigError


def env(name: str, default: str = "") -> str:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip()


def env_int(name: str, default: int) -> int:
    raw = env(name, "")
    if raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_bool(name: str, default: bool) -> bool:
    raw = env(name, "")
    if raw == "":
        return default
    return raw.lower() in ("1", "true", "yes", "y", "on")


@dataclass(frozen=True)
class WxConfig:
    appid: str
    secret: str
    mch_id: str = ""
    notify_url: str = ""
    trade_type: str = "JSAPI"
    midas_offer_id: str = ""
    midas_secret: str = ""
    timeout_seconds: int = 30
    # False keeps the legacy behaviour: malformed JSON leaves a zero-valued record
    strict_json: bool = True

    @staticmethod
    def from_env() -> "WxConfig":
        appid = env("WX_APPID")
        secret = env("WX_SECRET")

        if not appid:
            raise WxConfigError("Missing env var WX_APPID")
        if not secret:
            raise WxConfigError("Missing env var WX_SECRET")

        return WxConfig(
            appid=appid,
            secret=secret,
            mch_id=env("WX_MCH_ID"),
            notify_url=env("WX_NOTIFY_URL"),
            trade_type=env("WX_TRADE_TYPE", "JSAPI") or "JSAPI",
            midas_offer_id=env("WX_MIDAS_OFFER_ID"),
            midas_secret=env("WX_MIDAS_SECRET"),
            timeout_seconds=env_int("WX_TIMEOUT", 30),
            strict_json=env_bool("WX_STRICT_JSON", True),
        )

    @staticmethod
    def from_values(
        *,
        appid: Optional[str] = None,
        secret: Optional[str] = None,
        mch_id: Optional[str] = None,
        notify_url: Optional[str] = None,
        trade_type: Optional[str] = None,
        midas_offer_id: Optional[str] = None,
        midas_secret: Optional[str] = None,
        timeout_seconds: Optional[int] = None,
        strict_json: Optional[bool] = None,
    ) -> "WxConfig":
        a = (appid or env("WX_APPID")).strip()
        s = (secret or env("WX_SECRET")).strip()
        if not a:
            raise WxConfigError("Missing appid / WX_APPID")
        if not s:
            raise WxConfigError("Missing secret / WX_SECRET")

        return WxConfig(
            appid=a,
            secret=s,
            mch_id=(mch_id or env("WX_MCH_ID")).strip(),
            notify_url=(notify_url or env("WX_NOTIFY_URL")).strip(),
            trade_type=(trade_type or env("WX_TRADE_TYPE") or "JSAPI").strip(),
            midas_offer_id=(midas_offer_id or env("WX_MIDAS_OFFER_ID")).strip(),
            midas_secret=(midas_secret or env("WX_MIDAS_SECRET")).strip(),
            timeout_seconds=int(timeout_seconds or env_int("WX_TIMEOUT", 30)),
            strict_json=env_bool("WX_STRICT_JSON", True) if strict_json is None else strict_json,
        )
