# wxconnector/main.py
import logging
from typing import List, Optional

import requests
from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from .client import WxAPIProxy
from .config import WxConfig, env
from .errors import UnifiedOrderError, WxConfigError, WxDecodeError

logger = logging.getLogger(__name__)

SERVICE_NAME = env("SERVICE_NAME", "wx-connector")

app = FastAPI(title=SERVICE_NAME, version="1.0.0")

_proxy: Optional[WxAPIProxy] = None


def get_proxy() -> WxAPIProxy:
    # Lazy so the app can boot even if env vars are temporarily missing
    global _proxy
    if _proxy is None:
        try:
            _proxy = WxAPIProxy(WxConfig.from_env())
        except WxConfigError as e:
            raise HTTPException(status_code=500, detail=str(e))
    return _proxy


def _upstream(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except UnifiedOrderError as e:
        raise HTTPException(status_code=402, detail=e.to_dict())
    except WxConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except WxDecodeError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except requests.RequestException as e:
        logger.error("wx transport error: %s", e)
        raise HTTPException(status_code=502, detail=f"Network error calling WeChat: {type(e).__name__}")


# ---- Request bodies ----
class OrderIn(BaseModel):
    openid: str
    trade_no: str
    body: str
    total_fee: str = Field(..., pattern=r"^\d+$")
    ipaddr: str


class KV(BaseModel):
    key: str
    value: str


class StorageIn(BaseModel):
    openid: str
    access_token: str
    session_key: str
    kv_list: List[KV]


class MidasIn(BaseModel):
    openid: str
    access_token: str
    pf: str = "android"
    bill_no: str = ""
    amount: int = 0
    sandbox: bool = False


# ---- Health ----
@app.get("/")
def root():
    return {"ok": True, "service": SERVICE_NAME}


# ---- WeChat passthroughs ----
@app.get("/wx/login")
def login(js_code: str = Query(..., min_length=1), proxy: WxAPIProxy = Depends(get_proxy)):
    res = _upstream(proxy.login, js_code)
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.get("/wx/token")
def token(proxy: WxAPIProxy = Depends(get_proxy)):
    res = _upstream(proxy.get_token)
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.post("/wx/order")
def unified_order(payload: OrderIn, proxy: WxAPIProxy = Depends(get_proxy)):
    req = _upstream(
        proxy.unified_order,
        payload.openid,
        payload.trade_no,
        payload.body,
        payload.total_fee,
        payload.ipaddr,
    )
    return {"ok": True, "data": req.to_dict()}


@app.post("/wx/storage")
def set_user_storage(payload: StorageIn, proxy: WxAPIProxy = Depends(get_proxy)):
    kv_list = [{"key": kv.key, "value": kv.value} for kv in payload.kv_list]
    res = _upstream(proxy.set_user_storage, payload.openid, payload.access_token, payload.session_key, kv_list)
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.get("/wx/midas/balance")
def midas_balance(
    openid: str,
    access_token: str,
    pf: str = "android",
    sandbox: bool = False,
    proxy: WxAPIProxy = Depends(get_proxy),
):
    res = _upstream(proxy.midas_get_balance, openid, access_token, pf, sandbox=sandbox)
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.post("/wx/midas/pay")
def midas_pay(payload: MidasIn, proxy: WxAPIProxy = Depends(get_proxy)):
    res = _upstream(
        proxy.midas_pay, payload.openid, payload.access_token, payload.pf, payload.bill_no, payload.amount,
        sandbox=payload.sandbox,
    )
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.post("/wx/midas/present")
def midas_present(payload: MidasIn, proxy: WxAPIProxy = Depends(get_proxy)):
    res = _upstream(
        proxy.midas_present, payload.openid, payload.access_token, payload.pf, payload.bill_no, payload.amount,
        sandbox=payload.sandbox,
    )
    return {"ok": res.errcode == 0, "data": res.to_dict()}


@app.post("/wx/midas/cancel")
def midas_cancel(payload: MidasIn, proxy: WxAPIProxy = Depends(get_proxy)):
    res = _upstream(
        proxy.midas_cancel_pay, payload.openid, payload.access_token, payload.pf, payload.bill_no,
        sandbox=payload.sandbox,
    )
    return {"ok": res.errcode == 0, "data": res.to_dict()}
