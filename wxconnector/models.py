from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T", bound="WxRecord")


def _coerce(value: Any, typ: Any) -> Any:
    if typ in (int, "int"):
        if isinstance(value, bool):
            return int(value)
        try:
            if isinstance(value, (int, float)):
                return int(value)
            return int(str(value).strip())
        except (ValueError, OverflowError):
            # inf and NaN are valid for json.loads but have no int value
            return 0
    if value is None:
        return ""
    return str(value)


@dataclass
class WxRecord:
    """
    Base for decoded responses. Unknown keys are ignored and missing keys
    keep their zero value.
    """

    @classmethod
    def from_dict(cls: Type[T], data: Any) -> T:
        if not isinstance(data, dict):
            return cls()
        kwargs = {}
        for f in fields(cls):
            if f.name in data and data[f.name] is not None:
                kwargs[f.name] = _coerce(data[f.name], f.type)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JsCode2SessionResponse(WxRecord):
    openid: str = ""
    session_key: str = ""
    unionid: str = ""
    errcode: int = 0
    errmsg: str = ""


@dataclass
class UnifiedOrderResponse(WxRecord):
    return_code: str = ""
    return_msg: str = ""
    device_info: str = ""
    appid: str = ""
    mch_id: str = ""
    nonce_str: str = ""
    sign: str = ""
    result_code: str = ""
    err_code: str = ""
    err_code_des: str = ""
    trade_type: str = ""
    prepay_id: str = ""
    code_url: str = ""

    @property
    def is_success(self) -> bool:
        return self.return_code == "SUCCESS" and self.result_code == "SUCCESS" and len(self.prepay_id) > 0


@dataclass
class GetTokenResponse(WxRecord):
    access_token: str = ""
    expires_in: int = 0
    errcode: int = 0
    errmsg: str = ""


@dataclass
class SetUserStorageResponse(WxRecord):
    errcode: int = 0
    errmsg: str = ""


@dataclass
class MidasGetBalanceResponse(WxRecord):
    errcode: int = 0
    errmsg: str = ""
    balance: int = 0
    gen_balance: int = 0
    first_save: int = 0
    save_amt: int = 0
    save_sum: int = 0
    cost_sum: int = 0
    present_sum: int = 0


@dataclass
class MidasPayResponse(WxRecord):
    errcode: int = 0
    errmsg: str = ""
    bill_no: str = ""
    balance: int = 0
    used_gen_amt: int = 0


@dataclass
class MidasPresentResponse(WxRecord):
    errcode: int = 0
    errmsg: str = ""
    bill_no: str = ""
    balance: int = 0
    present_balance: int = 0


@dataclass
class MidasCancelPayResponse(WxRecord):
    errcode: int = 0
    errmsg: str = ""
    bill_no: str = ""


@dataclass
class PaymentRequest(WxRecord):
    """
    Signed payload handed to the client-side requestPayment call.

    paySign also covers appId, which is not a field here; use
    signed_fields(appid) to rebuild the exact set that was signed.
    """

    timeStamp: str = ""
    nonceStr: str = ""
    package: str = ""
    signType: str = ""
    paySign: str = ""

    def signed_fields(self, appid: str) -> Dict[str, str]:
        return {
            "appId": appid,
            "timeStamp": self.timeStamp,
            "nonceStr": self.nonceStr,
            "package": self.package,
            "signType": self.signType,
        }
