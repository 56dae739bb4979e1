"""
Exception hierarchy for the WeChat connector.

Transport failures are not wrapped: ``requests.RequestException`` reaches the
caller unchanged.
"""
from typing import Any, Dict, Optional


class WxError(Exception):
    pass


class WxConfigError(WxError):
    pass


class UnsupportedMethodError(WxError):
    """Raised when the proxy is asked for an HTTP method other than GET/POST."""


class WxDecodeError(WxError):
    """The remote body was not valid JSON (only raised with ``strict_json``)."""

    def __init__(self, message: str, body: bytes = b""):
        self.body = body
        super().__init__(message)


class UnifiedOrderError(WxError):
    """
    The payment backend answered, but did not accept the order.

    Raised when return_code or result_code is not SUCCESS, or when no
    prepay_id was issued. The decoded response is kept for inspection.
    """

    def __init__(self, message: str = "unified order error", response: Optional[Any] = None):
        self.response = response
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        r = self.response
        return {
            "message": str(self),
            "return_code": getattr(r, "return_code", ""),
            "return_msg": getattr(r, "return_msg", ""),
            "result_code": getattr(r, "result_code", ""),
            "err_code": getattr(r, "err_code", ""),
            "err_code_des": getattr(r, "err_code_des", ""),
        }
