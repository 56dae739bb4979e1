from .client import WxAPIProxy
from .config import WxConfig
from .errors import UnifiedOrderError, UnsupportedMethodError, WxConfigError, WxDecodeError, WxError
from .sign import (
    NonceGenerator,
    generate_login_status_sign,
    generate_midas_sign,
    generate_sign,
    random_string,
    verify_sign,
)

__all__ = [
    "WxAPIProxy",
    "WxConfig",
    "WxError",
    "WxConfigError",
    "WxDecodeError",
    "UnifiedOrderError",
    "UnsupportedMethodError",
    "NonceGenerator",
    "generate_sign",
    "verify_sign",
    "generate_login_status_sign",
    "generate_midas_sign",
    "random_string",
]
