"""
sign.py

Signature schemes used by the WeChat mini-program and merchant APIs.

- generic sign:       MD5("k1=v1&k2=v2&...&key=<secret>"), uppercase hex
- login status sign:  HMAC_SHA256(key=session_key, message=raw POST body), hex
- midas sign:         HMAC_SHA256(key=secret,
                          message="k1=v1&...&org_loc=<path>&method=POST&secret=<secret>"), hex

Keys are always sorted before concatenation, so the result never depends on
the iteration order of the mapping passed in.
"""

from __future__ import annotations

import hashlib
import hmac
import random
import threading
import time
from typing import Any, Mapping, Optional, Union

LETTERS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _format_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, bytes):
        return v.decode("utf-8")
    return str(v)


def canonical_query(params: Mapping[str, Any]) -> str:
    """'k=v&' for every key in byte-wise ascending order (trailing '&' included)."""
    keys = sorted(params, key=lambda k: k.encode("utf-8"))
    return "".join(f"{k}={_format_value(params[k])}&" for k in keys)


def generate_sign(secret: str, params: Mapping[str, Any]) -> str:
    string_sign_temp = f"{canonical_query(params)}key={secret}"
    return hashlib.md5(string_sign_temp.encode("utf-8")).hexdigest().upper()


def verify_sign(secret: str, params: Mapping[str, Any], sign: Optional[str] = None) -> bool:
    """
    Check a generic signature. When ``sign`` is omitted it is taken from
    params["sign"]; the "sign" key itself never takes part in the digest.
    """
    p = dict(params)
    given = p.pop("sign", None)
    if sign is None:
        sign = given
    if not sign:
        return False
    expected = generate_sign(secret, p)
    return hmac.compare_digest(expected, str(sign).upper())


def generate_login_status_sign(post_data: Union[str, bytes], session_key: str) -> str:
    if isinstance(post_data, str):
        post_data = post_data.encode("utf-8")
    return hmac.new(session_key.encode("utf-8"), post_data, hashlib.sha256).hexdigest()


def generate_midas_sign(secret: str, path: str, params: Mapping[str, Any]) -> str:
    string_sign_temp = f"{canonical_query(params)}org_loc={path}&method=POST&secret={secret}"
    return hmac.new(secret.encode("utf-8"), string_sign_temp.encode("utf-8"), hashlib.sha256).hexdigest()


class NonceGenerator:
    """
    Anti-replay nonce source. Not for secrets: it is a plain PRNG seeded
    once from the clock. Safe to share between threads.
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(time.time_ns() if seed is None else seed)
        self._lock = threading.Lock()

    def random_string(self, n: int) -> str:
        if n <= 0:
            return ""
        with self._lock:
            return "".join(self._rng.choice(LETTERS) for _ in range(n))


_default_nonce = NonceGenerator()


def random_string(n: int) -> str:
    return _default_nonce.random_string(n)
