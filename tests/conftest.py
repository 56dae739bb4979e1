"""Shared fixtures: a config and a fake requests session that never hits the network."""

import json

import pytest

from wxconnector.client import WxAPIProxy
from wxconnector.config import WxConfig
from wxconnector.sign import NonceGenerator


class FakeResponse:
    def __init__(self, payload=None, status_code=200, raw=None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        elif payload is None:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode("utf-8")


class FakeSession:
    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, payload=None, status_code=200, raw=None):
        self.responses.append(FakeResponse(payload, status_code=status_code, raw=raw))

    def request(self, method, url, params=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "data": data, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        return self.responses.pop(0)


@pytest.fixture
def config():
    return WxConfig(
        appid="wx1",
        secret="sekrit",
        mch_id="m1",
        notify_url="https://example.com/notify",
        trade_type="JSAPI",
        midas_offer_id="o1",
        midas_secret="ms",
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def proxy(config, session):
    return WxAPIProxy(config, session=session, nonce=NonceGenerator(seed=7), clock=lambda: 1700000000.5)
