import dataclasses

import pytest

from wxconnector.config import WxConfig, env_bool, env_int
from wxconnector.errors import WxConfigError, WxError

WX_VARS = (
    "WX_APPID", "WX_SECRET", "WX_MCH_ID", "WX_NOTIFY_URL", "WX_TRADE_TYPE",
    "WX_MIDAS_OFFER_ID", "WX_MIDAS_SECRET", "WX_TIMEOUT", "WX_STRICT_JSON",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in WX_VARS:
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_and_strips(monkeypatch):
    monkeypatch.setenv("WX_APPID", " wx1 ")
    monkeypatch.setenv("WX_SECRET", "s")
    monkeypatch.setenv("WX_MCH_ID", "m1")
    monkeypatch.setenv("WX_TIMEOUT", "5")
    monkeypatch.setenv("WX_STRICT_JSON", "false")

    cfg = WxConfig.from_env()

    assert cfg.appid == "wx1"
    assert cfg.mch_id == "m1"
    assert cfg.trade_type == "JSAPI"
    assert cfg.timeout_seconds == 5
    assert cfg.strict_json is False


def test_from_env_requires_credentials(monkeypatch):
    with pytest.raises(WxConfigError):
        WxConfig.from_env()
    monkeypatch.setenv("WX_APPID", "wx1")
    with pytest.raises(WxError):
        WxConfig.from_env()


def test_from_values_prefers_explicit_values(monkeypatch):
    monkeypatch.setenv("WX_APPID", "from-env")
    monkeypatch.setenv("WX_SECRET", "env-secret")

    cfg = WxConfig.from_values(appid="explicit", trade_type="NATIVE", strict_json=False)

    assert cfg.appid == "explicit"
    assert cfg.secret == "env-secret"
    assert cfg.trade_type == "NATIVE"
    assert cfg.strict_json is False


def test_config_is_immutable():
    cfg = WxConfig(appid="wx1", secret="s")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.secret = "other"


def test_env_helpers_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("WX_TIMEOUT", "soon")
    assert env_int("WX_TIMEOUT", 30) == 30
    assert env_bool("WX_STRICT_JSON", True) is True
    monkeypatch.setenv("WX_STRICT_JSON", "0")
    assert env_bool("WX_STRICT_JSON", True) is False
