from __future__ import annotations

import pytest

from ledger_sdk.config import DEFAULT_CONFIRM_DEADLINE, DEFAULT_POLL_INTERVAL, DEFAULT_TX_TIMEOUT_ROUNDS, SDKConfig
from ledger_sdk.version import __version__


def _clear(monkeypatch) -> None:
    for name in ("RPC_URL", "NETWORK_ID", "TIMEOUT", "POLL_INTERVAL", "TX_TIMEOUT_ROUNDS", "CONFIRM_DEADLINE", "USER_AGENT"):
        monkeypatch.delenv(f"LEDGER_{name}", raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    cfg = SDKConfig.from_env()
    assert cfg.rpc_url.startswith("http://")
    assert cfg.poll_interval == DEFAULT_POLL_INTERVAL
    assert cfg.tx_timeout_rounds == DEFAULT_TX_TIMEOUT_ROUNDS
    assert cfg.confirm_deadline == DEFAULT_CONFIRM_DEADLINE
    assert cfg.user_agent.endswith(__version__)


def test_env_overrides(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("LEDGER_RPC_URL", "https://evm.example.org")
    monkeypatch.setenv("LEDGER_NETWORK_ID", "0x05")
    monkeypatch.setenv("LEDGER_TIMEOUT", "2.5")
    monkeypatch.setenv("LEDGER_POLL_INTERVAL", "0.25")
    monkeypatch.setenv("LEDGER_TX_TIMEOUT_ROUNDS", "20")
    monkeypatch.setenv("LEDGER_CONFIRM_DEADLINE", "30")
    cfg = SDKConfig.from_env()
    assert cfg.to_dict() == {
        "rpc_url": "https://evm.example.org",
        "network_id": 5,
        "request_timeout": 2.5,
        "poll_interval": 0.25,
        "tx_timeout_rounds": 20,
        "confirm_deadline": 30.0,
        "user_agent": cfg.user_agent,
    }


def test_bad_scheme(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("LEDGER_RPC_URL", "ws://node.example.org")
    with pytest.raises(ValueError):
        SDKConfig.from_env()


def test_with_overrides():
    base = SDKConfig()
    cfg = SDKConfig.with_overrides(base, network_id="7", poll_interval=1.0, unknown="ignored")
    assert cfg.network_id == 7
    assert cfg.poll_interval == 1.0
    with pytest.raises(ValueError):
        SDKConfig.with_overrides(base, tx_timeout_rounds=0)
    with pytest.raises(ValueError):
        SDKConfig.with_overrides(base, confirm_deadline=0)
    with pytest.raises(ValueError):
        SDKConfig.with_overrides(base, rpc_url="ftp://node")


def test_http_headers():
    headers = SDKConfig(user_agent="ledger-test/1").http_headers()
    assert headers["Content-Type"] == "application/cbor"
    assert headers["Accept"] == "application/cbor"
    assert headers["User-Agent"] == "ledger-test/1"
