import pytest
from starlette.requests import Request

import config
from core.rate_limit import get_client_ip, limiter


def _request(peer: str, forwarded: str = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "headers": headers, "client": (peer, 50000)})


@pytest.fixture
def rate_limited(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


def test_forwarded_header_ignored_from_untrusted_peer(monkeypatch):
    monkeypatch.setattr(config, "TRUSTED_PROXIES", [])
    assert get_client_ip(_request("10.0.0.1", "1.2.3.4")) == "10.0.0.1"


def test_forwarded_header_honoured_from_trusted_proxy(monkeypatch):
    monkeypatch.setattr(config, "TRUSTED_PROXIES", ["10.0.0.1"])
    assert get_client_ip(_request("10.0.0.1", "1.2.3.4, 10.0.0.1")) == "1.2.3.4"
    assert get_client_ip(_request("10.0.0.2", "1.2.3.4")) == "10.0.0.2"


def test_rotating_forwarded_header_does_not_reset_login_limit(client, rate_limited, monkeypatch):
    monkeypatch.setattr(config, "TRUSTED_PROXIES", [])
    statuses = [
        client.post(
            "/api/auth/login",
            json={"username": "nobody", "password": "wrong"},
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        ).status_code
        for i in range(7)
    ]
    assert statuses[:5] == [401] * 5
    assert statuses[5:] == [429, 429]


def test_trusted_proxy_limits_each_forwarded_client(client, rate_limited, monkeypatch):
    monkeypatch.setattr(config, "TRUSTED_PROXIES", ["testclient"])
    statuses = [
        client.post(
            "/api/auth/login",
            json={"username": "nobody", "password": "wrong"},
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        ).status_code
        for i in range(7)
    ]
    assert 429 not in statuses
