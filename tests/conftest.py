from __future__ import annotations

import base64
from typing import List, Optional, Union

import pytest
import requests

OVPN_TEMPLATE = """dev tun
proto tcp
remote {host} {port}
cipher AES-128-CBC
"""


def make_config(host: str = "203.0.113.5", port: str = "1194") -> str:
    text = OVPN_TEMPLATE.format(host=host, port=port).replace("\n", "\r\n")
    return base64.b64encode(text.encode()).decode()


def make_line(
    host_name: str = "public-vpn-1",
    ip: str = "203.0.113.5",
    config_b64: Optional[str] = None,
    country: str = "Japan",
    operator: str = "Operator",
    message: str = "",
) -> str:
    if config_b64 is None:
        config_b64 = make_config(ip)
    fields = [
        host_name, ip, "1200345", "12", "98765432", country, "JP",
        "20", "3600000", "1000", "123456789", "2weeks", operator, message,
        config_b64,
    ]
    return ",".join(fields)


def make_response(
    status: int = 200, body: str = "", encoding: Optional[str] = "utf-8"
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8")
    resp.encoding = encoding
    resp.headers["Content-Type"] = "text/plain"
    resp.reason = "OK" if status < 400 else "Error"
    resp.url = "http://www.vpngate.net/api/iphone/"
    return resp


class FakeSession:
    """Returns queued outcomes in order; exceptions are raised instead of returned."""

    def __init__(self, outcomes: List[Union[requests.Response, Exception]]):
        self.outcomes = list(outcomes)
        self.calls: List[dict] = []
        self.closed = False

    def close(self):
        self.closed = True

    def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps() -> List[float]:
    """Collects delays instead of sleeping; pass `sleeps.append` as the sleep function."""
    return []
