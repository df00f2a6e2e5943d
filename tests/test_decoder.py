import base64

import pytest
from conftest import make_config
from vpngate.decoder import decode_config, extract_port, port_from_config
from vpngate.errors import DecodeError, PortNotFoundError


def _b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def test_round_trip_openvpn_config():
    assert port_from_config(make_config("203.0.113.5", "1194")) == "1194"


@pytest.mark.parametrize("port", ["1", "443", "995", "1194", "65535"])
def test_numeric_port_returned_verbatim(port):
    assert extract_port(f"client\nremote vpn.example.net {port}\n") == port


def test_first_directive_wins():
    text = "remote a.example.net 443\nremote b.example.net 1194\n"
    assert extract_port(text) == "443"


def test_non_numeric_port_is_skipped():
    text = "remote a.example.net https\nremote b.example.net 1194\n"
    assert extract_port(text) == "1194"


@pytest.mark.parametrize(
    "text",
    [
        "remote a.example.net https\n",
        "remote a.example.net 44x3\n",
        "remote a.example.net\n",
        "remote-random\nremotex host 443\n",
        "# remote a.example.net 443\n",
        "dev tun\nproto udp\n",
        "",
    ],
)
def test_no_usable_directive(text):
    with pytest.raises(PortNotFoundError):
        extract_port(text)


def test_crlf_and_trailing_tokens():
    text = "dev tun\r\nremote 198.51.100.7 1443 udp\r\n"
    assert extract_port(text) == "1443"


@pytest.mark.parametrize("blob", ["not base64!!", "abc", "====", "YWJj$ZGVm"])
def test_invalid_base64_raises(blob):
    with pytest.raises(DecodeError):
        decode_config(blob)


def test_invalid_base64_never_yields_port():
    good = make_config()
    with pytest.raises(DecodeError):
        port_from_config(good[:-3] + "*" + good[-2:])


def test_decode_ignores_surrounding_whitespace():
    assert decode_config("  " + _b64("remote h 1\n") + "\n") == "remote h 1\n"


def test_empty_blob_has_no_port():
    with pytest.raises(PortNotFoundError):
        port_from_config("")
