"""
Config decoder: base64 OpenVPN config -> port.

VPN Gate кладёт в каждую запись целый .ovpn в base64; порт берём
из первой директивы `remote <host> <port>` с числовым портом.
"""

from __future__ import annotations

import base64
import binascii
import re

from .errors import DecodeError, PortNotFoundError

_REMOTE_RE = re.compile(r"^remote\s+[\w.:-]+\s+(\d+)(?:\s|$)")


def decode_config(config_b64: str) -> str:
    try:
        raw = base64.b64decode(config_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 config: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def extract_port(config_text: str) -> str:
    """
    Return the port of the first `remote` directive.

    A directive is a line of at least three whitespace-separated tokens whose
    first token is `remote`; directives with a non-numeric port are skipped.
    """
    for line in config_text.splitlines():
        line = line.strip()
        if not line.startswith("remote"):
            continue
        if len(line.split()) < 3:
            continue
        match = _REMOTE_RE.match(line)
        if match:
            return match.group(1)
    raise PortNotFoundError("no 'remote <host> <port>' directive in config")


def port_from_config(config_b64: str) -> str:
    return extract_port(decode_config(config_b64))
