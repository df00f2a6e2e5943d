"""
Fetcher:
- собирает requests.Session (напрямую / через HTTP-прокси / через SOCKS5)
- скачивает список серверов с фиксированным числом попыток
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from .errors import ConfigError, FetchError

log = logging.getLogger(__name__)

DEFAULT_URL = "http://www.vpngate.net/api/iphone/"

HTTP_PROXY_SCHEMES = {"http", "https"}
SOCKS_PROXY_SCHEMES = {"socks5", "socks5h"}


@dataclass
class FetcherConfig:
    url: str = DEFAULT_URL
    attempts: int = 5
    # пауза между попытками, секунды
    delay: float = 1.0
    timeout: float = 30.0
    user_agent: str = "Mozilla/5.0"


def _proxy_url(value: str, allowed: set, default_scheme: Optional[str] = None) -> str:
    value = value.strip()
    if "://" not in value and default_scheme:
        value = f"{default_scheme}://{value}"
    parsed = urlparse(value)
    if parsed.scheme not in allowed or not parsed.hostname:
        raise ConfigError(f"invalid proxy address {value!r}")
    try:
        parsed.port
    except ValueError as exc:
        raise ConfigError(f"invalid proxy port in {value!r}") from exc
    return value


def build_session(
    http_proxy: Optional[str] = None,
    socks5_proxy: Optional[str] = None,
) -> requests.Session:
    """
    Build a session routed directly, through an HTTP proxy or through SOCKS5.
    At most one proxy may be given.
    """
    if http_proxy and socks5_proxy:
        raise ConfigError("http and socks5 proxies are mutually exclusive")

    session = requests.Session()
    proxy = None
    if http_proxy:
        proxy = _proxy_url(http_proxy, HTTP_PROXY_SCHEMES)
    elif socks5_proxy:
        # SOCKS нужен requests[socks]
        proxy = _proxy_url(socks5_proxy, SOCKS_PROXY_SCHEMES, default_scheme="socks5")

    if proxy:
        session.proxies.update({"http": proxy, "https": proxy})
        log.debug("using proxy %s", proxy)
    return session


class Fetcher:
    def __init__(
        self,
        session: requests.Session,
        config: Optional[FetcherConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.config = config or FetcherConfig()
        self.sleep = sleep

    def fetch(self) -> str:
        """GET the source document; raise FetchError once every attempt has failed."""
        cfg = self.config
        last_status: Optional[int] = None
        last_exc: Optional[BaseException] = None

        for attempt in range(1, cfg.attempts + 1):
            try:
                log.info("fetching (%d/%d): %s", attempt, cfg.attempts, cfg.url)
                resp = self.session.get(
                    cfg.url,
                    timeout=cfg.timeout,
                    headers={"User-Agent": cfg.user_agent},
                )
                if 200 <= resp.status_code < 300:
                    # VPN Gate отдаёт text/plain без charset, requests угадал бы ISO-8859-1
                    return resp.content.decode("utf-8", errors="replace")
                last_status = resp.status_code
                last_exc = None
                log.warning("request failed: HTTP %d %s", resp.status_code, resp.reason)
            except requests.RequestException as exc:
                last_status = None
                last_exc = exc
                log.warning("request failed: %s", exc)

            if attempt < cfg.attempts:
                self.sleep(cfg.delay)

        raise FetchError(cfg.url, cfg.attempts, status_code=last_status, cause=last_exc)
