#!/usr/bin/env python3
"""
pipeline.py
Скачивает список VPN Gate и сохраняет серверы с портами в JSON.

Шаги:
  1. Fetch    — скачать список (до N попыток, пауза между ними)
  2. Parse    — разобрать строки / CSV в ServerEntry[]
  3. Extract  — base64-конфиг → порт из `remote <host> <port>`, без порта — в мусор
  4. Write    — JSON-массив (отступ 2 пробела) → output.path
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

import requests
import yaml

from vpngate.errors import ConfigError, VPNGateError
from vpngate.extractor import PortedEntry, PortExtractor
from vpngate.fetcher import DEFAULT_URL, Fetcher, FetcherConfig, build_session
from vpngate.parser import MODES, RecordParser, split_lines
from vpngate.writer import JsonWriter

log = logging.getLogger(__name__)


class VPNGatePipeline:

    def __init__(
        self,
        config_path: str = "config.yaml",
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        overrides: Optional[dict] = None,
    ):
        self.config_path = config_path
        self.config = self._load_config()
        self._apply_overrides(overrides or {})

        app = self._section("app")
        self.debug = app.get("debug", False)

        src = self._section("source")
        self.fetcher_config = FetcherConfig(
            url=src.get("url") or DEFAULT_URL,
            attempts=self._number("source", "attempts", 5, int),
            delay=self._number("source", "delay", 1.0, float),
            timeout=self._number("source", "timeout", 30.0, float),
        )
        if self.fetcher_config.attempts < 1:
            raise ConfigError("source.attempts must be at least 1")

        try:
            self.parser = RecordParser(src.get("mode", "lines"))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        out_cfg = self._section("output")
        self.out_path = Path(out_cfg.get("path") or "list.json")

        self.extractor = PortExtractor(
            max_workers=self._number("extract", "max_workers", 32, int)
        )
        self.writer = JsonWriter(self.out_path)

        # сессию создаём последней: закрывает её только тот, кто создал
        self._owns_session = session is None
        if session is None:
            proxy = self._section("proxy")
            session = build_session(
                http_proxy=proxy.get("http"),
                socks5_proxy=proxy.get("socks5"),
            )
        self.session = session
        self.fetcher = Fetcher(session, self.fetcher_config, sleep=sleep)

        self.entries: List[PortedEntry] = []

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "VPNGatePipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def run(self) -> int:
        t_start = time.monotonic()
        self._banner("VPN Gate port list")

        text = self._step1_fetch()
        servers = self._step2_parse(text)
        self._step3_extract(servers)
        written = self._step4_write()

        elapsed = time.monotonic() - t_start
        self._banner(f"Done in {elapsed:.1f}s  |  {written} entries in {self.out_path}")
        return written

    # ── шаг 1: Fetch ─────────────────────────────────────────

    def _step1_fetch(self) -> str:
        print(f"\n[1/4] Fetching {self.fetcher_config.url} ...")
        text = self.fetcher.fetch()
        n_lines = len(split_lines(text))
        print(f"    → {len(text)} chars, {n_lines} lines")
        return text

    # ── шаг 2: Parse ─────────────────────────────────────────

    def _step2_parse(self, text: str) -> list:
        print(f"\n[2/4] Parsing ({self.parser.mode} mode)...")
        servers = self.parser.parse(text)
        print(f"    → servers parsed: {len(servers)}")
        return servers

    # ── шаг 3: Extract ───────────────────────────────────────

    def _step3_extract(self, servers: list) -> dict:
        print("\n[3/4] Extracting ports...")
        self.entries, stats = self.extractor.extract(servers)
        print(
            f"    → before: {stats['before']}  "
            f"bad base64: {stats['dropped_decode']}  "
            f"no port: {stats['dropped_no_port']}  "
            f"after: {stats['after']}"
        )
        return stats

    # ── шаг 4: Write ─────────────────────────────────────────

    def _step4_write(self) -> int:
        print("\n[4/4] Writing JSON...")
        written = self.writer.write(self.entries)
        print(f"    → {self.out_path}")
        return written

    # ── утилиты ──────────────────────────────────────────────

    def _apply_overrides(self, overrides: dict) -> None:
        """None values leave the file setting alone; a `proxy` override replaces the whole section."""
        for section, values in overrides.items():
            if section == "proxy":
                self.config["proxy"] = dict(values)
                continue
            current = self._section(section)
            current.update({k: v for k, v in values.items() if v is not None})
            self.config[section] = current

    def _load_config(self) -> dict:
        try:
            with open(self.config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError as exc:
            raise ConfigError(f"config file '{self.config_path}' not found") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"cannot parse config: {exc}") from exc
        if not isinstance(config, dict):
            raise ConfigError(f"config file '{self.config_path}' must be a mapping of sections")
        return config

    def _section(self, name: str) -> dict:
        section = self.config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"config section '{name}' must be a mapping")
        return section

    def _number(self, section: str, key: str, default, cast):
        value = self._section(section).get(key, default)
        if isinstance(value, bool):
            raise ConfigError(f"{section}.{key} must be a number, got {value!r}")
        try:
            return cast(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{section}.{key} must be a number, got {value!r}") from exc

    @staticmethod
    def _banner(text: str) -> None:
        print("\n" + "=" * 60)
        print(f"  {text}")
        print("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="VPN Gate port list")
    ap.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    ap.add_argument("--output", help="Output JSON path (overrides output.path)")
    ap.add_argument("--mode", choices=MODES, help="Source document format")
    proxy = ap.add_mutually_exclusive_group()
    proxy.add_argument("--http-proxy", help="HTTP proxy URL, e.g. http://127.0.0.1:8080")
    proxy.add_argument("--socks5", help="SOCKS5 proxy address, e.g. 127.0.0.1:1080")
    ap.add_argument("--workers", type=int, help="Parallel port extraction workers")
    ap.add_argument("--debug", action="store_true", help="Verbose logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[%(asctime)s] %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    overrides = {
        "source": {"mode": args.mode},
        "extract": {"max_workers": args.workers},
        "output": {"path": args.output},
    }
    # прокси из командной строки полностью заменяет прокси из файла
    if args.http_proxy or args.socks5:
        overrides["proxy"] = {"http": args.http_proxy, "socks5": args.socks5}

    try:
        with VPNGatePipeline(config_path=args.config, overrides=overrides) as pipeline:
            if pipeline.debug and not args.debug:
                logging.getLogger().setLevel(logging.DEBUG)
            written = pipeline.run()
    except (VPNGateError, OSError) as exc:
        log.error("%s", exc)
        return 1

    print(f"Saved {written} VPN entries (with ports) to {pipeline.out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
