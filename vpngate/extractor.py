"""
PortExtractor:
- декодирует base64-конфиг каждой записи и достаёт порт из `remote <host> <port>`
- записи без порта выбрасываются (в JSON никогда не попадает пустой порт)
- параллельно: одна задача на запись, результаты собираются в вызывающем потоке
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .decoder import port_from_config
from .errors import DecodeError, PortNotFoundError
from .parser import ServerEntry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortedEntry:
    host_name: str
    ip: str
    country: str
    score: str
    ping: str
    speed: str
    port: str


@dataclass
class ExtractStats:
    before: int = 0
    dropped_decode: int = 0
    dropped_no_port: int = 0
    after: int = 0

    def to_dict(self) -> Dict:
        return {
            "before": self.before,
            "dropped_decode": self.dropped_decode,
            "dropped_no_port": self.dropped_no_port,
            "after": self.after,
        }


def to_ported_entry(entry: ServerEntry) -> PortedEntry:
    """Raises DecodeError / PortNotFoundError when the entry has no usable port."""
    return PortedEntry(
        host_name=entry.host_name,
        ip=entry.ip,
        country=entry.country_long,
        score=entry.score,
        ping=entry.ping,
        speed=entry.speed,
        port=port_from_config(entry.config_base64),
    )


class PortExtractor:
    def __init__(self, max_workers: int = 32):
        self.max_workers = max_workers

    def extract(self, entries: Iterable[ServerEntry]) -> Tuple[List[PortedEntry], Dict]:
        """Порядок результата = порядок завершения задач (или исходный при max_workers <= 1)."""
        entries = list(entries)
        stats = ExtractStats(before=len(entries))
        result: List[PortedEntry] = []

        for entry, outcome in self._run(entries):
            if isinstance(outcome, DecodeError):
                stats.dropped_decode += 1
                log.debug("dropping %s (%s): %s", entry.host_name, entry.ip, outcome)
            elif isinstance(outcome, PortNotFoundError):
                stats.dropped_no_port += 1
                log.debug("dropping %s (%s): %s", entry.host_name, entry.ip, outcome)
            else:
                result.append(outcome)

        stats.after = len(result)
        return result, stats.to_dict()

    def _run(self, entries: List[ServerEntry]):
        if self.max_workers <= 1 or len(entries) <= 1:
            for entry in entries:
                yield entry, self._extract_one(entry)
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {pool.submit(self._extract_one, entry): entry for entry in entries}
            for future in as_completed(futures):
                yield futures[future], future.result()

    @staticmethod
    def _extract_one(entry: ServerEntry):
        try:
            return to_ported_entry(entry)
        except (DecodeError, PortNotFoundError) as exc:
            return exc
