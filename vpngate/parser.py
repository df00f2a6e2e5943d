"""
VPN Gate relay list parser (line-delimited and CSV documents)
"""
import csv
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import MalformedRecordError

log = logging.getLogger(__name__)

MIN_FIELDS = 15

# позиции полей в строчном формате
HOST_NAME, IP, SCORE, PING, SPEED, COUNTRY_LONG, COUNTRY_SHORT = range(7)
CONFIG_DATA = 14

# колонки CSV-формата
CSV_COLUMNS = {
    "host_name": "#HostName",
    "ip": "IP",
    "score": "Score",
    "ping": "Ping",
    "speed": "Speed",
    "country_long": "CountryLong",
    "country_short": "CountryShort",
    "config_base64": "OpenVPN_ConfigData_Base64",
}

LEADING_SENTINEL = "*vpn_servers"
TRAILING_SENTINEL = "*"

MODES = ("lines", "csv")


@dataclass
class ServerEntry:
    """One relay from the list"""
    host_name: str
    ip: str
    score: str
    ping: str
    speed: str
    country_long: str
    country_short: str
    config_base64: str


def split_lines(text: str) -> List[str]:
    """Split on LF only, dropping a trailing CR. NEL, U+2028 and the like stay inside their field."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def _is_skipped(line: str) -> bool:
    return not line.strip() or line.startswith(("*", "#")) or "HostName" in line


class RecordParser:
    """Parser for VPN Gate documents"""

    def __init__(self, mode: str = "lines"):
        if mode not in MODES:
            raise ValueError(f"unknown parse mode {mode!r}, expected one of {MODES}")
        self.mode = mode

    @staticmethod
    def parse_line(line: str, line_no: Optional[int] = None) -> ServerEntry:
        """
        Parse one comma-separated record.
        Format: HostName,IP,Score,Ping,Speed,CountryLong,CountryShort,...,OpenVPN_ConfigData_Base64
        """
        fields = line.rstrip("\r\n").split(",")
        if len(fields) < MIN_FIELDS:
            raise MalformedRecordError(
                f"expected at least {MIN_FIELDS} fields, got {len(fields)}", line_no
            )
        return ServerEntry(
            host_name=fields[HOST_NAME],
            ip=fields[IP],
            score=fields[SCORE],
            ping=fields[PING],
            speed=fields[SPEED],
            country_long=fields[COUNTRY_LONG],
            country_short=fields[COUNTRY_SHORT],
            config_base64=fields[CONFIG_DATA],
        )

    def parse_lines(self, text: str) -> List[ServerEntry]:
        """
        Parse a line-delimited document.
        Битые строки пропускаются, остальные разбираются дальше.
        """
        entries: List[ServerEntry] = []
        for line_no, line in enumerate(split_lines(text), start=1):
            if _is_skipped(line):
                continue
            try:
                entries.append(self.parse_line(line, line_no))
            except MalformedRecordError as exc:
                log.debug("skipping record: %s", exc)
        return entries

    @staticmethod
    def _strip_sentinels(text: str) -> List[str]:
        lines = split_lines(text)
        while lines and not lines[-1].strip():
            lines.pop()
        if lines and lines[0].startswith(LEADING_SENTINEL):
            lines = lines[1:]
        if lines and lines[-1].strip() == TRAILING_SENTINEL:
            lines = lines[:-1]
        return lines

    def parse_csv(self, text: str) -> List[ServerEntry]:
        """
        Parse a CSV document with a header row.
        Any structural problem fails the whole document.
        """
        # кавычки внутри ячеек ломают выравнивание колонок
        lines = self._strip_sentinels(text.replace('"', ""))
        if not lines:
            raise MalformedRecordError("empty document")

        reader = csv.DictReader(lines)
        header = reader.fieldnames or []
        missing = [col for col in CSV_COLUMNS.values() if col not in header]
        if missing:
            raise MalformedRecordError(f"missing columns: {', '.join(missing)}", 1)

        entries: List[ServerEntry] = []
        try:
            for row in reader:
                if None in row or None in row.values():
                    raise MalformedRecordError(
                        f"expected {len(header)} fields", reader.line_num
                    )
                values: Dict[str, str] = {
                    attr: row[col] for attr, col in CSV_COLUMNS.items()
                }
                entries.append(ServerEntry(**values))
        except csv.Error as exc:
            raise MalformedRecordError(str(exc), reader.line_num) from exc
        return entries

    def parse(self, text: str) -> List[ServerEntry]:
        if self.mode == "csv":
            return self.parse_csv(text)
        return self.parse_lines(text)
