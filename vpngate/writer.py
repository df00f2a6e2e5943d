"""
JsonWriter:
- сериализует только поля из OUTPUT_FIELDS (base64-конфиг в файл не попадает)
- пишет во временный файл рядом и атомарно подменяет цель
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import OutputError
from .extractor import PortedEntry

OUTPUT_FIELDS = ("host_name", "ip", "country", "score", "ping", "speed", "port")
FILE_MODE = 0o644


def entry_to_dict(entry: PortedEntry) -> Dict[str, str]:
    return {name: getattr(entry, name) for name in OUTPUT_FIELDS}


def render(entries: Iterable[PortedEntry]) -> str:
    payload = [entry_to_dict(e) for e in entries]
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


class JsonWriter:
    def __init__(self, out_path: str = "list.json"):
        self.out_path = Path(out_path)

    def write(self, entries: List[PortedEntry]) -> int:
        text = render(entries)
        tmp_path: Optional[Path] = None
        try:
            self.out_path.parent.mkdir(parents=True, exist_ok=True)
            # у каждого запуска свой временный файл
            fd, name = tempfile.mkstemp(
                dir=self.out_path.parent, prefix=self.out_path.name + ".", suffix=".tmp"
            )
            tmp_path = Path(name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.chmod(tmp_path, FILE_MODE)
            tmp_path.replace(self.out_path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
            raise OutputError(self.out_path, exc) from exc
        return len(entries)
