"""
Ошибки пайплайна.

Поштучные (DecodeError, PortNotFoundError, MalformedRecordError в строчном режиме)
гасятся внутри парсера/экстрактора — запись просто выбрасывается.
Остальные долетают до pipeline.main().
"""

from __future__ import annotations

from typing import Optional


class VPNGateError(Exception):
    """Base class for pipeline errors."""


class ConfigError(VPNGateError):
    """Bad configuration: unreadable config file, conflicting proxies, bad proxy URL."""


class FetchError(VPNGateError):
    def __init__(
        self,
        url: str,
        attempts: int,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.url = url
        self.attempts = attempts
        self.status_code = status_code
        self.cause = cause

        detail = f"HTTP {status_code}" if status_code is not None else str(cause)
        super().__init__(f"failed to fetch {url} after {attempts} attempts: {detail}")


class MalformedRecordError(VPNGateError):
    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class DecodeError(VPNGateError):
    """Config blob is not valid base64."""


class PortNotFoundError(VPNGateError):
    """No `remote <host> <port>` directive with a numeric port."""


class OutputError(OSError):
    """Output file could not be written. The target is left as it was."""

    def __init__(self, path, cause: OSError):
        self.cause = cause
        super().__init__(f"cannot write {path}: {cause}")
        self.filename = str(path)
