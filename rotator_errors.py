# rotator_errors.py
from __future__ import annotations

from pathlib import Path
from typing import Optional


class RotatorError(Exception):
    """
    공통 베이스.
    - operation: 실패한 작업 ("open live file", "list rotation directory" ...)
    - path: 관련 경로 (없으면 None)
    - cause: 원인 예외 (raise ... from 으로도 연결됨)
    """

    def __init__(
        self,
        operation: str,
        path: Optional[Path | str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.path = Path(path) if path is not None else None
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        msg = self.operation
        if self.path is not None:
            msg += f" '{self.path}'"
        if self.cause is not None:
            msg += f": {self.cause}"
        return msg


class IoError(RotatorError):
    """read/write/flush failures on stdin, stdout or the live file."""


class FilesystemError(RotatorError):
    """create/open/truncate/delete/list failures."""


class DirectoryAccessError(FilesystemError):
    """rotation directory missing or not listable."""


class CompressionError(RotatorError):
    """gzip stream write/finalize failures."""


class ChannelError(RotatorError):
    """a peer relay has already terminated."""

    def __init__(self, operation: str, peer: str, cause: Optional[BaseException] = None):
        self.peer = peer
        super().__init__(operation, None, cause)

    def _render(self) -> str:
        msg = f"{self.operation} ({self.peer})"
        if self.cause is not None:
            msg += f": {self.cause}"
        return msg


class PathError(RotatorError):
    """malformed or unresolvable path."""


class ConfigError(RotatorError):
    """invalid configuration values."""


__all__ = [
    "RotatorError",
    "IoError",
    "FilesystemError",
    "DirectoryAccessError",
    "CompressionError",
    "ChannelError",
    "PathError",
    "ConfigError",
]
