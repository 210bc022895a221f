# rotation_executor.py
from __future__ import annotations

import contextlib
import gzip
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from archive_plan import plan_rotation
from archive_retention import enforce_retention
from rotator_errors import CompressionError, FilesystemError

log = logging.getLogger("rotator.rotation")

COPY_CHUNK = 1024 * 1024


@dataclass(frozen=True)
class RotationSettings:
    output_path: Path
    rotation_directory: Optional[Path]
    compress: bool
    max_history: int
    max_size: int


def _truncate_live(handle: BinaryIO, output_path: Path) -> None:
    try:
        handle.seek(0)
        handle.truncate(0)
        handle.flush()
    except OSError as e:
        raise FilesystemError("truncate live file", output_path, e) from e


def _copy_plain(handle: BinaryIO, target: Path) -> None:
    try:
        with target.open("wb") as out:
            shutil.copyfileobj(handle, out, length=COPY_CHUNK)
            out.flush()
    except OSError as e:
        raise FilesystemError("copy live file into archive", target, e) from e


def _copy_gzip(handle: BinaryIO, target: Path) -> None:
    try:
        raw = target.open("wb")
    except OSError as e:
        raise FilesystemError("create archive", target, e) from e

    gz: Optional[gzip.GzipFile] = None
    try:
        try:
            gz = gzip.GzipFile(filename="", mode="wb", fileobj=raw)
            shutil.copyfileobj(handle, gz, length=COPY_CHUNK)
        except OSError as e:
            raise CompressionError("compress live file into archive", target, e) from e
        # close() 가 gzip trailer(crc/size)를 쓴다
        try:
            gz.close()
            raw.flush()
            raw.close()
        except OSError as e:
            raise CompressionError("finalize gzip archive", target, e) from e
    except CompressionError:
        # archive 쪽이 이미 실패 중이므로 정리 중 에러는 무시, 원래 에러를 올린다
        for stream in (gz, raw):
            if stream is not None:
                with contextlib.suppress(OSError):
                    stream.close()
        raise


def maybe_rotate(handle: BinaryIO, settings: RotationSettings) -> Optional[Path]:
    """
    Rotate the live file when its post-write offset exceeds ``max_size``.

    Returns the archive path that was written, or ``None`` when no archive
    was produced (threshold not crossed, or ``max_history == 0``).
    """
    try:
        position = handle.tell()
    except OSError as e:
        raise FilesystemError("read live file position", settings.output_path, e) from e
    if position <= settings.max_size:
        return None

    log.info("live file %s reached %d bytes (max %d), rotating", settings.output_path, position, settings.max_size)
    plan = plan_rotation(settings.output_path, settings.rotation_directory, settings.compress)

    if settings.max_history == 0:
        enforce_retention(plan.existing_paths, 0)
        log.warning("max_history=0: discarding %d bytes of %s without archiving", position, settings.output_path)
        _truncate_live(handle, settings.output_path)
        return None

    # 새 archive 자리를 먼저 비운다
    enforce_retention(plan.existing_paths, settings.max_history - 1)

    try:
        handle.flush()
        handle.seek(0)
    except OSError as e:
        raise FilesystemError("rewind live file", settings.output_path, e) from e

    if settings.compress:
        _copy_gzip(handle, plan.next_path)
    else:
        _copy_plain(handle, plan.next_path)

    _truncate_live(handle, settings.output_path)
    log.info("rotated %s -> %s (%d bytes)", settings.output_path, plan.next_path, position)
    return plan.next_path


__all__ = ["RotationSettings", "maybe_rotate"]
