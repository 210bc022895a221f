# tee_rotate.py
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from relays import AckChannel, ChunkChannel, FileRelay, StdoutRelay, open_live_file
from rotation_executor import RotationSettings
from rotator_errors import ConfigError, FilesystemError, IoError, RotatorError

log = logging.getLogger("rotator.ingest")

DEFAULT_BUFFER_SIZE = 4096
DEFAULT_MAX_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_HISTORY = 5


# -------------------------
# config
# -------------------------
class RotatorConfig(BaseModel):
    output_file: str = Field(default="output.log")
    # "" == output 파일의 부모 디렉터리
    rotation_directory: str = Field(default="")
    gunzip: bool = Field(default=False)
    max_history: int = Field(default=DEFAULT_MAX_HISTORY, ge=0)
    max_size: int = Field(default=DEFAULT_MAX_SIZE, ge=1)
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=1)

    @field_validator("output_file")
    @classmethod
    def _output_file_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("output_file must not be empty")
        return v

    @field_validator("rotation_directory")
    @classmethod
    def _strip_rotation_directory(cls, v: str) -> str:
        return (v or "").strip()

    @property
    def output_path(self) -> Path:
        return Path(self.output_file)

    @property
    def rotation_path(self) -> Optional[Path]:
        return Path(self.rotation_directory) if self.rotation_directory else None

    def rotation_settings(self) -> RotationSettings:
        return RotationSettings(
            output_path=self.output_path,
            rotation_directory=self.rotation_path,
            compress=self.gunzip,
            max_history=self.max_history,
            max_size=self.max_size,
        )


def build_config(**values) -> RotatorConfig:
    """pydantic 검증 실패 -> ConfigError"""
    try:
        return RotatorConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError("validate configuration", None, ValueError(problems)) from e


@dataclass
class RunStats:
    chunks: int = 0
    bytes: int = 0
    rotations: int = 0


# -------------------------
# ingest loop
# -------------------------
def ingest_loop(
    source: BinaryIO,
    to_stdout: ChunkChannel,
    to_file: ChunkChannel,
    acks: AckChannel,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> RunStats:
    """
    source 에서 읽어서 stdout/file 두 relay 로 fan-out,
    두 relay 의 ack 를 모두 받은 뒤에만 다음 read.
    """
    # read1: pipe 에 들어온 만큼만 바로 돌려준다 (buffer_size 를 다 채울 때까지 막히지 않음)
    read = getattr(source, "read1", None) or source.read
    stats = RunStats()

    while True:
        try:
            chunk = read(buffer_size)
        except (OSError, ValueError) as e:
            raise IoError("read from stdin", None, e) from e
        if not chunk:
            log.debug("end of input after %d chunks", stats.chunks)
            break

        to_stdout.send(chunk)
        to_file.send(chunk)
        acks.recv("first")
        acks.recv("second")

        stats.chunks += 1
        stats.bytes += len(chunk)

    return stats


# -------------------------
# engine wiring
# -------------------------
def _prepare_rotation_dir(config: RotatorConfig) -> None:
    rotation_path = config.rotation_path
    if rotation_path is None:
        return
    try:
        rotation_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError("create rotation directory", rotation_path, e) from e


def run(
    config: RotatorConfig,
    source: Optional[BinaryIO] = None,
    sink: Optional[BinaryIO] = None,
) -> RunStats:
    """
    stdin -> (stdout, rotating file).
    에러가 나도 두 relay 는 항상 close + join 한 다음 첫 에러를 올린다.
    """
    source = source if source is not None else sys.stdin.buffer
    sink = sink if sink is not None else sys.stdout.buffer

    _prepare_rotation_dir(config)
    live = open_live_file(config.output_path)

    to_stdout = ChunkChannel("stdout")
    to_file = ChunkChannel("file")
    acks = AckChannel()

    stdout_relay = StdoutRelay(to_stdout, acks, sink)
    file_relay = FileRelay(to_file, acks, live, config.rotation_settings())

    log.info("starting stdout relay")
    stdout_relay.start()
    log.info("starting file relay (output=%s)", config.output_path)
    file_relay.start()

    ingest_error: Optional[RotatorError] = None
    stats = RunStats()
    log.info("starting stdin reading (buffer_size=%d)", config.buffer_size)
    try:
        stats = ingest_loop(source, to_stdout, to_file, acks, config.buffer_size)
    except RotatorError as e:
        ingest_error = e
    finally:
        to_stdout.close()
        to_file.close()
        stdout_relay.join()
        file_relay.join()

    # relay 자체 에러가 ingest 쪽 ChannelError 의 원인이므로 우선
    for relay in (stdout_relay, file_relay):
        if relay.error is not None:
            raise relay.error
    if ingest_error is not None:
        raise ingest_error

    stats.rotations = file_relay.rotations
    log.info("done: %d chunks, %d bytes, %d rotations", stats.chunks, stats.bytes, stats.rotations)
    return stats


__all__ = [
    "RotatorConfig",
    "RunStats",
    "build_config",
    "ingest_loop",
    "run",
    "DEFAULT_BUFFER_SIZE",
    "DEFAULT_MAX_SIZE",
    "DEFAULT_MAX_HISTORY",
]
