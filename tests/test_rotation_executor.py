"""Tests for threshold-driven rotation of the live file."""

from __future__ import annotations

import errno
import gzip
import io
from pathlib import Path

import pytest

from rotation_executor import RotationSettings, maybe_rotate
from rotator_errors import CompressionError, DirectoryAccessError


def _settings(tmp_path: Path, **overrides) -> RotationSettings:
    values = dict(
        output_path=tmp_path / "output.log",
        rotation_directory=None,
        compress=False,
        max_history=3,
        max_size=8,
    )
    values.update(overrides)
    return RotationSettings(**values)


def _write(handle, data: bytes) -> None:
    handle.write(data)
    handle.flush()


def test_no_rotation_at_or_below_threshold(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    with settings.output_path.open("w+b") as live:
        _write(live, b"12345678")
        assert maybe_rotate(live, settings) is None
        assert live.tell() == 8

    assert settings.output_path.read_bytes() == b"12345678"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["output.log"]


def test_plain_rotation_archives_and_truncates(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    with settings.output_path.open("w+b") as live:
        _write(live, b"123456789")
        archived = maybe_rotate(live, settings)
        assert live.tell() == 0
        _write(live, b"next")

    assert archived == tmp_path / "output.log.1"
    assert archived.read_bytes() == b"123456789"
    assert settings.output_path.read_bytes() == b"next"


def test_gzip_rotation_round_trips(tmp_path: Path) -> None:
    settings = _settings(tmp_path, compress=True)
    payload = bytes(range(256)) * 4
    with settings.output_path.open("w+b") as live:
        _write(live, payload)
        archived = maybe_rotate(live, settings)

    assert archived == tmp_path / "output.log.1.gz"
    with gzip.open(archived, "rb") as f:
        assert f.read() == payload
    assert settings.output_path.read_bytes() == b""


def test_rotation_makes_room_within_history(tmp_path: Path) -> None:
    settings = _settings(tmp_path, max_history=2)
    for n in (4, 5, 6):
        (tmp_path / f"output.log.{n}").write_bytes(b"old")

    with settings.output_path.open("w+b") as live:
        _write(live, b"0123456789")
        archived = maybe_rotate(live, settings)

    assert archived == tmp_path / "output.log.7"
    remaining = sorted(p.name for p in tmp_path.iterdir() if p.name != "output.log")
    assert remaining == ["output.log.6", "output.log.7"]


def test_zero_history_discards_contents(tmp_path: Path) -> None:
    settings = _settings(tmp_path, max_history=0)
    (tmp_path / "output.log.1").write_bytes(b"old")
    (tmp_path / "output.log.2").write_bytes(b"old")

    with settings.output_path.open("w+b") as live:
        _write(live, b"0123456789")
        assert maybe_rotate(live, settings) is None
        assert live.tell() == 0

    assert sorted(p.name for p in tmp_path.iterdir()) == ["output.log"]
    assert settings.output_path.read_bytes() == b""


def test_rotation_into_separate_directory(tmp_path: Path) -> None:
    archive_dir = tmp_path / "rotated"
    archive_dir.mkdir()
    settings = _settings(tmp_path, rotation_directory=archive_dir)

    with settings.output_path.open("w+b") as live:
        _write(live, b"0123456789")
        archived = maybe_rotate(live, settings)

    assert archived == archive_dir / "output.log.1"
    assert archived.read_bytes() == b"0123456789"


def test_rotation_fails_when_directory_disappears(tmp_path: Path) -> None:
    settings = _settings(tmp_path, rotation_directory=tmp_path / "gone")

    with settings.output_path.open("w+b") as live:
        _write(live, b"0123456789")
        with pytest.raises(DirectoryAccessError):
            maybe_rotate(live, settings)
        # live file untouched when planning fails
        assert live.tell() == 10


class FullDiskWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise OSError(errno.ENOSPC, "No space left on device")


def test_gzip_write_failure_raises_compression_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(tmp_path, compress=True)
    payload = b"0123456789" * 100
    live = settings.output_path.open("w+b")
    _write(live, payload)

    real_open = Path.open

    def open_with_full_disk(self, mode="r", *args, **kwargs):
        if self.name.endswith(".gz"):
            return FullDiskWriter()
        return real_open(self, mode, *args, **kwargs)

    monkeypatch.setattr(Path, "open", open_with_full_disk)

    with pytest.raises(CompressionError) as info:
        maybe_rotate(live, settings)

    assert info.value.path == tmp_path / "output.log.1.gz"
    assert isinstance(info.value.cause, OSError)
    assert info.value.cause.errno == errno.ENOSPC

    monkeypatch.undo()
    live.close()
    # no rollback, but the live file is not truncated when archiving fails
    assert settings.output_path.read_bytes() == payload
