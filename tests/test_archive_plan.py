"""Tests for archive planning over a rotation directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from archive_plan import archive_name, plan_rotation, resolve_rotation_dir
from rotator_errors import DirectoryAccessError, FilesystemError, PathError


def _touch(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).write_bytes(b"x")


def test_plan_empty_directory_starts_at_one(tmp_path: Path) -> None:
    plan = plan_rotation(tmp_path / "output.log", None, compress=False)

    assert plan.existing == []
    assert plan.next_number == 1
    assert plan.next_path == tmp_path / "output.log.1"


def test_plan_orders_numerically_and_ignores_other_files(tmp_path: Path) -> None:
    _touch(
        tmp_path,
        "output.log",
        "output.log.10",
        "output.log.2",
        "output.log.9",
        "output.log.3.gz",
        "output.log.bak",
        "other.log.40",
        "xoutput.log.50",
    )

    plan = plan_rotation(tmp_path / "output.log", None, compress=False)

    assert [n for n, _ in plan.existing] == [2, 9, 10]
    assert plan.existing_paths == [tmp_path / "output.log.2", tmp_path / "output.log.9", tmp_path / "output.log.10"]
    assert plan.next_path == tmp_path / "output.log.11"


def test_plan_compressed_mode_only_matches_gz(tmp_path: Path) -> None:
    _touch(tmp_path, "output.log.1", "output.log.4.gz", "output.log.2.gz", "output.log.7.gz.tmp")

    plan = plan_rotation(tmp_path / "output.log", None, compress=True)

    assert [n for n, _ in plan.existing] == [2, 4]
    assert plan.next_path == tmp_path / "output.log.5.gz"


def test_plan_escapes_base_name(tmp_path: Path) -> None:
    _touch(tmp_path, "app+1.log.3", "appp1.log.8", "app+1xlog.9")

    plan = plan_rotation(tmp_path / "app+1.log", None, compress=False)

    assert [n for n, _ in plan.existing] == [3]
    assert plan.next_path == tmp_path / "app+1.log.4"


def test_plan_ignores_non_ascii_digits(tmp_path: Path) -> None:
    # "output.log.٩" (Arabic-Indic nine) is not an archive
    _touch(tmp_path, "output.log.٩", "output.log.2")

    plan = plan_rotation(tmp_path / "output.log", None, compress=False)

    assert [n for n, _ in plan.existing] == [2]
    assert plan.next_path == tmp_path / "output.log.3"


def test_plan_uses_explicit_rotation_directory(tmp_path: Path) -> None:
    archive_dir = tmp_path / "archives"
    archive_dir.mkdir()
    _touch(archive_dir, "output.log.1")
    _touch(tmp_path, "output.log.5")

    plan = plan_rotation(tmp_path / "output.log", archive_dir, compress=False)

    assert plan.existing_paths == [archive_dir / "output.log.1"]
    assert plan.next_path == archive_dir / "output.log.2"


def test_plan_missing_directory_raises_directory_access_error(tmp_path: Path) -> None:
    with pytest.raises(DirectoryAccessError) as info:
        plan_rotation(tmp_path / "output.log", tmp_path / "missing", compress=False)

    assert isinstance(info.value, FilesystemError)
    assert info.value.path == tmp_path / "missing"


def test_plan_rejects_output_path_without_file_name(tmp_path: Path) -> None:
    with pytest.raises(PathError):
        plan_rotation(Path(".."), tmp_path, compress=False)


def test_resolve_rotation_dir_fallbacks(tmp_path: Path) -> None:
    assert resolve_rotation_dir(tmp_path / "a.log", "") == tmp_path
    assert resolve_rotation_dir(tmp_path / "a.log", "  ") == tmp_path
    assert resolve_rotation_dir("a.log", None) == Path(".")
    assert resolve_rotation_dir(tmp_path / "a.log", tmp_path / "r") == tmp_path / "r"


def test_archive_name() -> None:
    assert archive_name("output.log", 3, compress=False) == "output.log.3"
    assert archive_name("output.log", 3, compress=True) == "output.log.3.gz"
