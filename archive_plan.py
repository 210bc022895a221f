# archive_plan.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from rotator_errors import DirectoryAccessError, PathError

log = logging.getLogger("rotator.plan")

GZ_SUFFIX = ".gz"


@dataclass
class RotationPlan:
    existing: List[Tuple[int, Path]] = field(default_factory=list)  # (N, path), ascending by N
    next_path: Path = Path(".")
    next_number: int = 1

    @property
    def existing_paths(self) -> List[Path]:
        return [p for _, p in self.existing]


def resolve_rotation_dir(output_path: Path | str, rotation_directory: Optional[Path | str]) -> Path:
    """
    archive 디렉터리 결정:
      1) 명시된 rotation_directory (빈 문자열은 미지정 취급)
      2) output 파일의 부모 디렉터리
      3) 현재 디렉터리
    """
    if rotation_directory is not None and str(rotation_directory).strip():
        return Path(str(rotation_directory).strip())
    parent = Path(output_path).parent
    if str(parent):
        return parent
    return Path(".")


def base_name_of(output_path: Path | str) -> str:
    name = Path(output_path).name
    if not name or name in (".", ".."):
        raise PathError("resolve file name of output path", output_path)
    return name


def archive_pattern(base_name: str, compress: bool) -> re.Pattern[str]:
    suffix = re.escape(GZ_SUFFIX) if compress else ""
    return re.compile(rf"^{re.escape(base_name)}\.([0-9]+){suffix}$")


def archive_name(base_name: str, number: int, compress: bool) -> str:
    return f"{base_name}.{number}{GZ_SUFFIX if compress else ''}"


def plan_rotation(
    output_path: Path | str,
    rotation_directory: Optional[Path | str],
    compress: bool,
) -> RotationPlan:
    """Scan the rotation directory and work out where the next archive goes."""
    base_name = base_name_of(output_path)
    directory = resolve_rotation_dir(output_path, rotation_directory)
    pattern = archive_pattern(base_name, compress)
    log.debug("directory=%s pattern=%s", directory, pattern.pattern)

    try:
        names = [entry.name for entry in directory.iterdir()]
    except OSError as e:
        raise DirectoryAccessError("list rotation directory", directory, e) from e

    existing: List[Tuple[int, Path]] = []
    for name in names:
        m = pattern.match(name)
        if not m:
            continue
        existing.append((int(m.group(1)), directory / name))

    existing.sort(key=lambda item: item[0])
    maximum = existing[-1][0] if existing else 0
    next_number = maximum + 1

    plan = RotationPlan(
        existing=existing,
        next_path=directory / archive_name(base_name, next_number, compress),
        next_number=next_number,
    )
    log.debug("next=%s existing=%s", plan.next_path, [str(p) for p in plan.existing_paths])
    return plan


__all__ = [
    "RotationPlan",
    "plan_rotation",
    "resolve_rotation_dir",
    "archive_name",
    "archive_pattern",
    "base_name_of",
]
