# archive_retention.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

from rotator_errors import FilesystemError

log = logging.getLogger("rotator.retention")


def enforce_retention(existing: Sequence[Path], keep: int) -> List[Path]:
    """
    existing: 오래된 순(N 오름차순)으로 정렬된 archive 목록
    keep: 남길 개수

    앞쪽(가장 오래된) len(existing) - keep 개를 지운다.
    첫 삭제 실패에서 바로 FilesystemError (나머지는 시도하지 않음, 재시도 없음)
    """
    if keep < 0:
        keep = 0
    excess = len(existing) - keep
    if excess <= 0:
        return []

    deleted: List[Path] = []
    for victim in list(existing)[:excess]:
        victim = Path(victim)
        try:
            victim.unlink()
        except OSError as e:
            raise FilesystemError("delete archive", victim, e) from e
        log.info("deleted archive %s", victim)
        deleted.append(victim)
    return deleted


__all__ = ["enforce_retention"]
