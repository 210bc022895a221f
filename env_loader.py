# env_loader.py
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


def _truthy(v: str | None) -> bool:
    s = (v or "").strip().lower()
    return s in ("1", "true", "yes", "y", "on")


def env_candidates(base_dir: Optional[Path] = None) -> List[Path]:
    """
    profile 우선순위:
      1) .env.<ROTATOR_PROFILE>  (ROTATOR_PROFILE 이 있을 때만)
      2) .env
    base_dir 기본값은 현재 작업폴더(cwd)
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    profile = (os.getenv("ROTATOR_PROFILE") or "").strip().lower()

    cands: List[Path] = []
    if profile:
        cands.append(base / f".env.{profile}")
    cands.append(base / ".env")
    return cands


def load_project_env(
    env_file: Optional[str] = None,
    base_dir: Optional[Path] = None,
    override: bool = False,
) -> List[str]:
    """
    .env 파일들을 로드하고 실제로 읽은 경로 목록을 돌려준다.
    - env_file(명시) 가 가장 먼저
    - 이미 설정된 환경변수는 덮어쓰지 않음(override=False)
    """
    cands: List[Path] = []
    if env_file:
        cands.append(Path(env_file.strip().strip('"')))
    cands.extend(env_candidates(base_dir))

    loaded: List[str] = []
    for p in cands:
        if p.exists():
            load_dotenv(dotenv_path=p, override=override)
            loaded.append(str(p))
    return loaded


def env_str(key: str, default: str = "") -> str:
    return (os.getenv(key) or default).strip()


def env_flag(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return _truthy(raw)


__all__ = ["load_project_env", "env_candidates", "env_str", "env_flag"]
