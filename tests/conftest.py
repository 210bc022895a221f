"""Shared fixtures: keep ROTATOR_* variables (including ones loaded from .env files) from leaking between tests."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def clean_rotator_env(monkeypatch: pytest.MonkeyPatch):
    for key in [k for k in os.environ if k.startswith("ROTATOR_")]:
        monkeypatch.delenv(key, raising=False)
    yield
    for key in [k for k in os.environ if k.startswith("ROTATOR_")]:
        os.environ.pop(key, None)
