# tests/conftest.py
from __future__ import annotations

import pytest

from fibengine import runtime


@pytest.fixture(autouse=True)
def _isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace folder and a fresh runtime."""
    monkeypatch.setenv("FIBENGINE_HOME", str(tmp_path / "ws"))
    runtime.reset()
    yield
    runtime.reset()
