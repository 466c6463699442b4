import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _no_strict_env(monkeypatch):
    # the strict default comes from the environment; keep tests independent of it
    monkeypatch.delenv("QUACKQUACK_STRICT", raising=False)
