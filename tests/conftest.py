from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Allow running tests without requiring an editable install.
_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if _SRC_DIR.exists() and str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from file_backed_cache.cache import FileBackedCache  # noqa: E402


@pytest.fixture
def cache_root(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_root) -> FileBackedCache:
    c = FileBackedCache(cache_root)
    yield c
    c.clear()
