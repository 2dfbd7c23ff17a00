"""Test configuration ensuring the local package is importable."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import builders  # noqa: E402


@pytest.fixture
def manifest_bytes() -> bytes:
    return builders.manifest()


@pytest.fixture
def android_pool() -> bytes:
    return builders.utf16_pool(builders.ANDROID_STRINGS)
