from __future__ import annotations

from pathlib import Path

import pytest

from biosig_edf.edf.types import Header

from .helpers import FakeEngine, make_header


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def header() -> Header:
    return make_header()


@pytest.fixture
def edf_path(tmp_path: Path) -> Path:
    return tmp_path / "recording.edf"
