"""Shared fixtures for perch tests."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from perch.app import App

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def services_dir() -> Path:
    """Two route-exporting services plus files discovery must skip."""
    return FIXTURES / "services"


@pytest.fixture
def app() -> App:
    return App()


@pytest.fixture
def write_service(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a service module into a fresh directory and return the directory."""

    def _write(filename: str, source: str) -> Path:
        (tmp_path / filename).write_text(textwrap.dedent(source), encoding="utf-8")
        return tmp_path

    return _write
