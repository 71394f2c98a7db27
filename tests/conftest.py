"""Shared test fixtures for speclens.

Provides the petstore fixture documents, an isolated config environment,
a ready-made session store, and output-state resets. These fixtures are
discovered by pytest and available to all test modules without imports.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from speclens.output import reset_output
from speclens.session import SessionIndex, SessionStore


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches its Rich consoles at creation time. When
    Typer's CliRunner swaps sys.stdout/sys.stderr and the test finishes,
    those references go stale. Resetting forces a fresh manager.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw OpenAPI 3.0 petstore dict (``$ref`` pointers intact)."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_path(tmp_path: Path) -> Path:
    """Copy of the OpenAPI 3.0 petstore inside tmp_path."""
    path = tmp_path / "petstore.json"
    path.write_text((FIXTURES_DIR / "petstore.json").read_text())
    return path


@pytest.fixture
def swagger2_path(tmp_path: Path) -> Path:
    """Copy of the Swagger 2.0 petstore (YAML) inside tmp_path."""
    path = tmp_path / "legacy.yaml"
    path.write_text((FIXTURES_DIR / "petstore_swagger2.yaml").read_text())
    return path


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Forces XDG path resolution, points XDG_CONFIG_HOME and XDG_DATA_HOME at
    subdirectories of tmp_path, clears all SPECLENS_* variables and
    changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("speclens.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SPECLENS_SESSION",
        "SPECLENS_OUTPUT_FORMAT",
        "SPECLENS_SESSION_TTL_DAYS",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Session fixtures
# ---------------------------------------------------------------------------


class FrozenClock:
    """Settable clock for :class:`~speclens.session.SessionStore`."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def index(tmp_path: Path) -> SessionIndex:
    """Session index file under tmp_path."""
    return SessionIndex(tmp_path / "state" / "sessions.json")


@pytest.fixture
def store(index: SessionIndex, clock: FrozenClock) -> SessionStore:
    return SessionStore(index=index, clock=clock)


@pytest.fixture
def session_id(store: SessionStore, petstore_path: Path) -> str:
    """A session open on the OpenAPI 3.0 petstore."""
    return store.initialize_session(str(petstore_path))


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
