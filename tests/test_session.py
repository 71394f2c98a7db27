"""Tests for speclens.session -- the index file and the session store."""

from __future__ import annotations

import io
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from speclens.exceptions import PersistenceError, SpecParseError
from speclens.models import OutputFormat, PersistedSession, SourceType
from speclens.session import SessionIndex, SessionStore, SpecLoader


T0 = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _row(
    session_id: str,
    source: str = "spec.json",
    accessed: datetime = T0,
    source_type: SourceType = SourceType.FILE,
) -> PersistedSession:
    return PersistedSession(
        id=session_id,
        source=source,
        source_type=source_type,
        created_at=accessed,
        last_accessed=accessed,
    )


class _BrokenIndex(SessionIndex):
    """Index whose every read and write fails."""

    def load(self) -> list[PersistedSession]:
        raise PersistenceError("disk on fire")

    def save(self, rows: list[PersistedSession]) -> None:
        raise PersistenceError("disk on fire")


class _NoDereference(SpecLoader):
    def dereference(self, spec: dict[str, Any]) -> dict[str, Any]:
        raise RuntimeError("cannot resolve")


# ---------------------------------------------------------------------------
# SessionIndex
# ---------------------------------------------------------------------------


class TestSessionIndex:
    def test_missing_file_is_empty(self, index: SessionIndex) -> None:
        assert index.load() == []

    def test_round_trip_uses_camel_case(self, index: SessionIndex) -> None:
        index.save([_row("a")])
        data = json.loads(index.path.read_text())
        assert data[0]["id"] == "a"
        assert data[0]["lastAccessed"].startswith("2024-01-10T12:00:00")
        assert data[0]["sourceType"] == "file"
        assert data[0]["outputFormat"] == "compact"
        assert index.load() == [_row("a")]

    def test_upsert_replaces_by_id(self, index: SessionIndex) -> None:
        index.upsert(_row("a", source="one.json"))
        index.upsert(_row("b"))
        index.upsert(_row("a", source="two.json"))
        assert [(r.id, r.source) for r in index.load()] == [("a", "two.json"), ("b", "spec.json")]

    def test_remove_reports_presence(self, index: SessionIndex) -> None:
        index.upsert(_row("a"))
        assert index.remove("a") is True
        assert index.remove("a") is False

    def test_update_skips_write_when_unchanged(self, index: SessionIndex) -> None:
        index.update(lambda rows: rows)
        assert not index.path.exists()

    def test_corrupt_file_raises(self, index: SessionIndex) -> None:
        index.path.parent.mkdir(parents=True, exist_ok=True)
        index.path.write_text("{not json")
        with pytest.raises(PersistenceError, match="Cannot read"):
            index.load()

    def test_wrong_shape_raises(self, index: SessionIndex) -> None:
        index.path.parent.mkdir(parents=True, exist_ok=True)
        index.path.write_text(json.dumps([{"id": "a"}]))
        with pytest.raises(PersistenceError):
            index.load()

    def test_default_path_under_config_dir(self, isolated_config: Path) -> None:
        assert SessionIndex().path == isolated_config / "config" / "speclens" / "sessions.json"


# ---------------------------------------------------------------------------
# SessionStore lifecycle
# ---------------------------------------------------------------------------


class TestInitializeSession:
    def test_creates_dereferenced_session(self, store: SessionStore, session_id: str, petstore_path: Path) -> None:
        session = store.get_session(session_id)
        assert session.source == str(petstore_path)
        assert session.source_type is SourceType.FILE
        assert session.dereferenced is True
        assert session.output_format is OutputFormat.COMPACT
        schema = session.spec["paths"]["/pets/{petId}"]["get"]["responses"]["200"]["content"][
            "application/json"
        ]["schema"]
        assert schema["title"] == "Pet"

    def test_ids_are_unique(self, store: SessionStore, petstore_path: Path) -> None:
        assert store.initialize_session(str(petstore_path)) != store.initialize_session(str(petstore_path))

    def test_persists_row(self, store: SessionStore, session_id: str) -> None:
        row = store.index.get(session_id)
        assert row is not None
        assert row.created_at == row.last_accessed

    def test_explicit_format(self, store: SessionStore, petstore_path: Path) -> None:
        sid = store.initialize_session(str(petstore_path), OutputFormat.MARKDOWN)
        assert store.get_output_format(sid) is OutputFormat.MARKDOWN

    def test_store_default_format(self, index: SessionIndex, petstore_path: Path) -> None:
        store = SessionStore(index=index, default_format=OutputFormat.JSON)
        sid = store.initialize_session(str(petstore_path))
        assert store.get_output_format(sid) is OutputFormat.JSON

    def test_parse_failure_creates_nothing(self, store: SessionStore, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("[]")
        with pytest.raises(SpecParseError):
            store.initialize_session(str(bad))
        assert store.list_sessions() == []

    def test_unsupported_version_rejected(self, store: SessionStore, tmp_path: Path) -> None:
        old = tmp_path / "old.json"
        old.write_text(json.dumps({"swagger": "1.2"}))
        with pytest.raises(SpecParseError, match="Unsupported"):
            store.initialize_session(str(old))

    def test_dereference_failure_keeps_raw(self, index: SessionIndex, petstore_path: Path) -> None:
        store = SessionStore(index=index, loader=_NoDereference())
        session = store.get_session(store.initialize_session(str(petstore_path)))
        assert session.dereferenced is False
        assert session.spec["paths"]["/pets/{petId}"]["get"]["responses"]["200"]["content"][
            "application/json"
        ]["schema"] == {"$ref": "#/components/schemas/Pet"}


class TestGetSession:
    def test_unknown_id(self, store: SessionStore) -> None:
        assert store.get_session("nope") is None

    def test_lookup_refreshes_last_accessed(self, store: SessionStore, session_id: str, clock) -> None:
        clock.now = T0 + timedelta(hours=3)
        store.get_session(session_id)
        assert store.index.get(session_id).last_accessed == T0 + timedelta(hours=3)

    def test_rehydrates_after_restart(self, index: SessionIndex, session_id: str, clock) -> None:
        restarted = SessionStore(index=index, clock=clock)
        session = restarted.get_session(session_id)
        assert session is not None
        assert session.id == session_id
        assert session.spec["info"]["title"] == "Swagger Petstore"

    def test_rehydration_keeps_format(self, store: SessionStore, index: SessionIndex, session_id: str, clock) -> None:
        store.set_output_format(session_id, OutputFormat.STRUCTURED)
        restarted = SessionStore(index=index, clock=clock)
        assert restarted.get_output_format(session_id) is OutputFormat.STRUCTURED

    def test_vanished_source_drops_row(self, index: SessionIndex, session_id: str, petstore_path: Path, clock) -> None:
        petstore_path.unlink()
        restarted = SessionStore(index=index, clock=clock)
        assert restarted.get_session(session_id) is None
        assert index.get(session_id) is None


class TestStdinSessions:
    @pytest.fixture
    def stdin_id(self, store: SessionStore, petstore_path: Path) -> str:
        with patch("speclens.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(petstore_path.read_text())
            return store.initialize_session("-")

    def test_lives_in_memory_only(self, store: SessionStore, stdin_id: str) -> None:
        session = store.get_session(stdin_id)
        assert session is not None
        assert session.source_type is SourceType.STDIN
        assert store.index.get(stdin_id) is None
        assert stdin_id in [row.id for row in store.list_sessions()]

    def test_format_change_is_not_persisted(self, store: SessionStore, stdin_id: str) -> None:
        assert store.set_output_format(stdin_id, "json") is True
        assert store.get_output_format(stdin_id) is OutputFormat.JSON
        assert store.index.get(stdin_id) is None

    def test_gone_after_restart(self, index: SessionIndex, stdin_id: str, clock) -> None:
        stdin = MagicMock()
        stdin.read.side_effect = AssertionError("stdin must not be read")
        with patch("speclens.parser.loader.sys") as mock_sys:
            mock_sys.stdin = stdin
            restarted = SessionStore(index=index, clock=clock)
            assert restarted.get_session(stdin_id) is None
        stdin.read.assert_not_called()

    def test_stored_stdin_row_is_dropped_without_reading(self, index: SessionIndex, clock) -> None:
        index.save([_row("piped", source="-", source_type=SourceType.STDIN)])
        stdin = MagicMock()
        with patch("speclens.parser.loader.sys") as mock_sys:
            mock_sys.stdin = stdin
            store = SessionStore(index=index, clock=clock)
            assert store.get_session("piped") is None
        stdin.read.assert_not_called()
        assert index.get("piped") is None


class TestRemoveSession:
    def test_remove_is_idempotent(self, store: SessionStore, session_id: str) -> None:
        assert store.remove_session(session_id) is True
        assert store.remove_session(session_id) is False
        assert store.get_session(session_id) is None
        assert store.index.get(session_id) is None

    def test_remove_index_only_session(self, index: SessionIndex, session_id: str, clock) -> None:
        restarted = SessionStore(index=index, clock=clock)
        assert restarted.remove_session(session_id) is True


class TestPurgeStale:
    def test_drops_rows_older_than_ttl(self, index: SessionIndex, clock) -> None:
        index.save([_row("old", accessed=T0 - timedelta(days=8)), _row("fresh", accessed=T0 - timedelta(days=6))])
        store = SessionStore(index=index, clock=clock)
        assert [row.id for row in store.list_sessions()] == ["fresh"]

    def test_stale_row_cannot_be_reopened(self, index: SessionIndex, petstore_path: Path, clock) -> None:
        source = str(petstore_path)
        index.save(
            [
                _row("old", source=source, accessed=T0 - timedelta(days=8)),
                _row("fresh", source=source, accessed=T0 - timedelta(days=6)),
            ]
        )
        store = SessionStore(index=index, clock=clock)
        assert store.get_session("old") is None
        assert index.get("old") is None
        assert store.get_session("fresh") is not None

    def test_custom_ttl(self, index: SessionIndex, clock) -> None:
        index.save([_row("a", accessed=T0 - timedelta(days=2))])
        store = SessionStore(index=index, clock=clock, ttl=timedelta(days=1))
        assert store.list_sessions() == []

    def test_returns_count_and_skips_write(self, index: SessionIndex, clock) -> None:
        index.save([_row("a")])
        mtime = index.path.stat().st_mtime_ns
        store = SessionStore(index=index, clock=clock)
        assert store.purge_stale() == 0
        assert index.path.stat().st_mtime_ns == mtime

    def test_naive_timestamps_treated_as_utc(self, index: SessionIndex, clock) -> None:
        index.save([_row("naive", accessed=datetime(2024, 1, 1, 0, 0))])
        store = SessionStore(index=index, clock=clock)
        assert store.list_sessions() == []


class TestOutputFormat:
    def test_set_and_get(self, store: SessionStore, session_id: str) -> None:
        assert store.set_output_format(session_id, "markdown") is True
        assert store.get_output_format(session_id) is OutputFormat.MARKDOWN
        assert store.index.get(session_id).output_format is OutputFormat.MARKDOWN

    def test_unknown_name_keeps_current(self, store: SessionStore, session_id: str) -> None:
        store.set_output_format(session_id, OutputFormat.JSON)
        store.set_output_format(session_id, "yaml")
        assert store.get_output_format(session_id) is OutputFormat.JSON

    def test_unknown_session(self, store: SessionStore) -> None:
        assert store.set_output_format("nope", OutputFormat.JSON) is False
        assert store.get_output_format("nope") is None


class TestPersistenceFailures:
    def test_store_works_without_index(self, tmp_path: Path, petstore_path: Path, caplog) -> None:
        store = SessionStore(index=_BrokenIndex(tmp_path / "x.json"))
        sid = store.initialize_session(str(petstore_path))
        assert store.get_session(sid).spec["info"]["title"] == "Swagger Petstore"
        assert store.set_output_format(sid, OutputFormat.JSON) is True
        assert store.remove_session(sid) is True
        assert "not persisted" in caplog.text

    def test_list_sessions_falls_back_to_memory(self, tmp_path: Path, petstore_path: Path) -> None:
        store = SessionStore(index=_BrokenIndex(tmp_path / "x.json"))
        sid = store.initialize_session(str(petstore_path))
        assert [row.id for row in store.list_sessions()] == [sid]
