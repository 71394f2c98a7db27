"""Session lifecycle and the persisted session index.

A *session* is a named handle to one loaded specification. Sessions live in
memory for the life of the process; a small JSON index under the config
directory lets them survive a restart. The index stores only the source
descriptor and timestamps -- on a memory miss the store re-reads the
original source and rebuilds the session.

Sessions read from stdin cannot be re-read, so they are never written to the
index and end with the process.

Two classes:

* :class:`SessionIndex` -- repository over the index file. ``load()``
  returns every row, ``save()`` rewrites the whole file. All read-modify-write
  sequences go through :meth:`SessionIndex.update` so the (unlocked,
  last-writer-wins) pattern lives in one place.
* :class:`SessionStore` -- in-memory map plus lifecycle rules: create,
  lookup with rehydration, removal, output-format preference, and the
  startup purge of rows idle for longer than the time-to-live.

Persistence is best effort. :class:`~speclens.exceptions.PersistenceError`
raised by the index is logged and swallowed by the store, so queries keep
working when the config directory is unwritable.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from speclens.config import atomic_write, get_sessions_path
from speclens.exceptions import PersistenceError, SpecParseError
from speclens.models import OutputFormat, PersistedSession, SourceType
from speclens.parser import detect_source_type, load_spec, resolve_refs, validate_spec_version

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=7)

_ROWS = TypeAdapter(list[PersistedSession])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass
class Session:
    """One loaded specification and its bookkeeping."""

    id: str
    spec: dict[str, Any]
    source: str
    source_type: SourceType
    created_at: datetime = field(default_factory=_utcnow)
    last_accessed: datetime = field(default_factory=_utcnow)
    output_format: OutputFormat = OutputFormat.COMPACT
    dereferenced: bool = True

    def to_row(self) -> PersistedSession:
        return PersistedSession(
            id=self.id,
            source=self.source,
            source_type=self.source_type,
            created_at=self.created_at,
            last_accessed=self.last_accessed,
            output_format=self.output_format,
        )


class SpecLoader:
    """Default spec-loader collaborator: parse, then dereference.

    :meth:`load` raises :class:`~speclens.exceptions.SpecParseError`;
    :meth:`dereference` may raise anything and callers fall back to the raw
    document.
    """

    def load(self, source: str) -> dict[str, Any]:
        spec = load_spec(source)
        validate_spec_version(spec)
        return spec

    def dereference(self, spec: dict[str, Any]) -> dict[str, Any]:
        return resolve_refs(spec)


class SessionIndex:
    """JSON-array repository of :class:`~speclens.models.PersistedSession` rows.

    Args:
        path: Index file. Defaults to :func:`~speclens.config.get_sessions_path`.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else get_sessions_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[PersistedSession]:
        """Return every row; an absent file is an empty index.

        Raises:
            PersistenceError: If the file cannot be read or is not a valid index.
        """
        if not self._path.is_file():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return _ROWS.validate_python(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise PersistenceError(f"Cannot read session index {self._path}: {exc}") from exc

    def save(self, rows: list[PersistedSession]) -> None:
        """Rewrite the whole index.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        data = _ROWS.dump_python(rows, mode="json", by_alias=True)
        try:
            atomic_write(self._path, json.dumps(data, indent=2) + "\n")
        except OSError as exc:
            raise PersistenceError(f"Cannot write session index {self._path}: {exc}") from exc

    def get(self, session_id: str) -> Optional[PersistedSession]:
        return next((row for row in self.load() if row.id == session_id), None)

    def update(
        self, mutate: Callable[[list[PersistedSession]], list[PersistedSession]]
    ) -> list[PersistedSession]:
        """Load, apply *mutate*, and save if the rows changed. Not locked."""
        rows = self.load()
        updated = mutate(list(rows))
        if updated != rows:
            self.save(updated)
        return updated

    def upsert(self, row: PersistedSession) -> None:
        def _mutate(rows: list[PersistedSession]) -> list[PersistedSession]:
            for i, existing in enumerate(rows):
                if existing.id == row.id:
                    rows[i] = row
                    return rows
            return rows + [row]

        self.update(_mutate)

    def remove(self, session_id: str) -> bool:
        """Drop a row; return whether it was present."""
        before = self.load()
        after = [row for row in before if row.id != session_id]
        if len(after) == len(before):
            return False
        self.save(after)
        return True


class SessionStore:
    """Owns every loaded specification, keyed by an opaque session id.

    Construction runs the startup maintenance pass: index rows whose
    ``lastAccessed`` is older than *ttl* are dropped.

    Args:
        index: Session index repository. Defaults to the one in the user's
            config directory.
        loader: Spec-loader collaborator.
        default_format: Render format for sessions created without one.
        ttl: Idle time after which a persisted session is purged.
        clock: Returns the current (timezone-aware) time; tests override it.

    Example::

        store = SessionStore()
        session_id = store.initialize_session("petstore.yaml")
        spec = store.get_session(session_id).spec
    """

    def __init__(
        self,
        index: Optional[SessionIndex] = None,
        loader: Optional[SpecLoader] = None,
        default_format: OutputFormat = OutputFormat.COMPACT,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._index = index if index is not None else SessionIndex()
        self._loader = loader or SpecLoader()
        self._default_format = default_format
        self._ttl = ttl
        self._clock = clock
        self.purge_stale()

    @property
    def index(self) -> SessionIndex:
        return self._index

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def initialize_session(self, source: str, output_format: Optional[OutputFormat] = None) -> str:
        """Load *source* into a new session and return its id.

        Raises:
            SpecParseError: If the document cannot be read or parsed. No
                session is created.
        """
        spec, dereferenced = self._load(source)
        now = self._clock()
        session = Session(
            id=str(uuid.uuid4()),
            spec=spec,
            source=source,
            source_type=detect_source_type(source),
            created_at=now,
            last_accessed=now,
            output_format=OutputFormat.parse(output_format, default=self._default_format),
            dereferenced=dereferenced,
        )
        self._sessions[session.id] = session
        self._persist(session)
        logger.info("Session %s created for %s", session.id, source)
        return session.id

    def get_session(self, session_id: str) -> Optional[Session]:
        """Return the session, rehydrating it from the index on a memory miss.

        Every successful lookup refreshes ``lastAccessed`` in the index.
        """
        session = self._sessions.get(session_id)
        if session is None:
            session = self._rehydrate(session_id)
        if session is None:
            return None
        session.last_accessed = self._clock()
        self._touch(session)
        return session

    def remove_session(self, session_id: str) -> bool:
        """Forget a session in memory and in the index. Idempotent."""
        in_memory = self._sessions.pop(session_id, None) is not None
        try:
            in_index = self._index.remove(session_id)
        except PersistenceError as exc:
            logger.warning("Session index not updated: %s", exc)
            in_index = False
        return in_memory or in_index

    def list_sessions(self) -> list[PersistedSession]:
        """Rows of the persisted index, plus any in-memory session missing from it."""
        rows = {row.id: row for row in self._safe_rows()}
        for session in self._sessions.values():
            rows.setdefault(session.id, session.to_row())
        return list(rows.values())

    def purge_stale(self) -> int:
        """Drop index rows idle for longer than the time-to-live.

        Returns:
            How many rows were dropped. The index is rewritten only when
            something was dropped.
        """
        cutoff = self._clock() - self._ttl
        try:
            rows = self._index.load()
            fresh = [row for row in rows if _aware(row.last_accessed) >= cutoff]
            if len(fresh) != len(rows):
                self._index.save(fresh)
        except PersistenceError as exc:
            logger.warning("Skipping session maintenance: %s", exc)
            return 0
        dropped = len(rows) - len(fresh)
        if dropped:
            logger.info("Purged %d stale session(s)", dropped)
        return dropped

    # ------------------------------------------------------------------ #
    # Output format preference
    # ------------------------------------------------------------------ #

    def set_output_format(self, session_id: str, output_format: OutputFormat | str) -> bool:
        """Change a session's render format; ``False`` if the session is unknown."""
        session = self.get_session(session_id)
        if session is None:
            return False
        session.output_format = OutputFormat.parse(output_format, default=session.output_format)
        self._persist(session)
        return True

    def get_output_format(self, session_id: str) -> Optional[OutputFormat]:
        session = self.get_session(session_id)
        return session.output_format if session is not None else None

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _load(self, source: str) -> tuple[dict[str, Any], bool]:
        raw = self._loader.load(source)
        try:
            return self._loader.dereference(raw), True
        except Exception as exc:
            logger.warning("Dereferencing %s failed, using raw document: %s", source, exc)
            return raw, False

    def _rehydrate(self, session_id: str) -> Optional[Session]:
        try:
            row = self._index.get(session_id)
        except PersistenceError as exc:
            logger.warning("Session index unavailable: %s", exc)
            return None
        if row is None:
            return None
        if row.source_type is SourceType.STDIN or row.source == "-":
            logger.info("Session %s was read from stdin and cannot be reloaded; forgetting it", session_id)
            self._forget_row(session_id)
            return None

        try:
            spec, dereferenced = self._load(row.source)
        except SpecParseError as exc:
            logger.info("Source of session %s is gone (%s); forgetting it", session_id, exc)
            self._forget_row(session_id)
            return None

        session = Session(
            id=row.id,
            spec=spec,
            source=row.source,
            source_type=row.source_type,
            created_at=_aware(row.created_at),
            last_accessed=_aware(row.last_accessed),
            output_format=row.output_format,
            dereferenced=dereferenced,
        )
        self._sessions[session.id] = session
        logger.debug("Session %s rehydrated from %s", session.id, row.source)
        return session

    def _persist(self, session: Session) -> None:
        if session.source_type is SourceType.STDIN:
            return
        try:
            self._index.upsert(session.to_row())
        except PersistenceError as exc:
            logger.warning("Session %s not persisted: %s", session.id, exc)

    def _forget_row(self, session_id: str) -> None:
        try:
            self._index.remove(session_id)
        except PersistenceError:
            logger.debug("Could not drop session %s from index", session_id, exc_info=True)

    def _touch(self, session: Session) -> None:
        def _mutate(rows: list[PersistedSession]) -> list[PersistedSession]:
            return [
                row.model_copy(update={"last_accessed": session.last_accessed})
                if row.id == session.id
                else row
                for row in rows
            ]

        try:
            self._index.update(_mutate)
        except PersistenceError:
            logger.debug("lastAccessed not updated for %s", session.id, exc_info=True)

    def _safe_rows(self) -> list[PersistedSession]:
        try:
            return self._index.load()
        except PersistenceError as exc:
            logger.warning("Session index unavailable: %s", exc)
            return []
