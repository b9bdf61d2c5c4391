"""
Permission synchronizer: keeps one client's allow-set in step with the store.

A PermissionSession is authenticated as one subject. While active, a daemon
thread re-reads the subject's granted tokens every ``poll_interval`` seconds
and compares them with the held set. Only a real difference replaces the
held set and fires ``on_change``, once per difference. ``allow(char)`` answers
from the held set and never touches the database, so a UI can call it per
keystroke.

States:
  UNAUTHENTICATED -- created, no subject yet
  ACTIVE          -- subject captured, poller running
  TERMINATED      -- ended; can authenticate again and starts fresh

The subject id captured at authentication is polled for the life of the
session. If the subject is deleted, each poll logs the failure and keeps the
last known set.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, FrozenSet, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..core.config import settings
from ..core.logging_config import session_var
from ..database import SessionLocal
from ..exceptions import LetterGateError, SessionStateError, ValidationError
from ..schemas.validation import validate_subject_name
from ..store import RelationStore

logger = logging.getLogger(__name__)

# Characters that pass through filter_text regardless of grants.
KEPT_WHITESPACE = frozenset(" \t\r\n")


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class PermissionChange:
    """One observed difference between the held and the stored allow-set."""
    added: FrozenSet[str]
    removed: FrozenSet[str]
    allowed: FrozenSet[str]


def filter_text(text: str, allow: Callable[[str], bool]) -> str:
    """Keep whitespace and the characters *allow* accepts."""
    return "".join(ch for ch in text if ch in KEPT_WHITESPACE or allow(ch))


class PermissionSession:
    """One client's live view of its own permissions.

    Usage::

        with PermissionSession(on_change=print) as session:
            session.authenticate("alice")
            session.filter_text("hello")
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        poll_interval: Optional[float] = None,
        on_change: Optional[Callable[[PermissionChange], None]] = None,
    ) -> None:
        if poll_interval is None:
            poll_interval = settings.sync_poll_interval
        if poll_interval <= 0:
            raise ValidationError("poll_interval must be greater than 0", field="poll_interval")

        self.poll_interval = poll_interval
        self._session_factory = session_factory or SessionLocal
        self._on_change = on_change

        self._state = SessionState.UNAUTHENTICATED
        self._subject_name: Optional[str] = None
        self._subject_id: Optional[int] = None
        self._allowed: FrozenSet[str] = frozenset()

        # Bumped on every authenticate/end so polls from an old activation are discarded.
        self._generation = 0
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        self._lock = threading.Lock()
        # Serializes fetch-and-compare so concurrent polls cannot reorder results.
        self._poll_lock = threading.Lock()
        # Changes in the order they were applied; one thread at a time delivers them.
        self._pending: Deque[PermissionChange] = deque()
        self._delivering = False

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def subject_name(self) -> Optional[str]:
        with self._lock:
            return self._subject_name

    @property
    def allowed_tokens(self) -> FrozenSet[str]:
        with self._lock:
            return self._allowed

    def allow(self, char: str) -> bool:
        with self._lock:
            return char in self._allowed

    def filter_text(self, text: str) -> str:
        return filter_text(text, self.allow)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def authenticate(self, name: str) -> FrozenSet[str]:
        """Bind the session to subject *name* and start polling.

        Returns the initial allow-set. Raises ValidationError for a blank
        name, SubjectNotFoundError for an unknown one (state unchanged) and
        SessionStateError if the session is already active.
        """
        name = validate_subject_name(name)
        self._require_inactive()

        db = self._session_factory()
        try:
            store = RelationStore(db)
            subject_id = store.resolve_subject(name)
            allowed = frozenset(store.list_granted_tokens(subject_id))
        finally:
            db.close()

        with self._lock:
            if self._state == SessionState.ACTIVE:
                raise SessionStateError("Session is already active", self._state.value)
            self._generation += 1
            generation = self._generation
            self._state = SessionState.ACTIVE
            self._subject_name = name
            self._subject_id = subject_id
            self._allowed = allowed
            stop = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(generation, stop, name),
                name=f"permission-poller-{name}",
                daemon=True,
            )
            self._stop = stop
            self._thread = thread

        thread.start()
        logger.info(
            "Session authenticated as %s with %d token(s)", name, len(allowed),
            extra={"subject": name, "poll_interval": self.poll_interval},
        )
        return allowed

    def end(self) -> None:
        """Stop polling and forget the held set. No-op unless active."""
        with self._lock:
            if self._state != SessionState.ACTIVE:
                return
            name = self._subject_name
            self._state = SessionState.TERMINATED
            self._generation += 1
            self._subject_name = None
            self._subject_id = None
            self._allowed = frozenset()
            self._pending.clear()
            stop, thread = self._stop, self._thread
            self._stop = None
            self._thread = None

        stop.set()
        # end() may be called from on_change, i.e. from the poller itself.
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.poll_interval + 5.0)
        logger.info("Session for %s ended", name, extra={"subject": name})

    def __enter__(self) -> "PermissionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll_once(self) -> Optional[PermissionChange]:
        """Run one poll cycle now. Returns the change, or None if nothing changed.

        A failed fetch is logged and returns None with the held set kept.
        """
        with self._lock:
            if self._state != SessionState.ACTIVE:
                raise SessionStateError("Session is not active", self._state.value)
            generation = self._generation
        return self._poll(generation)

    def refresh(self) -> Optional[PermissionChange]:
        """Reload permissions immediately instead of waiting for the poller."""
        return self.poll_once()

    def _run(self, generation: int, stop: threading.Event, name: str) -> None:
        session_var.set(name)
        logger.debug("Poller started", extra={"subject": name})
        while not stop.wait(self.poll_interval):
            try:
                self._poll(generation)
            except Exception:
                logger.exception("Unexpected error while polling permissions")
        logger.debug("Poller stopped", extra={"subject": name})

    def _poll(self, generation: int) -> Optional[PermissionChange]:
        with self._poll_lock:
            with self._lock:
                if self._state != SessionState.ACTIVE or generation != self._generation:
                    return None
                subject_id = self._subject_id
                name = self._subject_name

            try:
                fetched = self._fetch(subject_id)
            except LetterGateError as e:
                logger.warning(
                    "Permission refresh for %s failed, keeping current set: %s", name, e.message,
                    extra={"subject": name, "error": e.error_code.value},
                )
                return None

            with self._lock:
                if self._state != SessionState.ACTIVE or generation != self._generation:
                    return None
                if fetched == self._allowed:
                    return None
                change = PermissionChange(
                    added=fetched - self._allowed,
                    removed=self._allowed - fetched,
                    allowed=fetched,
                )
                self._allowed = fetched
                self._pending.append(change)

        logger.info(
            "Permissions for %s changed", name,
            extra={
                "subject": name,
                "added": "".join(sorted(change.added)),
                "removed": "".join(sorted(change.removed)),
            },
        )
        self._deliver_pending()
        return change

    def _fetch(self, subject_id: int) -> FrozenSet[str]:
        db: Session = self._session_factory()
        try:
            return frozenset(RelationStore(db).list_granted_tokens(subject_id))
        finally:
            db.close()

    def _deliver_pending(self) -> None:
        """Hand queued changes to on_change in the order they were applied.

        If another call is already delivering (another thread, or a refresh
        made from inside on_change), this returns at once and that call
        delivers the newly queued change after the current one.
        """
        while True:
            with self._lock:
                if self._delivering or not self._pending:
                    return
                self._delivering = True
                change = self._pending.popleft()
            try:
                self._notify(change)
            finally:
                with self._lock:
                    self._delivering = False

    def _notify(self, change: PermissionChange) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(change)
        except Exception:
            logger.exception("Permission change callback failed")

    def _require_inactive(self) -> None:
        with self._lock:
            if self._state == SessionState.ACTIVE:
                raise SessionStateError("Session is already active", self._state.value)
