"""Correlation of entries to a logical run."""

import uuid
from collections.abc import Callable
from datetime import datetime

from telemetripy.core.models import Session


def _now() -> datetime:
    return datetime.now().astimezone()


class SessionTracker:
    """Holds the current session, if any.

    Not synchronised on its own: the engine calls it under the store lock so
    that stamping an entry and switching sessions cannot interleave.
    """

    def __init__(self, clock: Callable[[], datetime] = _now) -> None:
        self._clock = clock
        self._current: Session | None = None

    @property
    def current(self) -> Session | None:
        return self._current

    @property
    def current_id(self) -> str:
        """Id of the current session, empty when no session is active."""
        return self._current.id if self._current is not None else ""

    def start(self, session_id: str = "") -> Session:
        """Make a new session current, generating an id when none is given."""
        self._current = Session(
            id=session_id or str(uuid.uuid4()),
            start_time=self._clock(),
        )
        return self._current

    def duration_ms(self) -> int:
        """Milliseconds since the current session started, 0 when none."""
        if self._current is None:
            return 0
        elapsed = self._clock() - self._current.start_time
        return int(elapsed.total_seconds() * 1000)

    def end(self) -> Session | None:
        """Clear the current session and return it, if there was one."""
        session, self._current = self._current, None
        return session
