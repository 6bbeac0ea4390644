import itertools
import threading
from types import MappingProxyType


class SessionRegistry:
    """
    Live sessions keyed by session id.

    Writers replace the whole mapping under a lock (copy-on-write), readers
    grab the current mapping without locking. A broadcast iterating a
    snapshot therefore never sees a half-updated set and never holds up
    register/unregister.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._sessions = MappingProxyType({})

    def register(self, create_session):
        """Allocates the next session id and publishes ``create_session(session_id)``."""
        with self._lock:
            session_id = next(self._ids)
            session = create_session(session_id)
            sessions = dict(self._sessions)
            sessions[session_id] = session
            self._sessions = MappingProxyType(sessions)
        return session

    def unregister(self, session_id):
        with self._lock:
            if session_id not in self._sessions:
                return None
            sessions = dict(self._sessions)
            session = sessions.pop(session_id)
            self._sessions = MappingProxyType(sessions)
        return session

    def get(self, session_id):
        return self._sessions.get(session_id)

    def snapshot(self):
        return tuple(self._sessions.values())

    def session_ids(self):
        return tuple(self._sessions.keys())

    def close_all(self):
        with self._lock:
            sessions = tuple(self._sessions.values())
            self._sessions = MappingProxyType({})
        for session in sessions:
            session.close()
        return sessions

    def __contains__(self, session_id):
        return session_id in self._sessions

    def __len__(self):
        return len(self._sessions)
