"""Time-ordered object identifiers.

An id is 12 hex digits of epoch milliseconds, then the client id, then a
4 hex digit counter. Ids from one generator sort lexicographically in
creation order, and two clients never collide as long as their client ids
differ.
"""

import threading
import time
from typing import Callable

_COUNTER_MASK = 0xFFFF
MAX_CLIENT_ID_LENGTH = 64


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class IdGenerator:
    """Produces ids for one client. Thread-safe."""

    def __init__(self, client_id: str, clock: Callable[[], int] | None = None) -> None:
        if not client_id:
            raise ValueError("client_id cannot be empty")
        if len(client_id) > MAX_CLIENT_ID_LENGTH:
            raise ValueError(f"client_id must be at most {MAX_CLIENT_ID_LENGTH} characters")
        self._client_id = client_id
        self._clock = clock or _epoch_millis
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def client_id(self) -> str:
        return self._client_id

    def __call__(self) -> str:
        return self.next_id()

    def next_id(self) -> str:
        with self._lock:
            counter = self._counter
            self._counter += 1
        return f"{self._clock():012x}{self._client_id}{counter & _COUNTER_MASK:04x}"


def id_timestamp(object_id: str) -> int:
    """Extract the creation time, in epoch milliseconds, from an id.

    Accepts the legacy 24 character ids (8 hex digits of seconds) and the
    80 character ids produced for a 64 character client id.

    Raises:
        ValueError: If the id has neither length or is not hex where expected.
    """
    if len(object_id) == 24:
        return int(object_id[0:8], 16) * 1000
    if len(object_id) == 80:
        return int(object_id[0:12], 16)
    raise ValueError(f"bad id given ({object_id})")


__all__ = ["IdGenerator", "id_timestamp"]
