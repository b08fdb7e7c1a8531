"""In-process revocation store.

Holds records in a dict guarded by a lock, so it is safe to share between
threads and event loops. Records do not survive a restart; use
SQLAlchemyRevocationStore for anything durable.
"""

import threading

from jwt_oracle.errors import DuplicateKeyError
from jwt_oracle.models.revocation_record import NEVER_EXPIRES, RevocationRecord


class InMemoryRevocationStore:
    """Revocation store backed by a dict of key -> expired_at."""

    def __init__(self):
        self._records: dict[str, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, key: str) -> RevocationRecord | None:
        """Return the record regardless of liveness."""
        with self._lock:
            expired_at = self._records.get(key)
        if expired_at is None:
            return None
        return RevocationRecord(key=key, expired_at=expired_at)

    async def insert(self, key: str, expired_at: int | None = None) -> None:
        with self._lock:
            if key in self._records:
                raise DuplicateKeyError(key)
            self._records[key] = NEVER_EXPIRES if expired_at is None else expired_at

    async def find_live(self, key: str, now: int) -> RevocationRecord | None:
        record = self.get(key)
        if record is None or not record.is_live(now):
            return None
        return record

    async def delete_by_key(self, key: str) -> int:
        with self._lock:
            return 1 if self._records.pop(key, None) is not None else 0

    async def delete_expired(self, now: int) -> int:
        with self._lock:
            expired = [key for key, expired_at in self._records.items() if expired_at < now]
            for key in expired:
                del self._records[key]
            return len(expired)
