"""
Helpers base de données pour la file d'attente (backend PostgreSQL via asyncpg).

Schéma :
- queue_member : (channel, member) PRIMARY KEY, member = id du compte,
  display_name TEXT, joined_at DOUBLE PRECISION (score d'arrivée)
- queue_setting : (channel, name) PRIMARY KEY, value TEXT, updated_at TIMESTAMPTZ

L'ordre de la file est (joined_at, member), comme l'ordre natif d'un sorted set Redis.
Les tirages utilisent `DELETE ... RETURNING` sur une sous-requête verrouillée
(`FOR UPDATE SKIP LOCKED`) : un membre ne peut pas être tiré deux fois.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional, Sequence

import asyncpg

from core.queue.store import QueueEntry, QueueStore, StoreError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS queue_member (
    channel TEXT NOT NULL,
    member TEXT NOT NULL,
    display_name TEXT NOT NULL DEFAULT '',
    joined_at DOUBLE PRECISION NOT NULL,
    PRIMARY KEY (channel, member)
);
ALTER TABLE queue_member ADD COLUMN IF NOT EXISTS display_name TEXT NOT NULL DEFAULT '';
CREATE INDEX IF NOT EXISTS idx_queue_member_order ON queue_member(channel, joined_at, member);

CREATE TABLE IF NOT EXISTS queue_setting (
    channel TEXT NOT NULL,
    name TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (channel, name)
);
"""

ADD_MEMBER_SQL = """
INSERT INTO queue_member(channel, member, display_name, joined_at) VALUES($1, $2, $3, $4)
ON CONFLICT (channel, member) DO NOTHING
RETURNING member
"""

RANK_SQL = """
SELECT (
    SELECT COUNT(*) FROM queue_member o
    WHERE o.channel = m.channel AND (o.joined_at, o.member) < (m.joined_at, m.member)
)
FROM queue_member m WHERE m.channel=$1 AND m.member=$2
"""

FIND_MEMBER_SQL = """
SELECT member FROM queue_member
WHERE channel=$1 AND lower(display_name) = lower($2)
ORDER BY joined_at, member LIMIT 1
"""

POP_MIN_SQL = """
DELETE FROM queue_member WHERE channel=$1 AND member IN (
    SELECT member FROM queue_member WHERE channel=$1
    ORDER BY joined_at, member LIMIT $2
    FOR UPDATE SKIP LOCKED
)
RETURNING member, display_name, joined_at
"""

POP_RANDOM_SQL = """
DELETE FROM queue_member WHERE channel=$1 AND member IN (
    SELECT member FROM queue_member WHERE channel=$1
    ORDER BY random() LIMIT $2
    FOR UPDATE SKIP LOCKED
)
RETURNING member, display_name
"""

UPSERT_SETTING_SQL = """
INSERT INTO queue_setting(channel, name, value, updated_at) VALUES($1, $2, $3, NOW())
ON CONFLICT (channel, name) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
"""

# Erreurs considérées comme des pannes d'infrastructure
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _entry(row) -> QueueEntry:
    # lignes antérieures à la colonne display_name : l'id sert de nom
    return QueueEntry(row["member"], row["display_name"] or row["member"])


async def ensure_schema(pool: asyncpg.Pool):
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA)
        logger.info("Schéma vérifié (queue_member, queue_setting)")


class PostgresQueueStore(QueueStore):
    """`QueueStore` sur les tables `queue_member` / `queue_setting`."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    @contextlib.asynccontextmanager
    async def _conn(self):
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except _DRIVER_ERRORS as exc:
            raise StoreError(str(exc) or type(exc).__name__) from exc

    async def add_if_absent(self, channel: str, member: str, score: float, name: str) -> bool:
        async with self._conn() as conn:
            return await conn.fetchval(ADD_MEMBER_SQL, channel, member, name, score) is not None

    async def remove(self, channel: str, member: str) -> bool:
        q = "DELETE FROM queue_member WHERE channel=$1 AND member=$2 RETURNING member"
        async with self._conn() as conn:
            return await conn.fetchval(q, channel, member) is not None

    async def remove_many(self, channel: str, members: Sequence[str]) -> int:
        if not members:
            return 0
        q = "DELETE FROM queue_member WHERE channel=$1 AND member = ANY($2::text[]) RETURNING member"
        async with self._conn() as conn:
            rows = await conn.fetch(q, channel, list(members))
        return len(rows)

    async def rank(self, channel: str, member: str) -> Optional[int]:
        async with self._conn() as conn:
            val = await conn.fetchval(RANK_SQL, channel, member)
        return int(val) if val is not None else None

    async def find_member(self, channel: str, name: str) -> Optional[str]:
        async with self._conn() as conn:
            return await conn.fetchval(FIND_MEMBER_SQL, channel, name)

    async def range_all(self, channel: str) -> List[QueueEntry]:
        q = "SELECT member, display_name FROM queue_member WHERE channel=$1 ORDER BY joined_at, member"
        async with self._conn() as conn:
            rows = await conn.fetch(q, channel)
        return [_entry(r) for r in rows]

    async def range_prefix(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        q = "SELECT member, display_name FROM queue_member WHERE channel=$1 ORDER BY joined_at, member LIMIT $2"
        async with self._conn() as conn:
            rows = await conn.fetch(q, channel, n)
        return [_entry(r) for r in rows]

    async def random_sample(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        q = "SELECT member, display_name FROM queue_member WHERE channel=$1 ORDER BY random() LIMIT $2"
        async with self._conn() as conn:
            rows = await conn.fetch(q, channel, n)
        return [_entry(r) for r in rows]

    async def pop_min(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        async with self._conn() as conn:
            rows = await conn.fetch(POP_MIN_SQL, channel, n)
        # RETURNING ne garantit pas l'ordre
        ordered = sorted(rows, key=lambda r: (r["joined_at"], r["member"]))
        return [_entry(r) for r in ordered]

    async def pop_random(self, channel: str, n: int) -> List[QueueEntry]:
        """Tirage et retrait en une seule requête (atomique)."""
        if n <= 0:
            return []
        async with self._conn() as conn:
            rows = await conn.fetch(POP_RANDOM_SQL, channel, n)
        return [_entry(r) for r in rows]

    async def cardinality(self, channel: str) -> int:
        async with self._conn() as conn:
            return await conn.fetchval("SELECT COUNT(*) FROM queue_member WHERE channel=$1", channel) or 0

    async def delete(self, channel: str) -> None:
        async with self._conn() as conn:
            await conn.execute("DELETE FROM queue_member WHERE channel=$1", channel)

    async def get_setting(self, channel: str, name: str) -> Optional[str]:
        q = "SELECT value FROM queue_setting WHERE channel=$1 AND name=$2"
        async with self._conn() as conn:
            return await conn.fetchval(q, channel, name)

    async def set_setting(self, channel: str, name: str, value: str) -> None:
        async with self._conn() as conn:
            await conn.execute(UPSERT_SETTING_SQL, channel, name, value)


__all__ = ["ensure_schema", "PostgresQueueStore", "SCHEMA"]
