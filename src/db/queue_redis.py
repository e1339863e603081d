"""
Backend Redis de la file d'attente (sorted sets via redis.asyncio).

Clés :
- queue:{channel} : sorted set id du membre -> score d'arrivée
- queue:{channel}:names : hash id du membre -> nom affiché
- queue:{channel}:{name} : réglages scalaires (length, level, status)

`pop_random` garde l'implémentation en deux appels du contrat (ZRANDMEMBER puis ZREM).
"""
from __future__ import annotations

import functools
import logging
from typing import List, Optional, Sequence

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from core.queue.store import QueueEntry, QueueStore, StoreError

logger = logging.getLogger(__name__)

HEALTH_CHECK_INTERVAL = 30
SOCKET_CONNECT_TIMEOUT = 5.0  # secondes
SOCKET_TIMEOUT = 5.0  # secondes
MAX_CONNECTIONS = 20
MAX_RETRIES = 3

KEY_PREFIX = "queue"
NAMES_SUFFIX = "names"


def build_client(url: str) -> Redis:
    retry = Retry(ExponentialBackoff(), retries=MAX_RETRIES)
    return Redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=HEALTH_CHECK_INTERVAL,
        socket_keepalive=True,
        socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
        socket_timeout=SOCKET_TIMEOUT,
        max_connections=MAX_CONNECTIONS,
        retry=retry,
        retry_on_error=[ConnectionError, TimeoutError],
    )


def _translate(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except RedisError as exc:
            raise StoreError(str(exc) or type(exc).__name__) from exc
    return wrapper


class RedisQueueStore(QueueStore):
    def __init__(self, redis: Redis):
        self.redis = redis

    @staticmethod
    def _key(channel: str) -> str:
        return f"{KEY_PREFIX}:{channel}"

    @staticmethod
    def _names_key(channel: str) -> str:
        return f"{KEY_PREFIX}:{channel}:{NAMES_SUFFIX}"

    @staticmethod
    def _setting_key(channel: str, name: str) -> str:
        return f"{KEY_PREFIX}:{channel}:{name}"

    async def _entries(self, channel: str, members: Sequence[str]) -> List[QueueEntry]:
        if not members:
            return []
        names = await self.redis.hmget(self._names_key(channel), list(members))
        return [QueueEntry(member, name or member) for member, name in zip(members, names)]

    @_translate
    async def add_if_absent(self, channel: str, member: str, score: float, name: str) -> bool:
        # nom écrit avant l'entrée : un membre visible a toujours son nom
        await self.redis.hset(self._names_key(channel), member, name)
        return await self.redis.zadd(self._key(channel), {member: score}, nx=True) == 1

    @_translate
    async def remove(self, channel: str, member: str) -> bool:
        removed = await self.redis.zrem(self._key(channel), member) == 1
        if removed:
            await self.redis.hdel(self._names_key(channel), member)
        return removed

    @_translate
    async def remove_many(self, channel: str, members: Sequence[str]) -> int:
        if not members:
            return 0
        removed = await self.redis.zrem(self._key(channel), *members)
        await self.redis.hdel(self._names_key(channel), *members)
        return removed

    @_translate
    async def rank(self, channel: str, member: str) -> Optional[int]:
        return await self.redis.zrank(self._key(channel), member)

    @_translate
    async def find_member(self, channel: str, name: str) -> Optional[str]:
        wanted = name.lower()
        for entry in await self._entries(channel, await self.redis.zrange(self._key(channel), 0, -1)):
            if entry.name.lower() == wanted:
                return entry.member
        return None

    @_translate
    async def range_all(self, channel: str) -> List[QueueEntry]:
        return await self._entries(channel, await self.redis.zrange(self._key(channel), 0, -1))

    @_translate
    async def range_prefix(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        return await self._entries(channel, await self.redis.zrange(self._key(channel), 0, n - 1))

    @_translate
    async def random_sample(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        # count positif : membres distincts
        sampled = await self.redis.zrandmember(self._key(channel), n) or []
        return await self._entries(channel, sampled)

    @_translate
    async def pop_min(self, channel: str, n: int) -> List[QueueEntry]:
        if n <= 0:
            return []
        popped = [member for member, _score in await self.redis.zpopmin(self._key(channel), n)]
        entries = await self._entries(channel, popped)
        if popped:
            await self.redis.hdel(self._names_key(channel), *popped)
        return entries

    @_translate
    async def cardinality(self, channel: str) -> int:
        return await self.redis.zcard(self._key(channel))

    @_translate
    async def delete(self, channel: str) -> None:
        await self.redis.delete(self._key(channel), self._names_key(channel))

    @_translate
    async def get_setting(self, channel: str, name: str) -> Optional[str]:
        return await self.redis.get(self._setting_key(channel, name))

    @_translate
    async def set_setting(self, channel: str, name: str, value: str) -> None:
        await self.redis.set(self._setting_key(channel, name), value)

    async def close(self) -> None:
        try:
            await self.redis.aclose()
        except RedisError:
            logger.exception("Erreur fermeture client Redis")


__all__ = ["RedisQueueStore", "build_client"]
