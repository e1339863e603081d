"""
Construction du stockage de la file d'attente.

Principes :
- Un pool asyncpg global unique, créé à la demande (`get_pool`)
- Redis prioritaire si REDIS_URL est défini, sinon PostgreSQL si DATABASE_URL l'est
- Aucun backend configuré : `build_store` retourne None (la file est désactivée)
"""
from __future__ import annotations

import asyncpg
import logging
from typing import Optional

from core.queue.store import QueueStore

logger = logging.getLogger(__name__)

_pool = None


async def get_pool(dsn: str):
    """
    Retourne (et crée si nécessaire) le pool asyncpg.
    Args :
        dsn : URL de connexion Postgres
    """
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(dsn, min_size=1, max_size=5)
        logger.info("Pool asyncpg initialisé")
    return _pool


async def close_pool():
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Pool asyncpg fermé")


async def build_store(database_url: Optional[str], redis_url: Optional[str]) -> Optional[QueueStore]:
    """
    Instancie le backend de la file selon la configuration.

    Args :
        database_url : DSN PostgreSQL (backend asyncpg)
        redis_url : URL Redis (backend sorted sets), prioritaire
    """
    if redis_url:
        from db.queue_redis import RedisQueueStore, build_client
        client = build_client(redis_url)
        await client.ping()
        logger.info("Backend Redis prêt")
        return RedisQueueStore(client)
    if database_url:
        from db.queue import PostgresQueueStore, ensure_schema
        pool = await get_pool(database_url)
        await ensure_schema(pool)
        logger.info("Backend PostgreSQL prêt")
        return PostgresQueueStore(pool)
    logger.warning("Ni REDIS_URL ni DATABASE_URL : file d'attente désactivée")
    return None


__all__ = ["get_pool", "close_pool", "build_store"]
