"""
Moteur de la file d'attente (join / leave / list / tirages / réglages) pour un canal.

Principes :
- Aucun état en mémoire entre deux appels : toute la cohérence repose sur les
  primitives atomiques du stockage (ajout si absent, pop du minimum, retrait).
- Chaque opération publique retourne un `QueueResult`, jamais d'exception :
  les `StoreError` sont converties en résultat FAULT à la frontière.
- Les opérations privilégiées (modérateur ou propriétaire) retournent
  NOT_PERMITTED pour les autres appelants.
"""
from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from .models import (
    Caller,
    Outcome,
    QueueResult,
    QueueSettings,
    level_from_stored,
    parse_int,
    parse_level,
)
from .store import QueueStore, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Callable[..., Awaitable[QueueResult]])

# Noms des réglages par canal
LIMIT_SETTING = "length"
LEVEL_SETTING = "level"
STATUS_SETTING = "status"

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"


def _member(caller: Caller) -> str:
    """Clé de l'entrée : id du compte, le nom affiché n'étant ni unique ni stable."""
    return str(caller.user_id)


def _guarded(func: T) -> T:
    """Convertit les erreurs du stockage en résultat FAULT."""
    @functools.wraps(func)
    async def wrapper(self: "QueueEngine", channel: str, *args, **kwargs):  # type: ignore[misc]
        try:
            return await func(self, channel, *args, **kwargs)
        except StoreError as exc:
            return QueueResult(Outcome.FAULT, error=exc)
    return wrapper  # type: ignore[return-value]


def _privileged(func: T) -> T:
    @functools.wraps(func)
    async def wrapper(self: "QueueEngine", channel: str, caller: Caller, *args, **kwargs):  # type: ignore[misc]
        if not caller.is_privileged:
            logger.debug("%s refusé pour %s sur %s", func.__name__, caller.display_name, channel)
            return QueueResult(Outcome.NOT_PERMITTED)
        return await func(self, channel, caller, *args, **kwargs)
    return wrapper  # type: ignore[return-value]


class QueueEngine:
    """
    Opérations de la file pour un canal, exprimées sur un `QueueStore`.

    Args :
        store : backend de stockage ordonné
        strict_args : refuse les niveaux inconnus et les nombres de tirage invalides
            au lieu de retomber sur Viewer / 1
        clock : horloge des scores d'arrivée (secondes)
    """

    def __init__(self, store: QueueStore, *, strict_args: bool = False, clock: Callable[[], float] = time.time):
        self.store = store
        self.strict_args = strict_args
        self.clock = clock

    # ---------- lectures ----------
    async def read_settings(self, channel: str) -> QueueSettings:
        limit, level, status = await asyncio.gather(
            self.store.get_setting(channel, LIMIT_SETTING),
            self.store.get_setting(channel, LEVEL_SETTING),
            self.store.get_setting(channel, STATUS_SETTING),
        )
        return QueueSettings(
            limit=max(parse_int(limit) or 0, 0),
            level=level_from_stored(level),
            is_open=status == STATUS_OPEN,
        )

    @_guarded
    async def summary(self, channel: str, caller: Caller) -> QueueResult:
        settings, count = await asyncio.gather(self.read_settings(channel), self.store.cardinality(channel))
        return QueueResult(Outcome.QUEUE_INFO, settings=settings, count=count)

    @_guarded
    async def length(self, channel: str, caller: Caller) -> QueueResult:
        settings = await self.read_settings(channel)
        return QueueResult(Outcome.LENGTH_INFO, settings=settings)

    @_guarded
    async def level(self, channel: str, caller: Caller) -> QueueResult:
        settings = await self.read_settings(channel)
        return QueueResult(Outcome.LEVEL_INFO, settings=settings)

    @_guarded
    async def status(self, channel: str, caller: Caller) -> QueueResult:
        settings = await self.read_settings(channel)
        return QueueResult(Outcome.STATUS_INFO, settings=settings)

    @_guarded
    async def list_members(self, channel: str, caller: Caller) -> QueueResult:
        entries = await self.store.range_all(channel)
        return QueueResult(Outcome.LIST, members=tuple(e.name for e in entries), count=len(entries))

    @_guarded
    async def count(self, channel: str, caller: Caller) -> QueueResult:
        return QueueResult(Outcome.COUNT, count=await self.store.cardinality(channel))

    @_guarded
    async def position(self, channel: str, caller: Caller) -> QueueResult:
        rank = await self.store.rank(channel, _member(caller))
        if rank is None:
            return QueueResult(Outcome.NOT_QUEUED)
        return QueueResult(Outcome.POSITION, position=rank + 1)

    # ---------- membres ----------
    @_guarded
    async def join(self, channel: str, caller: Caller) -> QueueResult:
        member = _member(caller)
        settings, count, rank = await asyncio.gather(
            self.read_settings(channel),
            self.store.cardinality(channel),
            self.store.rank(channel, member),
        )
        if not settings.is_open:
            return QueueResult(Outcome.QUEUE_CLOSED, settings=settings)
        if caller.rank < settings.level:
            return QueueResult(Outcome.LEVEL_TOO_LOW, settings=settings)
        if settings.limit > 0 and count >= settings.limit:
            return QueueResult(Outcome.QUEUE_FULL, settings=settings, count=count)
        if rank is not None:
            return QueueResult(Outcome.ALREADY_QUEUED, position=rank + 1)

        if not await self.store.add_if_absent(channel, member, self.clock(), caller.display_name):
            # Join concurrent du même membre entre la lecture et l'ajout
            return QueueResult(Outcome.ALREADY_QUEUED)

        rank = await self.store.rank(channel, member)
        if rank is None:
            return QueueResult(Outcome.NOT_QUEUED)
        if settings.limit > 0 and rank >= settings.limit:
            # Joins concurrents passés tous deux sous la limite : le dernier arrivé se retire
            await self.store.remove(channel, member)
            return QueueResult(Outcome.QUEUE_FULL, settings=settings, count=settings.limit)
        logger.info("Join %s (%s) sur %s (position %s)", caller.display_name, member, channel, rank + 1)
        return QueueResult(Outcome.JOINED, position=rank + 1)

    @_guarded
    async def leave(self, channel: str, caller: Caller) -> QueueResult:
        member = _member(caller)
        if await self.store.rank(channel, member) is None:
            return QueueResult(Outcome.NOT_QUEUED)
        if not await self.store.remove(channel, member):
            return QueueResult(Outcome.NOT_QUEUED)
        logger.info("Leave %s (%s) sur %s", caller.display_name, member, channel)
        return QueueResult(Outcome.LEFT)

    # ---------- réglages (privilégiés) ----------
    @_guarded
    @_privileged
    async def open(self, channel: str, caller: Caller) -> QueueResult:
        settings = await self.read_settings(channel)
        if settings.is_open:
            return QueueResult(Outcome.ALREADY_OPEN, settings=settings)
        await self.store.set_setting(channel, STATUS_SETTING, STATUS_OPEN)
        logger.info("File ouverte sur %s par %s", channel, caller.display_name)
        return QueueResult(
            Outcome.OPENED,
            settings=QueueSettings(limit=settings.limit, level=settings.level, is_open=True),
        )

    @_guarded
    @_privileged
    async def close(self, channel: str, caller: Caller) -> QueueResult:
        settings = await self.read_settings(channel)
        if not settings.is_open:
            return QueueResult(Outcome.ALREADY_CLOSED, settings=settings)
        await self.store.set_setting(channel, STATUS_SETTING, STATUS_CLOSED)
        logger.info("File fermée sur %s par %s", channel, caller.display_name)
        return QueueResult(
            Outcome.CLOSED,
            settings=QueueSettings(limit=settings.limit, level=settings.level, is_open=False),
        )

    @_guarded
    @_privileged
    async def clear(self, channel: str, caller: Caller) -> QueueResult:
        await self.store.delete(channel)
        logger.info("File vidée sur %s par %s", channel, caller.display_name)
        return QueueResult(Outcome.CLEARED)

    @_guarded
    @_privileged
    async def set_limit(self, channel: str, caller: Caller, token: Optional[str]) -> QueueResult:
        limit = parse_int(token)
        if limit is None or limit < 0:
            return QueueResult(Outcome.INVALID_NUMBER)
        await self.store.set_setting(channel, LIMIT_SETTING, str(limit))
        settings = QueueSettings(limit=limit)
        if limit == 0:
            return QueueResult(Outcome.LIMIT_REMOVED, settings=settings)
        return QueueResult(Outcome.LIMIT_SET, settings=settings)

    @_guarded
    @_privileged
    async def set_level(self, channel: str, caller: Caller, token: str) -> QueueResult:
        level = parse_level(token, strict=self.strict_args)
        if level is None:
            return QueueResult(Outcome.INVALID_LEVEL)
        await self.store.set_setting(channel, LEVEL_SETTING, level.label)
        return QueueResult(Outcome.LEVEL_SET, settings=QueueSettings(level=level))

    # ---------- tirages (privilégiés) ----------
    def _draw_count(self, token: Optional[str]) -> Optional[int]:
        if token is None:
            return 1
        amount = parse_int(token)
        if amount is None or amount < 1:
            return None if self.strict_args else 1
        return amount

    async def _draw(self, channel: str, caller: Caller, token: Optional[str], *, random: bool) -> QueueResult:
        amount = self._draw_count(token)
        if amount is None:
            return QueueResult(Outcome.INVALID_NUMBER)
        count = await self.store.cardinality(channel)
        if count == 0:
            return QueueResult(Outcome.QUEUE_EMPTY)
        if count < amount:
            return QueueResult(Outcome.NOT_ENOUGH_MEMBERS, count=count)
        if random:
            picked = await self.store.pop_random(channel, amount)
        else:
            picked = await self.store.pop_min(channel, amount)
        if not picked:
            return QueueResult(Outcome.QUEUE_EMPTY)
        logger.info("Tirage %s sur %s par %s: %s", "aléatoire" if random else "séquentiel", channel, caller.display_name, [e.name for e in picked])
        return QueueResult(Outcome.PICKED, members=tuple(e.name for e in picked), count=count - len(picked))

    @_guarded
    @_privileged
    async def pick(self, channel: str, caller: Caller, token: Optional[str] = None) -> QueueResult:
        return await self._draw(channel, caller, token, random=False)

    @_guarded
    @_privileged
    async def pick_random(self, channel: str, caller: Caller, token: Optional[str] = None) -> QueueResult:
        return await self._draw(channel, caller, token, random=True)

    @_guarded
    @_privileged
    async def remove(
        self,
        channel: str,
        caller: Caller,
        target: Optional[str],
        *,
        member_id: Optional[str] = None,
    ) -> QueueResult:
        """
        Retire un membre désigné par son nom affiché, ou directement par son id
        (`member_id`, cas d'une mention).
        """
        name = (target or "").strip().lstrip("@")
        if member_id is None and not name:
            return QueueResult(Outcome.MISSING_USERNAME)
        member = member_id or await self.store.find_member(channel, name)
        if member is None or not await self.store.remove(channel, member):
            return QueueResult(Outcome.TARGET_NOT_QUEUED, target=name)
        logger.info("%s (%s) retiré de la file %s par %s", name, member, channel, caller.display_name)
        return QueueResult(Outcome.REMOVED, target=name)


__all__ = ["QueueEngine", "LIMIT_SETTING", "LEVEL_SETTING", "STATUS_SETTING"]
