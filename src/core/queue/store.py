"""
Contrat du stockage ordonné utilisé par la file d'attente.

Chaque méthode correspond à un appel atomique côté backend (Postgres ou Redis).
`pop_random` est la seule opération composée par défaut (tirage puis retrait) :
les backends capables de le faire en un seul appel la surchargent.

Un membre est identifié par l'id stable du compte (`member`) ; le nom affiché
est conservé à côté de l'entrée pour l'affichage et `!remove <nom>`.
"""
from __future__ import annotations

import abc
import logging
from typing import List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Erreur d'infrastructure (backend injoignable, requête en échec...)."""


class QueueEntry(NamedTuple):
    member: str
    name: str


class QueueStore(abc.ABC):
    """
    Ensemble ordonné par canal (membre -> score d'arrivée, nom affiché) + réglages scalaires.

    Les rangs sont 0-based ; l'ordre est celui du score croissant, puis de l'id du membre.
    """

    @abc.abstractmethod
    async def add_if_absent(self, channel: str, member: str, score: float, name: str) -> bool:
        """Ajoute le membre s'il est absent. Retourne False s'il était déjà présent."""

    @abc.abstractmethod
    async def remove(self, channel: str, member: str) -> bool:
        ...

    @abc.abstractmethod
    async def remove_many(self, channel: str, members: Sequence[str]) -> int:
        ...

    @abc.abstractmethod
    async def rank(self, channel: str, member: str) -> Optional[int]:
        ...

    @abc.abstractmethod
    async def find_member(self, channel: str, name: str) -> Optional[str]:
        """Id du premier membre arrivé dont le nom affiché correspond (casse ignorée)."""

    @abc.abstractmethod
    async def range_all(self, channel: str) -> List[QueueEntry]:
        ...

    @abc.abstractmethod
    async def range_prefix(self, channel: str, n: int) -> List[QueueEntry]:
        ...

    @abc.abstractmethod
    async def random_sample(self, channel: str, n: int) -> List[QueueEntry]:
        """Jusqu'à n membres distincts, sans ordre garanti."""

    @abc.abstractmethod
    async def pop_min(self, channel: str, n: int) -> List[QueueEntry]:
        """Retire atomiquement les n premiers arrivés et les retourne dans l'ordre d'arrivée."""

    async def pop_random(self, channel: str, n: int) -> List[QueueEntry]:
        """
        Tirage aléatoire sans remise puis retrait des membres tirés.

        Implémentation par défaut en deux appels : non atomique. Un départ ou un
        tirage concurrent entre les deux appels peut retourner un membre déjà parti.
        """
        picked = await self.random_sample(channel, n)
        if not picked:
            return []
        removed = await self.remove_many(channel, [entry.member for entry in picked])
        if removed != len(picked):
            logger.warning(
                "Tirage aléatoire concurrent sur %s : %s tirés, %s retirés", channel, len(picked), removed
            )
        return picked

    @abc.abstractmethod
    async def cardinality(self, channel: str) -> int:
        ...

    @abc.abstractmethod
    async def delete(self, channel: str) -> None:
        ...

    @abc.abstractmethod
    async def get_setting(self, channel: str, name: str) -> Optional[str]:
        ...

    @abc.abstractmethod
    async def set_setting(self, channel: str, name: str, value: str) -> None:
        ...

    async def close(self) -> None:
        return None


__all__ = ["QueueEntry", "QueueStore", "StoreError"]
