"""
Pytest configuration and shared fixtures.
"""

import random
import zlib
from typing import Dict, List, Optional, Sequence

import pytest

from core.queue.engine import QueueEngine
from core.queue.models import Caller
from core.queue.store import QueueEntry, QueueStore, StoreError


def user_id_for(name: str) -> int:
    """Stable fake account id for a display name."""
    return zlib.crc32(name.encode())


class MemoryQueueStore(QueueStore):
    """In-memory QueueStore with the same ordering as the real backends."""

    def __init__(self, seed: int = 0):
        self.members: Dict[str, Dict[str, float]] = {}
        self.names: Dict[str, Dict[str, str]] = {}
        self.settings: Dict[tuple, str] = {}
        self.failing: set = set()
        self.rng = random.Random(seed)

    def _check(self, op: str):
        if op in self.failing or "*" in self.failing:
            raise StoreError(f"{op} unavailable")

    def _ordered(self, channel: str) -> List[QueueEntry]:
        entries = self.members.get(channel, {})
        names = self.names.get(channel, {})
        ordered = sorted(entries.items(), key=lambda kv: (kv[1], kv[0]))
        return [QueueEntry(m, names.get(m, m)) for m, _ in ordered]

    def _drop(self, channel: str, member: str) -> bool:
        self.names.get(channel, {}).pop(member, None)
        return self.members.get(channel, {}).pop(member, None) is not None

    def seed(self, channel: str, *names: str, start: float = 1.0):
        """Queue display names in order, keyed by their fake account ids."""
        for i, name in enumerate(names):
            member = str(user_id_for(name))
            self.members.setdefault(channel, {})[member] = start + i
            self.names.setdefault(channel, {})[member] = name

    def queued(self, channel: str) -> List[str]:
        """Display names in queue order."""
        return [entry.name for entry in self._ordered(channel)]

    async def add_if_absent(self, channel: str, member: str, score: float, name: str) -> bool:
        self._check("add_if_absent")
        entries = self.members.setdefault(channel, {})
        if member in entries:
            return False
        entries[member] = score
        self.names.setdefault(channel, {})[member] = name
        return True

    async def remove(self, channel: str, member: str) -> bool:
        self._check("remove")
        return self._drop(channel, member)

    async def remove_many(self, channel: str, members: Sequence[str]) -> int:
        self._check("remove_many")
        return sum(1 for m in members if self._drop(channel, m))

    async def rank(self, channel: str, member: str) -> Optional[int]:
        self._check("rank")
        ordered = [entry.member for entry in self._ordered(channel)]
        return ordered.index(member) if member in ordered else None

    async def find_member(self, channel: str, name: str) -> Optional[str]:
        self._check("find_member")
        for entry in self._ordered(channel):
            if entry.name.lower() == name.lower():
                return entry.member
        return None

    async def range_all(self, channel: str) -> List[QueueEntry]:
        self._check("range_all")
        return self._ordered(channel)

    async def range_prefix(self, channel: str, n: int) -> List[QueueEntry]:
        self._check("range_prefix")
        return self._ordered(channel)[:max(n, 0)]

    async def random_sample(self, channel: str, n: int) -> List[QueueEntry]:
        self._check("random_sample")
        ordered = self._ordered(channel)
        return self.rng.sample(ordered, min(n, len(ordered)))

    async def pop_min(self, channel: str, n: int) -> List[QueueEntry]:
        self._check("pop_min")
        popped = self._ordered(channel)[:max(n, 0)]
        for entry in popped:
            self._drop(channel, entry.member)
        return popped

    async def cardinality(self, channel: str) -> int:
        self._check("cardinality")
        return len(self.members.get(channel, {}))

    async def delete(self, channel: str) -> None:
        self._check("delete")
        self.members.pop(channel, None)
        self.names.pop(channel, None)

    async def get_setting(self, channel: str, name: str) -> Optional[str]:
        self._check("get_setting")
        return self.settings.get((channel, name))

    async def set_setting(self, channel: str, name: str, value: str) -> None:
        self._check("set_setting")
        self.settings[(channel, name)] = value


class TickClock:
    """Strictly increasing clock so arrival order follows call order.

    Starts well after the scores used by `MemoryQueueStore.seed`, so live joins
    always queue behind seeded members.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        value = self.now
        self.now += 1.0
        return value


def _make_caller(name: str = "viewer", user_id: Optional[int] = None, **flags) -> Caller:
    return Caller(user_id=user_id_for(name) if user_id is None else user_id, display_name=name, **flags)


@pytest.fixture
def make_caller():
    return _make_caller


@pytest.fixture
def store() -> MemoryQueueStore:
    return MemoryQueueStore()


@pytest.fixture
def engine(store) -> QueueEngine:
    return QueueEngine(store, clock=TickClock())


@pytest.fixture
def strict_engine(store) -> QueueEngine:
    return QueueEngine(store, strict_args=True, clock=TickClock())


@pytest.fixture
def mod() -> Caller:
    return _make_caller("mod", is_moderator=True)


@pytest.fixture
def viewer() -> Caller:
    return _make_caller("viewer")
