"""Queue core package.

Les imports sont résolus de manière lazy, comme pour les autres sous-paquets de `core`.
"""
from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # aide mypy/IDE sans exécuter les imports au runtime initial
	from .engine import QueueEngine  # noqa: F401
	from .models import AccessLevel, Caller, Outcome, QueueResult, QueueSettings  # noqa: F401
	from .store import QueueEntry, QueueStore, StoreError  # noqa: F401

__all__ = [
	"QueueEngine",
	"AccessLevel",
	"Caller",
	"Outcome",
	"QueueResult",
	"QueueSettings",
	"QueueEntry",
	"QueueStore",
	"StoreError",
]

_LOCATIONS = {
	"QueueEngine": "core.queue.engine",
	"AccessLevel": "core.queue.models",
	"Caller": "core.queue.models",
	"Outcome": "core.queue.models",
	"QueueResult": "core.queue.models",
	"QueueSettings": "core.queue.models",
	"QueueEntry": "core.queue.store",
	"QueueStore": "core.queue.store",
	"StoreError": "core.queue.store",
}


def __getattr__(name: str):  # lazy resolution
	module = _LOCATIONS.get(name)
	if module is None:
		raise AttributeError(name)
	return getattr(import_module(module), name)
