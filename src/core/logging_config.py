"""
Configuration centralisée du logging pour le bot de file d'attente.

Objectifs :
- Un seul setup idempotent (évite la duplication des handlers)
- Déduplication des avertissements/erreurs identiques : une panne du stockage
  produit la même erreur à chaque commande, on ne la garde qu'une fois
- Les INFO/DEBUG (joins, tirages) ne sont jamais dédupliqués
- Format uniforme configurable via variables d'environnement
"""
from __future__ import annotations

import logging
import threading
import os

_INITIALIZED = False

DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
MAX_TRACKED_RECORDS = 5000


class DeduplicateFilter(logging.Filter):
    """Ne laisse passer qu'une fois chaque (logger, niveau, message) à partir de `min_level`."""

    def __init__(self, min_level: int = logging.WARNING, max_tracked: int = MAX_TRACKED_RECORDS):
        super().__init__()
        self.min_level = min_level
        self.max_tracked = max_tracked
        self._lock = threading.Lock()
        self._seen: set[tuple[str, int, str]] = set()

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if record.levelno < self.min_level:
            return True
        try:
            rendered = record.getMessage()
        except Exception:  # noqa: BLE001
            rendered = str(record.msg)
        key = (record.name, record.levelno, rendered)
        with self._lock:
            if key in self._seen:
                return False
            # Limite la croissance mémoire (reset si trop gros)
            if len(self._seen) >= self.max_tracked:
                self._seen.clear()
            self._seen.add(key)
        return True


def setup_logging(force: bool = False) -> None:
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    root = logging.getLogger()
    if force:
        # Purge tous les handlers existants
        for h in list(root.handlers):
            root.removeHandler(h)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for h in root.handlers:
        if not any(isinstance(f, DeduplicateFilter) for f in h.filters):
            h.addFilter(DeduplicateFilter())
        h.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root.setLevel(getattr(logging, DEFAULT_LEVEL, logging.INFO))
    # discord.py est verbeux en INFO (gateway, heartbeats)
    logging.getLogger("discord").setLevel(max(root.level, logging.WARNING))
    _INITIALIZED = True


__all__ = ["setup_logging", "DeduplicateFilter"]
