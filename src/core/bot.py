"""
Classe principale du bot de file d'attente.

Responsabilités :
- Crée le client Discord (intents de `core.config`).
- Initialise le backend de stockage (Redis ou PostgreSQL) et le moteur de file.
- Charge dynamiquement les commandes texte (`commands`).

Note : L'initialisation asynchrone est centralisée dans `setup_hook`, appelé avant `on_ready`.
"""
from __future__ import annotations

import logging
import discord

from core import config, db
from core.queue.engine import QueueEngine

logger = logging.getLogger(__name__)

class Bot(discord.Client):
    """
    Client Discord étendu, encapsulant l'état applicatif.

    Attributs principaux :
        store : backend `QueueStore` (None si aucun stockage configuré)
        queue_engine : moteur de file partagé par tous les handlers (None sans stockage)
    """


    def __init__(self):
        super().__init__(intents=config.INTENTS)
        self.store = None
        self.queue_engine = None

    async def setup_hook(self):
        """
        Initialise les sous-systèmes avant la mise en ligne.

        Séquence :
        1. Connexion au stockage (et schéma si PostgreSQL)
        2. Création du moteur de file
        3. Enregistrement des commandes
        """
        try:
            self.store = await db.build_store(config.DATABASE_URL, config.REDIS_URL)
        except Exception:  # noqa: BLE001
            logger.exception("Erreur init stockage de la file")
        if self.store is not None:
            self.queue_engine = QueueEngine(self.store, strict_args=config.QUEUE_STRICT_ARGS)
            logger.info("Moteur de file initialisé (strict=%s)", config.QUEUE_STRICT_ARGS)
        try:
            from commands import load_all_commands  # type: ignore
            loaded = await load_all_commands(self)
            logger.info("Commandes chargées: %s", ", ".join(loaded) or "aucune")
        except Exception:  # noqa: BLE001
            logger.exception("Erreur chargement commandes dynamiques")

    async def on_ready(self):
        logger.info("Connecté: %s (%s)", self.user, getattr(self.user, 'id', '?'))

    async def close(self):  # type: ignore[override]
        """
        Fermeture propre du bot : client Redis ou pool asyncpg.
        """
        try:
            if self.store is not None:
                await self.store.close()
            await db.close_pool()
        except Exception:  # noqa: BLE001
            logger.exception("Erreur fermeture stockage")
        await super().close()
