"""
Entrée principale du bot de file d'attente Discord.

Ce script garantit que le dossier courant est ajouté à sys.path pour permettre les imports absolus
(core, commands, etc.), même si le lancement se fait via `python src/run.py`.
"""
from __future__ import annotations

import sys
import os

 # Ajoute dynamiquement le répertoire courant à sys.path si nécessaire
_CURRENT_DIR = os.path.dirname(__file__)
if _CURRENT_DIR not in sys.path:
    sys.path.insert(0, _CURRENT_DIR)

from core.logging_config import setup_logging  # noqa: E402
setup_logging()  # Initialise le logging global

from core import config, bot as bot_module  # noqa: E402


def main() -> None:
    if not config.BOT_TOKEN:
        raise SystemExit("BOT_TOKEN manquant")
    if not (config.DATABASE_URL or config.REDIS_URL):
        raise SystemExit("DATABASE_URL ou REDIS_URL requis pour la file d'attente")
    bot = bot_module.Bot()
    try:
        # log_handler=None : le logging est déjà configuré par setup_logging
        bot.run(config.BOT_TOKEN, log_handler=None)
    except KeyboardInterrupt:
        print("Arrêt manuel")
        sys.exit(0)


# Démarre le bot si le script est exécuté directement
if __name__ == "__main__":
    main()
