"""
Configuration centrale du bot de file d'attente.

Ce module charge les variables d'environnement (.env) et prépare :
- Les intents Discord (message_content pour lire les commandes `!`, members pour les rôles)
- Le token du bot (BOT_TOKEN, obligatoire)
- Le backend de la file (REDIS_URL prioritaire, sinon DATABASE_URL)
- Les réglages de la file (rôles, longueur max de `!list`, parsing strict)

Un warning est émis si BOT_TOKEN est absent pour détecter le problème avant le lancement du bot.
"""
from __future__ import annotations

import os
import logging
from dotenv import load_dotenv
import discord

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s invalide (%r), valeur par défaut %s utilisée", name, raw, default)
        return default


INTENTS = discord.Intents.default()
INTENTS.message_content = True
INTENTS.members = True

BOT_TOKEN = os.getenv("BOT_TOKEN")
DATABASE_URL = os.getenv("DATABASE_URL")
REDIS_URL = os.getenv("REDIS_URL")

COMMAND_PREFIX = "!"

# Limite de transport : la ligne `!list` est tronquée au-delà
QUEUE_LIST_MAX_CHARS = env_int("QUEUE_LIST_MAX_CHARS", 500)
# Strict : niveau inconnu ou nombre de tirage invalide refusés (sinon Viewer / 1)
QUEUE_STRICT_ARGS = env_bool("QUEUE_STRICT_ARGS", False)

QUEUE_MODERATOR_ROLE = os.getenv("QUEUE_MODERATOR_ROLE", "Moderator")
QUEUE_VIP_ROLE = os.getenv("QUEUE_VIP_ROLE", "VIP")
QUEUE_SUBSCRIBER_ROLE = os.getenv("QUEUE_SUBSCRIBER_ROLE", "Subscriber")
QUEUE_BOOSTERS_AS_SUBSCRIBERS = env_bool("QUEUE_BOOSTERS_AS_SUBSCRIBERS", True)


# Avertit si le token du bot est absent
if not BOT_TOKEN:
    logger.warning("BOT_TOKEN manquant dans l'environnement")
