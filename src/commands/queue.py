"""
Commandes texte `!` de la file d'attente.

Commandes disponibles :
- !queue : résumé (ouverture, niveau, nombre, limite)
- !join / !leave : entrer dans la file / la quitter
- !list, !count, !position, !status : lectures
- !length [N] : limite actuelle ; avec N (modérateur) : définit la limite
- !level [niveau] : niveau actuel ; avec argument (modérateur) : définit le niveau
- !open, !close, !clear, !limit N : réglages (modérateur)
- !pick [N], !rand [N] : tirage séquentiel / aléatoire (modérateur)
- !remove <nom|@mention> : retire un membre, par nom affiché ou par mention (modérateur)

Le nom de commande est insensible à la casse ; les arguments gardent leur casse.
"""
from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Dict, Mapping, Optional, Tuple

import discord

from core import config
from core.permissions import caller_from_member
from core.queue.engine import QueueEngine
from core.queue.models import Caller, QueueResult
from views.queue import render

logger = logging.getLogger(__name__)

Handler = Callable[[QueueEngine, str, Caller, Optional[str]], Awaitable[QueueResult]]

# Jeton de mention utilisateur : <@123> ou <@!123>
MENTION_RE = re.compile(r"^<@!?(\d+)>$")


def parse_command(content: str, prefix: str = config.COMMAND_PREFIX) -> Optional[Tuple[str, Optional[str]]]:
    """
    Découpe "!cmd arg ..." en ("cmd", "arg"). None si ce n'est pas une commande.
    """
    if not content or not content.startswith(prefix):
        return None
    parts = content.split()
    name = parts[0][len(prefix):].lower()
    if not name:
        return None
    return name, parts[1] if len(parts) > 1 else None


async def _length(engine: QueueEngine, channel: str, caller: Caller, arg: Optional[str]) -> QueueResult:
    # `!length N` sert aussi de setter pour les modérateurs
    if arg is not None and caller.is_privileged:
        return await engine.set_limit(channel, caller, arg)
    return await engine.length(channel, caller)


async def _level(engine: QueueEngine, channel: str, caller: Caller, arg: Optional[str]) -> QueueResult:
    if arg is not None and caller.is_privileged:
        return await engine.set_level(channel, caller, arg)
    return await engine.level(channel, caller)


async def _remove(
    engine: QueueEngine,
    channel: str,
    caller: Caller,
    arg: Optional[str],
    mentioned: Mapping[str, str],
) -> QueueResult:
    match = MENTION_RE.match(arg or "")
    if match is None:
        return await engine.remove(channel, caller, arg)
    member_id = match.group(1)
    return await engine.remove(channel, caller, mentioned.get(member_id, arg), member_id=member_id)


COMMANDS: Dict[str, Handler] = {
    "queue": lambda e, c, u, a: e.summary(c, u),
    "join": lambda e, c, u, a: e.join(c, u),
    "leave": lambda e, c, u, a: e.leave(c, u),
    "open": lambda e, c, u, a: e.open(c, u),
    "close": lambda e, c, u, a: e.close(c, u),
    "clear": lambda e, c, u, a: e.clear(c, u),
    "length": _length,
    "level": _level,
    "status": lambda e, c, u, a: e.status(c, u),
    "list": lambda e, c, u, a: e.list_members(c, u),
    "count": lambda e, c, u, a: e.count(c, u),
    "position": lambda e, c, u, a: e.position(c, u),
    "limit": lambda e, c, u, a: e.set_limit(c, u, a),
    "pick": lambda e, c, u, a: e.pick(c, u, a),
    "rand": lambda e, c, u, a: e.pick_random(c, u, a),
    "remove": lambda e, c, u, a: _remove(e, c, u, a, {}),
}


async def dispatch(
    engine: QueueEngine,
    channel: str,
    caller: Caller,
    content: str,
    *,
    mentioned: Optional[Mapping[str, str]] = None,
) -> Optional[QueueResult]:
    """
    Exécute la commande contenue dans `content`. None si la ligne n'est pas une commande de la file.

    Args :
        mentioned : id -> nom affiché des membres mentionnés ; seul un argument
            `<@id>` de `!remove` y est résolu (les mentions de réponse sont ignorées)
    """
    parsed = parse_command(content)
    if parsed is None:
        return None
    name, arg = parsed
    handler = COMMANDS.get(name)
    if handler is None:
        return None
    if name == "remove":
        return await _remove(engine, channel, caller, arg, mentioned or {})
    return await handler(engine, channel, caller, arg)


def _reply_mentions(author: discord.abc.User) -> discord.AllowedMentions:
    # noms et arguments repris tels quels : seul l'auteur peut être notifié
    return discord.AllowedMentions(everyone=False, roles=False, users=[author], replied_user=False)


async def handle_message(bot: discord.Client, message: discord.Message):
    if message.author.bot or message.guild is None:
        return
    if not message.content.startswith(config.COMMAND_PREFIX):
        return
    engine: Optional[QueueEngine] = getattr(bot, "queue_engine", None)
    if engine is None:
        return

    caller = caller_from_member(message.author, message.guild)
    mentioned = {str(m.id): getattr(m, "display_name", m.name) for m in message.mentions}
    result = await dispatch(engine, str(message.guild.id), caller, message.content, mentioned=mentioned)
    if result is None:
        return
    if result.is_fault:
        logger.error(
            "Erreur stockage sur %s (%s): %s",
            message.guild.id,
            message.content.split()[0],
            result.error,
            exc_info=result.error,
        )
        return
    if result.is_rejection or result.is_validation_error:
        logger.debug("Refus %s pour %s sur %s", result.kind.value, caller.display_name, message.guild.id)

    text = render(result, message.author.mention, list_max_chars=config.QUEUE_LIST_MAX_CHARS)
    if not text:
        return
    try:
        await message.channel.send(text, allowed_mentions=_reply_mentions(message.author))
    except discord.HTTPException:
        logger.exception("Echec envoi réponse dans %s", message.channel.id)


def register(bot: discord.Client):
    @bot.event
    async def on_message(message: discord.Message):
        await handle_message(bot, message)


__all__ = ["register", "dispatch", "parse_command", "handle_message", "COMMANDS"]
