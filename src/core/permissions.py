"""
Extraction du niveau d'un auteur Discord pour la file d'attente.

Rappel :
- `discord.Permissions` expose un attribut `.value` (int) contenant les bits cumulés
- On teste un sous-ensemble via : (current & required) == required

Règles :
- Propriétaire de la guilde -> broadcaster
- Bit ADMINISTRATOR ou MANAGE_MESSAGES, ou rôle modérateur configuré -> modérateur
- Rôle VIP configuré -> VIP
- Rôle abonné configuré, ou booster du serveur (si activé) -> abonné
"""
from __future__ import annotations

from typing import Iterable, Optional

import discord

from core import config
from core.queue.models import Caller

# Extraits de `discord.Permissions` (compléter si besoin futur)
ADMINISTRATOR = 0x00000008
MANAGE_MESSAGES = 0x00002000


def has_perms(member: discord.abc.User, bits: int) -> bool:
    perms = getattr(member, "guild_permissions", None)
    if perms is None:
        return False
    return (perms.value & bits) == bits


def _role_names(member: discord.abc.User) -> set[str]:
    roles: Iterable = getattr(member, "roles", None) or ()
    return {r.name.lower() for r in roles}


def caller_from_member(
    member: discord.abc.User,
    guild: discord.Guild,
    *,
    moderator_role: Optional[str] = None,
    vip_role: Optional[str] = None,
    subscriber_role: Optional[str] = None,
    boosters_as_subscribers: Optional[bool] = None,
) -> Caller:
    """
    Construit le `Caller` d'un message de guilde.

    Les noms de rôles sont comparés sans tenir compte de la casse ; les valeurs
    absentes sont lues dans `core.config`.
    """
    moderator_role = (moderator_role if moderator_role is not None else config.QUEUE_MODERATOR_ROLE).lower()
    vip_role = (vip_role if vip_role is not None else config.QUEUE_VIP_ROLE).lower()
    subscriber_role = (subscriber_role if subscriber_role is not None else config.QUEUE_SUBSCRIBER_ROLE).lower()
    if boosters_as_subscribers is None:
        boosters_as_subscribers = config.QUEUE_BOOSTERS_AS_SUBSCRIBERS

    roles = _role_names(member)
    is_moderator = (
        has_perms(member, ADMINISTRATOR)
        or has_perms(member, MANAGE_MESSAGES)
        or (bool(moderator_role) and moderator_role in roles)
    )
    is_subscriber = bool(subscriber_role) and subscriber_role in roles
    if boosters_as_subscribers and getattr(member, "premium_since", None) is not None:
        is_subscriber = True

    return Caller(
        user_id=member.id,
        display_name=getattr(member, "display_name", None) or member.name,
        is_broadcaster=member.id == guild.owner_id,
        is_moderator=is_moderator,
        is_vip=bool(vip_role) and vip_role in roles,
        is_subscriber=is_subscriber,
    )


__all__ = ["caller_from_member", "has_perms", "ADMINISTRATOR", "MANAGE_MESSAGES"]
