"""
Rendu texte des résultats de la file d'attente.

Chaque `QueueResult` devient une ligne de chat préfixée par la mention de l'auteur,
ou None quand aucune réponse ne doit être envoyée (refus de permission, panne).
"""
from __future__ import annotations

from typing import Optional, Sequence

from core.queue.models import AccessLevel, Outcome, QueueResult, QueueSettings

DEFAULT_LIST_MAX_CHARS = 500
ELLIPSIS = " ..."

_SILENT = {Outcome.NOT_PERMITTED, Outcome.FAULT}

_STATIC = {
    Outcome.QUEUE_CLOSED: "the queue is currently closed.",
    Outcome.QUEUE_FULL: "the queue is currently full. Please wait for someone to leave the queue.",
    Outcome.LEFT: "you have been removed from the queue.",
    Outcome.NOT_QUEUED: "you are not currently in the queue.",
    Outcome.ALREADY_OPEN: "the queue is already open.",
    Outcome.ALREADY_CLOSED: "the queue is already closed.",
    Outcome.CLOSED: "the queue is now closed.",
    Outcome.CLEARED: "the queue has been cleared.",
    Outcome.LIMIT_REMOVED: "the queue limit has been removed.",
    Outcome.QUEUE_EMPTY: "the queue is currently empty.",
    Outcome.NOT_ENOUGH_MEMBERS: "there are not enough people in the queue.",
    Outcome.INVALID_NUMBER: "please specify a valid number.",
    Outcome.INVALID_LEVEL: "please specify a valid level (viewer, subscriber, vip or moderator).",
    Outcome.MISSING_USERNAME: "please specify a username.",
}


def _settings(result: QueueResult) -> QueueSettings:
    return result.settings or QueueSettings()


def _level(settings: QueueSettings) -> str:
    return AccessLevel(settings.level).label


def render_summary(settings: QueueSettings, count: int) -> str:
    if not settings.is_open:
        return "the queue is currently closed."
    level = _level(settings)
    if count == 0:
        if settings.limit == 0:
            return f"the queue is currently empty. The queue is currently open to {level} and above."
        return (
            f"the queue is currently empty. With a maximum of {settings.limit} people in the queue. "
            f"The queue is currently open to {level} and above."
        )
    if settings.limit == 0:
        return f"the queue is currently open to {level} and above. There are currently {count} people in the queue."
    return (
        f"the queue is currently open to {level} and above. There are currently {count} people in the queue. "
        f"The queue is set to a maximum of {settings.limit} people long."
    )


def render_list(mention: str, members: Sequence[str], max_chars: int = DEFAULT_LIST_MAX_CHARS) -> str:
    """
    Construit la ligne `!list`, tronquée avec " ..." avant de dépasser `max_chars`.

    La longueur comptée inclut la mention et le préfixe.
    """
    if not members:
        return f"{mention}, the queue is currently empty."
    text = f"{mention}, the queue is currently "
    last = len(members) - 1
    for i, name in enumerate(members):
        candidate = text + f"{i + 1}. {name}" + ("." if i == last else ", ")
        if len(candidate) > max_chars:
            text += ELLIPSIS
            break
        text = candidate
    return text


def render_picked(members: Sequence[str]) -> str:
    picked = ", ".join(f"{i + 1}. {name}" for i, name in enumerate(members))
    return f"the following users have been picked: {picked}"


def render(result: QueueResult, mention: str, *, list_max_chars: int = DEFAULT_LIST_MAX_CHARS) -> Optional[str]:
    kind = result.kind
    if kind in _SILENT:
        return None
    if kind is Outcome.LIST:
        return render_list(mention, result.members, list_max_chars)

    settings = _settings(result)
    if kind in _STATIC:
        body = _STATIC[kind]
    elif kind is Outcome.QUEUE_INFO:
        body = render_summary(settings, result.count)
    elif kind is Outcome.JOINED:
        body = f"you have been added to the queue at position {result.position}."
    elif kind is Outcome.ALREADY_QUEUED:
        if result.position is None:
            body = "you are already in the queue."
        else:
            body = f"you are already in the queue at position {result.position}."
    elif kind is Outcome.POSITION:
        body = f"you are at position {result.position} in the queue."
    elif kind is Outcome.COUNT:
        body = f"there are currently {result.count} people in the queue."
    elif kind is Outcome.LEVEL_TOO_LOW or kind is Outcome.LEVEL_INFO:
        body = f"the queue is currently open to {_level(settings)} and above."
    elif kind is Outcome.LEVEL_SET:
        body = f"the queue is now open to {_level(settings)} and above."
    elif kind is Outcome.STATUS_INFO:
        body = "the queue is currently open." if settings.is_open else "the queue is currently closed."
    elif kind is Outcome.LENGTH_INFO:
        if settings.limit == 0:
            body = "the queue currently has no limit."
        else:
            body = f"the queue is currently {settings.limit} people long."
    elif kind is Outcome.OPENED:
        if settings.limit == 0:
            body = f"the queue is now open to {_level(settings)} and above."
        else:
            body = (
                f"the queue is now open to {_level(settings)} and above "
                f"with a maximum of {settings.limit} people in the queue."
            )
    elif kind is Outcome.LIMIT_SET:
        body = f"the queue limit has been set to {settings.limit}."
    elif kind is Outcome.PICKED:
        body = render_picked(result.members)
    elif kind is Outcome.REMOVED:
        body = f"{result.target} has been removed from the queue."
    elif kind is Outcome.TARGET_NOT_QUEUED:
        body = f"{result.target} is not in the queue."
    else:
        return None
    return f"{mention}, {body}"


__all__ = ["render", "render_list", "render_summary", "render_picked", "DEFAULT_LIST_MAX_CHARS"]
