"""
Types de base de la file d'attente (niveaux d'accès, appelant, résultats).

Aucune I/O ici : uniquement des structures et des fonctions pures, testables
sans Discord ni base de données.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Tuple


class AccessLevel(IntEnum):
    VIEWER = 0
    SUBSCRIBER = 1
    VIP = 2
    MODERATOR = 3

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    AccessLevel.VIEWER: "Viewer",
    AccessLevel.SUBSCRIBER: "Subscriber",
    AccessLevel.VIP: "VIP",
    AccessLevel.MODERATOR: "Moderator",
}

# Pas de raccourci pour VIP : "v" désigne Viewer
LEVEL_ALIASES = {
    "viewer": AccessLevel.VIEWER,
    "subscriber": AccessLevel.SUBSCRIBER,
    "vip": AccessLevel.VIP,
    "moderator": AccessLevel.MODERATOR,
    "v": AccessLevel.VIEWER,
    "s": AccessLevel.SUBSCRIBER,
    "m": AccessLevel.MODERATOR,
}

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(token: Optional[str]) -> Optional[int]:
    """
    Lit un entier en tête de chaîne ("12abc" -> 12), None si absent.
    """
    if token is None:
        return None
    match = _LEADING_INT.match(token)
    if match is None:
        return None
    return int(match.group(1))


def user_rank(*, is_broadcaster: bool, is_moderator: bool, is_vip: bool, is_subscriber: bool) -> AccessLevel:
    if is_broadcaster or is_moderator:
        return AccessLevel.MODERATOR
    if is_vip:
        return AccessLevel.VIP
    if is_subscriber:
        return AccessLevel.SUBSCRIBER
    return AccessLevel.VIEWER


def parse_level(token: str, *, strict: bool = False) -> Optional[AccessLevel]:
    """
    Convertit un argument `!level` en niveau.

    Accepte un nom (insensible à la casse), les raccourcis v/s/m ou un rang numérique.
    En mode permissif, toute valeur inconnue ou hors bornes retombe sur Viewer ;
    en mode strict, retourne None.
    """
    number = parse_int(token)
    if number is not None:
        if AccessLevel.VIEWER <= number <= AccessLevel.MODERATOR:
            return AccessLevel(number)
    else:
        level = LEVEL_ALIASES.get(token.strip().lower())
        if level is not None:
            return level
    return None if strict else AccessLevel.VIEWER


def level_from_stored(value: Optional[str]) -> AccessLevel:
    """Résout un niveau stocké (libellé ou nombre) ; absent ou illisible -> Viewer."""
    if not value:
        return AccessLevel.VIEWER
    return parse_level(value, strict=False) or AccessLevel.VIEWER


@dataclass(frozen=True)
class Caller:
    """Auteur d'une commande, avec les attributs déjà extraits du transport."""

    user_id: int
    display_name: str
    is_broadcaster: bool = False
    is_moderator: bool = False
    is_vip: bool = False
    is_subscriber: bool = False

    @property
    def rank(self) -> AccessLevel:
        return user_rank(
            is_broadcaster=self.is_broadcaster,
            is_moderator=self.is_moderator,
            is_vip=self.is_vip,
            is_subscriber=self.is_subscriber,
        )

    @property
    def is_privileged(self) -> bool:
        return self.rank == AccessLevel.MODERATOR


@dataclass(frozen=True)
class QueueSettings:
    limit: int = 0
    level: AccessLevel = AccessLevel.VIEWER
    is_open: bool = False


class Outcome(str, Enum):
    # succès
    QUEUE_INFO = "queue_info"
    JOINED = "joined"
    LEFT = "left"
    LENGTH_INFO = "length_info"
    LEVEL_INFO = "level_info"
    STATUS_INFO = "status_info"
    LIST = "list"
    COUNT = "count"
    POSITION = "position"
    OPENED = "opened"
    CLOSED = "closed"
    ALREADY_OPEN = "already_open"
    ALREADY_CLOSED = "already_closed"
    CLEARED = "cleared"
    LIMIT_SET = "limit_set"
    LIMIT_REMOVED = "limit_removed"
    LEVEL_SET = "level_set"
    PICKED = "picked"
    REMOVED = "removed"
    # refus de politique
    QUEUE_CLOSED = "queue_closed"
    LEVEL_TOO_LOW = "level_too_low"
    QUEUE_FULL = "queue_full"
    ALREADY_QUEUED = "already_queued"
    NOT_QUEUED = "not_queued"
    QUEUE_EMPTY = "queue_empty"
    NOT_ENOUGH_MEMBERS = "not_enough_members"
    TARGET_NOT_QUEUED = "target_not_queued"
    NOT_PERMITTED = "not_permitted"
    # validation
    INVALID_NUMBER = "invalid_number"
    INVALID_LEVEL = "invalid_level"
    MISSING_USERNAME = "missing_username"
    # infrastructure
    FAULT = "fault"


REJECTIONS = frozenset({
    Outcome.QUEUE_CLOSED,
    Outcome.LEVEL_TOO_LOW,
    Outcome.QUEUE_FULL,
    Outcome.ALREADY_QUEUED,
    Outcome.NOT_QUEUED,
    Outcome.QUEUE_EMPTY,
    Outcome.NOT_ENOUGH_MEMBERS,
    Outcome.TARGET_NOT_QUEUED,
    Outcome.NOT_PERMITTED,
})

VALIDATION_ERRORS = frozenset({
    Outcome.INVALID_NUMBER,
    Outcome.INVALID_LEVEL,
    Outcome.MISSING_USERNAME,
})


@dataclass(frozen=True)
class QueueResult:
    """
    Issue d'une opération de la file, rendue ensuite en message par `views.queue`.

    Attributs :
        kind : nature du résultat
        settings : réglages lus (limite, niveau, ouverture) si pertinents
        count : nombre de membres au moment de la lecture
        position : position 1-based (join, position, already_queued)
        members : membres listés ou tirés, dans l'ordre de rendu
        target : nom visé par `!remove`
        error : exception d'infrastructure (kind == FAULT)
    """

    kind: Outcome
    settings: Optional[QueueSettings] = None
    count: int = 0
    position: Optional[int] = None
    members: Tuple[str, ...] = field(default_factory=tuple)
    target: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def is_fault(self) -> bool:
        return self.kind is Outcome.FAULT

    @property
    def is_rejection(self) -> bool:
        return self.kind in REJECTIONS

    @property
    def is_validation_error(self) -> bool:
        return self.kind in VALIDATION_ERRORS


__all__ = [
    "AccessLevel",
    "LEVEL_ALIASES",
    "Caller",
    "QueueSettings",
    "Outcome",
    "QueueResult",
    "parse_int",
    "parse_level",
    "level_from_stored",
    "user_rank",
]
