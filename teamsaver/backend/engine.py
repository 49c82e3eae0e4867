"""Dispatch of live-registry change notifications onto store and tracker effects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

TEAM_CREATED = "TEAM_CREATED"
TEAM_UPDATED = "TEAM_UPDATED"
TEAM_DISBANDED = "TEAM_DISBANDED"
INVITE_CREATED = "INVITE_CREATED"
INVITE_ACCEPTED = "INVITE_ACCEPTED"
INVITE_REJECTED = "INVITE_REJECTED"
MEMBER_LEFT = "MEMBER_LEFT"
MEMBER_KICKED = "MEMBER_KICKED"
LEADER_PROMOTED = "LEADER_PROMOTED"

EVENT_KINDS = (
    TEAM_CREATED,
    TEAM_UPDATED,
    TEAM_DISBANDED,
    INVITE_CREATED,
    INVITE_ACCEPTED,
    INVITE_REJECTED,
    MEMBER_LEFT,
    MEMBER_KICKED,
    LEADER_PROMOTED,
)

UPSERT = "upsert"
REMOVE = "remove"

TRACK_INVITEE = "track_invitee"
DISCARD_INVITEE = "discard_invitee"
DISCARD_TEAM = "discard_team"


@dataclass(frozen=True)
class TeamEvent:
    kind: str
    team_id: int
    player_id: int | None = None


@dataclass(frozen=True)
class EventPlan:
    store_effect: str | None
    invite_effect: str | None = None


def parse_event(payload: dict[str, Any]) -> TeamEvent:
    """Build an event from a host payload such as ``{"type": "TeamCreated", "teamId": 5}``."""
    player_id = payload.get("playerId")
    return TeamEvent(
        kind=normalize_kind(str(payload.get("type", ""))),
        team_id=int(payload.get("teamId", 0)),
        player_id=int(player_id) if player_id is not None else None,
    )


def normalize_kind(kind: str) -> str:
    """Accept ``TeamCreated``, ``team_created`` or ``TEAM_CREATED`` spellings."""
    if "_" in kind or kind.isupper():
        return kind.upper()
    spaced = "".join(f"_{char}" if char.isupper() and index else char for index, char in enumerate(kind))
    return spaced.upper()


def plan_event(event: TeamEvent) -> EventPlan:
    """Map one notification onto its store effect and pending-invite effect."""
    kind = event.kind.upper()
    if kind == TEAM_DISBANDED:
        return EventPlan(store_effect=REMOVE, invite_effect=DISCARD_TEAM)
    if kind == INVITE_CREATED:
        return EventPlan(store_effect=UPSERT, invite_effect=TRACK_INVITEE if event.player_id is not None else None)
    if kind in (INVITE_ACCEPTED, INVITE_REJECTED):
        return EventPlan(store_effect=UPSERT, invite_effect=DISCARD_INVITEE if event.player_id is not None else None)
    if kind in (TEAM_CREATED, TEAM_UPDATED, MEMBER_LEFT, MEMBER_KICKED, LEADER_PROMOTED):
        return EventPlan(store_effect=UPSERT)
    return EventPlan(store_effect=None)
