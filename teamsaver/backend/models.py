"""Domain models for durable team records and player sessions."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DurableRecord:
    """Serializable snapshot of one team.

    ``members`` and ``invites`` keep insertion order and never hold the same id twice.
    The leader is not required to be a member.
    """

    team_id: int
    leader_id: int
    members: list[int] = field(default_factory=list)
    invites: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.members = unique_ids(self.members)
        self.invites = unique_ids(self.invites)


@dataclass(frozen=True)
class SessionHandle:
    player_id: int
    display_name: str
    sleeping: bool = False


@dataclass(frozen=True)
class PendingInvite:
    invitee_id: int
    team_id: int


def unique_ids(ids: list[int]) -> list[int]:
    seen: set[int] = set()
    result: list[int] = []
    for player_id in ids:
        if player_id in seen:
            continue
        seen.add(player_id)
        result.append(player_id)
    return result
