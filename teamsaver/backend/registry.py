"""Collaborator interfaces for the host's live team registry and player sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from teamsaver.backend.models import SessionHandle


class LiveTeam(Protocol):
    team_id: int
    leader_id: int
    members: list[int]
    invites: list[int]

    def mark_dirty(self) -> None:
        """Signal the host that the team changed and must be re-broadcast."""


class LiveRegistry(Protocol):
    max_team_size: int

    def find_team_by_id(self, team_id: int) -> LiveTeam | None:
        """Return the live team registered under ``team_id``."""

    def create_team(self) -> LiveTeam:
        """Create an empty team; the registry picks its id."""

    def all_teams(self) -> Iterable[LiveTeam]:
        """Enumerate every live team."""

    def set_player_current_team(self, player_id: int, team_id: int) -> None:
        """Point a reachable player's current-team field at ``team_id`` and signal the update."""

    def register_membership(self, player_id: int, team_id: int) -> None:
        """Record the player -> team back-reference."""


class PresenceResolver(Protocol):
    def resolve_player(self, player_id: int) -> SessionHandle | None:
        """Return a handle for a connected or sleeping player."""


class IdentityLookup(Protocol):
    def find_display_name(self, player_id: int) -> str | None:
        """Return the last known display name of any player, online or not."""


class ClientNotifier(Protocol):
    def notify_client(self, session: SessionHandle, channel: str, *args: object) -> None:
        """Fire-and-forget delivery of a client notification."""


@dataclass
class InMemoryLiveTeam:
    team_id: int
    leader_id: int = 0
    members: list[int] = field(default_factory=list)
    invites: list[int] = field(default_factory=list)
    dirty_marks: int = 0

    def mark_dirty(self) -> None:
        self.dirty_marks += 1


@dataclass
class InMemoryLiveRegistry:
    max_team_size: int = 8
    next_team_id: int = 1

    def __post_init__(self) -> None:
        self._teams: dict[int, InMemoryLiveTeam] = {}
        self.player_to_team: dict[int, int] = {}
        self.current_team: dict[int, int] = {}
        self.network_updates: list[int] = []

    def find_team_by_id(self, team_id: int) -> InMemoryLiveTeam | None:
        return self._teams.get(team_id)

    def create_team(self) -> InMemoryLiveTeam:
        while self.next_team_id in self._teams:
            self.next_team_id += 1
        team = InMemoryLiveTeam(team_id=self.next_team_id)
        self._teams[team.team_id] = team
        self.next_team_id += 1
        return team

    def all_teams(self) -> list[InMemoryLiveTeam]:
        return list(self._teams.values())

    def set_player_current_team(self, player_id: int, team_id: int) -> None:
        self.current_team[player_id] = team_id
        self.network_updates.append(player_id)

    def register_membership(self, player_id: int, team_id: int) -> None:
        self.player_to_team[player_id] = team_id

    def apply_team_state(
        self,
        team_id: int,
        leader_id: int,
        members: list[int],
        invites: list[int],
    ) -> InMemoryLiveTeam:
        """Create or overwrite the team under ``team_id`` as reported by the host."""
        team = self._teams.get(team_id)
        if team is None:
            team = InMemoryLiveTeam(team_id=team_id)
            self._teams[team_id] = team
        for player_id in team.members:
            if player_id not in members and self.player_to_team.get(player_id) == team_id:
                self.player_to_team.pop(player_id, None)
        team.leader_id = leader_id
        team.members = list(members)
        team.invites = list(invites)
        for player_id in team.members:
            self.player_to_team[player_id] = team_id
        team.mark_dirty()
        return team

    def disband_team(self, team_id: int) -> InMemoryLiveTeam | None:
        team = self._teams.pop(team_id, None)
        if team is None:
            return None
        for player_id in team.members:
            if self.player_to_team.get(player_id) == team_id:
                self.player_to_team.pop(player_id, None)
            if self.current_team.get(player_id) == team_id:
                self.current_team.pop(player_id, None)
        return team


@dataclass
class InMemoryPlayerDirectory:
    """Presence and identity lookup over players known to the host."""

    def __post_init__(self) -> None:
        self._names: dict[int, str] = {}
        self._connected: set[int] = set()
        self._sleeping: set[int] = set()

    def remember(self, player_id: int, display_name: str) -> None:
        self._names[player_id] = display_name

    def connect(self, player_id: int, display_name: str | None = None) -> SessionHandle:
        if display_name:
            self._names[player_id] = display_name
        self._sleeping.discard(player_id)
        self._connected.add(player_id)
        return self._handle(player_id, sleeping=False)

    def sleep(self, player_id: int) -> None:
        self._connected.discard(player_id)
        self._sleeping.add(player_id)

    def disconnect(self, player_id: int) -> None:
        self._connected.discard(player_id)
        self._sleeping.discard(player_id)

    def resolve_player(self, player_id: int) -> SessionHandle | None:
        if player_id in self._connected:
            return self._handle(player_id, sleeping=False)
        if player_id in self._sleeping:
            return self._handle(player_id, sleeping=True)
        return None

    def find_display_name(self, player_id: int) -> str | None:
        return self._names.get(player_id)

    def _handle(self, player_id: int, sleeping: bool) -> SessionHandle:
        return SessionHandle(
            player_id=player_id,
            display_name=self._names.get(player_id, ""),
            sleeping=sleeping,
        )
