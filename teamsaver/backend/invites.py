"""In-memory tracker of invitations still owed to their invitees."""

from __future__ import annotations

from teamsaver.backend.models import PendingInvite


class PendingInviteTracker:
    """Maps an invitee id to the team id whose invitation they have not seen yet.

    One entry per invitee: a newer invitation replaces an older one, matching the
    host which only shows the latest pending invite to a client.
    """

    def __init__(self) -> None:
        self._owed: dict[int, int] = {}

    def __contains__(self, invitee_id: object) -> bool:
        return invitee_id in self._owed

    def __len__(self) -> int:
        return len(self._owed)

    def track(self, invitee_id: int, team_id: int) -> None:
        self._owed[invitee_id] = team_id

    def owed_team(self, invitee_id: int) -> int | None:
        return self._owed.get(invitee_id)

    def discard(self, invitee_id: int) -> bool:
        return self._owed.pop(invitee_id, None) is not None

    def discard_team(self, team_id: int) -> int:
        stale = [invitee_id for invitee_id, owed in self._owed.items() if owed == team_id]
        for invitee_id in stale:
            del self._owed[invitee_id]
        return len(stale)

    def clear(self) -> None:
        self._owed.clear()

    def entries(self) -> list[PendingInvite]:
        return [PendingInvite(invitee_id=invitee_id, team_id=team_id) for invitee_id, team_id in self._owed.items()]
