"""Record builders for team snapshots."""

from __future__ import annotations

from teamsaver.backend.models import DurableRecord
from teamsaver.backend.registry import LiveTeam


def build_record(team: LiveTeam) -> DurableRecord:
    """Copy a live team's leader, members and invites by value into a fresh record."""
    return DurableRecord(
        team_id=team.team_id,
        leader_id=team.leader_id,
        members=list(team.members),
        invites=list(team.invites),
    )


def copy_record(record: DurableRecord) -> DurableRecord:
    return DurableRecord(
        team_id=record.team_id,
        leader_id=record.leader_id,
        members=list(record.members),
        invites=list(record.invites),
    )
