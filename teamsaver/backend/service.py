"""Snapshot and reconciliation of team state between the durable store and the live registry."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from teamsaver.backend.engine import DISCARD_INVITEE, DISCARD_TEAM, REMOVE, TRACK_INVITEE, TeamEvent, plan_event
from teamsaver.backend.invites import PendingInviteTracker
from teamsaver.backend.models import DurableRecord
from teamsaver.backend.registry import ClientNotifier, IdentityLookup, LiveRegistry, LiveTeam, PresenceResolver
from teamsaver.backend.state import build_record, copy_record
from teamsaver.backend.store import RecordStore

log = logging.getLogger(__name__)

PENDING_INVITE_CHANNEL = "CLIENT_PendingInvite"
UNKNOWN_PLAYER_NAME = "Unknown"

TeamRestoredListener = Callable[[LiveTeam], None]


class TeamSaverService:
    """Owns the durable records and pending invites of one game session.

    Every live team is fetched from the registry by id on each call; the service never
    holds on to a live team between calls. All entry points are expected to run on the
    host's game thread, one at a time.
    """

    def __init__(
        self,
        *,
        registry: LiveRegistry,
        presence: PresenceResolver,
        notifier: ClientNotifier,
        store: RecordStore,
        identity: IdentityLookup | None = None,
        wipe_teams_on_map_wipe: bool = True,
    ) -> None:
        self._registry = registry
        self._presence = presence
        self._notifier = notifier
        self._store = store
        self._identity = identity
        self._wipe_teams_on_map_wipe = wipe_teams_on_map_wipe
        self._records: dict[int, DurableRecord] = {}
        self._tracker = PendingInviteTracker()
        self._listeners: list[TeamRestoredListener] = []
        self._ready = False
        self._started = False
        self._disabled = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def disabled(self) -> bool:
        return self._disabled

    @property
    def pending_invites(self) -> PendingInviteTracker:
        return self._tracker

    def records(self) -> dict[int, DurableRecord]:
        return {team_id: copy_record(record) for team_id, record in self._records.items()}

    def subscribe_team_restored(self, listener: TeamRestoredListener) -> None:
        self._listeners.append(listener)

    def start(self) -> bool:
        """Load the store, merge it into the live registry and enable the change handlers."""
        self._ready = False
        if not self._teams_enabled():
            self._disabled = True
            log.warning("Teams are disabled on this server. To enable them, set the max team size to > 0 (default 8)")
            return False
        self._disabled = False

        self._records = self._store.load()

        live_ids: set[int] = set()
        saved = 0
        for team in self._registry.all_teams():
            live_ids.add(team.team_id)
            if team.team_id not in self._records:
                self._records[team.team_id] = build_record(team)
                saved += 1
        if saved > 0:
            log.info("%d teams are saved to data file", saved)

        unmatched = [record for team_id, record in self._records.items() if team_id not in live_ids]
        restored = self.restore_all(unmatched)
        if restored > 0:
            log.info("%d teams restored from data file", restored)

        self.snapshot_all()
        self._started = True
        self._ready = True
        return True

    def shutdown(self) -> None:
        """Disable the change handlers and write one final snapshot."""
        self._ready = False
        if self._disabled or not self._started:
            return
        saved = self.snapshot_all()
        log.info("Shutdown: %d teams flushed to data file", saved)

    def snapshot_all(self) -> int:
        """Replace the whole store with the current live teams and persist it."""
        if self._disabled:
            return 0
        records: dict[int, DurableRecord] = {}
        for team in self._registry.all_teams():
            records[team.team_id] = build_record(team)
        self._records = records
        self._persist()
        log.info("%d teams saved to data file", len(records))
        return len(records)

    def restore_all(self, records: Sequence[DurableRecord]) -> int:
        """Merge records into the live registry, last record first, and persist the result."""
        if not self._teams_enabled():
            log.warning("Teams are disabled on this server, skipping restore of %d teams", len(records))
            return 0
        live_at_start = {team.team_id for team in self._registry.all_teams()}
        restored = 0
        for record in reversed(list(records)):
            self.restore_record(record, reusable_ids=live_at_start)
            restored += 1
        if restored > 0:
            self._persist()
        return restored

    def restore_record(self, record: DurableRecord, reusable_ids: set[int] | None = None) -> LiveTeam:
        """Create or update the live team for ``record`` and re-attach its members and invitees.

        The live team under ``record.team_id`` is reused only when its id is in
        ``reusable_ids`` (every live id when omitted), so teams created earlier in the
        same pass are never overwritten.
        """
        team = None
        if reusable_ids is None or record.team_id in reusable_ids:
            team = self._registry.find_team_by_id(record.team_id)
        if team is None:
            team = self._registry.create_team()
        team_id = team.team_id

        team.leader_id = record.leader_id
        if self._presence.resolve_player(record.leader_id) is None:
            log.warning("Can't find player %s, leader of team %s", record.leader_id, record.team_id)

        team.invites = list(record.invites)
        team.members = list(record.members)
        team.mark_dirty()

        for player_id in list(team.members):
            self._registry.register_membership(player_id, team_id)
            if self._presence.resolve_player(player_id) is None:
                log.info("Can't find player %s while restoring team members of team %s", player_id, team_id)
                continue
            self._registry.set_player_current_team(player_id, team_id)

        for invitee_id in list(team.invites):
            self._tracker.track(invitee_id, team_id)
            if not self.send_pending_invite(invitee_id):
                log.info("Invite of player %s to team %s is pending until they connect", invitee_id, team_id)

        if team_id != record.team_id:
            # the old key may already belong to another live team created in this pass
            if self._registry.find_team_by_id(record.team_id) is None:
                self._records.pop(record.team_id, None)
            log.info("Saved team %s restored to new team %s", record.team_id, team_id)
        else:
            log.info("Saved team %s restored", team_id)
        self._records[team_id] = build_record(team)

        for listener in self._listeners:
            try:
                listener(team)
            except Exception:
                log.exception("Team restored listener failed for team %s", team_id)
        return team

    def send_pending_invite(self, invitee_id: int) -> bool:
        """Deliver the invite owed to ``invitee_id`` if they are reachable; at most once per tracked invite."""
        team_id = self._tracker.owed_team(invitee_id)
        if team_id is None:
            return False

        team = self._registry.find_team_by_id(team_id)
        if team is None:
            self._tracker.discard(invitee_id)
            log.debug("Dropped pending invite of player %s to vanished team %s", invitee_id, team_id)
            return False

        session = self._presence.resolve_player(invitee_id)
        if session is None:
            return False

        try:
            self._notifier.notify_client(
                session,
                PENDING_INVITE_CHANNEL,
                self._leader_name(team.leader_id),
                team.leader_id,
                team.team_id,
            )
        except Exception:
            log.exception("Failed to deliver pending invite to team %s to player %s", team.team_id, invitee_id)
            return False
        self._tracker.discard(invitee_id)
        log.info("Pending invite to team %s delivered to player %s", team.team_id, invitee_id)
        return True

    def handle_event(self, event: TeamEvent) -> bool:
        """Mirror one live-registry notification into the store; inert until ``start`` completes."""
        if not self._ready:
            log.debug("Ignoring %s for team %s, restore has not completed", event.kind, event.team_id)
            return False

        plan = plan_event(event)
        if plan.store_effect is None:
            return False

        if plan.store_effect == REMOVE:
            self._records.pop(event.team_id, None)
            self._apply_invite_effect(plan.invite_effect, event)
            self._persist()
            log.info("%s Team Disbanded", event.team_id)
            return True

        team = self._registry.find_team_by_id(event.team_id)
        if team is None:
            log.error("%s: team %s not found in the live registry", event.kind, event.team_id)
            return False

        self._records[team.team_id] = build_record(team)
        self._apply_invite_effect(plan.invite_effect, event)
        self._persist()
        log.info("%s %s saved", team.team_id, event.kind)
        return True

    def on_player_connected(self, player_id: int) -> bool:
        if not self._ready:
            return False
        return self.send_pending_invite(player_id)

    def on_world_save(self) -> int:
        if not self._ready:
            return 0
        return self.snapshot_all()

    def on_new_save(self) -> bool:
        """React to a map wipe; clears the store only when wiping teams is configured."""
        if self._disabled:
            return False
        if not self._wipe_teams_on_map_wipe:
            log.info("Map wipe detected, keeping %d stored teams", len(self._records))
            return False
        log.warning("Creating a new data file")
        self._records = {}
        self._tracker.clear()
        self._persist()
        return True

    def _apply_invite_effect(self, effect: str | None, event: TeamEvent) -> None:
        if effect == DISCARD_TEAM:
            self._tracker.discard_team(event.team_id)
        elif event.player_id is None:
            return
        elif effect == TRACK_INVITEE:
            if self._presence.resolve_player(event.player_id) is None:
                self._tracker.track(event.player_id, event.team_id)
        elif effect == DISCARD_INVITEE:
            self._tracker.discard(event.player_id)

    def _teams_enabled(self) -> bool:
        return self._registry.max_team_size >= 1

    def _leader_name(self, leader_id: int) -> str:
        session = self._presence.resolve_player(leader_id)
        if session is not None and session.display_name:
            return session.display_name
        if self._identity is not None:
            name = self._identity.find_display_name(leader_id)
            if name:
                return name
        return UNKNOWN_PLAYER_NAME

    def _persist(self) -> None:
        self._store.save(dict(self._records))
