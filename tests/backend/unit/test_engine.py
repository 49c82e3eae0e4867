from teamsaver.backend.engine import (
    DISCARD_INVITEE,
    DISCARD_TEAM,
    EVENT_KINDS,
    REMOVE,
    TEAM_DISBANDED,
    TRACK_INVITEE,
    UPSERT,
    TeamEvent,
    normalize_kind,
    parse_event,
    plan_event,
)


def test_every_event_kind_maps_to_a_store_effect() -> None:
    effects = {kind: plan_event(TeamEvent(kind=kind, team_id=1, player_id=2)).store_effect for kind in EVENT_KINDS}

    assert effects.pop(TEAM_DISBANDED) == REMOVE
    assert set(effects.values()) == {UPSERT}


def test_disband_discards_pending_invites_of_team() -> None:
    plan = plan_event(TeamEvent(kind="TEAM_DISBANDED", team_id=1))

    assert plan.invite_effect == DISCARD_TEAM


def test_invite_events_update_tracker_only_with_player() -> None:
    assert plan_event(TeamEvent(kind="INVITE_CREATED", team_id=1, player_id=5)).invite_effect == TRACK_INVITEE
    assert plan_event(TeamEvent(kind="INVITE_REJECTED", team_id=1, player_id=5)).invite_effect == DISCARD_INVITEE
    assert plan_event(TeamEvent(kind="INVITE_ACCEPTED", team_id=1)).invite_effect is None


def test_membership_events_leave_tracker_alone() -> None:
    plan = plan_event(TeamEvent(kind="MEMBER_KICKED", team_id=1, player_id=5))

    assert plan.store_effect == UPSERT
    assert plan.invite_effect is None


def test_unknown_event_has_no_effect() -> None:
    plan = plan_event(TeamEvent(kind="TEAM_RENAMED", team_id=1))

    assert plan.store_effect is None
    assert plan.invite_effect is None


def test_normalize_kind_accepts_host_spellings() -> None:
    assert normalize_kind("TeamCreated") == "TEAM_CREATED"
    assert normalize_kind("invite_accepted") == "INVITE_ACCEPTED"
    assert normalize_kind("LEADER_PROMOTED") == "LEADER_PROMOTED"


def test_parse_event_reads_host_payload() -> None:
    event = parse_event({"type": "MemberLeft", "teamId": "5", "playerId": 101})

    assert event == TeamEvent(kind="MEMBER_LEFT", team_id=5, player_id=101)
    assert parse_event({"type": "TeamCreated", "teamId": 5}).player_id is None
