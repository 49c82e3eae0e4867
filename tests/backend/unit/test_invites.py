from teamsaver.backend.invites import PendingInviteTracker
from teamsaver.backend.models import PendingInvite


def test_tracker_keeps_latest_team_per_invitee() -> None:
    tracker = PendingInviteTracker()

    tracker.track(7, 1)
    tracker.track(7, 2)

    assert tracker.owed_team(7) == 2
    assert len(tracker) == 1
    assert 7 in tracker


def test_discard_is_idempotent() -> None:
    tracker = PendingInviteTracker()
    tracker.track(7, 1)

    assert tracker.discard(7) is True
    assert tracker.discard(7) is False
    assert tracker.owed_team(7) is None


def test_discard_team_drops_every_invitee_of_that_team() -> None:
    tracker = PendingInviteTracker()
    tracker.track(1, 10)
    tracker.track(2, 10)
    tracker.track(3, 11)

    assert tracker.discard_team(10) == 2
    assert tracker.entries() == [PendingInvite(invitee_id=3, team_id=11)]


def test_clear_empties_tracker() -> None:
    tracker = PendingInviteTracker()
    tracker.track(1, 10)

    tracker.clear()

    assert len(tracker) == 0
