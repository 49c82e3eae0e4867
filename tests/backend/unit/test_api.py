import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from teamsaver.backend.api import PlayerNotificationHub, create_app
from teamsaver.backend.models import DurableRecord
from teamsaver.backend.registry import InMemoryLiveRegistry, InMemoryPlayerDirectory
from teamsaver.backend.service import TeamSaverService
from teamsaver.backend.store import FileRecordStore


def _build_app(tmp_path, records=None):
    store = FileRecordStore(data_dir=tmp_path)
    if records:
        store.save(records)
    registry = InMemoryLiveRegistry()
    directory = InMemoryPlayerDirectory()
    hub = PlayerNotificationHub()
    service = TeamSaverService(
        registry=registry,
        presence=directory,
        identity=directory,
        notifier=hub,
        store=store,
    )
    app = create_app(service=service, directory=directory, hub=hub)
    return app, service, registry, directory


def test_startup_restores_teams_listed_by_teams_endpoint(tmp_path) -> None:
    records = {5: DurableRecord(team_id=5, leader_id=100, members=[100, 101], invites=[102])}
    app, service, registry, _ = _build_app(tmp_path, records)

    with TestClient(app) as client:
        response = client.get("/api/teams")
        pending = client.get("/api/pending-invites")

    team_id = registry.all_teams()[0].team_id
    assert response.status_code == 200
    assert response.json()["teams"] == [
        {"teamId": team_id, "leaderId": 100, "members": [100, 101], "invites": [102]}
    ]
    assert pending.json() == {"102": team_id}
    assert service.ready is False


def test_post_event_upserts_team_record(tmp_path) -> None:
    app, service, registry, _ = _build_app(tmp_path)

    with TestClient(app) as client:
        team = registry.create_team()
        team.leader_id = 7
        team.members = [7]
        response = client.post("/api/events", json={"type": "TeamCreated", "teamId": team.team_id, "playerId": 7})

    assert response.status_code == 200
    assert response.json() == {"handled": True}
    assert service.records()[team.team_id].leader_id == 7


def test_post_event_rejects_missing_team_id(tmp_path) -> None:
    app, _, _, _ = _build_app(tmp_path)

    with TestClient(app) as client:
        response = client.post("/api/events", json={"type": "TeamCreated"})

    assert response.status_code == 422


def test_world_save_and_wipe_endpoints(tmp_path) -> None:
    app, service, registry, _ = _build_app(tmp_path)

    with TestClient(app) as client:
        registry.create_team().leader_id = 3
        saved = client.post("/api/world/save")
        wiped = client.post("/api/world/wipe")

    assert saved.json() == {"teams": 1}
    assert wiped.json() == {"wiped": True}


def test_websocket_connect_delivers_pending_invite_once(tmp_path) -> None:
    records = {5: DurableRecord(team_id=5, leader_id=100, members=[100], invites=[102])}
    app, service, registry, directory = _build_app(tmp_path, records)
    directory.remember(100, "Alice")

    with TestClient(app) as client:
        team_id = registry.all_teams()[0].team_id
        with client.websocket_connect("/ws/players/102?name=Carol") as websocket:
            message = websocket.receive_json()
        pending = client.get("/api/pending-invites").json()

    assert message == {"type": "CLIENT_PendingInvite", "args": ["Alice", 100, team_id]}
    assert pending == {}
    assert directory.find_display_name(102) == "Carol"


def test_post_event_applies_reported_state_to_in_memory_registry(tmp_path) -> None:
    store = FileRecordStore(data_dir=tmp_path)
    registry = InMemoryLiveRegistry()
    directory = InMemoryPlayerDirectory()
    hub = PlayerNotificationHub()
    service = TeamSaverService(registry=registry, presence=directory, identity=directory, notifier=hub, store=store)
    app = create_app(service=service, directory=directory, hub=hub, registry=registry)

    with TestClient(app) as client:
        created = client.post(
            "/api/events",
            json={"type": "TeamCreated", "teamId": 12, "leaderId": 4, "members": [4, 5], "invites": [6]},
        )
        listed = client.get("/api/teams").json()
        disbanded = client.post("/api/events", json={"type": "TeamDisbanded", "teamId": 12})

    assert created.json() == {"handled": True}
    assert listed["teams"] == [{"teamId": 12, "leaderId": 4, "members": [4, 5], "invites": [6]}]
    assert disbanded.json() == {"handled": True}
    assert registry.find_team_by_id(12) is None
    assert service.records() == {}
    assert store.load() == {}
