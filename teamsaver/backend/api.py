"""FastAPI endpoints for host events, world lifecycle and player notification sockets."""

from __future__ import annotations

from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .config import TeamSaverSettings, load_settings
from .engine import TEAM_DISBANDED, parse_event
from .logs import configure_logging
from .models import SessionHandle
from .registry import InMemoryLiveRegistry, InMemoryPlayerDirectory
from .service import TeamSaverService
from .store import create_store


class TeamEventEnvelope(BaseModel):
    type: str = Field(min_length=1)
    team_id: int = Field(alias="teamId", ge=0)
    player_id: int | None = Field(default=None, alias="playerId", ge=0)
    leader_id: int | None = Field(default=None, alias="leaderId", ge=0)
    members: list[int] | None = None
    invites: list[int] | None = None


class EventResponse(BaseModel):
    handled: bool


class SnapshotResponse(BaseModel):
    teams: int


class WipeResponse(BaseModel):
    wiped: bool


class TeamRecordResponse(BaseModel):
    teamId: int
    leaderId: int
    members: list[int]
    invites: list[int]


class TeamsResponse(BaseModel):
    teams: list[TeamRecordResponse]


class PlayerNotificationHub:
    """Client notifier that queues notifications and sends them over player websockets."""

    def __init__(self) -> None:
        self._connections: dict[int, set[WebSocket]] = defaultdict(set)
        self._outbox: list[tuple[int, dict[str, Any]]] = []

    async def connect(self, player_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[player_id].add(websocket)

    def disconnect(self, player_id: int, websocket: WebSocket) -> None:
        connections = self._connections.get(player_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(player_id, None)

    def is_connected(self, player_id: int) -> bool:
        return player_id in self._connections

    def notify_client(self, session: SessionHandle, channel: str, *args: object) -> None:
        self._outbox.append((session.player_id, {"type": channel, "args": list(args)}))

    async def flush(self) -> None:
        outbox, self._outbox = self._outbox, []
        stale: list[tuple[int, WebSocket]] = []
        for player_id, message in outbox:
            for websocket in self._connections.get(player_id, set()):
                try:
                    await websocket.send_json(message)
                except RuntimeError:
                    stale.append((player_id, websocket))
        for player_id, websocket in stale:
            self.disconnect(player_id=player_id, websocket=websocket)


def _default_service(
    settings: TeamSaverSettings,
    hub: PlayerNotificationHub,
) -> tuple[TeamSaverService, InMemoryLiveRegistry, InMemoryPlayerDirectory]:
    configure_logging(log_file=settings.log_file)
    registry = InMemoryLiveRegistry(max_team_size=settings.max_team_size)
    directory = InMemoryPlayerDirectory()
    service = TeamSaverService(
        registry=registry,
        presence=directory,
        identity=directory,
        notifier=hub,
        store=create_store(
            database_url=settings.database_url,
            data_dir=settings.data_dir,
            store_name=settings.store_name,
        ),
        wipe_teams_on_map_wipe=settings.wipe_teams_on_map_wipe,
    )
    return service, registry, directory


def create_app(
    service: TeamSaverService | None = None,
    directory: InMemoryPlayerDirectory | None = None,
    hub: PlayerNotificationHub | None = None,
    registry: InMemoryLiveRegistry | None = None,
) -> FastAPI:
    """Build the host-facing app.

    Pass ``service`` together with the ``hub`` it notifies through. When ``registry`` is the
    in-memory registry the service reads from, events that carry ``leaderId``, ``members``
    and ``invites`` are applied to it before being mirrored, and disband events remove the
    team from it. Without a registry the host owns live state and events carry ids only.
    """
    notification_hub = hub if hub is not None else PlayerNotificationHub()
    live_registry = registry
    if service is None:
        service, default_registry, default_directory = _default_service(load_settings(), notification_hub)
        directory = directory if directory is not None else default_directory
        live_registry = live_registry if live_registry is not None else default_registry
    player_directory = directory if directory is not None else InMemoryPlayerDirectory()
    team_service = service

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        team_service.start()
        await notification_hub.flush()
        yield
        team_service.shutdown()

    app = FastAPI(title="TeamSaver API", version="1.0.0", lifespan=lifespan)
    app.state.notification_hub = notification_hub
    app.state.player_directory = player_directory
    app.state.live_registry = live_registry

    def get_service() -> TeamSaverService:
        return team_service

    @app.post("/api/events", response_model=EventResponse)
    async def post_event(
        payload: TeamEventEnvelope,
        local_service: TeamSaverService = Depends(get_service),
    ) -> EventResponse:
        event = parse_event(payload.model_dump(by_alias=True))
        if live_registry is not None:
            if event.kind == TEAM_DISBANDED:
                live_registry.disband_team(event.team_id)
            elif payload.leader_id is not None:
                live_registry.apply_team_state(
                    event.team_id,
                    leader_id=payload.leader_id,
                    members=payload.members or [],
                    invites=payload.invites or [],
                )
        handled = local_service.handle_event(event)
        await notification_hub.flush()
        return EventResponse(handled=handled)

    @app.post("/api/world/save", response_model=SnapshotResponse)
    async def post_world_save(local_service: TeamSaverService = Depends(get_service)) -> SnapshotResponse:
        return SnapshotResponse(teams=local_service.on_world_save())

    @app.post("/api/world/wipe", response_model=WipeResponse)
    async def post_world_wipe(local_service: TeamSaverService = Depends(get_service)) -> WipeResponse:
        return WipeResponse(wiped=local_service.on_new_save())

    @app.get("/api/teams", response_model=TeamsResponse)
    async def get_teams(local_service: TeamSaverService = Depends(get_service)) -> TeamsResponse:
        return TeamsResponse(
            teams=[
                TeamRecordResponse(
                    teamId=record.team_id,
                    leaderId=record.leader_id,
                    members=record.members,
                    invites=record.invites,
                )
                for record in local_service.records().values()
            ]
        )

    @app.get("/api/pending-invites")
    async def get_pending_invites(local_service: TeamSaverService = Depends(get_service)) -> dict[str, int]:
        return {str(entry.invitee_id): entry.team_id for entry in local_service.pending_invites.entries()}

    @app.websocket("/ws/players/{player_id}")
    async def player_ws(
        websocket: WebSocket,
        player_id: int,
        local_service: TeamSaverService = Depends(get_service),
    ) -> None:
        await notification_hub.connect(player_id=player_id, websocket=websocket)
        player_directory.connect(player_id, websocket.query_params.get("name"))
        local_service.on_player_connected(player_id)
        await notification_hub.flush()

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            notification_hub.disconnect(player_id=player_id, websocket=websocket)
            if not notification_hub.is_connected(player_id):
                player_directory.disconnect(player_id)

    return app
