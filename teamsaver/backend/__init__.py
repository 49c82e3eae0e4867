"""Backend package for the team saver."""

from .config import TeamSaverSettings, load_settings
from .engine import TeamEvent, parse_event, plan_event
from .invites import PendingInviteTracker
from .models import DurableRecord, PendingInvite, SessionHandle
from .registry import InMemoryLiveRegistry, InMemoryPlayerDirectory
from .service import PENDING_INVITE_CHANNEL, TeamSaverService
from .store import FileRecordStore, PostgresRecordStore, RecordStore, create_store

__all__ = [
    "create_store",
    "DurableRecord",
    "FileRecordStore",
    "InMemoryLiveRegistry",
    "InMemoryPlayerDirectory",
    "load_settings",
    "parse_event",
    "PENDING_INVITE_CHANNEL",
    "PendingInvite",
    "PendingInviteTracker",
    "plan_event",
    "PostgresRecordStore",
    "RecordStore",
    "SessionHandle",
    "TeamEvent",
    "TeamSaverService",
    "TeamSaverSettings",
]
