"""Persistence interfaces and implementations for durable team records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from teamsaver.backend.models import DurableRecord

log = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


class StoredTeam(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team_id: int = Field(alias="teamId", ge=0, lt=2**64)
    leader_id: int = Field(alias="leaderId", ge=0, lt=2**64)
    members: list[int] = Field(default_factory=list)
    invites: list[int] = Field(default_factory=list)


class StoredData(BaseModel):
    version: int = STORE_FORMAT_VERSION
    teams: list[StoredTeam] = Field(default_factory=list)


def encode_records(records: dict[int, DurableRecord]) -> str:
    data = StoredData(
        teams=[
            StoredTeam(
                team_id=record.team_id,
                leader_id=record.leader_id,
                members=list(record.members),
                invites=list(record.invites),
            )
            for record in records.values()
        ]
    )
    return data.model_dump_json(by_alias=True, indent=2)


def decode_records(payload: Any) -> dict[int, DurableRecord]:
    data = StoredData.model_validate(payload)
    records: dict[int, DurableRecord] = {}
    for team in data.teams:
        records[team.team_id] = DurableRecord(
            team_id=team.team_id,
            leader_id=team.leader_id,
            members=team.members,
            invites=team.invites,
        )
    return records


class RecordStore(Protocol):
    def load(self) -> dict[int, DurableRecord]:
        """Return every stored record keyed by team id; unreadable data yields an empty mapping."""

    def save(self, records: dict[int, DurableRecord]) -> bool:
        """Replace the stored records; return False when the write failed."""


@dataclass
class FileRecordStore:
    data_dir: Path
    store_name: str = "TeamSaver"

    @property
    def path(self) -> Path:
        return Path(self.data_dir) / f"{self.store_name}.json"

    def load(self) -> dict[int, DurableRecord]:
        path = self.path
        if not path.exists():
            return {}
        try:
            payload: Any = json.loads(path.read_text(encoding="utf-8"))
            return decode_records(payload)
        except (OSError, ValueError, ValidationError) as exc:
            log.warning("Data file %s is unreadable, starting with no teams: %s", path, exc)
            return {}

    def save(self, records: dict[int, DurableRecord]) -> bool:
        path = self.path
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.store_name}.", dir=path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(encode_records(records))
            os.replace(tmp_name, path)
        except OSError as exc:
            log.error("Failed to write data file %s: %s", path, exc)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return False
        return True


@dataclass
class PostgresRecordStore:
    database_url: str
    store_name: str = "TeamSaver"

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def ensure_schema(self) -> None:
        """Create the ``team_stores`` table and an empty row for this store name if missing."""
        schema_sql = Path(__file__).with_name("db_schema.sql").read_text(encoding="utf-8")
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(schema_sql)
                cur.execute(
                    """
                    INSERT INTO team_stores (name, version, payload, updated_at)
                    VALUES (%s, %s, %s::jsonb, %s)
                    ON CONFLICT (name) DO NOTHING
                    """,
                    (self.store_name, STORE_FORMAT_VERSION, encode_records({}), now),
                )
            conn.commit()
        log.info("Team store %s is ready", self.store_name)

    def load(self) -> dict[int, DurableRecord]:
        import psycopg

        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT payload FROM team_stores WHERE name = %s",
                        (self.store_name,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            log.warning("Team store %s is unreadable, starting with no teams: %s", self.store_name, exc)
            return {}

        if row is None:
            return {}
        (payload,) = row
        try:
            if isinstance(payload, (str, bytes, bytearray)):
                payload = json.loads(payload)
            return decode_records(payload)
        except (TypeError, ValueError, ValidationError) as exc:
            log.warning("Team store %s holds invalid data, starting with no teams: %s", self.store_name, exc)
            return {}

    def save(self, records: dict[int, DurableRecord]) -> bool:
        import psycopg

        now = datetime.now(timezone.utc)
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO team_stores (name, version, payload, updated_at)
                        VALUES (%s, %s, %s::jsonb, %s)
                        ON CONFLICT (name) DO UPDATE
                        SET version = EXCLUDED.version, payload = EXCLUDED.payload, updated_at = EXCLUDED.updated_at
                        """,
                        (self.store_name, STORE_FORMAT_VERSION, encode_records(records), now),
                    )
                conn.commit()
        except psycopg.Error as exc:
            log.error("Failed to write team store %s: %s", self.store_name, exc)
            return False
        return True


def create_store(database_url: str | None, data_dir: Path, store_name: str) -> RecordStore:
    if database_url:
        return PostgresRecordStore(database_url=database_url, store_name=store_name)
    return FileRecordStore(data_dir=data_dir, store_name=store_name)
