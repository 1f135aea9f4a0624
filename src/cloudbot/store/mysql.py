# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/store/mysql.py

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Iterator, List

import pymysql
import pymysql.cursors

from cloudbot.config.models import MySQLSettings
from cloudbot.errors import RecordNotFoundError
from cloudbot.workloads.models import BotRecord, BotStatus, CreateBotRequest

from .interface import IStatusStore
from .memory import UPDATABLE_FIELDS

log = logging.getLogger("cloudbot")

# record field -> `bots` column
COLUMNS = {
    "status": "status",
    "public_url": "url",
    "internal_address": "deploy_url",
    "cluster_reference": "kubernetes_deployment",
    "error_message": "error_message",
}

SCHEMA = """
CREATE TABLE IF NOT EXISTS bots (
    id INT AUTO_INCREMENT PRIMARY KEY,
    user_id INT NOT NULL,
    name VARCHAR(64) NOT NULL,
    token VARCHAR(255) NOT NULL,
    servicios JSON NOT NULL,
    status ENUM('creating', 'active', 'error') NOT NULL DEFAULT 'creating',
    url VARCHAR(255) NULL,
    deploy_url VARCHAR(255) NULL,
    kubernetes_deployment VARCHAR(255) NULL,
    error_message TEXT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    INDEX idx_bots_user (user_id),
    INDEX idx_bots_status (status)
) CHARACTER SET utf8mb4
"""


class MySQLStatusStore(IStatusStore):
    """
    Status store backed by the platform's `bots` table.
    Opens one connection per operation so worker threads never share one.
    """

    def __init__(self, settings: MySQLSettings, *, connect=pymysql.connect):
        self.settings = settings
        self._connect_fn = connect

    @contextmanager
    def _cursor(self) -> Iterator[pymysql.cursors.DictCursor]:
        conn = self._connect_fn(
            host=self.settings.host,
            port=self.settings.port,
            user=self.settings.user,
            password=self.settings.password,
            database=self.settings.database,
            charset="utf8mb4",
            cursorclass=pymysql.cursors.DictCursor,
            autocommit=False,
        )
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _to_record(row: dict) -> BotRecord:
        services = row["servicios"]
        if isinstance(services, (str, bytes)):
            services = json.loads(services)
        return BotRecord(
            id=row["id"],
            owner_id=row["user_id"],
            name=row["name"],
            token=row["token"],
            capabilities=services,
            status=BotStatus(row["status"]),
            public_url=row.get("url"),
            internal_address=row.get("deploy_url"),
            cluster_reference=row.get("kubernetes_deployment"),
            error_message=row.get("error_message"),
            created_at=row["created_at"],
        )

    # ------------------------------------------------------------------
    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.execute(SCHEMA)
        log.info("[store] bots table ready in %s", self.settings.database)

    def insert(self, request: CreateBotRequest) -> BotRecord:
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO bots (user_id, name, token, servicios, status) VALUES (%s, %s, %s, %s, %s)",
                (
                    request.owner_id,
                    request.name,
                    request.token,
                    json.dumps(list(request.capabilities)),
                    BotStatus.CREATING.value,
                ),
            )
            bot_id = cur.lastrowid
            cur.execute("SELECT * FROM bots WHERE id = %s", (bot_id,))
            row = cur.fetchone()
        log.debug("[store] inserted bot %s for user %s", bot_id, request.owner_id)
        return self._to_record(row)

    def get(self, bot_id: int) -> BotRecord:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM bots WHERE id = %s", (bot_id,))
            row = cur.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Bot {bot_id} not found")
        return self._to_record(row)

    def list_by_owner(self, owner_id: int) -> List[BotRecord]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT * FROM bots WHERE user_id = %s ORDER BY created_at DESC, id DESC",
                (owner_id,),
            )
            rows = cur.fetchall()
        return [self._to_record(r) for r in rows]

    def list_by_status(self, status: BotStatus) -> List[BotRecord]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM bots WHERE status = %s ORDER BY id", (BotStatus(status).value,))
            rows = cur.fetchall()
        return [self._to_record(r) for r in rows]

    def update(self, bot_id: int, **fields) -> BotRecord:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get(bot_id)

        assignments = ", ".join(f"{COLUMNS[k]} = %s" for k in fields)
        values = [v.value if isinstance(v, BotStatus) else v for v in fields.values()]

        with self._cursor() as cur:
            cur.execute(f"UPDATE bots SET {assignments} WHERE id = %s", (*values, bot_id))
            cur.execute("SELECT * FROM bots WHERE id = %s", (bot_id,))
            row = cur.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Bot {bot_id} not found")
        return self._to_record(row)

    def delete(self, bot_id: int) -> bool:
        with self._cursor() as cur:
            deleted = cur.execute("DELETE FROM bots WHERE id = %s", (bot_id,))
        return bool(deleted)
