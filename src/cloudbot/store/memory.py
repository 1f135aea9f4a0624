# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/store/memory.py
from __future__ import annotations

import itertools
import threading
from typing import Dict, List

from cloudbot.errors import RecordNotFoundError
from cloudbot.workloads.models import BotRecord, BotStatus, CreateBotRequest

from .interface import IStatusStore

UPDATABLE_FIELDS = {
    "status",
    "public_url",
    "internal_address",
    "cluster_reference",
    "error_message",
}


class InMemoryStatusStore(IStatusStore):
    """Process-local store, used by tests and by the CLI when no database is configured."""

    def __init__(self):
        self._records: Dict[int, BotRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, request: CreateBotRequest) -> BotRecord:
        with self._lock:
            record = BotRecord(
                id=next(self._ids),
                owner_id=request.owner_id,
                name=request.name,
                token=request.token,
                capabilities=list(request.capabilities),
                status=BotStatus.CREATING,
            )
            self._records[record.id] = record
            return record.model_copy(deep=True)

    def get(self, bot_id: int) -> BotRecord:
        with self._lock:
            try:
                return self._records[bot_id].model_copy(deep=True)
            except KeyError:
                raise RecordNotFoundError(f"Bot {bot_id} not found") from None

    def list_by_owner(self, owner_id: int) -> List[BotRecord]:
        with self._lock:
            rows = [r for r in self._records.values() if r.owner_id == owner_id]
        rows.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return [r.model_copy(deep=True) for r in rows]

    def list_by_status(self, status: BotStatus) -> List[BotRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values() if r.status == status]

    def update(self, bot_id: int, **fields) -> BotRecord:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        with self._lock:
            if bot_id not in self._records:
                raise RecordNotFoundError(f"Bot {bot_id} not found")
            record = self._records[bot_id].model_copy(update=fields)
            self._records[bot_id] = record
            return record.model_copy(deep=True)

    def delete(self, bot_id: int) -> bool:
        with self._lock:
            return self._records.pop(bot_id, None) is not None
