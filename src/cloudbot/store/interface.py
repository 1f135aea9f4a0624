# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/store/interface.py
from __future__ import annotations

from typing import List, Protocol

from cloudbot.workloads.models import BotRecord, BotStatus, CreateBotRequest


class IStatusStore(Protocol):
    """
    Persistence for bot records. Writes are per-field overwrites; readers
    must tolerate any status at any time.
    """

    def insert(self, request: CreateBotRequest) -> BotRecord:
        """Persist a new record in `creating` and return it with its id."""
        ...

    def get(self, bot_id: int) -> BotRecord:
        """Raise RecordNotFoundError if absent."""
        ...

    def list_by_owner(self, owner_id: int) -> List[BotRecord]:
        """Newest first."""
        ...

    def list_by_status(self, status: BotStatus) -> List[BotRecord]: ...

    def update(self, bot_id: int, **fields) -> BotRecord: ...

    def delete(self, bot_id: int) -> bool:
        """Return False if the record was already gone."""
        ...
