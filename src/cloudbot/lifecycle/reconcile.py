# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/lifecycle/reconcile.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from cloudbot.errors import RecordNotFoundError
from cloudbot.observers.dispatcher import EventBus
from cloudbot.observers.events import StaleBotReconciled, new_ctx
from cloudbot.store.interface import IStatusStore
from cloudbot.workloads.models import BotRecord, BotStatus

log = logging.getLogger("cloudbot")

DEFAULT_STALE_AFTER_SECONDS = 900
INTERRUPTED_MESSAGE = "Provisioning was interrupted before completion; delete the bot and create it again"


def _age_seconds(record: BotRecord, now: datetime) -> float:
    created = record.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (now - created).total_seconds()


def reconcile_stale(
    store: IStatusStore,
    *,
    stale_after_seconds: int = DEFAULT_STALE_AFTER_SECONDS,
    in_flight: Optional[Callable[[int], bool]] = None,
    now: Optional[datetime] = None,
    bus: Optional[EventBus] = None,
    namespace: str = "",
) -> List[BotRecord]:
    """
    Mark `creating` records older than *stale_after_seconds* as `error`.

    Pipelines are not resumed: a process that died mid-pipeline leaves its
    records in `creating` forever otherwise. Records whose pipeline is still
    running in this process (per *in_flight*) are left alone.
    """
    now = now or datetime.now(timezone.utc)
    bus = bus or EventBus()
    reconciled: List[BotRecord] = []

    for record in store.list_by_status(BotStatus.CREATING):
        age = _age_seconds(record, now)
        if age < stale_after_seconds:
            continue
        if in_flight is not None and in_flight(record.id):
            continue
        try:
            updated = store.update(record.id, status=BotStatus.ERROR, error_message=INTERRUPTED_MESSAGE)
        except RecordNotFoundError:
            continue
        log.warning("Stale bot %s (%s) marked as error after %ds in creating", record.id, record.name, age)
        bus.emit(StaleBotReconciled(name=record.name, age_s=int(age), **new_ctx(record.id, namespace)))
        reconciled.append(updated)

    return reconciled
