# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/observers/events.py

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str             # ISO timestamp
    run_id: str         # correlates all events of one pipeline run
    bot_id: Optional[int]
    namespace: str      # target cluster namespace

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(bot_id: Optional[int], namespace: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "bot_id": bot_id,
        "namespace": namespace,
    }


# ---------------------------------------------------------------------
# Creation pipeline
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PipelineStarted(BaseEvent):
    name: str

@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    step: str
    duration_ms: int

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    step: str
    error: str

@dataclass(frozen=True)
class BotActivated(BaseEvent):
    name: str
    public_url: str
    internal_address: str

@dataclass(frozen=True)
class BotFailed(BaseEvent):
    name: str
    step: str
    error: str


# ---------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class TeardownStarted(BaseEvent):
    name: str
    cluster_reference: Optional[str] = None

@dataclass(frozen=True)
class TeardownStepFailed(BaseEvent):
    step: str          # "cluster" | "workdir"
    error: str

@dataclass(frozen=True)
class BotDeleted(BaseEvent):
    name: str
    clean: bool        # False when some cleanup step failed


# ---------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StaleBotReconciled(BaseEvent):
    name: str
    age_s: int
