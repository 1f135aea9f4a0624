# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/workloads/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class BotStatus(str, Enum):
    CREATING = "creating"
    ACTIVE = "active"
    ERROR = "error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreateBotRequest(BaseModel):
    """Inbound create request, as handed over by the request layer."""

    owner_id: int
    name: str = ""
    token: str = ""
    capabilities: List[str] = Field(default_factory=list)


class BotRecord(BaseModel):
    """
    Persisted deployment record. Only the lifecycle orchestrator mutates
    status / public_url / internal_address / cluster_reference after creation.
    """

    id: int
    owner_id: int
    name: str
    token: str
    capabilities: List[str]
    status: BotStatus = BotStatus.CREATING
    public_url: Optional[str] = None
    internal_address: Optional[str] = None
    cluster_reference: Optional[str] = None   # deployment name, kept even on error
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    def descriptor(self) -> "WorkloadDescriptor":
        return WorkloadDescriptor(
            id=self.id,
            name=self.name,
            token=self.token,
            capabilities=tuple(self.capabilities),
            owner_id=self.owner_id,
        )


@dataclass(frozen=True)
class WorkloadDescriptor:
    """Immutable parameter set that drives template, build and deploy steps."""

    id: int
    name: str
    token: str
    capabilities: Tuple[str, ...]
    owner_id: int

    @property
    def normalized_name(self) -> str:
        return self.name.lower()

    def services_csv(self) -> str:
        return ",".join(self.capabilities)
