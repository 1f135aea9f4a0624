# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
from typing import Protocol
from .events import BaseEvent

class Observer(Protocol):
    """Receives lifecycle events; may be called from pipeline worker threads."""

    def notify(self, event: BaseEvent) -> None: ...
