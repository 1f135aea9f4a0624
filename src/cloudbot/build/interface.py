# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/build/interface.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class BuildOutput:
    image_tag: str
    log: str = ""          # tail of the build tool output


class IImageBuilder(Protocol):
    def build(self, working_dir: Path, image_tag: str) -> BuildOutput:
        """Build *working_dir* into an image tagged *image_tag*; raise BuildError on failure."""
        ...
