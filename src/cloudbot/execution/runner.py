# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/execution/runner.py
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Union

Cmd = Sequence[Union[str, "os.PathLike[str]"]]

log = logging.getLogger("cloudbot")


@dataclass
class CommandRunner:
    """
    Runs external tools (docker, kubectl) as argument lists, never through a
    shell. Output is always captured so callers can attach it to errors.
    """

    label: Optional[str] = None

    def run(
        self,
        cmd: Cmd,
        *,
        input: str | None = None,
    ) -> subprocess.CompletedProcess:
        label = self.label or "cmd"
        argv = [str(c) for c in cmd]
        cmd_str = " ".join(argv)

        log.debug("[%s] $ %s", label, cmd_str)

        start = time.time()

        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            input=input,
        )

        duration = time.time() - start

        if result.stdout:
            log.debug("[%s][stdout]\n%s", label, result.stdout.rstrip())
        if result.stderr:
            log.debug("[%s][stderr]\n%s", label, result.stderr.rstrip())
        log.debug("[%s][exit %s] (%.2fs)", label, result.returncode, duration)

        return result


def tail(text: str | None, limit: int = 2000) -> str:
    """Last *limit* characters of tool output, for error messages."""
    text = (text or "").strip()
    return text if len(text) <= limit else text[-limit:]
