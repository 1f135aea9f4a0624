# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/build/docker.py
from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

from cloudbot.errors import BuildError
from cloudbot.execution.runner import CommandRunner, tail

from .interface import BuildOutput, IImageBuilder

log = logging.getLogger("cloudbot")

# {normalized-name}-{id}:latest
_IMAGE_TAG = re.compile(r"[a-z0-9]([a-z0-9-]*[a-z0-9])?-[0-9]+:latest")


class DockerCliBuilder(IImageBuilder):
    """
    Thin wrapper around `docker build`.
    Testable by mocking subprocess.run.
    """

    def __init__(self, tool: str = "docker", runner: Optional[CommandRunner] = None):
        self.tool = tool
        self.runner = runner or CommandRunner(label="build")

    def build(self, working_dir: Path, image_tag: str) -> BuildOutput:
        if not _IMAGE_TAG.fullmatch(image_tag):
            raise BuildError(f"Refusing to build with unsafe image tag {image_tag!r}")

        working_dir = Path(working_dir)
        if not working_dir.is_dir():
            raise BuildError(f"Build context {working_dir} does not exist")

        argv = [self.tool, "build", "-t", image_tag, str(working_dir)]
        log.info("[build] building image %s from %s", image_tag, working_dir)

        try:
            cp = self.runner.run(argv)
        except (OSError, subprocess.SubprocessError) as exc:
            raise BuildError(f"Docker build failed: {exc}") from exc

        if cp.returncode != 0:
            output = tail(cp.stderr or cp.stdout)
            raise BuildError(
                f"Docker build failed (rc={cp.returncode}) for {image_tag}: {output}",
                output=output,
            )

        log.info("[build] image %s built", image_tag)
        return BuildOutput(image_tag=image_tag, log=tail(cp.stdout, 200))
