# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/template/materializer.py

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from cloudbot.config.models import PlatformConfig, PlatformSecrets
from cloudbot.errors import ManifestRewriteError, TemplateCopyError, ValidationError
from cloudbot.workloads.models import WorkloadDescriptor

from .envfile import (
    BOT_PORT,
    DEFAULT_WEATHER_CITY,
    ENV_FILE_NAME,
    PLATFORM_VERSION,
    render_env_file,
)

log = logging.getLogger("cloudbot")

PACKAGE_DESCRIPTOR = "package.json"
PLATFORM_NAME = "Cloud Bot Platform"


class TemplateMaterializer:
    """
    Turns the read-only bot template into a per-bot working directory
    (<work_root>/<bot id>) ready for the image build.

    Materialization is destructive-idempotent: the bot's previous working
    directory is removed first, so a failed attempt can simply be retried.
    """

    def __init__(
        self,
        template_root: Path,
        work_root: Path,
        *,
        port: int = BOT_PORT,
        weather_city: str = DEFAULT_WEATHER_CITY,
        platform_version: str = PLATFORM_VERSION,
    ):
        self.template_root = Path(template_root)
        self.work_root = Path(work_root)
        self.port = port
        self.weather_city = weather_city
        self.platform_version = platform_version

    @classmethod
    def from_config(cls, cfg: PlatformConfig) -> "TemplateMaterializer":
        return cls(
            cfg.template_dir,
            cfg.work_root,
            port=cfg.bot_port,
            weather_city=cfg.weather_city,
            platform_version=cfg.platform_version,
        )

    def working_dir(self, bot_id: int) -> Path:
        return self.work_root / str(bot_id)

    # ------------------------------------------------------------------
    def materialize(
        self,
        descriptor: WorkloadDescriptor,
        secrets: Optional[PlatformSecrets] = None,
        *,
        created_at: Optional[datetime] = None,
    ) -> Path:
        bot_dir = self.working_dir(descriptor.id)

        self._copy_template(bot_dir)
        self._rewrite_package_descriptor(bot_dir, descriptor)

        try:
            env_text = render_env_file(
                descriptor,
                secrets or PlatformSecrets(),
                created_at=created_at,
                port=self.port,
                weather_city=self.weather_city,
                platform_version=self.platform_version,
            )
        except ValidationError as exc:
            raise TemplateCopyError(f"Could not render {ENV_FILE_NAME} for bot {descriptor.id}: {exc}") from exc
        try:
            (bot_dir / ENV_FILE_NAME).write_text(env_text, encoding="utf-8")
        except OSError as exc:
            raise TemplateCopyError(f"Could not write {ENV_FILE_NAME} in {bot_dir}: {exc}") from exc
        log.debug("[template] wrote %s for bot %s", ENV_FILE_NAME, descriptor.id)

        return bot_dir

    def remove(self, bot_id: int) -> bool:
        """Delete the bot's working directory. Returns False if it did not exist."""
        bot_dir = self.working_dir(bot_id)
        if not bot_dir.exists():
            return False
        shutil.rmtree(bot_dir)
        log.debug("[template] removed %s", bot_dir)
        return True

    # ------------------------------------------------------------------
    def _copy_template(self, bot_dir: Path) -> None:
        if not self.template_root.is_dir():
            raise TemplateCopyError(f"Template directory {self.template_root} is not readable")

        try:
            if bot_dir.exists():
                shutil.rmtree(bot_dir)
            bot_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(self.template_root, bot_dir, symlinks=True)
        except (OSError, shutil.Error) as exc:
            raise TemplateCopyError(
                f"Copying template {self.template_root} to {bot_dir} failed: {exc}"
            ) from exc

        log.debug("[template] copied %s -> %s", self.template_root, bot_dir)

    def _rewrite_package_descriptor(self, bot_dir: Path, descriptor: WorkloadDescriptor) -> None:
        path = bot_dir / PACKAGE_DESCRIPTOR
        try:
            package = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ManifestRewriteError(f"Could not read {path}: {exc}") from exc

        if not isinstance(package, dict):
            raise ManifestRewriteError(f"{path} is not a JSON object")

        package["name"] = f"bot-{descriptor.normalized_name}"
        package["description"] = f"Bot {descriptor.name} created with {PLATFORM_NAME}"

        try:
            path.write_text(json.dumps(package, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise ManifestRewriteError(f"Could not write {path}: {exc}") from exc

        log.debug("[template] %s customized", path)
