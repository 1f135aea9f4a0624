# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/template/envfile.py
"""
Runtime environment file consumed by the deployed bot.

The key order is a contract with the bot template:

    BOT_NAME, BOT_TOKEN, SERVICES, PORT,
    WEATHER_API_KEY, NEWS_API_KEY, GEMINI_API_KEY,
    WEATHER_CITY, PLATFORM_VERSION, CREATED_AT
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from cloudbot.config.models import PlatformSecrets
from cloudbot.errors import ValidationError
from cloudbot.workloads.models import WorkloadDescriptor

from .renderer import TemplateRenderer

ENV_FILE_NAME = ".env"
ENV_TEMPLATE = "bot.env.j2"

BOT_PORT = 3000
DEFAULT_WEATHER_CITY = "Buenos Aires"
PLATFORM_VERSION = "1.0.0"

_renderer = TemplateRenderer()


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC, millisecond precision, trailing Z (2026-10-18T09:42:00.000Z)."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_env_file(
    descriptor: WorkloadDescriptor,
    secrets: PlatformSecrets,
    *,
    created_at: Optional[datetime] = None,
    port: int = BOT_PORT,
    weather_city: str = DEFAULT_WEATHER_CITY,
    platform_version: str = PLATFORM_VERSION,
) -> str:
    """
    Render the key=value environment file for one bot.

    Output depends only on the arguments, apart from CREATED_AT when
    *created_at* is not given. Missing platform secrets render as empty values.
    """
    values = {
        "name": descriptor.name,
        "token": descriptor.token,
        "services": descriptor.services_csv(),
        "port": port,
        "weather_api_key": secrets.weather_api_key or "",
        "news_api_key": secrets.news_api_key or "",
        "gemini_api_key": secrets.gemini_api_key or "",
        "weather_city": weather_city,
        "platform_version": platform_version,
        "created_at": iso_timestamp(created_at),
    }
    # one key per line; a line break in any value would inject keys
    for key, value in values.items():
        text = str(value)
        if "\n" in text or "\r" in text:
            raise ValidationError(f"{key} must not contain line breaks")
    return _renderer.render(ENV_TEMPLATE, values)
