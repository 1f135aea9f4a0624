# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/config/models.py

import os
from pathlib import Path
from typing import ClassVar, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field


class ResourceQuantities(BaseModel):
    cpu: str
    memory: str


class ResourceSpec(BaseModel):
    requests: ResourceQuantities = ResourceQuantities(cpu="100m", memory="128Mi")
    limits: ResourceQuantities = ResourceQuantities(cpu="200m", memory="256Mi")


class ProbeTiming(BaseModel):
    initial_delay_seconds: int
    period_seconds: int


class ProbeSpec(BaseModel):
    path: str = "/"
    readiness: ProbeTiming = ProbeTiming(initial_delay_seconds=10, period_seconds=10)
    liveness: ProbeTiming = ProbeTiming(initial_delay_seconds=30, period_seconds=30)


class PlatformSecrets(BaseModel):
    """API keys injected into every bot's environment file."""

    weather_api_key: Optional[str] = None
    news_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None

    # env var names used by the platform deployment (hyphenated), then the
    # conventional upper-case spelling
    ENV_KEYS: ClassVar[Dict[str, Tuple[str, str]]] = {
        "weather_api_key": ("weather-api-key", "WEATHER_API_KEY"),
        "news_api_key": ("news-api-key", "NEWS_API_KEY"),
        "gemini_api_key": ("gemini-api-key", "GEMINI_API_KEY"),
    }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PlatformSecrets":
        environ = os.environ if environ is None else environ
        values = {}
        for field, names in cls.ENV_KEYS.items():
            for name in names:
                if environ.get(name):
                    values[field] = environ[name]
                    break
        return cls(**values)

    def merged_with(self, fallback: "PlatformSecrets") -> "PlatformSecrets":
        """Fill unset keys from *fallback*; values already set win."""
        return PlatformSecrets(
            weather_api_key=self.weather_api_key or fallback.weather_api_key,
            news_api_key=self.news_api_key or fallback.news_api_key,
            gemini_api_key=self.gemini_api_key or fallback.gemini_api_key,
        )


class MySQLSettings(BaseModel):
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "cloud_bot_platform"


class PlatformConfig(BaseModel):
    # cluster
    namespace: str = "bot-platform"
    kube_context: Optional[str] = None
    kubeconfig: Optional[str] = None
    cluster_domain_suffix: str = "svc.cluster.local"
    readiness_timeout_seconds: int = 300

    # filesystem + build
    template_dir: Path = Path("/app/bot-templates")
    work_root: Path = Path("generated-bots")
    build_tool: str = "docker"

    # bot runtime
    bot_port: int = 3000
    service_port: int = 80
    public_url_base: str = "https://t.me"
    platform_version: str = "1.0.0"
    weather_city: str = "Buenos Aires"
    resources: ResourceSpec = ResourceSpec()
    probes: ProbeSpec = ProbeSpec()

    # tenancy + workers
    max_bots_per_owner: int = 20
    max_workers: int = 4

    secrets: PlatformSecrets = Field(default_factory=PlatformSecrets)
    mysql: Optional[MySQLSettings] = None
