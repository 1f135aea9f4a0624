# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/workloads/naming.py
"""
Naming rules shared by the build, cluster and status layers.

External tooling expects these exact shapes:

    image tag        {lower(name)}-{id}:latest
    deployment       bot-{lower(name)}-{id}
    service          {lower(name)}-service
    public url       https://t.me/{name}
    internal address http://{service}.{namespace}.svc.cluster.local
"""
from __future__ import annotations

import re

from cloudbot.errors import ValidationError

# DNS-1123 label, checked on the lower-cased name
_SAFE_NAME = re.compile(r"[a-z0-9]([a-z0-9-]*[a-z0-9])?")

DEFAULT_PUBLIC_URL_BASE = "https://t.me"
DEFAULT_CLUSTER_SUFFIX = "svc.cluster.local"


def normalize(name: str) -> str:
    return name.lower()


def ensure_safe_name(name: str) -> str:
    """
    Return the normalized name, or raise ValidationError if it cannot be
    interpolated into an image tag or a cluster object name.
    """
    if not isinstance(name, str) or not name:
        raise ValidationError("bot name is required")
    normalized = normalize(name)
    if not _SAFE_NAME.fullmatch(normalized):
        raise ValidationError(
            f"bot name {name!r} may only contain letters, digits and inner hyphens"
        )
    return normalized


def _ensure_id(bot_id: int) -> int:
    if isinstance(bot_id, bool) or not isinstance(bot_id, int) or bot_id < 0:
        raise ValidationError(f"invalid bot id {bot_id!r}")
    return bot_id


def image_tag(name: str, bot_id: int) -> str:
    return f"{ensure_safe_name(name)}-{_ensure_id(bot_id)}:latest"


def deployment_name(name: str, bot_id: int) -> str:
    return f"bot-{ensure_safe_name(name)}-{_ensure_id(bot_id)}"


def service_name(name: str) -> str:
    return f"{ensure_safe_name(name)}-service"


def app_label(name: str) -> str:
    return ensure_safe_name(name)


def public_url(name: str, base: str = DEFAULT_PUBLIC_URL_BASE) -> str:
    # chat platform handles are case-sensitive, so the raw name is kept
    return f"{base.rstrip('/')}/{name}"


def internal_address(
    name: str,
    namespace: str,
    suffix: str = DEFAULT_CLUSTER_SUFFIX,
) -> str:
    return f"http://{service_name(name)}.{namespace}.{suffix}"
