# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/lifecycle/validation.py
from __future__ import annotations

import re
from typing import Iterable, List

from cloudbot.errors import ValidationError
from cloudbot.workloads import naming
from cloudbot.workloads.models import BotRecord, CreateBotRequest

MAX_BOTS_PER_OWNER = 20
NAME_MIN_LEN = 5
NAME_MAX_LEN = 32
NAME_SUFFIX = "bot"

_NAME_CHARS = re.compile(r"[A-Za-z0-9-]+")
# chat platform token: numeric bot id, colon, secret
_TOKEN = re.compile(r"\d+:[A-Za-z0-9_-]+")
_CAPABILITY = re.compile(r"[A-Za-z0-9_-]+")


def name_problems(name: str) -> List[str]:
    """All rule violations for a bot name; empty when the name is acceptable."""
    problems = []
    if not _NAME_CHARS.fullmatch(name):
        problems.append("only letters, digits and hyphens (-) are allowed")
    if not name.lower().endswith(NAME_SUFFIX):
        problems.append(f"must end in '{NAME_SUFFIX}'")
    if len(name) < NAME_MIN_LEN:
        problems.append(f"must be at least {NAME_MIN_LEN} characters")
    if len(name) > NAME_MAX_LEN:
        problems.append(f"must be at most {NAME_MAX_LEN} characters")
    if "--" in name:
        problems.append("must not contain consecutive hyphens")
    if name.startswith("-") or name.endswith("-"):
        problems.append("must not start or end with a hyphen")
    return problems


def normalize_capabilities(capabilities: Iterable[str]) -> List[str]:
    """Strip blanks and duplicates, keeping first-seen order."""
    seen = []
    for cap in capabilities:
        cap = (cap or "").strip()
        if cap and cap not in seen:
            seen.append(cap)
    return seen


def validate_create_request(
    request: CreateBotRequest,
    existing: Iterable[BotRecord],
    *,
    max_bots: int = MAX_BOTS_PER_OWNER,
) -> CreateBotRequest:
    """
    Check a create request against the owner's existing bots.

    Returns a cleaned copy of the request, or raises ValidationError before
    anything is persisted.
    """
    existing = list(existing)

    if len(existing) >= max_bots:
        raise ValidationError(f"Owner {request.owner_id} reached the limit of {max_bots} bots")

    name = (request.name or "").strip()
    token = (request.token or "").strip()
    capabilities = normalize_capabilities(request.capabilities)
    if not name or not token or not capabilities:
        raise ValidationError("name, token and at least one capability are required")

    problems = name_problems(name)
    if problems:
        raise ValidationError(f"Invalid bot name {name!r}: " + "; ".join(problems))
    naming.ensure_safe_name(name)

    if not _TOKEN.fullmatch(token):
        raise ValidationError("Invalid bot token: expected <digits>:<letters, digits, _ or ->")

    bad = [c for c in capabilities if not _CAPABILITY.fullmatch(c)]
    if bad:
        raise ValidationError(f"Invalid capabilities {bad!r}: only letters, digits, _ and - are allowed")

    lowered = name.lower()
    if any(r.name.lower() == lowered for r in existing):
        raise ValidationError(f"A bot named {name!r} already exists")

    return request.model_copy(update={"name": name, "token": token, "capabilities": capabilities})
