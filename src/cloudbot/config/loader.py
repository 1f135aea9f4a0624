# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/config/loader.py

import logging
import os
from pathlib import Path

import yaml

from .models import PlatformConfig, PlatformSecrets

log = logging.getLogger("cloudbot")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    Locate secrets.yaml using this priority:

    1. CLOUDBOT_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the platform config
    """
    env = os.environ.get("CLOUDBOT_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("CLOUDBOT_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path | None = None) -> PlatformConfig:
    """
    Load and validate the platform YAML config.

    With no path, defaults are used. Platform API keys that are not set in
    the config (or in a discovered ``secrets.yaml``) are taken from the
    process environment, see ``PlatformSecrets.from_env``.
    """
    data: dict = {}
    if path is not None:
        path = Path(path)
        data = _load_yaml(path)

        secrets_path = _find_secrets_file(path)
        if secrets_path:
            log.debug("Merging secrets from %s", secrets_path)
            _deep_merge(data, _load_yaml(secrets_path))
        else:
            log.debug("No secrets.yaml found, proceeding without secrets merge")

    cfg = PlatformConfig.model_validate(data)
    cfg.secrets = cfg.secrets.merged_with(PlatformSecrets.from_env())
    return cfg
