# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/lifecycle/factory.py
from __future__ import annotations

import logging
from typing import List, Optional

from cloudbot.build.docker import DockerCliBuilder
from cloudbot.config.models import PlatformConfig
from cloudbot.deploy.deployer import ClusterDeployer
from cloudbot.kube.kubectl import KubectlRunner
from cloudbot.observers.dispatcher import EventBus
from cloudbot.store.interface import IStatusStore
from cloudbot.store.memory import InMemoryStatusStore
from cloudbot.store.mysql import MySQLStatusStore
from cloudbot.template.materializer import TemplateMaterializer

from .orchestrator import LifecycleOrchestrator

log = logging.getLogger("cloudbot")


def build_store(cfg: PlatformConfig) -> IStatusStore:
    if cfg.mysql is None:
        log.warning("No mysql settings configured; bot records live in memory only")
        return InMemoryStatusStore()
    return MySQLStatusStore(cfg.mysql)


def build_orchestrator(
    cfg: PlatformConfig,
    *,
    store: Optional[IStatusStore] = None,
    observers: Optional[List] = None,
) -> LifecycleOrchestrator:
    """Wire the docker/kubectl backed orchestrator from config."""
    driver = KubectlRunner(kube_context=cfg.kube_context, kubeconfig=cfg.kubeconfig)
    return LifecycleOrchestrator(
        store=store or build_store(cfg),
        materializer=TemplateMaterializer.from_config(cfg),
        builder=DockerCliBuilder(tool=cfg.build_tool),
        deployer=ClusterDeployer(driver, cfg),
        cfg=cfg,
        bus=EventBus(observers or []),
    )
