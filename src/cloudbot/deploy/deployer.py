# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/deploy/deployer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cloudbot.config.models import PlatformConfig
from cloudbot.errors import DeployError, ReadinessTimeoutError
from cloudbot.kube import manifests
from cloudbot.kube.interface import IClusterDriver
from cloudbot.kube.kubectl import KubectlError
from cloudbot.workloads import naming
from cloudbot.workloads.models import WorkloadDescriptor

log = logging.getLogger("cloudbot")

MANIFEST_FILE = "k8s-deployment.yaml"


@dataclass(frozen=True)
class DeploymentRef:
    deployment_name: str
    service_name: str
    namespace: str

    @classmethod
    def for_bot(cls, name: str, bot_id: int, namespace: str) -> "DeploymentRef":
        return cls(
            deployment_name=naming.deployment_name(name, bot_id),
            service_name=naming.service_name(name),
            namespace=namespace,
        )


class ClusterDeployer:
    """
    Renders the bot's Deployment + Service and drives the cluster driver.

    Nothing here rolls back: objects applied before a failure are left for
    teardown (or an operator) to remove.
    """

    def __init__(self, driver: IClusterDriver, cfg: PlatformConfig):
        self.driver = driver
        self.cfg = cfg

    # ------------------------------------------------------------------
    def apply(
        self,
        descriptor: WorkloadDescriptor,
        image_tag: str,
        *,
        workdir: Optional[Path] = None,
    ) -> DeploymentRef:
        ref = DeploymentRef.for_bot(descriptor.name, descriptor.id, self.cfg.namespace)
        objects = manifests.build_objects(descriptor, image_tag, self.cfg)

        if workdir is not None:
            # kept next to the build context for diagnostics
            try:
                (Path(workdir) / MANIFEST_FILE).write_text(manifests.to_yaml(objects), encoding="utf-8")
            except OSError as exc:
                log.warning("[deploy] could not write %s in %s: %s", MANIFEST_FILE, workdir, exc)

        log.info(
            "[deploy] applying deployment/%s and service/%s in %s",
            ref.deployment_name,
            ref.service_name,
            ref.namespace,
        )
        try:
            self.driver.apply_objects(objects)
        except KubectlError as exc:
            raise DeployError(f"Kubernetes deployment failed: {exc}", output=exc.output) from exc

        return ref

    def await_ready(self, ref: DeploymentRef, timeout_seconds: Optional[int] = None) -> None:
        timeout = timeout_seconds if timeout_seconds is not None else self.cfg.readiness_timeout_seconds
        log.info("[deploy] waiting up to %ss for deployment/%s", timeout, ref.deployment_name)
        try:
            self.driver.wait_for_deployment_available(ref.deployment_name, ref.namespace, timeout)
        except TimeoutError as exc:
            raise ReadinessTimeoutError(
                f"Deployment {ref.deployment_name} not available after {timeout}s"
            ) from exc
        except KubectlError as exc:
            raise ReadinessTimeoutError(
                f"Deployment {ref.deployment_name} never became available: {exc}",
                output=exc.output,
            ) from exc
        log.info("[deploy] deployment/%s is ready", ref.deployment_name)

    def teardown(self, ref: DeploymentRef) -> None:
        """
        Delete the deployment and its service. Both deletes are attempted;
        absent objects are fine, any other failure raises DeployError.
        """
        errors = []
        for kind, name in (("deployment", ref.deployment_name), ("service", ref.service_name)):
            try:
                self.driver.delete(kind, name, ref.namespace)
            except KubectlError as exc:
                log.error("[deploy] deleting %s/%s failed: %s", kind, name, exc)
                errors.append(f"{kind}/{name}: {exc}")

        if errors:
            raise DeployError("Kubernetes cleanup failed: " + "; ".join(errors))
        log.info("[deploy] removed deployment/%s and service/%s", ref.deployment_name, ref.service_name)
