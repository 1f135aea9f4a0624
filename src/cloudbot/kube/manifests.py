# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/kube/manifests.py
from __future__ import annotations

from typing import Dict, List

import yaml

from cloudbot.config.models import PlatformConfig
from cloudbot.workloads import naming
from cloudbot.workloads.models import WorkloadDescriptor


def _labels(descriptor: WorkloadDescriptor) -> Dict[str, str]:
    return {
        "app": naming.app_label(descriptor.name),
        "bot-id": str(descriptor.id),
    }


def _http_probe(path: str, port: int, initial_delay: int, period: int) -> dict:
    return {
        "httpGet": {"path": path, "port": port},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
    }


def build_deployment(descriptor: WorkloadDescriptor, image_tag: str, cfg: PlatformConfig) -> dict:
    """One-replica Deployment running the bot image."""
    app = naming.app_label(descriptor.name)
    probes = cfg.probes
    res = cfg.resources

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": naming.deployment_name(descriptor.name, descriptor.id),
            "namespace": cfg.namespace,
            "labels": _labels(descriptor),
        },
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": {"app": app}},
            "template": {
                "metadata": {"labels": _labels(descriptor)},
                "spec": {
                    "containers": [
                        {
                            "name": app,
                            "image": image_tag,
                            "imagePullPolicy": "IfNotPresent",
                            "ports": [{"containerPort": cfg.bot_port}],
                            "env": [
                                {"name": "BOT_NAME", "value": descriptor.name},
                                {"name": "BOT_TOKEN", "value": descriptor.token},
                                {"name": "SERVICES", "value": descriptor.services_csv()},
                            ],
                            "resources": {
                                "requests": {"memory": res.requests.memory, "cpu": res.requests.cpu},
                                "limits": {"memory": res.limits.memory, "cpu": res.limits.cpu},
                            },
                            "livenessProbe": _http_probe(
                                probes.path,
                                cfg.bot_port,
                                probes.liveness.initial_delay_seconds,
                                probes.liveness.period_seconds,
                            ),
                            "readinessProbe": _http_probe(
                                probes.path,
                                cfg.bot_port,
                                probes.readiness.initial_delay_seconds,
                                probes.readiness.period_seconds,
                            ),
                        }
                    ],
                    "restartPolicy": "Always",
                },
            },
        },
    }


def build_service(descriptor: WorkloadDescriptor, cfg: PlatformConfig) -> dict:
    """ClusterIP Service giving the bot a stable in-cluster address."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": naming.service_name(descriptor.name),
            "namespace": cfg.namespace,
        },
        "spec": {
            "selector": {"app": naming.app_label(descriptor.name)},
            "ports": [{"port": cfg.service_port, "targetPort": cfg.bot_port}],
            "type": "ClusterIP",
        },
    }


def build_objects(descriptor: WorkloadDescriptor, image_tag: str, cfg: PlatformConfig) -> List[dict]:
    return [build_deployment(descriptor, image_tag, cfg), build_service(descriptor, cfg)]


def to_yaml(objects: List[dict]) -> str:
    return yaml.safe_dump_all(objects, sort_keys=False)
