# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/kube/interface.py
from __future__ import annotations

from typing import Iterable, Protocol


class IClusterDriver(Protocol):
    """
    What the deployer needs from the cluster control plane.

    apply_objects:                 raise KubectlError on rejection
    wait_for_deployment_available: raise TimeoutError when the bound elapses
    delete:                        absent objects are not an error
    """

    def apply_objects(self, objects: Iterable[dict]) -> None: ...

    def wait_for_deployment_available(self, name: str, namespace: str, timeout_seconds: int) -> None: ...

    def delete(self, kind: str, name: str, namespace: str) -> None: ...
