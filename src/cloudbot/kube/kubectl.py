# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/kube/kubectl.py

from __future__ import annotations

import logging
import subprocess
from typing import Iterable

import yaml

from cloudbot.execution.runner import CommandRunner, tail

from .interface import IClusterDriver

log = logging.getLogger("cloudbot")


class KubectlError(RuntimeError):
    def __init__(self, message: str, *, output: str = ""):
        super().__init__(message)
        self.output = output


class KubectlRunner(IClusterDriver):
    """
    Local kubectl runner. Every call is an argv list; manifests are piped on
    stdin so nothing user supplied ever reaches a shell.
    """

    def __init__(
        self,
        *,
        kube_context: str | None = None,
        kubeconfig: str | None = None,
        runner: CommandRunner | None = None,
    ):
        self.kube_context = kube_context
        self.kubeconfig = kubeconfig
        self.runner = runner or CommandRunner(label="kubectl")

    def _base(self) -> list[str]:
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            cmd += ["--context", self.kube_context]
        return cmd

    def _run(self, args: list[str], *, input: str | None = None) -> tuple[int, str, str]:
        """
        Run a kubectl command.

        Returns:
            (rc, stdout, stderr)
        """
        try:
            cp = self.runner.run(self._base() + args, input=input)
        except (OSError, subprocess.SubprocessError) as exc:
            raise KubectlError(f"kubectl {' '.join(args[:2])} could not run: {exc}") from exc
        return cp.returncode, cp.stdout or "", cp.stderr or ""

    # ------------------------------------------------------------------
    def apply_objects(self, objects: Iterable[dict]) -> None:
        objects = list(objects)
        if not objects:
            log.debug("[kubectl] apply skipped: no objects")
            return

        manifest = yaml.safe_dump_all(objects, sort_keys=False)
        rc, out, err = self._run(["apply", "-f", "-"], input=manifest)
        if rc != 0:
            for obj in objects:
                log.debug(
                    "[kubectl] apply failed for %s/%s",
                    obj.get("kind", "<unknown>"),
                    obj.get("metadata", {}).get("name", "<unknown>"),
                )
            raise KubectlError(f"kubectl apply failed: {tail(err or out)}", output=tail(err or out))

        for line in out.splitlines():
            log.debug("[kubectl] %s", line)

    def wait_for_deployment_available(
        self,
        name: str,
        namespace: str,
        timeout_seconds: int = 300,
    ) -> None:
        """
        Wrapper around:
        kubectl wait --for=condition=available --timeout=Ns deployment/NAME -n NS
        """
        log.debug("[kubectl] Waiting for deployment/%s in %s (%ss)", name, namespace, timeout_seconds)
        rc, out, err = self._run(
            [
                "wait",
                "--for=condition=available",
                f"--timeout={timeout_seconds}s",
                f"deployment/{name}",
                "-n",
                namespace,
            ]
        )
        if rc == 0:
            return
        message = tail(err or out)
        if "timed out" in message.lower():
            raise TimeoutError(
                f"Timed out after {timeout_seconds}s waiting for deployment/{name} in {namespace}: {message}"
            )
        raise KubectlError(f"kubectl wait for deployment/{name} failed: {message}", output=message)

    def delete(self, kind: str, name: str, namespace: str) -> None:
        rc, out, err = self._run(
            ["delete", kind.lower(), name, "-n", namespace, "--ignore-not-found=true"]
        )
        if rc != 0:
            raise KubectlError(f"kubectl delete {kind}/{name} failed: {tail(err or out)}", output=tail(err or out))
        log.debug("[kubectl] deleted %s/%s in %s", kind.lower(), name, namespace)
