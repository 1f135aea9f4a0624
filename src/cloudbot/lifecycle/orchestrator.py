# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/lifecycle/orchestrator.py
"""
Bot lifecycle: the creation pipeline and the teardown path.

    creating --(materialize, build, apply, await_ready)--> active
    creating --(any step fails)--------------------------> error

Creation runs on a worker thread; the caller gets the `creating` record
back immediately. Teardown runs in the caller's thread, is best-effort and
always ends with the record deleted.

At most one pipeline runs per bot id. A delete for a bot whose creation is
still in flight waits for that creation to finish first.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, TypeVar

from cloudbot.build.interface import IImageBuilder
from cloudbot.config.models import PlatformConfig, PlatformSecrets
from cloudbot.deploy.deployer import ClusterDeployer, DeploymentRef
from cloudbot.errors import PipelineError, RecordNotFoundError, ValidationError
from cloudbot.observers.dispatcher import EventBus
from cloudbot.observers.events import (
    BotActivated,
    BotDeleted,
    BotFailed,
    PipelineStarted,
    StepFailed,
    StepStarted,
    StepSucceeded,
    TeardownStarted,
    TeardownStepFailed,
    new_ctx,
)
from cloudbot.store.interface import IStatusStore
from cloudbot.template.materializer import TemplateMaterializer
from cloudbot.workloads import naming
from cloudbot.workloads.models import BotRecord, BotStatus, CreateBotRequest

from .validation import validate_create_request

log = logging.getLogger("cloudbot")

T = TypeVar("T")

STEPS = ("materialize", "build", "apply", "await_ready")


@dataclass
class TeardownReport:
    bot_id: int
    name: str
    cluster_removed: bool = False
    workdir_removed: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.errors


class LifecycleOrchestrator:
    def __init__(
        self,
        *,
        store: IStatusStore,
        materializer: TemplateMaterializer,
        builder: IImageBuilder,
        deployer: ClusterDeployer,
        cfg: Optional[PlatformConfig] = None,
        bus: Optional[EventBus] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.store = store
        self.materializer = materializer
        self.builder = builder
        self.deployer = deployer
        self.cfg = cfg or PlatformConfig()
        self.bus = bus or EventBus()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.cfg.max_workers,
            thread_name_prefix="cloudbot-pipeline",
        )

        self._lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._inflight: Dict[int, Future] = {}
        self._deleting: Set[int] = set()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def submit(self, request: CreateBotRequest) -> BotRecord:
        """
        Validate, persist in `creating`, and start provisioning in the
        background. Raises ValidationError before anything is persisted.
        """
        log.info("Bot creation request: owner=%s name=%s services=%s",
                 request.owner_id, request.name, request.capabilities)

        # quota + uniqueness check and insert must not interleave
        with self._submit_lock:
            existing = self.store.list_by_owner(request.owner_id)
            try:
                cleaned = validate_create_request(
                    request, existing, max_bots=self.cfg.max_bots_per_owner
                )
            except ValidationError as exc:
                log.warning("Bot creation rejected: owner=%s name=%s: %s",
                            request.owner_id, request.name, exc)
                raise
            record = self.store.insert(cleaned)

        log.info("Bot record created: id=%s owner=%s name=%s", record.id, record.owner_id, record.name)
        self.dispatch(record)
        return record

    def dispatch(self, record: BotRecord) -> Future:
        """Start the creation pipeline for an already persisted record."""
        with self._lock:
            current = self._inflight.get(record.id)
            if current is not None and not current.done():
                raise ValidationError(f"Bot {record.id} is already being provisioned")
            if record.id in self._deleting:
                raise ValidationError(f"Bot {record.id} is being deleted")
            future = self._executor.submit(self.provision, record)
            self._inflight[record.id] = future

        future.add_done_callback(lambda f, bot_id=record.id: self._release(bot_id, f))
        return future

    def _release(self, bot_id: int, future: Future) -> None:
        with self._lock:
            if self._inflight.get(bot_id) is future:
                del self._inflight[bot_id]

    def in_flight(self, bot_id: int) -> bool:
        with self._lock:
            future = self._inflight.get(bot_id)
        return future is not None and not future.done()

    def provision(
        self,
        record: BotRecord,
        *,
        secrets: Optional[PlatformSecrets] = None,
    ) -> Optional[BotRecord]:
        """
        Run the creation pipeline to completion. Never raises: every failure
        ends up persisted as `error`. Returns the final record, or None if
        the record disappeared underneath the pipeline.
        """
        descriptor = record.descriptor()
        ctx = new_ctx(bot_id=record.id, namespace=self.cfg.namespace)
        secrets = secrets or self.cfg.secrets

        log.info("Starting bot deployment: id=%s name=%s", record.id, record.name)
        self.bus.emit(PipelineStarted(name=record.name, **ctx))

        step = STEPS[0]
        try:
            step = "materialize"
            workdir: Path = self._step(step, ctx, lambda: self.materializer.materialize(descriptor, secrets))

            step = "build"
            tag = naming.image_tag(descriptor.name, descriptor.id)
            self._step(step, ctx, lambda: self.builder.build(workdir, tag))

            step = "apply"
            ref: DeploymentRef = self._step(
                step, ctx, lambda: self.deployer.apply(descriptor, tag, workdir=workdir)
            )
            # kept even if readiness fails, so teardown can find the objects
            self.store.update(record.id, cluster_reference=ref.deployment_name)

            step = "await_ready"
            self._step(
                step, ctx, lambda: self.deployer.await_ready(ref, self.cfg.readiness_timeout_seconds)
            )
        except RecordNotFoundError:
            log.warning("Bot %s vanished during %s; abandoning pipeline", record.id, step)
            return None
        except PipelineError as exc:
            return self._fail(record, exc.step, exc, ctx)
        except Exception as exc:
            log.exception("Unexpected failure in step %s for bot %s", step, record.id)
            return self._fail(record, step, exc, ctx)

        public = naming.public_url(descriptor.name, self.cfg.public_url_base)
        internal = naming.internal_address(
            descriptor.name, self.cfg.namespace, self.cfg.cluster_domain_suffix
        )
        try:
            final = self.store.update(
                record.id,
                status=BotStatus.ACTIVE,
                public_url=public,
                internal_address=internal,
                cluster_reference=ref.deployment_name,
                error_message=None,
            )
        except RecordNotFoundError:
            log.warning("Bot %s was deleted before it could be marked active", record.id)
            return None

        log.info("Bot deployed successfully: id=%s name=%s url=%s", record.id, record.name, public)
        self.bus.emit(BotActivated(name=record.name, public_url=public, internal_address=internal, **ctx))
        return final

    def _step(self, step: str, ctx: dict, fn: Callable[[], T]) -> T:
        self.bus.emit(StepStarted(step=step, **ctx))
        t0 = time.time()
        try:
            result = fn()
        except Exception as exc:
            self.bus.emit(StepFailed(step=step, error=str(exc), **ctx))
            raise
        self.bus.emit(StepSucceeded(step=step, duration_ms=int((time.time() - t0) * 1000), **ctx))
        return result

    def _fail(self, record: BotRecord, step: str, exc: BaseException, ctx: dict) -> Optional[BotRecord]:
        message = str(exc) or exc.__class__.__name__
        log.error(
            "Bot deployment failed: id=%s name=%s step=%s error=%s",
            record.id, record.name, step, message,
        )
        output = getattr(exc, "output", None)
        if output:
            log.debug("Diagnostic output for bot %s (%s):\n%s", record.id, step, output)

        self.bus.emit(BotFailed(name=record.name, step=step, error=message, **ctx))
        try:
            return self.store.update(record.id, status=BotStatus.ERROR, error_message=message)
        except RecordNotFoundError:
            log.warning("Bot %s was deleted before its failure could be recorded", record.id)
            return None

    def wait(self, bot_id: int, timeout: Optional[float] = None) -> BotRecord:
        """Block until any in-flight creation for *bot_id* ends, then return the record."""
        with self._lock:
            future = self._inflight.get(bot_id)
        if future is not None:
            wait_futures([future], timeout=timeout)
        return self.store.get(bot_id)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def delete(self, bot_id: int, *, owner_id: Optional[int] = None) -> TeardownReport:
        """
        Remove cluster objects, the working directory and the record.
        Cleanup failures are logged and reported; the record is deleted
        regardless. Raises RecordNotFoundError for unknown (or foreign) ids.
        """
        with self._lock:
            self._deleting.add(bot_id)
            future = self._inflight.get(bot_id)
        try:
            if future is not None and not future.done():
                log.info("Bot %s is still being created; waiting before teardown", bot_id)
                wait_futures([future])
            return self._teardown(bot_id, owner_id)
        finally:
            with self._lock:
                self._deleting.discard(bot_id)

    def _teardown(self, bot_id: int, owner_id: Optional[int]) -> TeardownReport:
        record = self.store.get(bot_id)
        if owner_id is not None and record.owner_id != owner_id:
            raise RecordNotFoundError(f"Bot {bot_id} not found")

        ctx = new_ctx(bot_id=bot_id, namespace=self.cfg.namespace)
        report = TeardownReport(bot_id=bot_id, name=record.name)
        log.info("Deleting bot: id=%s name=%s", bot_id, record.name)
        self.bus.emit(TeardownStarted(name=record.name, cluster_reference=record.cluster_reference, **ctx))

        # 1) cluster objects
        if record.cluster_reference:
            try:
                ref = DeploymentRef(
                    deployment_name=record.cluster_reference,
                    service_name=naming.service_name(record.name),
                    namespace=self.cfg.namespace,
                )
                self.deployer.teardown(ref)
                report.cluster_removed = True
            except Exception as exc:
                log.error("Error deleting Kubernetes resources for bot %s: %s", bot_id, exc)
                report.errors.append(f"cluster: {exc}")
                self.bus.emit(TeardownStepFailed(step="cluster", error=str(exc), **ctx))

        # 2) working directory
        try:
            report.workdir_removed = self.materializer.remove(bot_id)
        except Exception as exc:
            log.error("Error deleting working directory for bot %s: %s", bot_id, exc)
            report.errors.append(f"workdir: {exc}")
            self.bus.emit(TeardownStepFailed(step="workdir", error=str(exc), **ctx))

        # 3) record, unconditionally
        self.store.delete(bot_id)
        log.info("Bot deleted: id=%s name=%s clean=%s", bot_id, record.name, report.clean)
        self.bus.emit(BotDeleted(name=record.name, clean=report.clean, **ctx))
        return report

    # ------------------------------------------------------------------
    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "LifecycleOrchestrator":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
