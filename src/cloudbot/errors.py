# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/errors.py
from __future__ import annotations

from typing import Optional


class CloudBotError(RuntimeError):
    """Base class for platform failures."""


class ValidationError(CloudBotError, ValueError):
    """Raised synchronously for bad create requests (duplicate name, quota, missing field)."""


class RecordNotFoundError(CloudBotError, LookupError):
    """Raised when a bot record does not exist in the status store."""


class PipelineError(CloudBotError):
    """
    Base class for provisioning stage failures.

    step:   pipeline step that failed ("materialize", "build", "apply", "await_ready")
    output: diagnostic text from the external tool, if any
    """

    step = "pipeline"

    def __init__(self, message: str, *, output: Optional[str] = None):
        super().__init__(message)
        self.output = output


class TemplateCopyError(PipelineError):
    """Template root unreadable or the recursive copy could not complete."""

    step = "materialize"


class ManifestRewriteError(PipelineError):
    """Build descriptor could not be parsed or written back."""

    step = "materialize"


class BuildError(PipelineError):
    """External image build tool exited non-zero."""

    step = "build"


class DeployError(PipelineError):
    """Cluster driver rejected a submission or deletion."""

    step = "apply"


class ReadinessTimeoutError(PipelineError):
    """Deployment never became available within the timeout."""

    step = "await_ready"
