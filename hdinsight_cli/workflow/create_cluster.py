"""Orchestrator for cluster creation.

Drives a creation request through the service::

    Init → CheckExisting → ValidateLocation → [RegisterLocation]
         → SubmitCreate → WaitReady → Succeeded | Aborted | Failed

* **Init** merges the request from the config file, explicit options and
  interactive prompts (in that order of increasing priority for options).
* **CheckExisting** aborts if a cluster with the same name (any case)
  already exists.
* **ValidateLocation** registers the location when the service answers
  404 and waits for validation to succeed.
* **SubmitCreate** accepts 200/202 only.
* **WaitReady** polls until the cluster is terminal, then re-fetches it
  and fails if it is missing or reports an error.

No remote mutation happens before SubmitCreate, and nothing is rolled back
afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from hdinsight_cli import ui
from hdinsight_cli.cluster.models import ClusterDescriptor
from hdinsight_cli.cluster.monitor import (
    PollingEngine,
    PollState,
    cluster_ready,
    location_not_validated,
    location_validated,
)
from hdinsight_cli.config.models import (
    REQUIRED_REQUEST_FIELDS,
    SECRET_FIELDS,
    ClusterCreationRequest,
)
from hdinsight_cli.config.store import load_config
from hdinsight_cli.errors import (
    EXIT_SUCCESS,
    ConflictError,
    HDInsightError,
    ProvisioningFailed,
    RemoteRejection,
    ValidationError,
)
from hdinsight_cli.service.client import CREATE_ACCEPTED, ManagementClient, find_cluster

logger = logging.getLogger(__name__)

#: ``prompt(label, secret) -> answer`` used to fill missing fields.
Prompt = Callable[[str, bool], str]


class WorkflowStatus(str, Enum):
    """Terminal states of the create workflow."""

    SUCCEEDED = "Succeeded"
    ABORTED = "Aborted"
    FAILED = "Failed"


@dataclass
class ProvisioningContext:
    """Collaborators one workflow run needs."""

    client: ManagementClient
    poller: PollingEngine = field(default_factory=PollingEngine)


@dataclass
class ProvisioningOutcome:
    """Result of :func:`run_create_workflow`."""

    status: WorkflowStatus
    cluster: Optional[ClusterDescriptor] = None
    error: Optional[HDInsightError] = None

    @property
    def succeeded(self) -> bool:
        return self.status == WorkflowStatus.SUCCEEDED

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error is not None else EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Init: request assembly
# ---------------------------------------------------------------------------


def _assign(request: ClusterCreationRequest, attr: str, value: Any) -> None:
    try:
        setattr(request, attr, value)
    except PydanticValidationError as exc:
        label = REQUIRED_REQUEST_FIELDS.get(attr, attr)
        shown = "****" if attr in SECRET_FIELDS else repr(value)
        raise ValidationError(f"Invalid value for {label}: {shown}") from exc


def build_creation_request(
    *,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    prompt: Optional[Prompt] = None,
) -> ClusterCreationRequest:
    """Assemble a complete :class:`ClusterCreationRequest`.

    Each required field comes from, in priority order: *overrides*, the
    config file at *config_path*, then *prompt*.  With no *prompt*, missing
    fields raise :class:`ValidationError` naming all of them.
    """
    if config_path:
        request = load_config(config_path).to_request()
        logger.info("Loaded cluster parameters from %s", config_path)
    else:
        request = ClusterCreationRequest()

    for attr, value in (overrides or {}).items():
        if value is not None:
            _assign(request, attr, value)

    missing = request.missing_fields()
    if missing and prompt is None:
        raise ValidationError(
            "Missing required parameters: "
            + ", ".join(REQUIRED_REQUEST_FIELDS[f] for f in missing)
        )

    for attr in missing:
        answer = prompt(REQUIRED_REQUEST_FIELDS[attr], attr in SECRET_FIELDS)
        _assign(request, attr, answer)

    still_missing = request.missing_fields()
    if still_missing:
        raise ValidationError(
            "Missing required parameters: "
            + ", ".join(REQUIRED_REQUEST_FIELDS[f] for f in still_missing)
        )
    return request


# ---------------------------------------------------------------------------
# Remote steps
# ---------------------------------------------------------------------------


def _check_existing(ctx: ProvisioningContext, name: str) -> None:
    existing = find_cluster(ctx.client, name)
    if existing is not None:
        logger.error("Cluster %s already exists (state=%s)", existing.name, existing.state.value)
        raise ConflictError(existing)


def _ensure_location(ctx: ProvisioningContext, location: str) -> None:
    result = ctx.client.validate_location(location)
    if result.status_code == 200:
        logger.info("Location %s already registered", location)
        return
    if result.status_code != 404:
        raise RemoteRejection("Validate location", result.status_code, result.body)

    ui.step(f"Registering location {location} ...")
    ctx.client.register_location(location)

    state = PollState()
    ctx.poller.poll_until(
        lambda: ctx.client.validate_location(location),
        location_validated,
        is_failure=location_not_validated,
        state=state,
    )
    if state.exhausted:
        logger.warning(
            "Location %s not confirmed after %d attempts; submitting anyway.",
            location,
            state.attempts,
        )
    else:
        logger.info("Location %s registered", location)


def _submit(ctx: ProvisioningContext, request: ClusterCreationRequest) -> None:
    result = ctx.client.create_cluster(request)
    if result.status_code not in CREATE_ACCEPTED:
        raise RemoteRejection("Create cluster", result.status_code, result.body)
    logger.info("Cluster creation accepted: %s (HTTP %d)", request.name, result.status_code)


def _wait_ready(ctx: ProvisioningContext, name: str) -> ClusterDescriptor:
    ui.step(f"Waiting for cluster {name} to provision ...")
    state = PollState()
    ctx.poller.poll_until(
        lambda: find_cluster(ctx.client, name),
        cluster_ready,
        state=state,
    )
    if state.exhausted:
        logger.warning(
            "Gave up polling cluster %s after %d attempts.", name, state.attempts,
        )

    cluster = find_cluster(ctx.client, name)
    if cluster is None or cluster.has_error:
        raise ProvisioningFailed(name, cluster)
    return cluster


def create_cluster(
    ctx: ProvisioningContext,
    request: ClusterCreationRequest,
) -> ClusterDescriptor:
    """Run CheckExisting through WaitReady for a complete *request*.

    Returns the provisioned cluster, or raises :class:`ConflictError`,
    :class:`RemoteRejection`, :class:`TransportError` or
    :class:`ProvisioningFailed`.
    """
    missing = request.missing_fields()
    if missing:
        raise ValidationError(
            "Missing required parameters: "
            + ", ".join(REQUIRED_REQUEST_FIELDS[f] for f in missing)
        )
    name = request.name or ""
    location = request.location or ""

    _check_existing(ctx, name)
    _ensure_location(ctx, location)
    _submit(ctx, request)
    return _wait_ready(ctx, name)


def run_create_workflow(
    ctx: ProvisioningContext,
    *,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    prompt: Optional[Prompt] = None,
) -> ProvisioningOutcome:
    """End-to-end cluster creation: Init → ... → terminal state.

    Never raises :class:`HDInsightError`; the error is carried on the
    returned :class:`ProvisioningOutcome`.
    """
    try:
        request = build_creation_request(
            config_path=config_path, overrides=overrides, prompt=prompt,
        )
        cluster = create_cluster(ctx, request)
    except ConflictError as exc:
        return ProvisioningOutcome(WorkflowStatus.ABORTED, cluster=exc.cluster, error=exc)
    except ProvisioningFailed as exc:
        logger.error("%s", exc)
        return ProvisioningOutcome(WorkflowStatus.FAILED, cluster=exc.cluster, error=exc)
    except HDInsightError as exc:
        logger.error("%s", exc)
        return ProvisioningOutcome(WorkflowStatus.FAILED, error=exc)

    logger.info("Cluster %s is %s", cluster.name, cluster.state.value)
    return ProvisioningOutcome(WorkflowStatus.SUCCEEDED, cluster=cluster)
