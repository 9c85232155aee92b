"""Orchestration workflows (create, show, list, delete)."""

from hdinsight_cli.workflow.create_cluster import (
    ProvisioningContext,
    ProvisioningOutcome,
    WorkflowStatus,
    build_creation_request,
    create_cluster,
    run_create_workflow,
)
from hdinsight_cli.workflow.manage_cluster import (
    delete_cluster,
    list_clusters,
    show_cluster,
)

__all__ = [
    "ProvisioningContext",
    "ProvisioningOutcome",
    "WorkflowStatus",
    "build_creation_request",
    "create_cluster",
    "delete_cluster",
    "list_clusters",
    "run_create_workflow",
    "show_cluster",
]
