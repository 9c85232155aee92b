"""Show, list and delete existing clusters."""

from __future__ import annotations

import logging
from typing import List

from hdinsight_cli.cluster.models import ClusterDescriptor
from hdinsight_cli.errors import RemoteRejection, ValidationError
from hdinsight_cli.service.client import ManagementClient, find_cluster

logger = logging.getLogger(__name__)


def _require_name(name: str) -> str:
    if not name or not name.strip():
        raise ValidationError("A cluster name is required.")
    return name.strip()


def show_cluster(client: ManagementClient, name: str) -> ClusterDescriptor:
    """Return cluster *name*, or raise :class:`ValidationError` if absent."""
    name = _require_name(name)
    cluster = find_cluster(client, name)
    if cluster is None:
        raise ValidationError(f"Cluster {name} not found.")
    return cluster


def list_clusters(client: ManagementClient) -> List[ClusterDescriptor]:
    """Return every cluster in the subscription."""
    result = client.list_clusters()
    if result.status_code != 200:
        raise RemoteRejection("List clusters", result.status_code)
    logger.info("Found %d cluster(s)", len(result.clusters))
    return list(result.clusters)


def delete_cluster(client: ManagementClient, name: str) -> ClusterDescriptor:
    """Delete cluster *name* and return the descriptor it had.

    The location needed by the delete call comes from the listing.
    """
    cluster = show_cluster(client, name)
    logger.info("Deleting cluster %s in %s", cluster.name, cluster.location)
    client.delete_cluster(cluster.name, cluster.location)
    return cluster
