"""Cluster descriptors and polling."""

from hdinsight_cli.cluster.models import (
    TERMINAL_STATES,
    ClusterDescriptor,
    ClusterState,
)
from hdinsight_cli.cluster.monitor import (
    DEFAULT_POLL_INTERVAL,
    MAX_CONSECUTIVE_FAILURES,
    PollingEngine,
    PollState,
    cluster_ready,
    location_not_validated,
    location_validated,
    poll_until,
)

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "MAX_CONSECUTIVE_FAILURES",
    "TERMINAL_STATES",
    "ClusterDescriptor",
    "ClusterState",
    "PollState",
    "PollingEngine",
    "cluster_ready",
    "location_not_validated",
    "location_validated",
    "poll_until",
]
