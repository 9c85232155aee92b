"""Management-service access: credentials and client."""

from hdinsight_cli.service.client import (
    API_VERSION,
    CREATE_ACCEPTED,
    HDInsightClient,
    ListClustersResult,
    ManagementClient,
    StatusResult,
    cloud_service_name,
    find_cluster,
)
from hdinsight_cli.service.context import SubscriptionContext

__all__ = [
    "API_VERSION",
    "CREATE_ACCEPTED",
    "HDInsightClient",
    "ListClustersResult",
    "ManagementClient",
    "StatusResult",
    "SubscriptionContext",
    "cloud_service_name",
    "find_cluster",
]
