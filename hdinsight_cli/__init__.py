"""HDInsight cluster CLI - Python control plane.

Provisions and manages HDInsight compute clusters (create, show, list,
delete) against the subscription-scoped cluster-management service, and
maintains the small versioned config file used to stage cluster-creation
parameters before submission.
"""

try:
    from importlib.metadata import version

    __version__ = version("hdinsight-cluster-cli")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
