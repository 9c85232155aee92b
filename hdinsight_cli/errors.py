"""Exception hierarchy for hdinsight-cli.

Every error is terminal for the current command invocation.  The CLI
catches :class:`HDInsightError`, prints it, and exits with the error's
``exit_code``.
"""

from __future__ import annotations

from typing import Any, Optional

# Exit codes
EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_REMOTE_FAILURE = 2
EXIT_CONFLICT = 3


class HDInsightError(Exception):
    """Base exception for all hdinsight-cli errors."""

    exit_code: int = EXIT_REMOTE_FAILURE


class ValidationError(HDInsightError):
    """Malformed or missing command parameters, or an unreadable config file."""

    exit_code = EXIT_VALIDATION_FAILURE


class IncompatibleSchema(ValidationError):
    """A config file's ``version`` is not readable by this release."""

    def __init__(self, path: str, version: Any, engine_version: float) -> None:
        self.path = path
        self.version = version
        self.engine_version = engine_version
        super().__init__(
            f"Config file {path} has version {version!r}, which is not "
            f"compatible with this tool (schema version {engine_version})."
        )


class ConflictError(HDInsightError):
    """The target cluster already exists."""

    exit_code = EXIT_CONFLICT

    def __init__(self, cluster: Any) -> None:
        self.cluster = cluster
        super().__init__(f"Cluster {cluster.name} already exists.")


class RemoteRejection(HDInsightError):
    """The management service answered with an unexpected status code."""

    def __init__(self, operation: str, status_code: int, body: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        message = f"{operation} request failed (HTTP {status_code})"
        if body:
            message = f"{message}: {body[:200]}"
        super().__init__(message)


class TransportError(HDInsightError):
    """The management service could not be reached."""


class ProvisioningFailed(HDInsightError):
    """Cluster creation was submitted but the cluster did not come up."""

    def __init__(self, name: str, cluster: Optional[Any] = None) -> None:
        self.name = name
        self.cluster = cluster
        if cluster is None:
            message = f"Cluster {name} was not found after creation."
        else:
            message = f"Cluster {name} failed to provision: {cluster.error}"
        super().__init__(message)
