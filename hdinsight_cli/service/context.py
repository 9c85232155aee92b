"""Subscription context: subscription id, credential, and endpoint.

Wraps credential lookup into a single :class:`SubscriptionContext` that
the cluster commands depend on.

Subscription resolution precedence:
1. Explicit ``--subscription`` CLI flag
2. ``HDINSIGHT_SUBSCRIPTION_ID`` env var
3. Error — no implicit default

Certificate resolution precedence:
1. Explicit ``--cert`` CLI flag
2. ``HDINSIGHT_MANAGEMENT_CERT`` env var
3. Error

Endpoint resolution precedence:
1. Explicit argument
2. ``HDINSIGHT_MANAGEMENT_ENDPOINT`` env var
3. Public service-management endpoint
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from hdinsight_cli.errors import ValidationError
from hdinsight_cli.service.client import HDInsightClient

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://management.core.windows.net"

SUBSCRIPTION_ENV = "HDINSIGHT_SUBSCRIPTION_ID"
CERT_ENV = "HDINSIGHT_MANAGEMENT_CERT"
ENDPOINT_ENV = "HDINSIGHT_MANAGEMENT_ENDPOINT"


def resolve_subscription(subscription: Optional[str] = None) -> str:
    """Return the subscription id: flag → env → raise."""
    resolved = subscription or os.environ.get(SUBSCRIPTION_ENV, "")
    if not resolved:
        raise ValidationError(
            f"No subscription selected. Export {SUBSCRIPTION_ENV} or use --subscription."
        )
    return resolved


def resolve_cert_path(cert_path: Optional[str] = None) -> str:
    """Return the management-certificate path: flag → env → raise.

    The file must exist.
    """
    resolved = cert_path or os.environ.get(CERT_ENV, "")
    if not resolved:
        raise ValidationError(
            f"No management certificate. Export {CERT_ENV} or use --cert."
        )
    path = Path(resolved).expanduser()
    if not path.is_file():
        raise ValidationError(f"Management certificate not found: {path}")
    return str(path)


def resolve_endpoint(endpoint: Optional[str] = None) -> str:
    """Return the service-management endpoint."""
    return endpoint or os.environ.get(ENDPOINT_ENV) or DEFAULT_ENDPOINT


@dataclass
class SubscriptionContext:
    """Resolved credential bundle plus a client factory.

    Attributes:
        subscription_id: Subscription the clusters belong to.
        cert_path: PEM file holding the management certificate and key.
        endpoint: Base URL of the service-management API.
    """

    subscription_id: str
    cert_path: str
    endpoint: str = DEFAULT_ENDPOINT
    _client: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def build(
        cls,
        subscription: Optional[str] = None,
        cert_path: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> "SubscriptionContext":
        """Resolve every setting, raising :class:`ValidationError` on gaps."""
        ctx = cls(
            subscription_id=resolve_subscription(subscription),
            cert_path=resolve_cert_path(cert_path),
            endpoint=resolve_endpoint(endpoint),
        )
        logger.info(
            "Subscription context: subscription=%s endpoint=%s",
            ctx.subscription_id,
            ctx.endpoint,
        )
        return ctx

    def client(self) -> HDInsightClient:
        """Return the cached management client."""
        if self._client is None:
            self._client = HDInsightClient(
                subscription_id=self.subscription_id,
                cert_path=self.cert_path,
                endpoint=self.endpoint,
            )
        return self._client
