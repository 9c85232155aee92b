"""Management-service client for HDInsight clusters.

:class:`ManagementClient` is the interface the workflows depend on;
:class:`HDInsightClient` implements it over HTTPS with :mod:`requests`,
authenticating with a management certificate.

Clusters live as ``hdinsight/containers`` resources inside a per-location
cloud service whose name is derived from the subscription id and location.
A location is "registered" once that cloud service exists.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic import ValidationError as PydanticValidationError

from hdinsight_cli.cluster.models import ClusterDescriptor
from hdinsight_cli.config.models import ClusterCreationRequest
from hdinsight_cli.errors import RemoteRejection, TransportError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Service-management API version sent in ``x-ms-version``.
API_VERSION = "2011-08-18"

#: Seconds before an HTTP request is abandoned.
DEFAULT_TIMEOUT: float = 60.0

RESOURCE_NAMESPACE = "hdinsight"
RESOURCE_TYPE = "containers"

#: Status codes the service uses to accept a create request.
CREATE_ACCEPTED = frozenset({200, 202})


# ---------------------------------------------------------------------------
# Result envelopes
# ---------------------------------------------------------------------------


@dataclass
class StatusResult:
    """Status code (and raw body) of a service call."""

    status_code: int
    body: str = ""


@dataclass
class ListClustersResult:
    """Outcome of :meth:`ManagementClient.list_clusters`."""

    status_code: int
    clusters: List[ClusterDescriptor] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class ManagementClient(Protocol):
    """Calls the workflows make against the management service."""

    def list_clusters(self) -> ListClustersResult: ...

    def create_cluster(self, request: ClusterCreationRequest) -> StatusResult: ...

    def delete_cluster(self, name: str, location: str) -> None: ...

    def validate_location(self, location: str) -> StatusResult: ...

    def register_location(self, location: str) -> None: ...


def find_cluster(client: ManagementClient, name: str) -> Optional[ClusterDescriptor]:
    """Return the first listed cluster whose name matches *name* (any case).

    There is no get-by-name call, so this lists every cluster in the
    subscription.  Raises :class:`RemoteRejection` if listing fails.
    """
    result = client.list_clusters()
    if result.status_code != 200:
        raise RemoteRejection("List clusters", result.status_code)
    for cluster in result.clusters:
        if cluster.matches(name):
            return cluster
    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def cloud_service_name(subscription_id: str, location: str) -> str:
    """Derive the per-location cloud service that holds clusters.

    ``hdinsight`` + lowercase base32 of SHA-256(``<subscription>-<location>``),
    without padding.
    """
    digest = hashlib.sha256(f"{subscription_id}-{location}".encode("utf-8")).digest()
    encoded = base64.b32encode(digest).decode("ascii").rstrip("=").lower()
    return f"{RESOURCE_NAMESPACE}{encoded}"


def creation_payload(request: ClusterCreationRequest) -> Dict[str, Any]:
    """Translate a request into the JSON body of a create call."""
    payload: Dict[str, Any] = {
        "Name": request.name,
        "Location": request.location,
        "ClusterSize": request.node_count,
        "DefaultStorageAccount": {
            "Name": request.storage_account_name,
            "Key": request.storage_account_key,
            "Container": request.storage_container,
        },
        "AdditionalStorageAccounts": [
            {"Name": a.name, "Key": a.key}
            for a in request.additional_storage_accounts
        ],
        "HttpUserName": request.user,
        "HttpPassword": request.password,
    }
    if request.metastores:
        payload["Metastores"] = {
            kind: {
                "Server": m.server,
                "Database": m.database,
                "User": m.user,
                "Password": m.password,
            }
            for kind, m in request.metastores.items()
        }
    return payload


def _resource_error(resource: Dict[str, Any]) -> Optional[str]:
    if resource.get("Error"):
        return str(resource["Error"])
    status = resource.get("OperationStatus")
    if not isinstance(status, dict):
        return None
    err = status.get("Error")
    message = err.get("Message") if isinstance(err, dict) else err
    return str(message) if message else None


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def parse_cluster_list(body: Dict[str, Any]) -> List[ClusterDescriptor]:
    """Extract cluster resources from a ``cloudservices`` listing.

    Entries that are not JSON objects are skipped.
    """
    clusters: List[ClusterDescriptor] = []
    for service in _dicts(body.get("CloudServices")):
        region = service.get("GeoRegion", "")
        for resource in _dicts(service.get("Resources")):
            if str(resource.get("ResourceProviderNamespace") or "").lower() != RESOURCE_NAMESPACE:
                continue
            if str(resource.get("Type") or "").lower() != RESOURCE_TYPE:
                continue
            data = dict(resource)
            data.setdefault("Location", region)
            data["Error"] = _resource_error(resource)
            try:
                clusters.append(ClusterDescriptor.model_validate(data))
            except PydanticValidationError as exc:
                logger.warning("Skipping unparsable cluster resource: %s", exc)
    return clusters


# ---------------------------------------------------------------------------
# HTTP implementation
# ---------------------------------------------------------------------------


class HDInsightClient:
    """:class:`ManagementClient` backed by the service-management REST API."""

    def __init__(
        self,
        *,
        subscription_id: str,
        cert_path: str,
        endpoint: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not subscription_id:
            raise ValueError("subscription_id is required")
        self.subscription_id = subscription_id
        self._base_url = f"{endpoint.rstrip('/')}/{subscription_id}/cloudservices"
        self._timeout = timeout
        self._cert = cert_path
        self._headers = {
            "x-ms-version": API_VERSION,
            "Accept": "application/json",
        }
        # A caller-supplied session is used as-is; auth goes on each request.
        self._session = session or requests.Session()

    # -- plumbing -----------------------------------------------------------

    def _service_url(self, location: str) -> str:
        return f"{self._base_url}/{cloud_service_name(self.subscription_id, location)}"

    def _cluster_url(self, name: str, location: str) -> str:
        return (
            f"{self._service_url(location)}/resources/"
            f"{RESOURCE_NAMESPACE}/{RESOURCE_TYPE}/{name}"
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(
                method,
                url,
                cert=self._cert,
                headers=self._headers,
                timeout=self._timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp

    # -- ManagementClient ---------------------------------------------------

    def list_clusters(self) -> ListClustersResult:
        resp = self._request("GET", self._base_url)
        if resp.status_code != 200:
            return ListClustersResult(status_code=resp.status_code)
        try:
            body = resp.json()
        except ValueError as exc:
            raise RemoteRejection(
                "List clusters", resp.status_code, "response was not JSON",
            ) from exc
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise RemoteRejection(
                "List clusters", resp.status_code, "response was not a JSON object",
            )
        return ListClustersResult(
            status_code=resp.status_code,
            clusters=parse_cluster_list(body),
        )

    def create_cluster(self, request: ClusterCreationRequest) -> StatusResult:
        resp = self._request(
            "PUT",
            self._cluster_url(request.name or "", request.location or ""),
            json=creation_payload(request),
        )
        return StatusResult(status_code=resp.status_code, body=resp.text)

    def delete_cluster(self, name: str, location: str) -> None:
        resp = self._request("DELETE", self._cluster_url(name, location))
        if resp.status_code >= 400:
            raise RemoteRejection("Delete cluster", resp.status_code, resp.text)

    def validate_location(self, location: str) -> StatusResult:
        resp = self._request("GET", self._service_url(location))
        return StatusResult(status_code=resp.status_code, body=resp.text)

    def register_location(self, location: str) -> None:
        payload = {
            "Name": cloud_service_name(self.subscription_id, location),
            "Label": f"HDInsight clusters in {location}",
            "Description": f"HDInsight clusters in {location}",
            "GeoRegion": location,
        }
        resp = self._request("PUT", self._service_url(location), json=payload)
        if resp.status_code >= 400:
            raise RemoteRejection("Register location", resp.status_code, resp.text)
