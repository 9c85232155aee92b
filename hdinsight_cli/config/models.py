"""Pydantic models for cluster-creation parameters and config files.

Defines the data structures for:
- Additional storage accounts and metastores
- The cluster-creation request handed to the management service
- The persisted config document (a superset of the request)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hdinsight_cli.config.versioning import CONFIG_SCHEMA_VERSION

#: Metastore kinds the service accepts.
METASTORE_KINDS: List[str] = ["hive", "oozie"]

# ---------------------------------------------------------------------------
# Required request fields, attribute name to human label.  Each must be
# supplied by an option, the loaded config, or an interactive prompt.
# ---------------------------------------------------------------------------

REQUIRED_REQUEST_FIELDS: Dict[str, str] = {
    "name": "Cluster name",
    "node_count": "Number of data nodes",
    "location": "Location",
    "storage_account_name": "Storage account name",
    "storage_account_key": "Storage account key",
    "storage_container": "Storage container",
    "user": "Admin user name",
    "password": "Admin password",
}

#: Fields whose values must never be echoed or logged.
SECRET_FIELDS = frozenset({"storage_account_key", "password"})


class StorageAccount(BaseModel):
    """An additional storage account attached to the cluster."""

    name: str
    key: str


class Metastore(BaseModel):
    """Connection details for an external Hive or Oozie metastore."""

    server: str
    database: str
    user: str
    password: str


class ClusterCreationRequest(BaseModel):
    """Everything the service needs to create a cluster.

    Built empty or from a config file, then filled in field-by-field from
    command-line options and prompts.  Aliases are the stable camelCase
    names used in config files.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    schema_version: Optional[float] = Field(
        default=CONFIG_SCHEMA_VERSION, alias="version"
    )
    name: Optional[str] = None
    node_count: Optional[int] = Field(default=None, alias="nodes")
    location: Optional[str] = None
    storage_account_name: Optional[str] = Field(
        default=None, alias="storageAccountName"
    )
    storage_account_key: Optional[str] = Field(
        default=None, alias="storageAccountKey"
    )
    storage_container: Optional[str] = Field(default=None, alias="storageContainer")
    user: Optional[str] = None
    password: Optional[str] = None
    additional_storage_accounts: List[StorageAccount] = Field(
        default_factory=list, alias="additionalStorageAccounts"
    )
    metastores: Dict[str, Metastore] = Field(default_factory=dict)

    @field_validator("node_count")
    @classmethod
    def _positive_nodes(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("nodes must be a positive integer")
        return value

    @field_validator(
        "name",
        "location",
        "storage_account_name",
        "storage_account_key",
        "storage_container",
        "user",
        "password",
        mode="before",
    )
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing_fields(self) -> List[str]:
        """Return required attribute names that still have no value."""
        return [f for f in REQUIRED_REQUEST_FIELDS if getattr(self, f) is None]

    def to_document(self) -> Dict[str, Any]:
        """Serialise using config-file key names, dropping unset values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConfigDocument(ClusterCreationRequest):
    """The persisted config file.

    Unknown keys are preserved so a round-trip never drops data written
    by a newer minor release.
    """

    model_config = ConfigDict(
        populate_by_name=True, validate_assignment=True, extra="allow"
    )

    def to_request(self) -> ClusterCreationRequest:
        """Return a creation request seeded from this document."""
        # Extra keys are ignored by the request model.
        return ClusterCreationRequest.model_validate(
            self.model_dump(by_alias=True, exclude_none=True)
        )
