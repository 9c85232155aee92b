"""Versioned config files for staging cluster-creation parameters."""

from hdinsight_cli.config.editing import (
    add_storage_account,
    clear_metastore,
    create_document,
    remove_storage_account,
    set_fields,
    set_metastore,
    update_document,
)
from hdinsight_cli.config.models import (
    METASTORE_KINDS,
    REQUIRED_REQUEST_FIELDS,
    ClusterCreationRequest,
    ConfigDocument,
    Metastore,
    StorageAccount,
)
from hdinsight_cli.config.store import load_config, load_document, write_document
from hdinsight_cli.config.versioning import (
    CONFIG_SCHEMA_VERSION,
    is_compatible,
    require_compatible,
)

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "METASTORE_KINDS",
    "REQUIRED_REQUEST_FIELDS",
    "ClusterCreationRequest",
    "ConfigDocument",
    "Metastore",
    "StorageAccount",
    "add_storage_account",
    "clear_metastore",
    "create_document",
    "is_compatible",
    "load_config",
    "load_document",
    "remove_storage_account",
    "require_compatible",
    "set_fields",
    "set_metastore",
    "update_document",
    "write_document",
]
