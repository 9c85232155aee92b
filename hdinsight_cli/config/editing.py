"""Config-file commands: create, set, storage add/remove, metastore set/clear.

Every mutation of an existing file goes through :func:`update_document`,
which refuses to touch a file whose schema version is incompatible.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Union

from pydantic import ValidationError as PydanticValidationError

from hdinsight_cli.config.models import (
    METASTORE_KINDS,
    ConfigDocument,
    Metastore,
    StorageAccount,
)
from hdinsight_cli.config.store import load_config, write_document
from hdinsight_cli.config.versioning import CONFIG_SCHEMA_VERSION
from hdinsight_cli.errors import ValidationError

logger = logging.getLogger(__name__)

Mutation = Callable[[ConfigDocument], None]


# ---------------------------------------------------------------------------
# In-memory mutations
# ---------------------------------------------------------------------------


def add_storage_account(doc: ConfigDocument, name: str, key: str) -> None:
    """Attach storage account *name*, replacing any entry with that name."""
    if not name or not key:
        raise ValidationError("Storage account name and key are required.")
    accounts = [a for a in doc.additional_storage_accounts if a.name != name]
    accounts.append(StorageAccount(name=name, key=key))
    doc.additional_storage_accounts = accounts


def remove_storage_account(doc: ConfigDocument, name: str) -> None:
    """Drop every storage account named *name*.  Absent names are a no-op."""
    doc.additional_storage_accounts = [
        a for a in doc.additional_storage_accounts if a.name != name
    ]


def _check_kind(kind: str) -> str:
    normalized = (kind or "").lower()
    if normalized not in METASTORE_KINDS:
        raise ValidationError(
            f"Unknown metastore type '{kind}'. Expected one of: "
            + ", ".join(METASTORE_KINDS)
        )
    return normalized


def set_metastore(
    doc: ConfigDocument,
    kind: str,
    *,
    server: str,
    database: str,
    user: str,
    password: str,
) -> None:
    """Set (or replace) the metastore of type *kind*."""
    kind = _check_kind(kind)
    metastores = dict(doc.metastores)
    metastores[kind] = Metastore(
        server=server, database=database, user=user, password=password,
    )
    doc.metastores = metastores


def clear_metastore(doc: ConfigDocument, kind: str) -> None:
    """Remove the metastore of type *kind*, if any."""
    kind = _check_kind(kind)
    metastores = dict(doc.metastores)
    metastores.pop(kind, None)
    doc.metastores = metastores


def set_fields(doc: ConfigDocument, **values: Any) -> None:
    """Assign scalar fields; ``None`` values are skipped.

    Keys are model attribute names (``node_count``, ``storage_account_key``...).
    """
    for field, value in values.items():
        if value is None:
            continue
        if field not in ConfigDocument.model_fields:
            raise ValidationError(f"Unknown config field '{field}'.")
        try:
            setattr(doc, field, value)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid value for {field}: {value!r}") from exc


# ---------------------------------------------------------------------------
# File-level commands
# ---------------------------------------------------------------------------


def create_document(path: Union[str, Path], **values: Any) -> ConfigDocument:
    """Write a fresh document stamped with the current schema version."""
    doc = ConfigDocument(version=CONFIG_SCHEMA_VERSION)
    set_fields(doc, **values)
    if Path(path).exists():
        logger.warning("Overwriting existing config file %s", path)
    write_document(path, doc)
    return doc


def update_document(
    path: Union[str, Path],
    mutate: Mutation,
) -> ConfigDocument:
    """Load *path*, apply *mutate*, and write it back.

    Raises :class:`~hdinsight_cli.errors.IncompatibleSchema` before any
    change when the file's version is not compatible; the file is left
    untouched in that case.
    """
    doc = load_config(path)
    mutate(doc)
    write_document(path, doc)
    return doc
