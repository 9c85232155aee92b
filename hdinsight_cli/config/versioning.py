"""Schema-version compatibility checks for config documents.

The version stored in a config file is a number whose integer part is the
major schema version.  A file is readable only when its major version
equals the engine's and it is not newer than the engine.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from hdinsight_cli.errors import IncompatibleSchema

#: Schema version written by this release.
CONFIG_SCHEMA_VERSION: float = 1.0

#: Key under which the schema version is persisted.
VERSION_KEY = "version"


def _numeric(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints are always finite; isfinite() overflows on very large ones.
    return isinstance(value, int) or math.isfinite(value)


def is_compatible(
    document: Mapping[str, Any],
    engine_version: float = CONFIG_SCHEMA_VERSION,
) -> bool:
    """Return *True* if *document* can be read by *engine_version*.

    * Missing or non-numeric version → ``False``.
    * Version newer than the engine → ``False``.
    * Same major (integer part) → ``True``; anything else → ``False``.
    """
    if not isinstance(document, Mapping):
        return False
    version = document.get(VERSION_KEY)
    if not _numeric(version):
        return False
    if version > engine_version:
        return False
    return math.floor(version) == math.floor(engine_version)


def require_compatible(
    document: Mapping[str, Any],
    path: str,
    engine_version: float = CONFIG_SCHEMA_VERSION,
) -> None:
    """Raise :class:`IncompatibleSchema` unless *document* is compatible."""
    if not is_compatible(document, engine_version):
        version = document.get(VERSION_KEY) if isinstance(document, Mapping) else None
        raise IncompatibleSchema(path, version, engine_version)
