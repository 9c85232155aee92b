"""Read and write config documents.

Files are parsed with :func:`yaml.safe_load`, which accepts both YAML and
JSON.  Writes use JSON with **sorted keys** unless the path ends in
``.yaml`` / ``.yml``.  This module does no compatibility checking; see
:mod:`hdinsight_cli.config.versioning`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from hdinsight_cli.config.models import ConfigDocument
from hdinsight_cli.config.versioning import require_compatible
from hdinsight_cli.errors import ValidationError

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Return the raw mapping stored at *path*.

    Raises :class:`ValidationError` if the file is missing, unparsable,
    or does not hold a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValidationError(f"Config file {path} could not be parsed: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Config file {path} must contain a mapping.")
    return raw


def parse_document(raw: Mapping[str, Any], path: Union[str, Path]) -> ConfigDocument:
    """Validate a raw mapping into a :class:`ConfigDocument`."""
    try:
        return ConfigDocument.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise ValidationError(f"Config file {path} is invalid: {exc}") from exc


def load_config(path: Union[str, Path]) -> ConfigDocument:
    """Load *path*, check its schema version, and return the document.

    Raises :class:`~hdinsight_cli.errors.IncompatibleSchema` when the file's
    version cannot be read by this release.
    """
    raw = load_document(path)
    require_compatible(raw, str(path))
    return parse_document(raw, path)


# ---------------------------------------------------------------------------
# Write-back
# ---------------------------------------------------------------------------


def write_document(
    path: Union[str, Path],
    document: Union[ConfigDocument, Mapping[str, Any]],
) -> Path:
    """Serialise *document* to *path* and return the written path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(document, ConfigDocument):
        data = document.to_document()
    else:
        data = dict(document)

    if path.suffix.lower() in _YAML_SUFFIXES:
        payload = yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
    else:
        payload = json.dumps(data, indent=2, sort_keys=True) + "\n"

    path.write_text(payload, encoding="utf-8")
    logger.info("Config written to %s", path)
    return path
