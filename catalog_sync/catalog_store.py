"""Reading and atomically writing JSON catalogs on disk."""
import json
import logging
import os
import tempfile
from typing import Any, Dict

import jsonschema

from catalog_sync.catalog_tree import Catalog
from catalog_sync.errors import CatalogFormatError

logger = logging.getLogger(__name__)

# An object whose values are strings or objects of the same shape.
CATALOG_SCHEMA = {
    "type": "object",
    "additionalProperties": {
        "anyOf": [
            {"type": "string"},
            {"$ref": "#"}
        ]
    }
}


def validate_catalog(document: Any, identifier: str) -> Catalog:
    """
    Ensure a loaded document is a well-formed catalog.

    Args:
        document: The decoded JSON value.
        identifier: Where the document came from, for error messages.

    Returns:
        Catalog: The same document.

    Raises:
        CatalogFormatError: If it contains arrays, numbers, null or is not an object.
    """
    try:
        jsonschema.validate(instance=document, schema=CATALOG_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        location = ".".join(str(part) for part in schema_exc.absolute_path) or "<root>"
        raise CatalogFormatError(
            f"Catalog '{identifier}' is malformed at '{location}': {schema_exc.message}"
        ) from schema_exc
    return document


class CatalogStore:
    """
    File-backed catalogs laid out as ``<locales_dir>/<language>/<namespace>.json``.

    Identifiers are file paths.
    """

    def __init__(self, locales_dir: str, namespace: str = "translation"):
        self.locales_dir = locales_dir
        self.namespace = namespace

    def catalog_path(self, language_code: str) -> str:
        return os.path.join(self.locales_dir, language_code, f"{self.namespace}.json")

    def read(self, identifier: str) -> Catalog:
        """
        Load a catalog. A missing file is an empty catalog.

        Raises:
            CatalogFormatError: If the file is not valid JSON or not a catalog.
        """
        try:
            with open(identifier, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError:
            logger.debug(f"Catalog '{identifier}' does not exist yet; treating it as empty.")
            return {}
        except json.JSONDecodeError as json_exc:
            raise CatalogFormatError(f"Catalog '{identifier}' is not valid JSON: {json_exc}") from json_exc
        return validate_catalog(document, identifier)

    def write_atomic(self, identifier: str, document: Dict[str, Any]) -> None:
        """
        Replace the file at ``identifier`` with ``document``.

        The JSON is written to a temporary file in the same directory and
        moved over the destination with ``os.replace``, so readers see either
        the old or the new content.
        """
        directory = os.path.dirname(identifier) or "."
        os.makedirs(directory, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{os.path.basename(identifier)}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as temp_f:
                json.dump(document, temp_f, ensure_ascii=False, indent=2)
                temp_f.write("\n")
                temp_f.flush()
                os.fsync(temp_f.fileno())
            os.replace(temp_path, identifier)
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
        logger.debug(f"Wrote '{identifier}'.")
