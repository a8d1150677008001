"""
Catalog and answer loading.

Reads catalog records and Answer Map snapshots from YAML or JSON files (JSON
is valid YAML, so one parser covers both). This is the system boundary:
unreadable files raise CatalogLoadError, bad answer values raise pydantic's
ValidationError. Individual bad catalog records are skipped, not fatal.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter

from .answers import AnswerValue
from .catalog import Definition, DefinitionKind, definitions_from_records

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"
TASK_CATALOG_PATH = DATA_DIR / "task_catalog.yaml"
VENDOR_CATALOG_PATH = DATA_DIR / "vendor_catalog.yaml"

# None is accepted and dropped: a cleared answer is the same as no answer.
_ANSWERS_ADAPTER = TypeAdapter(
    dict[
        StrictStr,
        Optional[Union[StrictBool, StrictInt, StrictFloat, StrictStr, list[StrictStr]]],
    ]
)


class CatalogLoadError(ValueError):
    """Raised when a catalog or answers file can't be read at all."""


def read_data_file(path: Path | str) -> Any:
    """Parse a YAML/JSON file."""
    path = Path(path)
    if not path.exists():
        raise CatalogLoadError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"Could not parse {path}: {e}") from e
    except OSError as e:
        raise CatalogLoadError(f"Could not read {path}: {e}") from e


def load_catalog(path: Path | str, kind: DefinitionKind = "task") -> list[Definition]:
    """
    Load definitions from a catalog file.

    Accepts either a list of records or a mapping of id -> record (the id is
    filled in from the key when the record doesn't carry one).
    """
    data = read_data_file(path)
    records = catalog_records(data)
    definitions = definitions_from_records(records, kind=kind)

    skipped = len(records) - len(definitions)
    if skipped:
        logger.warning(f"Skipped {skipped} unusable record(s) in {path}")
    logger.info(f"Loaded {len(definitions)} {kind} definitions from {path}")
    return definitions


def catalog_records(data: Any) -> list[Any]:
    """Normalize the top-level catalog shape to a list of records."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        records = []
        for key, record in data.items():
            if isinstance(record, dict) and "id" not in record:
                record = {"id": key, **record}
            records.append(record)
        return records
    raise CatalogLoadError(f"Catalog must be a list or mapping, got {type(data).__name__}")


def load_task_catalog(path: Path | str | None = None) -> list[Definition]:
    """Load the task catalog, falling back to the bundled sample."""
    return load_catalog(path or TASK_CATALOG_PATH, kind="task")


def load_vendor_catalog(path: Path | str | None = None) -> list[Definition]:
    """Load the vendor catalog, falling back to the bundled sample."""
    return load_catalog(path or VENDOR_CATALOG_PATH, kind="vendor")


def parse_answers(data: Any) -> dict[str, AnswerValue]:
    """Validate raw data as an Answer Map snapshot."""
    if data is None:
        return {}
    validated = _ANSWERS_ADAPTER.validate_python(data)
    return {key: value for key, value in validated.items() if value is not None}


def load_answers(path: Path | str) -> dict[str, AnswerValue]:
    """Load and validate an Answer Map snapshot from a file."""
    return parse_answers(read_data_file(path))
