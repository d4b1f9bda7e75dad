"""JSON persistence for export models and results.

Pydantic models are written in JSON mode so that datetimes, decimals and
paths come out as strings and read back through ``model_validate``.
"""

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar, cast

from pydantic import BaseModel

from src import config
from src.models.migration_error import ItemLoadError, MigrationError


def _json_default(value: Any) -> Any:
    """Encoder for values json cannot serialize on its own."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, set):
        return sorted(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def save_to_path(
    data: Any,
    filepath: Path | str,
    indent: int = 2,
    ensure_ascii: bool = False,
) -> None:
    """Save data to a JSON file at a specific path.

    Raises:
        MigrationError: If saving fails

    """
    filepath = Path(filepath)

    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")

        with filepath.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, default=_json_default)
    except (OSError, TypeError, ValueError) as e:
        msg = f"Failed to save data to {filepath}"
        raise MigrationError(msg) from e

    config.logger.debug("Saved data to %s", filepath)


def save_results(data: Any, filename: Path | str, directory: Path | str | None = None) -> Path:
    """Save data under the results directory (or ``directory``)."""
    if directory is None:
        directory = config.get_path("results")
    filepath = Path(directory) / Path(filename).name
    save_to_path(data, filepath)
    return filepath


T = TypeVar("T")


def load(model_class: type[T], filepath: str | Path) -> T:
    """Load a JSON file into ``model_class``.

    Raises:
        ItemLoadError: If the file is missing, not JSON or fails validation

    """
    filepath = Path(filepath)
    try:
        with filepath.open("r", encoding="utf-8") as f:
            data = json.load(f)
        model_cls = cast("type[BaseModel]", model_class)
        result = cast("T", model_cls.model_validate(data))
    except Exception as e:  # noqa: BLE001
        msg = f"Failed to load data from {filepath}: {e}"
        raise ItemLoadError(msg, filepath) from e

    config.logger.debug("Loaded data from %s", filepath)
    return result


def load_dict(filepath: Path | str, default: dict[str, Any] | None = None) -> dict[str, Any]:
    """Load a JSON object; ``default`` when missing or not a dictionary."""
    if default is None:
        default = {}
    filepath = Path(filepath)

    try:
        with filepath.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        config.logger.debug("File does not exist: %s", filepath)
        return default
    except json.JSONDecodeError:
        if filepath.stat().st_size == 0:
            config.logger.debug("File is empty: %s", filepath)
        else:
            config.logger.exception("Error parsing JSON from %s", filepath)
        return default

    if not isinstance(data, dict):
        config.logger.warning("File %s does not contain a dictionary", filepath)
        return default
    return data
