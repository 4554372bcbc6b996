"""
Test dataset loading and seeding.

Datasets are JSON arrays stored as ``<name>.json``, by default in the
``testdata`` directory shipped with the package. Failures are wrapped in
``DatasetError`` with the original exception chained, and are never retried.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import DatasetError

TESTDATA_DIR = Path(__file__).parent / "testdata"
BREWERY_DATASET = "beer_sample_brewery_five"


class SupportsUpsert(Protocol):
    def upsert(self, key: str, value: Any, *args: Any, **kwargs: Any) -> Any: ...


class GeoLocation(BaseModel):
    accuracy: str = ""
    lat: float = 0.0
    lon: float = 0.0


class BreweryDocument(BaseModel):
    """A brewery document from the beer-sample dataset."""

    model_config = ConfigDict(extra="allow")

    name: str
    city: str = ""
    code: str = ""
    country: str = ""
    description: str = ""
    geo: Optional[GeoLocation] = None
    phone: str = ""
    state: str = ""
    type: str = "brewery"
    updated: str = ""
    website: str = ""


def load_json_dataset(
    name: str, dataset_dir: Optional[Union[str, Path]] = None
) -> list[Any]:
    """
    Load the JSON dataset called ``name``.

    Args:
        name: Dataset name, without the ``.json`` suffix
        dataset_dir: Directory holding the datasets (defaults to the bundled one)

    Returns:
        The decoded list of records

    Raises:
        DatasetError: If the file cannot be read or is not a JSON array
    """
    path = Path(dataset_dir or TESTDATA_DIR) / f"{name}.json"
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as err:
        raise DatasetError("could not read test dataset", err) from err

    if not isinstance(data, list):
        err = TypeError(f"{path} does not contain a JSON array")
        raise DatasetError("could not read test dataset", err) from err

    logger.debug("Loaded {} records from {}", len(data), path)
    return data


def create_brewery_dataset(
    collection: SupportsUpsert, dataset_dir: Optional[Union[str, Path]] = None
) -> list[BreweryDocument]:
    """
    Upsert the five-brewery sample dataset into ``collection``.

    Each document is stored under its brewery name.

    Returns:
        The documents that were written

    Raises:
        DatasetError: If the dataset cannot be read or a write fails
    """
    records = load_json_dataset(BREWERY_DATASET, dataset_dir)
    try:
        documents = [BreweryDocument.model_validate(record) for record in records]
    except ValidationError as err:
        raise DatasetError("could not read test dataset", err) from err

    for document in documents:
        try:
            collection.upsert(document.name, document.model_dump(exclude_none=True))
        except Exception as err:
            raise DatasetError("could not create dataset", err) from err

    logger.info("Created brewery dataset with {} documents", len(documents))
    return documents
