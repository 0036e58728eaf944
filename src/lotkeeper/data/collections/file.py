"""
JSON file collection backend.

Persists a collection to a single JSON file so data survives across CLI
invocations. The file is rewritten after every write.
"""

import json
import os
from pathlib import Path
from typing import Optional

from lotkeeper.data.collections.base import CollectionError, Record
from lotkeeper.data.collections.memory import InMemoryCollection
from lotkeeper.logging.audit_log import DecimalEncoder


class JsonFileCollection(InMemoryCollection):
    """
    File-backed collection.

    Stores records as a JSON list. Decimal values are written as strings
    and normalized back to Decimal by the entity factories on read.
    """

    def __init__(self, name: str, file_path: str | Path):
        """
        Initialize the collection, loading existing records if present.

        Args:
            name: Collection name
            file_path: Path to the JSON file (created on first write)

        Raises:
            CollectionError: If the file exists but cannot be parsed
        """
        self.file_path = Path(file_path)
        super().__init__(name, self._load())

    def _load(self) -> list[Record]:
        if not self.file_path.exists():
            return []
        try:
            with open(self.file_path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise CollectionError(f"Failed to load {self.file_path}: {e}")
        if not isinstance(data, list):
            raise CollectionError(f"{self.file_path} must contain a JSON list")
        return data

    def _save(self) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(self.snapshot(), f, cls=DecimalEncoder, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            raise CollectionError(f"Failed to write {self.file_path}: {e}")

    def _changed(self) -> None:
        self._save()
        super()._changed()


def open_collections(data_dir: str | Path) -> dict[str, JsonFileCollection]:
    """
    Open the three entity collections stored under a data directory.

    Args:
        data_dir: Directory holding lots.json, portfolios.json and tickers.json

    Returns:
        Dictionary with keys "lots", "portfolios" and "instruments"
    """
    data_dir = Path(data_dir)
    return {
        "lots": JsonFileCollection("TickerLot", data_dir / "lots.json"),
        "portfolios": JsonFileCollection("Portfolio", data_dir / "portfolios.json"),
        "instruments": JsonFileCollection("Ticker", data_dir / "tickers.json"),
    }
