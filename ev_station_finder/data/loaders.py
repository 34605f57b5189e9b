"""
File loaders for station and road-work datasets.

Accepts CSV exports and JSON arrays of row objects (optionally wrapped in
an ``{"Items": [...]}`` envelope, as the open-data API returns them, with
each row's fields under ``Cells``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .models import Obstruction, Station


def load_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read a CSV or JSON dataset into a list of dicts with empty cells as None.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        ValueError: if a JSON file holds neither a list nor an ``Items`` list.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("Items", data.get("items"))
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of rows")
        rows = [row.get("Cells", row) if isinstance(row, dict) else row for row in data]
        frame = pd.DataFrame(rows)
    else:
        frame = pd.read_csv(path)

    if frame.empty:
        return []
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def load_stations(path: Union[str, Path]) -> List[Station]:
    return [Station.from_record(row) for row in load_records(path)]


def load_obstructions(path: Union[str, Path]) -> List[Obstruction]:
    return [Obstruction.from_record(row) for row in load_records(path)]
