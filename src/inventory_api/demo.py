"""In-memory inventory served when no database backend is available."""

import functools
import json
from importlib import resources
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

WATER_SYSTEMS_FILE = "water_systems.json"
FACILITIES_FILE = "facilities.json"


@functools.lru_cache(maxsize=None)
def load_demo_records(filename: str) -> Tuple[Dict[str, Any], ...]:
    """Load a bundled fixture once per process."""
    source = resources.files("inventory_api").joinpath("demo_data").joinpath(filename)
    return tuple(json.loads(source.read_text(encoding="utf-8")))


def get_path(record: Mapping[str, Any], path: str) -> Any:
    """Read a dotted field path, returning None when any hop is missing."""
    value: Any = record
    for key in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _compare(
    a: Mapping[str, Any],
    b: Mapping[str, Any],
    sort: Sequence[Tuple[str, bool]],
    fields: Mapping[str, str],
) -> int:
    for name, descending in sort:
        path = fields.get(name)
        if path is None:
            continue
        direction = -1 if descending else 1
        left, right = get_path(a, path), get_path(b, path)
        if left is None and right is None:
            continue
        # Nulls sort after values ascending and before them descending.
        if left is None:
            return direction
        if right is None:
            return -direction
        if left < right:
            return -direction
        if left > right:
            return direction
    return 0


def sort_records(
    records: List[Dict[str, Any]],
    sort: Sequence[Tuple[str, bool]],
    fields: Mapping[str, str],
) -> List[Dict[str, Any]]:
    """Stable multi-column sort over whitelisted fields; unknown fields are ignored."""
    if not sort:
        return records
    key = functools.cmp_to_key(lambda a, b: _compare(a, b, sort, fields))
    return sorted(records, key=key)


def find_record(filename: str, path: str, value: Any) -> Optional[Dict[str, Any]]:
    for record in load_demo_records(filename):
        if get_path(record, path) == value:
            return record
    return None
