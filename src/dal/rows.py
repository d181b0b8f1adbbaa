"""Row-shape normalization for drivers that return upper- or mixed-case column keys."""

from typing import Any, Dict, Iterable, List, Mapping


def lowercase_row_keys(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Lowercase every column key, keeping row order, field order and values.

    Oracle reports unquoted identifiers in upper case and SQL Server echoes
    whatever case the schema was declared with. Postgres keys are already
    lowercase, so normalizing them is a no-op.
    """
    return [{str(key).lower(): value for key, value in row.items()} for row in rows]
