"""Canonical (Postgres-flavored) query representation shared by every dialect.

Routes write one query shape: ``$n`` placeholders, ``ILIKE`` for
case-insensitive matching and a trailing ``LIMIT $i OFFSET $j`` clause.
Dialect translators read pagination positions from the canonical numbering
before touching the text, so the bind bookkeeping never drifts between steps.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")
PAGINATION_PATTERN = re.compile(r"\s*\bLIMIT\s+\$(\d+)\s+OFFSET\s+\$(\d+)", re.IGNORECASE)
ILIKE_PATTERN = re.compile(r"([^\s()]+)\s+(NOT\s+)?ILIKE\s+([^\s()]+)", re.IGNORECASE)

Binds = Union[List[Any], Dict[str, Any]]


class CanonicalQueryError(ValueError):
    """Raised when a canonical query violates the placeholder/pagination contract."""


@dataclass(frozen=True)
class CanonicalQuery:
    """Immutable canonical query text plus its ordered bind values."""

    text: str
    binds: Tuple[Any, ...] = ()

    @classmethod
    def of(cls, text: str, binds: Optional[Sequence[Any]] = None) -> "CanonicalQuery":
        return cls(text=text, binds=tuple(binds or ()))


@dataclass(frozen=True)
class TranslatedQuery:
    """Dialect-specific query text with positional binds or a name-keyed bind map."""

    text: str
    binds: Binds


@dataclass(frozen=True)
class PaginationClause:
    """Canonical ``LIMIT $i OFFSET $j`` clause resolved against its bind values."""

    span: Tuple[int, int]
    limit_index: int
    offset_index: int
    limit: int
    offset: int

    @property
    def consumed_indices(self) -> frozenset:
        return frozenset((self.limit_index, self.offset_index))

    def strip_from(self, text: str) -> str:
        """Return ``text`` with the clause removed and trailing whitespace trimmed."""
        start, end = self.span
        return (text[:start] + text[end:]).rstrip()


def placeholder_indices(text: str) -> List[int]:
    """Return every ``$n`` index in order of appearance (duplicates kept)."""
    return [int(match.group(1)) for match in PLACEHOLDER_PATTERN.finditer(text)]


def _pagination_value(query: CanonicalQuery, index: int, role: str) -> int:
    value = query.binds[index - 1]
    if isinstance(value, bool) or not isinstance(value, int):
        raise CanonicalQueryError(
            f"Pagination {role} bound at ${index} must be an integer, got {value!r}."
        )
    if value < 0:
        raise CanonicalQueryError(
            f"Pagination {role} bound at ${index} must be non-negative, got {value}."
        )
    return value


def find_pagination(query: CanonicalQuery) -> Optional[PaginationClause]:
    """Locate the canonical pagination clause and read its live limit/offset values."""
    matches = list(PAGINATION_PATTERN.finditer(query.text))
    if not matches:
        return None
    if len(matches) > 1:
        raise CanonicalQueryError(
            f"Expected at most one LIMIT/OFFSET clause, found {len(matches)}."
        )

    match = matches[0]
    limit_index = int(match.group(1))
    offset_index = int(match.group(2))
    if limit_index == offset_index:
        raise CanonicalQueryError(
            f"LIMIT and OFFSET must reference different placeholders, both use ${limit_index}."
        )
    for index in (limit_index, offset_index):
        if index <= 0 or index > len(query.binds):
            raise CanonicalQueryError(
                f"Pagination placeholder ${index} has no bind value "
                f"({len(query.binds)} supplied)."
            )

    remaining_text = query.text[: match.start()] + query.text[match.end() :]
    reused = {limit_index, offset_index} & set(placeholder_indices(remaining_text))
    if reused:
        reused_list = ", ".join(f"${idx}" for idx in sorted(reused))
        raise CanonicalQueryError(
            f"Pagination placeholders cannot also appear outside LIMIT/OFFSET: {reused_list}."
        )

    return PaginationClause(
        span=match.span(),
        limit_index=limit_index,
        offset_index=offset_index,
        limit=_pagination_value(query, limit_index, "limit"),
        offset=_pagination_value(query, offset_index, "offset"),
    )


def validate_placeholders(query: CanonicalQuery) -> None:
    """Ensure every placeholder has a bind and every bind is referenced."""
    indices = placeholder_indices(query.text)
    for index in indices:
        if index <= 0:
            raise CanonicalQueryError(
                f"Invalid placeholder index ${index}; placeholders must start at $1."
            )
        if index > len(query.binds):
            raise CanonicalQueryError(
                f"Not enough parameters for placeholders: ${index} referenced, "
                f"got {len(query.binds)}."
            )

    unused = sorted(set(range(1, len(query.binds) + 1)) - set(indices))
    if unused:
        unused_list = ", ".join(f"${idx}" for idx in unused)
        raise CanonicalQueryError(f"Bind values are never referenced by the query: {unused_list}.")


def renumber_map(bind_count: int, consumed: frozenset) -> Dict[int, int]:
    """Map surviving canonical indices to their compacted 1-based positions."""
    mapping: Dict[int, int] = {}
    for index in range(1, bind_count + 1):
        if index not in consumed:
            mapping[index] = len(mapping) + 1
    return mapping


def filter_binds(binds: Sequence[Any], consumed: frozenset) -> List[Any]:
    """Drop consumed bind positions, preserving the order of everything else."""
    return [value for position, value in enumerate(binds, start=1) if position not in consumed]


def rewrite_placeholders(
    text: str, mapping: Mapping[int, int], marker: Callable[[int], str]
) -> str:
    """Replace each ``$n`` with the dialect marker for its renumbered position."""

    def _replace(match: re.Match) -> str:
        return marker(mapping[int(match.group(1))])

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def rewrite_ilike(text: str, render: Callable[[str, str, bool], str]) -> str:
    """Rewrite every ``left [NOT] ILIKE right`` comparison independently.

    Operands are single tokens without whitespace or parentheses (a column
    such as ``ws.name`` or a ``$n`` bind), so a comparison inside a grouped
    ``(a ILIKE $1 OR b ILIKE $2)`` rewrites cleanly. Expression operands like
    ``TRIM(x)`` are not recognized and are left untouched.
    """

    def _replace(match: re.Match) -> str:
        return render(match.group(1), match.group(3), bool(match.group(2)))

    return ILIKE_PATTERN.sub(_replace, text)


def apply_substitutions(text: str, substitutions: Sequence[Tuple[re.Pattern, str]]) -> str:
    for pattern, replacement in substitutions:
        text = pattern.sub(replacement, text)
    return text


@dataclass(frozen=True)
class PreparedQuery:
    """Canonical query with pagination extracted and surviving binds renumbered."""

    text: str
    binds: List[Any]
    mapping: Dict[int, int]
    pagination: Optional[PaginationClause]


def prepare(text: str, binds: Optional[Sequence[Any]] = None) -> PreparedQuery:
    """Validate a canonical query and pull out its pagination binds.

    Pagination positions come from the canonical numbering before any textual
    rewrite. The returned text still uses ``$n`` markers; callers rewrite them
    through ``mapping`` so surviving placeholders point at their new positions.
    """
    query = CanonicalQuery.of(text, binds)
    validate_placeholders(query)
    pagination = find_pagination(query)

    consumed = pagination.consumed_indices if pagination else frozenset()
    stripped = pagination.strip_from(query.text) if pagination else query.text
    return PreparedQuery(
        text=stripped,
        binds=filter_binds(query.binds, consumed),
        mapping=renumber_map(len(query.binds), consumed),
        pagination=pagination,
    )
