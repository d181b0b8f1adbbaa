from typing import TYPE_CHECKING, Any, Dict, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dal.canonical import TranslatedQuery


@runtime_checkable
class QueryTarget(Protocol):
    """Protocol for a pooled SQL backend that runs already-translated queries.

    Implementations own exactly one long-lived pool, created by ``connect``
    and released by ``close``.
    """

    provider: str

    @property
    def description(self) -> str:
        """Human-readable connection target for log lines (never includes secrets)."""
        ...

    async def connect(self) -> None:
        """Create the pool; raises when the backend is unreachable."""
        ...

    async def fetch(self, query: "TranslatedQuery") -> List[Dict[str, Any]]:
        """Run a read query and return rows as column-name keyed dicts.

        Args:
            query: Dialect-specific text and binds.

        Returns:
            Rows in driver order with the driver's column-name casing.
        """
        ...

    async def close(self) -> None:
        """Release the pool. Safe to call when ``connect`` never succeeded."""
        ...
