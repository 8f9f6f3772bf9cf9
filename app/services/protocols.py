"""
Service protocols (structural typing interfaces).

Protocols let consumer services declare the *minimal* surface they depend on
without importing the concrete class, breaking circular imports and making
tests trivially mockable.

Usage
-----
In a consumer service::

    from __future__ import annotations
    from typing import TYPE_CHECKING
    if TYPE_CHECKING:
        from app.services.protocols import RelationalStore

    class ReadingFetcher:
        def __init__(self, store: "RelationalStore", ...): ...

At runtime both ``SQLiteDatabaseHandler`` and ``PostgrestStore`` satisfy the
protocol via structural subtyping, no explicit inheritance needed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class RelationalStore(Protocol):
    """Generic query / update / procedure surface of the backing store.

    Error contract:

    - a missing table raises ``SourceNotFoundError``
    - an unreachable or timed-out store raises ``StoreUnavailableError``
    """

    def select_rows(
        self,
        table: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return rows of ``table`` as plain dicts."""
        ...

    def table_exists(self, table: str) -> bool:
        """Return ``True`` when ``table`` exists, ``False`` when it does not."""
        ...

    def get_row(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        """Return the row whose ``id`` equals ``row_id``, or ``None``."""
        ...

    def upsert_row(self, table: str, row_id: Any, values: Dict[str, Any]) -> None:
        """Insert or update the row whose ``id`` equals ``row_id``."""
        ...

    def call_procedure(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Invoke a stored procedure and return its decoded result."""
        ...

