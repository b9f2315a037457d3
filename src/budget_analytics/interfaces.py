"""Data provider interfaces consumed by the analytics engine.

The engine reads budgets, transactions and category names from collaborators
it does not own. These protocols define the contracts those collaborators
must satisfy. They use structural subtyping via typing.Protocol, so any
class with matching method signatures is compatible and no explicit
inheritance is required.

Providers are injected through constructors, never looked up globally, so
the engine can be exercised with in-memory fakes.

Example Usage:
    ```python
    class MongoBudgetStore:
        async def get_by_id(self, user_id: str, budget_id: str) -> Optional[Budget]:
            doc = await self._collection.find_one({"_id": budget_id, "userId": user_id})
            return Budget.model_validate(doc) if doc else None

        async def list_by_user(self, user_id: str) -> list[Budget]:
            ...

    # MongoBudgetStore is compatible with BudgetStore without inheriting from it
    ```
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from .models.budget import Budget, CategoryInfo, TransactionFilter, TransactionPage


@runtime_checkable
class BudgetStore(Protocol):
    """Read access to budgets.

    Notes:
        - ``get_by_id`` returns None when the budget does not exist. It MAY
          raise BudgetNotFoundError or AccessDeniedError itself.
        - Any other exception is treated as an upstream failure and is
          propagated unchanged by the engine.
    """

    async def get_by_id(self, user_id: str, budget_id: str) -> Optional[Budget]:
        """Return one budget owned by the user, or None."""
        ...

    async def list_by_user(self, user_id: str) -> list[Budget]:
        """Return every budget owned by the user."""
        ...


@runtime_checkable
class TransactionQuery(Protocol):
    """Filtered, paginated read access to transactions."""

    async def find(self, user_id: str, query: TransactionFilter) -> TransactionPage:
        """Return one page of transactions matching the filter.

        ``TransactionPage.total`` is the number of matches across all pages.
        """
        ...


@runtime_checkable
class CategoryLookup(Protocol):
    """Category display data."""

    async def by_id(self, category_id: str) -> Optional[CategoryInfo]:
        """Return the category's name and path, or None if unknown."""
        ...


@runtime_checkable
class Renderer(Protocol):
    """Binary renderer for Excel and PDF exports.

    Rendering is CPU-bound and synchronous.
    """

    def render(
        self,
        payload: dict[str, Any],
        format: str,
        *,
        include_charts: bool = False,
    ) -> bytes:
        """Render a JSON-compatible export payload to ``format`` ("excel" or "pdf")."""
        ...


__all__ = [
    "BudgetStore",
    "TransactionQuery",
    "CategoryLookup",
    "Renderer",
]
