"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that aggregate
repository interfaces extend.  Service-layer code depends on this
abstraction, never on Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
ID = TypeVar("ID")


class IRepository(ABC, Generic[T, ID]):
    """Base generic repository contract.

    ``T`` is the aggregate root managed by the repository and ``ID`` the
    type of its identity.
    """

    @abstractmethod
    def find_by_id(self, id: ID) -> Optional[T]:
        """Retrieve an aggregate by its identity."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (insert or update) an aggregate and return it."""
