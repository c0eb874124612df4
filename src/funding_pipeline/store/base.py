from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

from funding_pipeline.models import Application, Opportunity, Product

DocumentT = TypeVar("DocumentT")


class StoreError(RuntimeError):
    """Raised when persisted state cannot be written."""


class UnknownOpportunityTypeError(StoreError):
    """Raised when an opportunity type has no collection document."""


@dataclass(slots=True)
class LoadResult(Generic[DocumentT]):
    """Outcome of reading one collection document.

    ``ok`` is False when the file existed but could not be parsed or failed
    validation; ``document`` is then a fresh empty collection and ``error``
    explains what was discarded. A missing file is ok and empty.
    """

    document: DocumentT
    ok: bool = True
    error: str | None = None


class Store(ABC):
    @abstractmethod
    def get_opportunities(self, collection: str | None = None) -> list[Opportunity]:
        """Return one opportunity collection, or all of them in fixed order."""

    @abstractmethod
    def add_opportunity(self, opportunity: Opportunity) -> None:
        """Append to the collection matching the opportunity type."""

    @abstractmethod
    def get_products(self) -> list[Product]:
        """Return every product."""

    @abstractmethod
    def add_product(self, product: Product) -> None:
        """Append a product."""

    def get_product(self, product_id: str) -> Product | None:
        for product in self.get_products():
            if product.id == product_id:
                return product
        return None

    @abstractmethod
    def get_applications(self) -> list[Application]:
        """Return every application."""

    @abstractmethod
    def add_application(self, application: Application) -> None:
        """Append an application."""

    @abstractmethod
    def update_application(
        self,
        application_id: str,
        changes: Mapping[str, Any],
    ) -> Application | None:
        """Merge changes into an application; None when the id is unknown."""
