from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable

from funding_pipeline.models import Opportunity


@dataclass(slots=True)
class FilterResult:
    """Whether an opportunity passed, and which of its fields decided it."""

    matched: bool
    reasons: list[str] = field(default_factory=list)

    @classmethod
    def from_reasons(cls, reasons: list[str]) -> FilterResult:
        return cls(matched=bool(reasons), reasons=reasons)

    def reason_text(self, separator: str = "; ") -> str:
        if not self.reasons:
            return "nothing in particular"
        return separator.join(self.reasons)


class Filter(ABC):
    @abstractmethod
    def evaluate(self, opportunity: Opportunity) -> FilterResult:
        """Decide whether ``opportunity`` passes, naming the fields involved."""

    def matches(self, opportunity: Opportunity) -> bool:
        return self.evaluate(opportunity).matched

    def select(self, opportunities: Iterable[Opportunity]) -> list[Opportunity]:
        return [opportunity for opportunity in opportunities if self.matches(opportunity)]
