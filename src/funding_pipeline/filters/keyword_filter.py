from __future__ import annotations

from funding_pipeline.models import Opportunity

from .base import Filter, FilterResult


class KeywordFilter(Filter):
    """Case-insensitive substring search over the descriptive fields."""

    def __init__(self, keyword: str) -> None:
        self.keyword = keyword

    def evaluate(self, opportunity: Opportunity) -> FilterResult:
        needle = self.keyword.lower()
        reasons: list[str] = []

        if needle in opportunity.name.lower():
            reasons.append("name")
        if opportunity.description and needle in opportunity.description.lower():
            reasons.append("description")

        focus_hits = _find_hits(needle, opportunity.focus_areas)
        if focus_hits:
            reasons.append(f"focus areas: {', '.join(focus_hits)}")

        industry_hits = _find_hits(needle, opportunity.industries)
        if industry_hits:
            reasons.append(f"industries: {', '.join(industry_hits)}")

        return FilterResult.from_reasons(reasons)


class StageFilter(Filter):
    def __init__(self, stage: str) -> None:
        self.stage = stage

    def evaluate(self, opportunity: Opportunity) -> FilterResult:
        if self.stage in opportunity.stages_accepted:
            return FilterResult(matched=True, reasons=[f"accepts {self.stage}"])
        return FilterResult(matched=False, reasons=[f"does not accept {self.stage}"])


def _find_hits(needle: str, values: list[str]) -> list[str]:
    return [value for value in values if needle in value.lower()]
