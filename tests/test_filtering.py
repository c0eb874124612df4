from __future__ import annotations

from datetime import datetime, timezone

from funding_pipeline.filters import KeywordFilter, StageFilter
from funding_pipeline.models import Opportunity, new_id


def _opportunity(**fields) -> Opportunity:
    defaults = {
        "id": new_id(),
        "name": "Climate Launchpad",
        "type": "accelerator",
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(fields)
    return Opportunity(**defaults)


def test_keyword_filter_is_case_insensitive_and_explains_matches() -> None:
    opportunity = _opportunity(
        description="Support for CLIMATE tech founders",
        industries=["Climate", "Energy"],
    )

    result = KeywordFilter("climate").evaluate(opportunity)

    assert result.matched
    assert result.reasons == ["name", "description", "industries: Climate"]
    assert result.reason_text() == "name; description; industries: Climate"


def test_keyword_filter_matches_substrings_in_focus_areas() -> None:
    opportunity = _opportunity(name="Techstars", focus_areas=["Fintech", "Healthtech"])

    result = KeywordFilter("tech").evaluate(opportunity)

    assert result.matched
    assert result.reasons == ["name", "focus areas: Fintech, Healthtech"]


def test_keyword_filter_without_match() -> None:
    result = KeywordFilter("biotech").evaluate(_opportunity())

    assert not result.matched
    assert result.reason_text() == "nothing in particular"


def test_stage_filter_checks_stages_accepted() -> None:
    opportunity = _opportunity(stages_accepted=["pre-seed", "seed"])

    assert StageFilter("seed").matches(opportunity)
    assert not StageFilter("growth").matches(opportunity)


def test_select_keeps_order_of_matches() -> None:
    first = _opportunity(name="First", stages_accepted=["seed"])
    second = _opportunity(name="Second", stages_accepted=["growth"])
    third = _opportunity(name="Third", stages_accepted=["idea", "seed"])

    selected = StageFilter("seed").select([first, second, third])

    assert [item.name for item in selected] == ["First", "Third"]
