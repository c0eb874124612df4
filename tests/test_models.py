from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from funding_pipeline.models import (
    Application,
    Contact,
    Opportunity,
    OpportunityList,
    Product,
    new_id,
)


def _opportunity_document(**overrides) -> dict:
    document = {
        "id": "1f0c7a52-6a55-4d3b-8a51-3f1f0e6f6d21",
        "name": "Y Combinator",
        "type": "accelerator",
        "url": "https://www.ycombinator.com",
        "fundingAmount": {"min": 500000, "max": 500000, "currency": "USD"},
        "equityTaken": {"min": 7, "max": 7},
        "stagesAccepted": ["idea", "pre-seed", "seed"],
        "focusAreas": ["AI", "B2B"],
        "remote": False,
        "createdAt": "2025-01-01T00:00:00Z",
    }
    document.update(overrides)
    return document


def test_opportunity_reads_camel_case_document_and_writes_it_back() -> None:
    opportunity = Opportunity.model_validate(_opportunity_document())

    assert opportunity.funding_amount is not None
    assert opportunity.funding_amount.min == 500000
    assert isinstance(opportunity.funding_amount.min, int)
    assert opportunity.stages_accepted == ["idea", "pre-seed", "seed"]
    assert opportunity.created_at.tzinfo == timezone.utc
    assert opportunity.collection == "accelerators"

    document = opportunity.to_document()
    assert document["fundingAmount"] == {"min": 500000, "max": 500000, "currency": "USD"}
    assert document["stagesAccepted"] == ["idea", "pre-seed", "seed"]
    assert "applicationUrl" not in document
    assert Opportunity.model_validate(document) == opportunity


def test_opportunity_timestamps_are_normalized_to_utc() -> None:
    opportunity = Opportunity.model_validate(
        _opportunity_document(deadline="2025-03-31T09:00:00+02:00")
    )

    assert opportunity.deadline == datetime(2025, 3, 31, 7, 0, tzinfo=timezone.utc)
    assert opportunity.deadline.utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": "not-a-uuid"},
        {"type": "loan"},
        {"url": "ycombinator.com"},
        {"name": ""},
        {"stagesAccepted": ["series-z"]},
        {"equityTaken": {"min": -1}},
        {"createdAt": "2025-01-01T00:00:00"},
    ],
)
def test_opportunity_rejects_invalid_fields(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Opportunity.model_validate(_opportunity_document(**overrides))


def test_product_defaults() -> None:
    product = Product(id=new_id(), name="Acme", created_at=datetime.now(timezone.utc))

    assert product.remote is True
    assert product.incorporated is False
    assert product.industries == []
    assert product.traction is None


def test_product_team_size_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Product(id=new_id(), name="Acme", team_size=0, created_at=datetime.now(timezone.utc))


def test_contact_email_is_validated() -> None:
    assert Contact(name="Jane", email="jane@acme.io").email == "jane@acme.io"
    with pytest.raises(ValidationError):
        Contact(name="Jane", email="jane-at-acme")


def test_application_fit_score_bounds() -> None:
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    base = {"id": new_id(), "opportunity_id": new_id(), "product_id": new_id(), "created_at": created}

    assert Application(**base, fit_score=0).fit_score == 0
    assert Application(**base, fit_score=100).fit_score == 100
    with pytest.raises(ValidationError):
        Application(**base, fit_score=101)
    with pytest.raises(ValidationError):
        Application(**base, fit_score=-1)


def test_status_change_appends_history_and_sets_submitted_once() -> None:
    first = datetime(2025, 2, 1, tzinfo=timezone.utc)
    second = datetime(2025, 3, 1, tzinfo=timezone.utc)
    application = Application(
        id=new_id(),
        opportunity_id=new_id(),
        product_id=new_id(),
        created_at=first,
    )

    changes = application.status_change("submitted", note="sent", at=first)
    assert changes["status"] == "submitted"
    assert changes["submitted_at"] == first
    assert len(changes["status_history"]) == 1
    assert changes["status_history"][0].note == "sent"

    submitted = application.model_copy(update=changes)
    again = submitted.status_change("submitted", at=second)
    assert "submitted_at" not in again
    assert len(again["status_history"]) == 2


def test_empty_document_has_no_records() -> None:
    document = OpportunityList.empty().to_document()

    assert document["opportunities"] == []
    assert "lastUpdated" in document
