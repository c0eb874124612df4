from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union, get_args
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PositiveInt,
)
from pydantic.alias_generators import to_camel

from funding_pipeline.utils.datetime_utils import to_utc, utc_now
from funding_pipeline.utils.url_utils import is_well_formed_url

OpportunityType = Literal["accelerator", "grant", "angel"]
Stage = Literal["idea", "pre-seed", "seed", "series-a", "series-b", "growth"]
ApplicationStatus = Literal[
    "identified",
    "researching",
    "drafting",
    "ready",
    "submitted",
    "interview",
    "accepted",
    "rejected",
    "withdrawn",
    "expired",
]
FollowUpType = Literal["email", "call", "meeting", "note"]

OPPORTUNITY_TYPES: tuple[str, ...] = get_args(OpportunityType)
STAGES: tuple[str, ...] = get_args(Stage)
APPLICATION_STATUSES: tuple[str, ...] = get_args(ApplicationStatus)
FOLLOW_UP_TYPES: tuple[str, ...] = get_args(FollowUpType)

# Statuses counted as the live pipeline in stats.
ACTIVE_STATUSES: tuple[str, ...] = APPLICATION_STATUSES[:6]

# Opportunity type -> collection document it is stored in. Order is also the
# concatenation order when every collection is read.
OPPORTUNITY_COLLECTIONS: dict[str, str] = {
    "accelerator": "accelerators",
    "grant": "grants",
    "angel": "angels",
}


def new_id() -> str:
    return str(uuid4())


def _check_record_id(value: str) -> str:
    try:
        UUID(value)
    except ValueError as exc:
        raise ValueError(f"not a valid UUID: {value!r}") from exc
    return value


def _check_url(value: str) -> str:
    if not is_well_formed_url(value):
        raise ValueError(f"not a well-formed URL: {value!r}")
    return value


RecordId = Annotated[str, AfterValidator(_check_record_id)]
Url = Annotated[str, AfterValidator(_check_url)]
Timestamp = Annotated[AwareDatetime, AfterValidator(to_utc)]
Number = Union[int, float]


class SchemaModel(BaseModel):
    """Base for persisted records: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FundingRange(SchemaModel):
    min: Number | None = None
    max: Number | None = None
    currency: str = "USD"


class EquityRange(SchemaModel):
    min: float | None = Field(default=None, ge=0, le=100)
    max: float | None = Field(default=None, ge=0, le=100)


class ApplicationWindow(SchemaModel):
    opens: Timestamp | None = None
    closes: Timestamp | None = None


class Opportunity(SchemaModel):
    id: RecordId
    name: str = Field(min_length=1)
    type: OpportunityType
    description: str | None = None
    url: Url | None = None
    application_url: Url | None = None

    funding_amount: FundingRange | None = None
    equity_taken: EquityRange | None = None

    deadline: Timestamp | None = None
    application_window: ApplicationWindow | None = None
    cohort_start: Timestamp | None = None
    program_duration: str | None = None

    focus_areas: list[str] = Field(default_factory=list)
    stages_accepted: list[Stage] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)

    location: str | None = None
    remote: bool = False

    requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    notes: str | None = None

    source: str | None = None
    source_url: Url | None = None
    last_updated: Timestamp | None = None
    created_at: Timestamp

    @property
    def collection(self) -> str:
        return OPPORTUNITY_COLLECTIONS[self.type]


class Founder(SchemaModel):
    name: str
    role: str | None = None
    linkedin: Url | None = None
    bio: str | None = None


class Traction(SchemaModel):
    users: Number | None = None
    revenue: Number | None = None
    mrr: Number | None = None
    arr: Number | None = None
    growth: str | None = None
    highlights: list[str] = Field(default_factory=list)


class FundingHistory(SchemaModel):
    total: Number | None = None
    last_round: str | None = None
    investors: list[str] = Field(default_factory=list)


class ApplicationContent(SchemaModel):
    """Narrative answers reused across applications instead of retyped."""

    problem_statement: str | None = None
    solution: str | None = None
    unique_value: str | None = None
    market_size: str | None = None
    business_model: str | None = None
    competition: str | None = None
    why_now: str | None = None
    why_us: str | None = None
    ask_amount: Number | None = None
    use_of_funds: str | None = None


class Product(SchemaModel):
    id: RecordId
    name: str = Field(min_length=1)
    tagline: str | None = None
    description: str | None = None

    stage: Stage | None = None
    industries: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)

    team_size: PositiveInt | None = None
    founders: list[Founder] = Field(default_factory=list)

    founded: str | None = None
    incorporated: bool = False
    incorporation_type: str | None = None

    traction: Traction | None = None
    funding_raised: FundingHistory | None = None

    website: Url | None = None
    pitch_deck_url: Url | None = None
    demo_url: Url | None = None
    github_url: Url | None = None

    location: str | None = None
    remote: bool = True

    application_content: ApplicationContent | None = None

    notes: str | None = None
    created_at: Timestamp
    updated_at: Timestamp | None = None


class StatusChange(SchemaModel):
    status: ApplicationStatus
    date: Timestamp
    note: str | None = None


class FollowUp(SchemaModel):
    id: RecordId
    date: Timestamp
    type: FollowUpType
    summary: str
    next_action: str | None = None
    next_action_date: Timestamp | None = None


class AdditionalDocument(SchemaModel):
    name: str
    url: Url


class Materials(SchemaModel):
    # question -> answer
    answers: dict[str, str] | None = None
    pitch_deck_url: Url | None = None
    video_url: Url | None = None
    additional_docs: list[AdditionalDocument] = Field(default_factory=list)


class Contact(SchemaModel):
    name: str
    role: str | None = None
    email: EmailStr | None = None
    linkedin: Url | None = None


class Application(SchemaModel):
    id: RecordId
    opportunity_id: RecordId
    product_id: RecordId

    status: ApplicationStatus = "identified"
    status_history: list[StatusChange] = Field(default_factory=list)

    deadline: Timestamp | None = None
    submitted_at: Timestamp | None = None
    response_received_at: Timestamp | None = None

    fit_score: int | None = Field(default=None, ge=0, le=100)
    fit_notes: str | None = None

    materials: Materials | None = None

    follow_ups: list[FollowUp] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)

    notes: str | None = None
    created_at: Timestamp
    updated_at: Timestamp | None = None

    def status_change(
        self,
        status: ApplicationStatus,
        *,
        note: str | None = None,
        at: datetime | None = None,
    ) -> dict[str, Any]:
        """Return the field changes implied by moving to ``status``.

        Any status may follow any other. The history always grows by exactly
        one entry, and ``submitted_at`` is only filled the first time the
        application reaches ``submitted``.
        """
        moment = to_utc(at) if at is not None else utc_now()
        entry = StatusChange(status=status, date=moment, note=note or None)
        changes: dict[str, Any] = {
            "status": status,
            "status_history": [*self.status_history, entry],
        }
        if status == "submitted" and self.submitted_at is None:
            changes["submitted_at"] = moment
        return changes


class OpportunityList(SchemaModel):
    opportunities: list[Opportunity]
    last_updated: Timestamp

    @classmethod
    def empty(cls) -> OpportunityList:
        return cls(opportunities=[], last_updated=utc_now())


class ProductList(SchemaModel):
    products: list[Product]
    last_updated: Timestamp

    @classmethod
    def empty(cls) -> ProductList:
        return cls(products=[], last_updated=utc_now())


class ApplicationList(SchemaModel):
    applications: list[Application]
    last_updated: Timestamp

    @classmethod
    def empty(cls) -> ApplicationList:
        return cls(applications=[], last_updated=utc_now())
