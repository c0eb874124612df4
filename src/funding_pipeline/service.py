from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from funding_pipeline.filters import FilterResult, KeywordFilter, StageFilter
from funding_pipeline.models import (
    ACTIVE_STATUSES,
    APPLICATION_STATUSES,
    OPPORTUNITY_COLLECTIONS,
    Application,
    FollowUp,
    Opportunity,
    Product,
    StatusChange,
    new_id,
)
from funding_pipeline.store import Store
from funding_pipeline.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""


class MissingPrerequisiteError(ServiceError):
    """Raised when an operation needs records that do not exist yet."""

    def __init__(self, message: str, *, missing: str) -> None:
        super().__init__(message)
        self.missing = missing


class ApplicationNotFoundError(ServiceError):
    """Raised when no application matches the given id."""


@dataclass(slots=True)
class PipelineStats:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    active: int = 0
    accepted: int = 0
    rejected: int = 0

    @property
    def success_rate(self) -> int | None:
        """Accepted share of decided applications, as a whole percent.

        Rounds halves up. None until something was accepted or rejected.
        """
        decided = self.accepted + self.rejected
        if decided == 0:
            return None
        return (200 * self.accepted + decided) // (2 * decided)


class PipelineService:
    def __init__(
        self,
        store: Store,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or utc_now

    def list_opportunities(
        self,
        *,
        opportunity_type: str | None = None,
        stage: str | None = None,
    ) -> list[Opportunity]:
        collection = (
            OPPORTUNITY_COLLECTIONS.get(opportunity_type, opportunity_type)
            if opportunity_type
            else None
        )
        opportunities = self.store.get_opportunities(collection)

        if stage:
            opportunities = StageFilter(stage).select(opportunities)
        return opportunities

    def search_opportunities(self, keyword: str) -> list[tuple[Opportunity, FilterResult]]:
        keyword_filter = KeywordFilter(keyword)
        matches: list[tuple[Opportunity, FilterResult]] = []
        for opportunity in self.store.get_opportunities():
            result = keyword_filter.evaluate(opportunity)
            if result.matched:
                matches.append((opportunity, result))
        return matches

    def create_opportunity(self, **fields: Any) -> Opportunity:
        opportunity = Opportunity.model_validate(
            {**fields, "id": new_id(), "created_at": self.clock()}
        )
        self.store.add_opportunity(opportunity)
        logger.info("Added %s opportunity %s (%s)", opportunity.type, opportunity.name, opportunity.id)
        return opportunity

    def list_products(self) -> list[Product]:
        return self.store.get_products()

    def get_product(self, product_id: str) -> Product | None:
        return self.store.get_product(product_id)

    def create_product(self, **fields: Any) -> Product:
        product = Product.model_validate({**fields, "id": new_id(), "created_at": self.clock()})
        self.store.add_product(product)
        logger.info("Added product %s (%s)", product.name, product.id)
        return product

    def list_applications(self, *, status: str | None = None) -> list[Application]:
        applications = self.store.get_applications()
        if status:
            applications = [item for item in applications if item.status == status]
        return applications

    def find_application(self, id_prefix: str) -> Application | None:
        prefix = id_prefix.strip()
        if not prefix:
            return None
        for application in self.store.get_applications():
            if application.id.startswith(prefix):
                return application
        return None

    def create_application(
        self,
        opportunity_id: str,
        product_id: str,
        *,
        status: str = "identified",
        deadline: datetime | None = None,
        fit_score: int | None = None,
        fit_notes: str | None = None,
    ) -> Application:
        self.require_application_prerequisites()

        now = self.clock()
        application = Application(
            id=new_id(),
            opportunity_id=opportunity_id,
            product_id=product_id,
            status=status,
            status_history=[StatusChange(status=status, date=now)],
            deadline=deadline,
            fit_score=fit_score,
            fit_notes=fit_notes or None,
            created_at=now,
        )
        self.store.add_application(application)
        logger.info("Tracking application %s", application.id)
        return application

    def require_application_prerequisites(self) -> None:
        if not self.store.get_opportunities():
            raise MissingPrerequisiteError(
                "No opportunities found. Add one first.",
                missing="opportunities",
            )
        if not self.store.get_products():
            raise MissingPrerequisiteError("No products found. Add one first.", missing="products")

    def update_status(
        self,
        application_id: str,
        status: str,
        *,
        note: str | None = None,
    ) -> Application:
        application = self._require_application(application_id)
        changes = application.status_change(status, note=note, at=self.clock())
        updated = self.store.update_application(application.id, changes)
        if updated is None:
            raise ApplicationNotFoundError(f"No application found with id {application_id}")

        logger.info("Application %s moved %s -> %s", application.id, application.status, status)
        return updated

    def add_follow_up(
        self,
        application_id: str,
        follow_up_type: str,
        summary: str,
        *,
        next_action: str | None = None,
        next_action_date: datetime | None = None,
    ) -> FollowUp:
        application = self._require_application(application_id)
        follow_up = FollowUp(
            id=new_id(),
            date=self.clock(),
            type=follow_up_type,
            summary=summary,
            next_action=next_action or None,
            next_action_date=next_action_date,
        )
        updated = self.store.update_application(
            application.id,
            {"follow_ups": [*application.follow_ups, follow_up]},
        )
        if updated is None:
            raise ApplicationNotFoundError(f"No application found with id {application_id}")
        return follow_up

    def pipeline_stats(self) -> PipelineStats:
        counts = Counter(application.status for application in self.store.get_applications())
        return PipelineStats(
            total=sum(counts.values()),
            by_status={status: counts[status] for status in APPLICATION_STATUSES if counts[status]},
            active=sum(counts[status] for status in ACTIVE_STATUSES),
            accepted=counts["accepted"],
            rejected=counts["rejected"],
        )

    def opportunity_names(self) -> dict[str, str]:
        return {item.id: item.name for item in self.store.get_opportunities()}

    def product_names(self) -> dict[str, str]:
        return {item.id: item.name for item in self.store.get_products()}

    def _require_application(self, application_id: str) -> Application:
        for application in self.store.get_applications():
            if application.id == application_id:
                return application
        raise ApplicationNotFoundError(f"No application found with id {application_id}")
