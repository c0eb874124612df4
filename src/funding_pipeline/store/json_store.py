from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, TypeVar, Union

from funding_pipeline.models import (
    OPPORTUNITY_COLLECTIONS,
    Application,
    ApplicationList,
    Opportunity,
    OpportunityList,
    Product,
    ProductList,
)
from funding_pipeline.utils.datetime_utils import utc_now

from .base import LoadResult, Store, StoreError, UnknownOpportunityTypeError

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=Union[OpportunityList, ProductList, ApplicationList])

# Fields an update may never change.
_IMMUTABLE_APPLICATION_FIELDS = {"id", "created_at"}


class JsonStore(Store):
    """Whole-document JSON persistence, one file per collection.

    Every write reloads the current document, changes it in memory and
    rewrites the file. Nothing coordinates two processes writing the same
    file; the last writer wins.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.opportunity_paths: dict[str, Path] = {
            collection: self.data_dir / "opportunities" / f"{collection}.json"
            for collection in OPPORTUNITY_COLLECTIONS.values()
        }
        self.products_path = self.data_dir / "products" / "products.json"
        self.applications_path = self.data_dir / "applications" / "applications.json"

    def load_opportunities(self, collection: str) -> LoadResult[OpportunityList]:
        return _load(self._opportunity_path(collection), OpportunityList)

    def load_products(self) -> LoadResult[ProductList]:
        return _load(self.products_path, ProductList)

    def load_applications(self) -> LoadResult[ApplicationList]:
        return _load(self.applications_path, ApplicationList)

    def get_opportunities(self, collection: str | None = None) -> list[Opportunity]:
        if collection is not None:
            return self.load_opportunities(collection).document.opportunities

        opportunities: list[Opportunity] = []
        for name in self.opportunity_paths:
            opportunities.extend(self.load_opportunities(name).document.opportunities)
        return opportunities

    def add_opportunity(self, opportunity: Opportunity) -> None:
        collection = OPPORTUNITY_COLLECTIONS.get(opportunity.type)
        if collection is None:
            raise UnknownOpportunityTypeError(
                f"Unknown opportunity type '{opportunity.type}'. "
                f"Expected one of: {', '.join(OPPORTUNITY_COLLECTIONS)}"
            )

        path = self.opportunity_paths[collection]
        document = _load(path, OpportunityList).document
        document.opportunities.append(opportunity)
        document.last_updated = utc_now()
        _write(path, document)

    def get_products(self) -> list[Product]:
        return self.load_products().document.products

    def add_product(self, product: Product) -> None:
        document = self.load_products().document
        document.products.append(product)
        document.last_updated = utc_now()
        _write(self.products_path, document)

    def get_applications(self) -> list[Application]:
        return self.load_applications().document.applications

    def add_application(self, application: Application) -> None:
        document = self.load_applications().document
        document.applications.append(application)
        document.last_updated = utc_now()
        _write(self.applications_path, document)

    def update_application(
        self,
        application_id: str,
        changes: Mapping[str, Any],
    ) -> Application | None:
        document = self.load_applications().document

        for index, existing in enumerate(document.applications):
            if existing.id == application_id:
                break
        else:
            logger.debug("No application with id %s; nothing updated", application_id)
            return None

        now = utc_now()
        updated = _merge_application(existing, changes, now)
        document.applications[index] = updated
        document.last_updated = now
        _write(self.applications_path, document)
        return updated

    def _opportunity_path(self, collection: str) -> Path:
        path = self.opportunity_paths.get(collection)
        if path is None:
            raise UnknownOpportunityTypeError(
                f"Unknown opportunity collection '{collection}'. "
                f"Expected one of: {', '.join(self.opportunity_paths)}"
            )
        return path


def _merge_application(
    existing: Application,
    changes: Mapping[str, Any],
    now: datetime,
) -> Application:
    fields = _field_names(changes)
    for name in _IMMUTABLE_APPLICATION_FIELDS:
        fields.pop(name, None)

    if "status" in fields and "status_history" not in fields:
        fields.update(existing.status_change(fields["status"], at=now))

    if existing.submitted_at is not None:
        fields.pop("submitted_at", None)

    data = existing.model_dump()
    data.update(fields)
    data["updated_at"] = now
    return Application.model_validate(data)


def _field_names(changes: Mapping[str, Any]) -> dict[str, Any]:
    model_fields = Application.model_fields
    by_alias = {info.alias: name for name, info in model_fields.items() if info.alias}

    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        name = key if key in model_fields else by_alias.get(key)
        if name is None:
            raise ValueError(f"Unknown application field: {key}")
        normalized[name] = value
    return normalized


def _load(path: Path, document_cls: type[DocumentT]) -> LoadResult[DocumentT]:
    if not path.exists():
        return LoadResult(document=document_cls.empty())

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        document = document_cls.model_validate(raw)
    except (OSError, ValueError, RecursionError) as exc:
        # JSONDecodeError, UnicodeDecodeError and ValidationError are all ValueErrors;
        # deeply nested arrays overflow the decoder instead.
        logger.warning(
            "Discarding unreadable collection %s: %s",
            path,
            str(exc).splitlines()[0] if str(exc) else type(exc).__name__,
        )
        return LoadResult(document=document_cls.empty(), ok=False, error=str(exc))

    return LoadResult(document=document)


def _write(path: Path, document: OpportunityList | ProductList | ApplicationList) -> None:
    payload = json.dumps(document.to_document(), indent=2, ensure_ascii=False)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise StoreError(f"Failed to write {path}: {exc}") from exc
    logger.debug("Wrote %s", path)
