from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from funding_pipeline.config import SourceSettings
from funding_pipeline.filters import FilterResult
from funding_pipeline.models import (
    APPLICATION_STATUSES,
    Application,
    Opportunity,
    Product,
)
from funding_pipeline.scrapers import ScrapeResult
from funding_pipeline.service import PipelineStats
from funding_pipeline.utils.datetime_utils import format_date, format_datetime, parse_datetime_utc

UNKNOWN_LABEL = "Unknown"

STATUS_LABELS: dict[str, str] = {
    "identified": "Identified",
    "researching": "Researching",
    "drafting": "Drafting",
    "ready": "Ready to submit",
    "submitted": "Submitted",
    "interview": "Interview scheduled",
    "accepted": "Accepted!",
    "rejected": "Rejected",
    "withdrawn": "Withdrawn",
    "expired": "Expired",
}


def render_opportunity(opportunity: Opportunity) -> str:
    lines = [
        opportunity.name,
        f"  Type: {opportunity.type} | Deadline: {format_date(opportunity.deadline, default='Rolling')}",
        f"  Funding: {_format_funding(opportunity)} | Equity: {_format_equity(opportunity)}",
    ]
    if opportunity.focus_areas:
        lines.append(f"  Focus: {', '.join(opportunity.focus_areas[:3])}")
    if opportunity.url:
        lines.append(f"  URL: {opportunity.url}")
    return "\n".join(lines)


def render_opportunity_list(opportunities: Sequence[Opportunity]) -> str:
    blocks = [f"Found {len(opportunities)} opportunities:", ""]
    for opportunity in opportunities:
        blocks.append(render_opportunity(opportunity))
        blocks.append("")
    return "\n".join(blocks)


def render_search_results(
    keyword: str,
    matches: Sequence[tuple[Opportunity, FilterResult]],
) -> str:
    lines = [f'Found {len(matches)} matches for "{keyword}":', ""]
    for opportunity, result in matches:
        lines.append(f"  {opportunity.name} ({opportunity.type}) - matched on {result.reason_text()}")
    return "\n".join(lines)


def render_product_summary(product: Product) -> str:
    lines = [product.name]
    if product.tagline:
        lines.append(f"  {product.tagline}")
    lines.append(
        f"  Stage: {product.stage or 'Not set'} | Team: {_format_optional(product.team_size, '?')}"
    )
    if product.industries:
        lines.append(f"  Industries: {', '.join(product.industries)}")

    traction = _traction_parts(product)
    if traction:
        lines.append(f"  Traction: {' | '.join(traction)}")
    if product.website:
        lines.append(f"  Website: {product.website}")
    return "\n".join(lines)


def render_product_list(products: Sequence[Product]) -> str:
    blocks = [f"Your products ({len(products)}):", ""]
    for product in products:
        blocks.append(render_product_summary(product))
        blocks.append("")
    return "\n".join(blocks)


def render_product_detail(product: Product) -> str:
    lines = [product.name]
    if product.tagline:
        lines.append(product.tagline)
    lines.append("")

    if product.description:
        lines.extend(["Description:", product.description, ""])

    lines.extend(
        [
            "Details:",
            f"  Stage: {product.stage or 'Not set'}",
            f"  Team size: {_format_optional(product.team_size, '?')}",
            f"  Founded: {product.founded or '?'}",
            f"  Incorporated: {_yes_no(product.incorporated)}",
            f"  Location: {product.location or 'Not set'}",
            f"  Remote: {_yes_no(product.remote)}",
        ]
    )
    if product.industries:
        lines.append(f"  Industries: {', '.join(product.industries)}")
    if product.focus_areas:
        lines.append(f"  Focus areas: {', '.join(product.focus_areas)}")
    if product.website:
        lines.append(f"  Website: {product.website}")

    traction = product.traction
    if traction is not None:
        lines.extend(["", "Traction:"])
        if traction.users:
            lines.append(f"  Users: {_format_number(traction.users)}")
        if traction.mrr:
            lines.append(f"  MRR: ${_format_number(traction.mrr)}")
        if traction.revenue:
            lines.append(f"  Revenue: ${_format_number(traction.revenue)}")
        if traction.growth:
            lines.append(f"  Growth: {traction.growth}")
        if traction.highlights:
            lines.append(f"  Highlights: {', '.join(traction.highlights)}")

    lines.extend(
        [
            "",
            f"ID: {product.id}",
            f"Created: {format_datetime(product.created_at)}",
        ]
    )
    return "\n".join(lines)


def render_pipeline(
    applications: Sequence[Application],
    opportunity_names: Mapping[str, str],
    product_names: Mapping[str, str],
) -> str:
    """Group applications by status, in pipeline order."""
    lines = [f"Application Pipeline ({len(applications)}):", ""]

    for status in APPLICATION_STATUSES:
        group = [item for item in applications if item.status == status]
        if not group:
            continue

        lines.append(f"■ {status.upper()} ({len(group)})")
        for application in group:
            lines.append(
                f"  {application_title(application, opportunity_names, product_names)}"
            )
            lines.append(f"    Deadline: {format_date(application.deadline, default='No deadline')}")
            if application.fit_score is not None:
                lines.append(f"    Fit score: {application.fit_score}%")
            if application.follow_ups:
                latest = application.follow_ups[-1]
                lines.append(f"    Last follow-up: {format_date(latest.date)} ({latest.type})")
        lines.append("")

    return "\n".join(lines)


def application_title(
    application: Application,
    opportunity_names: Mapping[str, str],
    product_names: Mapping[str, str],
) -> str:
    opportunity = opportunity_names.get(application.opportunity_id, UNKNOWN_LABEL)
    product = product_names.get(application.product_id, UNKNOWN_LABEL)
    return f"{opportunity} → {product}"


def render_stats(stats: PipelineStats) -> str:
    lines = [
        "Application Statistics:",
        "",
        f"Total tracked: {stats.total}",
        "",
        f"Active pipeline: {stats.active}",
        f"Accepted: {stats.accepted}",
        f"Rejected: {stats.rejected}",
    ]
    success_rate = stats.success_rate
    if success_rate is not None:
        lines.append(f"Success rate: {success_rate}%")
    return "\n".join(lines)


def render_scrape_result(result: ScrapeResult, *, limit: int = 10) -> str:
    lines: list[str] = []

    if result.errors:
        lines.append("Errors:")
        lines.extend(f"  - {error}" for error in result.errors)
        lines.append("")

    found = result.opportunities
    if found:
        lines.append(f"Found {len(found)} opportunities:")
        lines.extend(f"  - {item.get('name', UNKNOWN_LABEL)}" for item in found[:limit])
        if len(found) > limit:
            lines.append(f"  ... and {len(found) - limit} more")
    else:
        lines.append("No opportunities found.")
        lines.append("The scraper may need to be customized for this page structure.")

    return "\n".join(lines)


def render_sources(sources: Iterable[SourceSettings]) -> str:
    lines = ["Configured Sources:", ""]
    for source in sources:
        last_scraped = format_datetime(parse_datetime_utc(source.last_scraped), default="Never")
        lines.extend(
            [
                f"{source.display_name} [{source.id}]",
                f"  Type: {source.type}",
                f"  Source: {source.source}",
                f"  URL: {source.url}",
                f"  Last scraped: {last_scraped}",
                "",
            ]
        )
    return "\n".join(lines)


def _format_funding(opportunity: Opportunity) -> str:
    funding = opportunity.funding_amount
    if funding is None:
        return "Varies"
    low = _format_optional_number(funding.min)
    high = _format_optional_number(funding.max)
    return f"${low}-{high}"


def _format_equity(opportunity: Opportunity) -> str:
    equity = opportunity.equity_taken
    if equity is None:
        return "N/A"
    return f"{_format_optional_number(equity.min)}%-{_format_optional_number(equity.max)}%"


def _traction_parts(product: Product) -> list[str]:
    traction = product.traction
    if traction is None:
        return []

    parts: list[str] = []
    if traction.users:
        parts.append(f"{_format_number(traction.users)} users")
    if traction.mrr:
        parts.append(f"${_format_number(traction.mrr)} MRR")
    if traction.revenue:
        parts.append(f"${_format_number(traction.revenue)} revenue")
    return parts


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def _format_optional_number(value: int | float | None) -> str:
    return "?" if value is None else _format_number(value)


def _format_optional(value: object, default: str) -> str:
    return default if value is None else str(value)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"
