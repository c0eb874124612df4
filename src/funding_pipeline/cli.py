from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from funding_pipeline.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DATA_DIR,
    AppConfig,
    ConfigError,
    SourceSettings,
    StorageSettings,
    load_config,
)
from funding_pipeline.logging_config import setup_logging
from funding_pipeline.models import (
    APPLICATION_STATUSES,
    FOLLOW_UP_TYPES,
    OPPORTUNITY_TYPES,
    STAGES,
)
from funding_pipeline.prompts import InputFn, Prompter
from funding_pipeline.render import (
    STATUS_LABELS,
    application_title,
    render_opportunity_list,
    render_pipeline,
    render_product_detail,
    render_product_list,
    render_scrape_result,
    render_search_results,
    render_sources,
    render_stats,
)
from funding_pipeline.scrapers import ScraperRegistrationError, create_scraper
from funding_pipeline.scrapers.notion import INSPECT_HINTS
from funding_pipeline.service import MissingPrerequisiteError, PipelineService, ServiceError
from funding_pipeline.store import JsonStore, StoreError

logger = logging.getLogger(__name__)

STAGE_CHOICES = [
    ("Idea", "idea"),
    ("Pre-seed", "pre-seed"),
    ("Seed", "seed"),
    ("Series A", "series-a"),
    ("Series B", "series-b"),
    ("Growth", "growth"),
]

INITIAL_STATUS_CHOICES = [
    ("Identified - Just tracking", "identified"),
    ("Researching - Gathering requirements", "researching"),
    ("Drafting - Working on application", "drafting"),
]


@dataclass(slots=True)
class CommandContext:
    config: AppConfig
    service: PipelineService
    prompter: Prompter


Handler = Callable[[argparse.Namespace, CommandContext], int]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accelerate",
        description=(
            "Track startup accelerators, grants and angel networks, "
            "and the applications you make to them."
        ),
    )
    parser.add_argument(
        "-c",
        "--config",
        help=f"Path to config YAML file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "--log-level",
        help="Override config log level (e.g. INFO, DEBUG)",
    )

    groups = parser.add_subparsers(dest="group", required=True)
    _add_opportunity_commands(groups)
    _add_product_commands(groups)
    _add_application_commands(groups)
    _add_scrape_commands(groups)
    return parser


def _add_opportunity_commands(groups: Any) -> None:
    group = groups.add_parser("opportunities", aliases=["opp"], help="Manage funding opportunities")
    commands = group.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List all opportunities")
    list_cmd.add_argument("-t", "--type", choices=OPPORTUNITY_TYPES, help="Filter by type")
    list_cmd.add_argument("-s", "--stage", choices=STAGES, help="Filter by stage accepted")
    list_cmd.set_defaults(handler=_opportunities_list)

    add_cmd = commands.add_parser("add", help="Add a new opportunity")
    add_cmd.set_defaults(handler=_opportunities_add)

    search_cmd = commands.add_parser("search", help="Search opportunities by keyword")
    search_cmd.add_argument("keyword", help="Search keyword")
    search_cmd.set_defaults(handler=_opportunities_search)


def _add_product_commands(groups: Any) -> None:
    group = groups.add_parser(
        "products",
        aliases=["prod"],
        help="Manage your product/startup profiles",
    )
    commands = group.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List all products").set_defaults(handler=_products_list)
    commands.add_parser("add", help="Add a new product/startup profile").set_defaults(
        handler=_products_add
    )

    show_cmd = commands.add_parser("show", help="Show details for a product")
    show_cmd.add_argument("id", help="Product ID")
    show_cmd.set_defaults(handler=_products_show)


def _add_application_commands(groups: Any) -> None:
    group = groups.add_parser(
        "applications",
        aliases=["app"],
        help="Track your applications pipeline",
    )
    commands = group.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List all applications")
    list_cmd.add_argument("-s", "--status", choices=APPLICATION_STATUSES, help="Filter by status")
    list_cmd.set_defaults(handler=_applications_list)

    commands.add_parser("add", help="Start tracking a new application").set_defaults(
        handler=_applications_add
    )

    update_cmd = commands.add_parser("update", help="Update application status")
    update_cmd.add_argument("id", help="Application ID (prefix match supported)")
    update_cmd.set_defaults(handler=_applications_update)

    follow_up_cmd = commands.add_parser("follow-up", help="Log a follow-up on an application")
    follow_up_cmd.add_argument("id", help="Application ID (prefix match supported)")
    follow_up_cmd.set_defaults(handler=_applications_follow_up)

    commands.add_parser("stats", help="Show application statistics").set_defaults(
        handler=_applications_stats
    )


def _add_scrape_commands(groups: Any) -> None:
    group = groups.add_parser("scrape", help="Scrape opportunities from configured sources")
    commands = group.add_subparsers(dest="command", required=True)

    notion_cmd = commands.add_parser("notion", help="Scrape the configured Notion directory")
    notion_cmd.add_argument(
        "-i",
        "--inspect",
        action="store_true",
        help="Open a browser for manual inspection instead of scraping",
    )
    notion_cmd.set_defaults(handler=_scrape_notion)

    run_cmd = commands.add_parser("run", help="Scrape a configured source by id")
    run_cmd.add_argument("source_id", help="Source id from the config file")
    run_cmd.set_defaults(handler=_scrape_run)

    commands.add_parser("list-sources", help="List configured data sources").set_defaults(
        handler=_scrape_list_sources
    )


def main(argv: list[str] | None = None, *, input_fn: InputFn | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = _load_app_config(args.config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or app_config.log_level)

    store = JsonStore(app_config.storage.data_dir)
    context = CommandContext(
        config=app_config,
        service=PipelineService(store),
        prompter=Prompter(input_fn=input_fn),
    )

    handler: Handler = args.handler
    try:
        return handler(args, context)
    except StoreError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ServiceError as exc:
        print(str(exc))
        return 0
    except ValidationError as exc:
        print(f"Invalid record: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("", file=sys.stderr)
        return 130


def _load_app_config(config_arg: str | None) -> AppConfig:
    if config_arg is None and not Path(DEFAULT_CONFIG_PATH).exists():
        return AppConfig(storage=StorageSettings(data_dir=str(Path(DEFAULT_DATA_DIR).resolve())))
    return load_config(config_arg or DEFAULT_CONFIG_PATH)


def _opportunities_list(args: argparse.Namespace, ctx: CommandContext) -> int:
    opportunities = ctx.service.list_opportunities(
        opportunity_type=args.type,
        stage=args.stage,
    )
    if not opportunities:
        print("No opportunities found.")
        print('Run "accelerate opportunities add" to add one.')
        return 0

    print(render_opportunity_list(opportunities))
    return 0


def _opportunities_add(args: argparse.Namespace, ctx: CommandContext) -> int:
    ask = ctx.prompter
    fields: dict[str, Any] = {
        "name": ask.text("Opportunity name:", required=True),
        "type": ask.choice("Type:", OPPORTUNITY_TYPES),
        "description": ask.text("Description (optional):"),
        "url": ask.url("Website URL (optional):"),
        "application_url": ask.url("Application URL (optional):"),
    }

    funding_min = ask.number("Minimum funding amount (optional):", minimum=0)
    funding_max = ask.number("Maximum funding amount (optional):", minimum=0)
    if funding_min is not None or funding_max is not None:
        fields["funding_amount"] = {"min": funding_min, "max": funding_max, "currency": "USD"}

    equity_min = ask.number("Minimum equity % (optional):", minimum=0, maximum=100)
    equity_max = ask.number("Maximum equity % (optional):", minimum=0, maximum=100)
    if equity_min is not None or equity_max is not None:
        fields["equity_taken"] = {"min": equity_min, "max": equity_max}

    fields["deadline"] = ask.date("Application deadline (YYYY-MM-DD, optional):")
    fields["stages_accepted"] = ask.multi_choice("Stages accepted:", STAGE_CHOICES)
    fields["focus_areas"] = ask.csv_list("Focus areas (comma-separated, optional):")
    fields["location"] = ask.text("Location (optional):")
    fields["remote"] = ask.confirm("Remote-friendly?", default=False)

    opportunity = ctx.service.create_opportunity(**fields)
    print(f"\nAdded opportunity: {opportunity.name}")
    return 0


def _opportunities_search(args: argparse.Namespace, ctx: CommandContext) -> int:
    matches = ctx.service.search_opportunities(args.keyword)
    if not matches:
        print(f'No opportunities matching "{args.keyword}"')
        return 0

    print(render_search_results(args.keyword, matches))
    return 0


def _products_list(args: argparse.Namespace, ctx: CommandContext) -> int:
    products = ctx.service.list_products()
    if not products:
        print("No products found.")
        print('Run "accelerate products add" to add one.')
        return 0

    print(render_product_list(products))
    return 0


def _products_add(args: argparse.Namespace, ctx: CommandContext) -> int:
    ask = ctx.prompter
    fields: dict[str, Any] = {
        "name": ask.text("Product/startup name:", required=True),
        "tagline": ask.text("One-line tagline:"),
        "description": ask.text("Full description:"),
        "stage": ask.choice("Current stage:", STAGE_CHOICES),
        "industries": ask.csv_list("Industries (comma-separated):"),
        "focus_areas": ask.csv_list("Focus areas / technologies (comma-separated):"),
        "team_size": ask.integer("Team size:", minimum=1),
        "founded": ask.text("Founded (YYYY or YYYY-MM):"),
        "incorporated": ask.confirm("Incorporated?", default=False),
        "website": ask.url("Website URL:"),
        "location": ask.text("Location:"),
        "remote": ask.confirm("Remote team?", default=True),
    }

    if ask.confirm("Add traction metrics?", default=False):
        fields["traction"] = {
            "users": ask.number("Number of users (optional):", minimum=0),
            "mrr": ask.number("Monthly recurring revenue $ (optional):", minimum=0),
            "revenue": ask.number("Total revenue $ (optional):", minimum=0),
            "growth": ask.text("Growth rate (e.g., '20% MoM'):"),
            "highlights": ask.csv_list("Key highlights (comma-separated):"),
        }

    product = ctx.service.create_product(**fields)
    print(f"\nAdded product: {product.name}")
    print(f"ID: {product.id}")
    return 0


def _products_show(args: argparse.Namespace, ctx: CommandContext) -> int:
    product = ctx.service.get_product(args.id)
    if product is None:
        print(f"Product not found: {args.id}")
        return 0

    print(render_product_detail(product))
    return 0


def _applications_list(args: argparse.Namespace, ctx: CommandContext) -> int:
    applications = ctx.service.list_applications(status=args.status)
    if not applications:
        print("No applications found.")
        print('Run "accelerate applications add" to track one.')
        return 0

    print(
        render_pipeline(
            applications,
            ctx.service.opportunity_names(),
            ctx.service.product_names(),
        )
    )
    return 0


def _applications_add(args: argparse.Namespace, ctx: CommandContext) -> int:
    try:
        ctx.service.require_application_prerequisites()
    except MissingPrerequisiteError as exc:
        print(str(exc))
        print(f"  accelerate {exc.missing} add")
        return 0

    ask = ctx.prompter
    opportunity_id = ask.choice(
        "Select opportunity:",
        [(f"{item.name} ({item.type})", item.id) for item in ctx.service.list_opportunities()],
    )
    product_id = ask.choice(
        "Select product to apply with:",
        [(f"{item.name} ({item.stage or 'no stage'})", item.id) for item in ctx.service.list_products()],
    )
    status = ask.choice("Initial status:", INITIAL_STATUS_CHOICES, default="identified")
    deadline = ask.date("Application deadline (YYYY-MM-DD, optional):")
    fit_score = ask.integer("Fit score 0-100 (optional):", minimum=0, maximum=100)
    fit_notes = ask.text("Fit notes (optional):")

    application = ctx.service.create_application(
        opportunity_id,
        product_id,
        status=status,
        deadline=deadline,
        fit_score=fit_score,
        fit_notes=fit_notes,
    )

    title = application_title(
        application,
        ctx.service.opportunity_names(),
        ctx.service.product_names(),
    )
    print("\nTracking application:")
    print(f"  {title}")
    print(f"  ID: {application.id}")
    return 0


def _applications_update(args: argparse.Namespace, ctx: CommandContext) -> int:
    application = ctx.service.find_application(args.id)
    if application is None:
        print(f"No application found matching: {args.id}")
        return 0

    title = application_title(
        application,
        ctx.service.opportunity_names(),
        ctx.service.product_names(),
    )
    print(f"\nUpdating: {title}")
    print(f"Current status: {application.status}\n")

    ask = ctx.prompter
    status = ask.choice(
        "New status:",
        [(STATUS_LABELS[value], value) for value in APPLICATION_STATUSES],
        default=application.status,
    )
    note = ask.text("Add a note about this update (optional):")

    ctx.service.update_status(application.id, status, note=note)
    print(f"\nUpdated status to: {status}")
    return 0


def _applications_follow_up(args: argparse.Namespace, ctx: CommandContext) -> int:
    application = ctx.service.find_application(args.id)
    if application is None:
        print(f"No application found matching: {args.id}")
        return 0

    ask = ctx.prompter
    follow_up_type = ask.choice("Follow-up type:", FOLLOW_UP_TYPES, default="note")
    summary = ask.text("Summary:", required=True)
    next_action = ask.text("Next action (optional):")
    next_action_date = ask.date("Next action date (YYYY-MM-DD, optional):") if next_action else None

    follow_up = ctx.service.add_follow_up(
        application.id,
        follow_up_type,
        summary,
        next_action=next_action,
        next_action_date=next_action_date,
    )
    print(f"\nLogged {follow_up.type} follow-up ({follow_up.id})")
    return 0


def _applications_stats(args: argparse.Namespace, ctx: CommandContext) -> int:
    stats = ctx.service.pipeline_stats()
    if stats.total == 0:
        print("No applications tracked yet.")
        return 0

    print(render_stats(stats))
    return 0


def _scrape_notion(args: argparse.Namespace, ctx: CommandContext) -> int:
    source = ctx.config.first_source_of_type("notion")
    if source is None:
        print("Config error: no source of type 'notion' is configured", file=sys.stderr)
        return 2

    if args.inspect:
        return _inspect_source(source, ctx)
    return _scrape_source(source, ctx)


def _scrape_run(args: argparse.Namespace, ctx: CommandContext) -> int:
    source = ctx.config.find_source(args.source_id)
    if source is None:
        print(f"Config error: unknown source id '{args.source_id}'", file=sys.stderr)
        return 2
    return _scrape_source(source, ctx)


def _scrape_source(source: SourceSettings, ctx: CommandContext) -> int:
    try:
        scraper = create_scraper(source, ctx.config.scraper)
    except ScraperRegistrationError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    print(f"Scraping: {source.display_name}")
    print(f"URL: {source.url}")

    result = scraper.scrape()
    print("")
    print(render_scrape_result(result))
    if not result.opportunities and source.type == "notion":
        print("Try: accelerate scrape notion --inspect")

    logger.info(
        "Scrape complete | source=%s found=%d errors=%d",
        source.id,
        len(result.opportunities),
        len(result.errors),
    )
    return 0


def _inspect_source(source: SourceSettings, ctx: CommandContext) -> int:
    try:
        scraper = create_scraper(source, ctx.config.scraper)
    except ScraperRegistrationError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    print("Opening browser for inspection...")
    print("Press Ctrl-C here when done.")
    scraper.inspect(on_ready=_print_inspect_hints)
    return 0


def _print_inspect_hints() -> None:
    print("Browser opened for inspection.")
    print("Useful commands in DevTools Console:")
    for hint in INSPECT_HINTS:
        print(f"  {hint}")


def _scrape_list_sources(args: argparse.Namespace, ctx: CommandContext) -> int:
    if not ctx.config.sources:
        print("No sources configured yet.")
        return 0

    print(render_sources(ctx.config.sources))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
