"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Callable


def main(argv: list[str] | None = None) -> int:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="opportunity-intake",
        description="Opportunity intake: naming, product filtering and batch creation",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to settings YAML (stage probabilities, policy, REST endpoint)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # stages
    subparsers.add_parser("stages", help="Show pipeline stages, default probabilities and progress")

    # products
    products_parser = subparsers.add_parser("products", help="List products available for principals")
    products_parser.add_argument(
        "--catalog",
        type=Path,
        required=True,
        help="Catalog YAML with principals and products",
    )
    products_parser.add_argument(
        "--principal",
        action="append",
        default=[],
        dest="principals",
        metavar="ID",
        help="Selected principal ID (repeatable, selection order)",
    )
    products_parser.add_argument(
        "--grouped",
        action="store_true",
        help="Group products by category",
    )

    # preview
    preview_parser = subparsers.add_parser("preview", help="Show generated names for a draft")
    _add_draft_args(preview_parser)

    # submit
    submit_parser = subparsers.add_parser("submit", help="Validate a draft and create opportunities")
    _add_draft_args(submit_parser)
    submit_parser.add_argument(
        "--rest",
        action="store_true",
        help="Use the REST backend from settings / OPPORTUNITY_INTAKE_REST_URL",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "stages":
        return _run_stages(args)
    if args.command == "products":
        return _run_products(args)
    if args.command == "preview":
        return _run_preview(args)
    if args.command == "submit":
        return _run_submit(args)
    parser.print_help()
    return 1


def _add_draft_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Catalog YAML with principals and products (required unless --rest)",
    )
    sub.add_argument(
        "--draft",
        type=Path,
        required=True,
        help="Draft YAML/JSON (organization_name, context, selected_principals, ...)",
    )
    sub.add_argument(
        "--date",
        type=str,
        default=None,
        help="Generate names as of this date (YYYY-MM-DD) instead of today",
    )


def _load_settings(args: argparse.Namespace):
    from opportunity_intake.config import IntakeSettings

    if args.settings:
        return IntakeSettings.from_yaml(args.settings)
    return IntakeSettings.from_env()


def _clock(args: argparse.Namespace) -> Callable[[], date]:
    if not args.date:
        return date.today
    try:
        fixed = datetime.strptime(args.date, "%Y-%m-%d").date()
    except ValueError:
        raise SystemExit("Invalid --date format. Use YYYY-MM-DD.")
    return lambda: fixed


def _load_draft(path: Path) -> dict:
    import yaml

    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise SystemExit(f"Draft file {path} must contain a mapping")
    return data


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def _run_stages(args: argparse.Namespace) -> int:
    """Run stages command."""
    pipeline = _load_settings(args).stage_pipeline()
    _print_json(pipeline.as_table())
    return 0


def _run_products(args: argparse.Namespace) -> int:
    """Run products command."""
    from opportunity_intake.filtering import ProductAvailabilityFilter
    from opportunity_intake.store import InMemoryCatalog

    settings = _load_settings(args)
    product_filter = ProductAvailabilityFilter.from_directory(
        InMemoryCatalog.from_yaml(args.catalog),
        policy=settings.availability_policy,
        include_inactive=settings.include_inactive_products,
    )
    if args.grouped:
        groups = product_filter.grouped_products(args.principals)
        _print_json([g.model_dump(mode="json") for g in groups])
    else:
        products = product_filter.available_products(args.principals)
        _print_json([p.model_dump(mode="json") for p in products])
    return 0


def _build_session(args: argparse.Namespace, use_rest: bool = False):
    from opportunity_intake.session import OpportunityIntake
    from opportunity_intake.store import (
        InMemoryCatalog,
        InMemoryOpportunityRepository,
        RestCatalogDirectory,
        RestOpportunityRepository,
    )

    settings = _load_settings(args)
    if use_rest:
        directory = RestCatalogDirectory.from_settings(settings)
        repository = RestOpportunityRepository.from_settings(settings)
    else:
        if args.catalog is None:
            raise SystemExit("--catalog is required unless --rest is given")
        directory = InMemoryCatalog.from_yaml(args.catalog)
        repository = InMemoryOpportunityRepository()
    session = OpportunityIntake(directory, repository, settings=settings, clock=_clock(args))
    session.initialize(_load_draft(args.draft))
    return session


def _run_preview(args: argparse.Namespace) -> int:
    """Run preview command."""
    session = _build_session(args)
    _print_json([p.model_dump(mode="json") for p in session.get_preview()])
    return 0


def _run_submit(args: argparse.Namespace) -> int:
    """Run submit command: walk the wizard steps, then submit."""
    session = _build_session(args, use_rest=args.rest)
    while not session.wizard.can_submit:
        if not session.next():
            break
    result = session.submit()
    state = session.get_wizard_state()
    if result is None:
        print(state.blocking_message or "Submission blocked", file=sys.stderr)
        _print_json({"errors": state.field_errors})
        return 1
    output = result.model_dump(mode="json")
    output["succeeded"] = result.succeeded
    output["summary"] = result.summary()
    if state.submit_error:
        output["submit_error"] = state.submit_error
    _print_json(output)
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
