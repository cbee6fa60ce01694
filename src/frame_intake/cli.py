"""Command-line entry point for frame intake."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from pydantic import ValidationError

from frame_intake.bootstrap import build_container
from frame_intake.core import (
    AppSettings,
    LifecycleConflict,
    ServiceContainer,
    configure_logging,
    load_app_settings,
)
from frame_intake.core.interfaces import CatalogError
from frame_intake.core.models import InboundMessage
from frame_intake.ingestion import EmailParser, WebhookPayload

COMMANDS = ("info", "ingest", "classify", "crawl", "confirm", "archive-order", "delete-order")


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Vendor order email intake")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=COMMANDS,
        help="Operation to execute.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Message file (.eml or webhook .json) or order id, depending on the command.",
    )
    parser.add_argument(
        "--account",
        default=None,
        help="Account the order belongs to (ingest, confirm).",
    )
    parser.add_argument(
        "--order",
        default=None,
        help="Vendor order number to confirm.",
    )
    parser.add_argument(
        "--items",
        default=None,
        help="Comma separated inventory ids to confirm; default is every pending item.",
    )
    parser.add_argument(
        "--vendor",
        default=None,
        help="Vendor code for crawl, or to disambiguate confirm.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit status."""
    command = args.command
    if command == "info":
        print("Frame intake is ready.")
        print(f"Database path: {settings.storage.db_path}")
        print(f"Catalog endpoints: {', '.join(sorted(settings.catalog.endpoints)) or 'none'}")
        enrich = ", ".join(settings.enrichment.vendors) if settings.enrichment.enabled else "disabled"
        print(f"Enrichment: {enrich}")
        return 0

    container = build_container(settings)
    try:
        if command == "ingest":
            return _run_ingest(container, args)
        if command == "classify":
            return _run_classify(container, args)
        if command == "crawl":
            return _run_crawl(container, args)
        if command == "confirm":
            return _run_confirm(container, args)
        if command in ("archive-order", "delete-order"):
            return _run_order_command(container, command, args)
    except LifecycleConflict as exc:
        print(f"Refused: {exc.reason}")
        return 1
    finally:
        container.close()
    return 2


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    raise SystemExit(execute(args, settings))


def load_message(path: Path) -> InboundMessage:
    """Read an RFC822 ``.eml`` file or a webhook JSON payload."""
    payload = path.read_bytes()
    if path.suffix.lower() == ".json":
        return WebhookPayload.model_validate(json.loads(payload)).to_message()
    return EmailParser().parse(payload)


def _read_target(args: argparse.Namespace) -> InboundMessage | None:
    if not args.target:
        print(f"{args.command} needs a message file")
        return None
    try:
        return load_message(Path(args.target))
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Could not read {args.target}: {exc}")
        return None


def _run_ingest(container: ServiceContainer, args: argparse.Namespace) -> int:
    if not args.account:
        print("ingest needs --account")
        return 2
    message = _read_target(args)
    if message is None:
        return 2
    result = container.resolve("ingestion").ingest(args.account, message)
    print(f"Message #{result.message_id}: {result.parse_status}")
    if result.classification.vendor_code:
        print(
            f"Vendor: {result.classification.vendor_code} "
            f"({result.classification.confidence}, {result.classification.tier})"
        )
    if result.order is not None:
        print(
            f"Order {result.order.order_number} #{result.order.id}: "
            f"{result.order.total_pieces} piece(s), {result.order.status}"
        )
    if result.error:
        print(f"Error: {result.error}")
    return 0 if result.parse_status in ("parsed", "duplicate") else 1


def _run_classify(container: ServiceContainer, args: argparse.Namespace) -> int:
    message = _read_target(args)
    if message is None:
        return 2
    result = container.resolve("classifier").classify(message)
    print(f"Vendor: {result.vendor_code or 'unknown'}")
    print(f"Confidence: {result.confidence} ({result.tier})")
    if result.forwarded:
        print(f"Forwarded by {result.outer_sender}; original sender {result.original_sender}")
    return 0 if result.vendor_code else 1


def _run_crawl(container: ServiceContainer, args: argparse.Namespace) -> int:
    if not args.vendor:
        print("crawl needs --vendor")
        return 2
    try:
        report = container.resolve("crawler").crawl_full_catalog(args.vendor)
    except CatalogError as exc:
        print(f"Crawl failed: {exc}")
        return 1
    print(
        f"Crawled {report.terms_searched} term(s) for {report.vendor_code}: "
        f"{report.unique_products} product(s), {report.entries_upserted} catalog row(s)"
    )
    if report.failed_terms:
        print(f"Failed terms: {', '.join(report.failed_terms)}")
    return 0


def _run_confirm(container: ServiceContainer, args: argparse.Namespace) -> int:
    if not args.account or not args.order:
        print("confirm needs --account and --order")
        return 2
    item_ids = None
    if args.items:
        try:
            item_ids = [int(part) for part in args.items.split(",") if part.strip()]
        except ValueError:
            print(f"--items must be comma separated ids, got {args.items!r}")
            return 2
    result = container.resolve("lifecycle").confirm_order(
        args.account, args.order, item_ids, vendor_code=args.vendor
    )
    print(
        f"Order {result.order_number}: {result.order_status}; "
        f"{len(result.confirmed_ids)} confirmed, {len(result.skipped_ids)} skipped, "
        f"{result.enriched_count} enriched, {result.pending_count} still pending"
    )
    return 0


def _run_order_command(container: ServiceContainer, command: str, args: argparse.Namespace) -> int:
    try:
        order_id = int(args.target)
    except (TypeError, ValueError):
        print(f"{command} needs a numeric order id")
        return 2
    lifecycle = container.resolve("lifecycle")
    if command == "archive-order":
        archived = lifecycle.archive_order(order_id)
        print(f"Archived order #{order_id} ({archived} item(s))")
    else:
        lifecycle.delete_order(order_id)
        print(f"Deleted order #{order_id}")
    return 0


if __name__ == "__main__":
    main()
