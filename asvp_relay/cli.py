"""
ASVP Relay CLI

    asvp-relay -s SECRET -n CASE_NUMBER [-f] [-j] [-v]    download every document of a case
    asvp-relay -s SECRET -d DOCUMENT_ID [-j] [-v]         download one document (always overwrites)

Stored file paths are printed to stdout, one per line; with -j the
per-document outcomes are printed as JSON instead. Diagnostics go to stderr
and only show up with -v.

Exit codes:
    0  success (including "nothing new to store")
    1  case not found / single document could not be stored
    2  missing required input
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional

import httpx

from asvp_relay.clients.registry_client import RegistryClient
from asvp_relay.clients.telegram_notifier import Notifier, build_notifier
from asvp_relay.config import Settings, load_settings
from asvp_relay.errors import ErrorKind, message_for
from asvp_relay.files.document_store import DiskDocumentStore
from asvp_relay.files.download_manager import DownloadManager
from asvp_relay.logging_setup import setup_logging
from asvp_relay.schemas import CaseIdentifier

EXIT_OK = 0
EXIT_NOT_STORED = 1
EXIT_BAD_INPUT = 2


def describe(kind: Optional[ErrorKind], detail: Optional[str]) -> str:
    if kind is None:
        return detail or "unknown error"
    return f"{message_for(kind)} ({detail})" if detail else message_for(kind)


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="asvp-relay",
        description="Download ASVP case documents and relay them to Telegram",
    )
    parser.add_argument(
        "-n", "--case-number",
        dest="case_number",
        help="get info for case (VP) number",
    )
    parser.add_argument(
        "-s", "--secret",
        dest="secret",
        help="secret code (access token) for the case",
    )
    parser.add_argument(
        "-d", "--download-document",
        dest="document_id",
        help="download document by id",
    )
    parser.add_argument(
        "-f", "--force-rewrite",
        dest="force",
        action="store_true",
        help="force rewrite document if it exists",
    )
    parser.add_argument(
        "-j", "--json",
        dest="json",
        action="store_true",
        help="print per-document outcomes as JSON instead of paths",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="show debug messages",
    )
    return parser


async def run(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    notifier: Optional[Notifier] = None
) -> int:
    """Execute one download run and map its result to an exit code."""
    logger = setup_logging(verbose=args.verbose, log_file=settings.log_file)

    if not args.secret:
        logger.error("missing secret parameter. exiting.")
        print("error: missing secret (-s)", file=sys.stderr)
        return EXIT_BAD_INPUT

    if not args.document_id and not args.case_number:
        logger.error("missing case number parameter. exiting.")
        print("error: missing case number (-n) or document id (-d)", file=sys.stderr)
        return EXIT_BAD_INPUT

    store = DiskDocumentStore(settings.out_dir, logger=logger.getChild("store"))
    if notifier is None:
        notifier = build_notifier(settings, logger=logger.getChild("notify"))

    async with RegistryClient(settings, transport=transport, logger=logger.getChild("registry")) as client:
        manager = DownloadManager(
            client=client,
            store=store,
            notifier=notifier,
            max_concurrency=settings.max_concurrency,
            logger=logger.getChild("download"),
        )

        if args.document_id:
            outcome = await manager.download_single(args.document_id, args.secret)
            if args.json:
                print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
            if outcome.document is None:
                print(f"error: document {args.document_id} not stored: {describe(outcome.error_kind, outcome.error)}", file=sys.stderr)
                return EXIT_NOT_STORED
            if not args.json:
                print(outcome.document.path)
            return EXIT_OK

        identifier = CaseIdentifier(case_number=args.case_number, secret_code=args.secret)
        result = await manager.download_case(identifier, force_overwrite=args.force)

    if not result.found:
        print(f"error: no data for case {args.case_number}: {describe(result.error_kind, result.error)}", file=sys.stderr)
        return EXIT_NOT_STORED

    if args.json:
        print(json.dumps({
            "found": result.found,
            "summary_path": str(result.summary_path) if result.summary_path else None,
            "outcomes": [o.to_dict() for o in result.outcomes],
        }, ensure_ascii=False, indent=2))
        return EXIT_OK

    for doc in result.documents:
        print(doc.path)
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
