"""CLI entrypoint: resolve COAR notifications to their DocMaps."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

from debug_log import DebugLog, parse_levels
from models import DEFAULT_DEBUG_LEVELS, BatchOutcome, ProgramConfig
from pipeline import run_batch

DEFAULT_NOTIFICATION_URIS = (
    "https://inbox-sciety-prod.elifesciences.org/inbox/urn:uuid:bf3513ee-1fef-4f30-a61b-20721b505f11",
    "https://inbox-sciety-prod.elifesciences.org/inbox/urn:uuid:348fcff8-a313-4051-9437-810acfaaf5cd",
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Resolve COAR notifications to DocMaps")
    parser.add_argument(
        "uris",
        nargs="*",
        help="Notification URIs. Defaults to COAR_NOTIFICATION_URIS, then the built-in examples.",
    )
    parser.add_argument(
        "--debug",
        default=None,
        help=(
            "Comma-separated debug levels: 0 traces followed URLs, 1 prints the step "
            "digest, 2 prints the whole DocMap. Defaults to DOCMAP_DEBUG_LEVELS or '0,1'."
        ),
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the resolved DocMaps as a JSON array on stdout",
    )
    return parser.parse_args(argv)


def build_configs(uris: list[str], debug: str | None) -> list[ProgramConfig]:
    """Turn CLI/env input into one ProgramConfig per notification."""
    if not uris:
        uris = os.getenv("COAR_NOTIFICATION_URIS", "").split() or list(DEFAULT_NOTIFICATION_URIS)

    raw_levels = debug if debug is not None else os.getenv("DOCMAP_DEBUG_LEVELS")
    levels = parse_levels(raw_levels, DEFAULT_DEBUG_LEVELS)
    return [ProgramConfig(uri=uri, debug=levels) for uri in uris]


def _dump_docmaps(outcomes: list[BatchOutcome]) -> str:
    docmaps = [
        outcome.result.value.model_dump(mode="json", by_alias=True)
        for outcome in outcomes
        if outcome.succeeded
    ]
    return json.dumps(docmaps, indent=2)


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute the batch."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    try:
        configs = build_configs(args.uris, args.debug)
    except ValueError as exc:
        logging.error("%s", exc)
        return 2

    outcomes = asyncio.run(run_batch(configs, DebugLog()))

    if args.json:
        print(_dump_docmaps(outcomes))

    return 0 if all(outcome.succeeded for outcome in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
