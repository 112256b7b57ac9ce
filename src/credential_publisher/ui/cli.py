from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from credential_publisher.app import build_vocabulary, publish_urls
from credential_publisher.common.logging import configure_logging
from credential_publisher.config import (
    ConfigurationError,
    RegistryEnvironment,
    get_registry_config,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from credential_publisher.config import RegistryConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish CTDL JSON-LD documents to the Credential Registry"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser("publish", help="Publish the entities found at source URLs")
    publish.add_argument(
        "urls",
        nargs="*",
        metavar="URL",
        help="Source document URL (JSON-LD entity or @graph document)",
    )
    publish.add_argument(
        "--urls",
        dest="url_list",
        type=str,
        help="Comma-separated source URLs, appended to the positional ones",
    )
    publish.add_argument(
        "--env",
        type=str,
        choices=[env.value for env in RegistryEnvironment],
        help="Registry environment (defaults to REGISTRY_ENV or sandbox)",
    )
    publish.add_argument(
        "--organization-ctid",
        type=str,
        help="CTID of the organization to publish on behalf of "
        "(defaults to REGISTRY_ORGANIZATION_CTID)",
    )
    publish.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Log the graphs that would be published instead of submitting them",
    )
    publish.add_argument(
        "--vocabulary",
        type=Path,
        help="Path to a vocabulary file written by build-vocabulary",
    )

    vocabulary = subparsers.add_parser(
        "build-vocabulary",
        help="Download and merge the CTDL, CTDL-ASN and QData vocabularies",
    )
    vocabulary.add_argument(
        "--output",
        type=Path,
        help="Where to write the merged vocabulary (defaults to the data directory)",
    )

    return parser.parse_args(list(argv))


def _collect_urls(args: argparse.Namespace) -> list[str]:
    urls = [url.strip() for url in args.urls if url.strip()]
    if args.url_list:
        urls.extend(url.strip() for url in args.url_list.split(",") if url.strip())
    if not urls:
        raise ValueError("No URLs provided")
    return list(dict.fromkeys(urls))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(verbose=parsed_args.verbose, force=True)

    urls: list[str] = []
    registry: RegistryConfig | None = None
    try:
        if parsed_args.command == "publish":
            urls = _collect_urls(parsed_args)
            registry = get_registry_config(
                environment=parsed_args.env,
                organization_ctid=parsed_args.organization_ctid,
                dry_run=parsed_args.dry_run,
            )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "publish" and registry is not None:
            result = publish_urls(
                urls,
                registry=registry,
                vocabulary_path=parsed_args.vocabulary,
            )
            if result.failed:
                log.error("Publication halted after a failed submission")
                sys.exit(1)
        elif parsed_args.command == "build-vocabulary":
            build_vocabulary(parsed_args.output)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during publication")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
