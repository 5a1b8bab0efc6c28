from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from catalogsync.app import build_orchestrator, refresh_unity_catalog
from catalogsync.config import ConfigurationError, configure_logging, get_sync_config
from catalogsync.config.sync import parse_direction

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catalogsync.domain.reconciliation import SynchronizationOrchestrator

log = logging.getLogger(__name__)

_ACTIVE: list[SynchronizationOrchestrator] = []


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile Unity Catalog with the metadata graph"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh = subparsers.add_parser("refresh", help="Run one full reconciliation cycle")
    refresh.add_argument(
        "--endpoint",
        type=str,
        help="Unity Catalog server URL (defaults to UNITY_CATALOG_URL)",
    )
    refresh.add_argument(
        "--direction",
        type=str,
        help="from_third_party, to_third_party or both_directions (defaults to config)",
    )
    refresh.add_argument(
        "--include",
        action="append",
        default=None,
        help="Catalogue only this name or dotted prefix; repeatable",
    )
    refresh.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Skip this name or dotted prefix; repeatable",
    )
    refresh.add_argument(
        "--allow-remote-delete",
        action="store_true",
        help="Delete remote entities whose correlated element was removed",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        config = get_sync_config()
        if parsed_args.direction is not None:
            config = replace(config, direction=parse_direction(parsed_args.direction))
        if parsed_args.include is not None:
            config = replace(config, include=tuple(parsed_args.include))
        if parsed_args.exclude is not None:
            config = replace(config, exclude=tuple(parsed_args.exclude))
        if parsed_args.allow_remote_delete:
            config = replace(config, allow_remote_delete=True)
    except ConfigurationError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "refresh":
            orchestrator = build_orchestrator(sync_config=config, endpoint=parsed_args.endpoint)
            _ACTIVE.append(orchestrator)
            result = refresh_unity_catalog(orchestrator=orchestrator)
            if result.failed_kinds or result.failures:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during refresh")
        sys.exit(1)
    finally:
        _ACTIVE.clear()


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Cancel a running refresh at the next kind boundary; exit otherwise."""
    if _ACTIVE and _ACTIVE[-1].refresh_in_progress:
        log.info("Cancelling refresh (Ctrl+C again to abort)")
        _ACTIVE[-1].cancel()
        signal(SIGINT, _abort_handler)
        return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def _abort_handler(_signal_received: int, _frame: FrameType | None) -> None:
    log.info("Closed by user (Ctrl+C)")
    sys.exit(130)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
