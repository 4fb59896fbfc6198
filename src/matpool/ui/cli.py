from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from matpool.adapters.import_rows import load_rows
from matpool.app import open_pool
from matpool.config import ConfigurationError, configure_logging, get_pool_config
from matpool.domain.errors import MaterialError
from matpool.domain.model import MaterialStatus, Role
from matpool.domain.queries import MaterialQuery, MaterialSort

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from matpool.app import ListingPage, MaterialPool

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Claim, list and import pooled materials")
    subparsers = parser.add_subparsers(dest="command", required=True)

    claim = subparsers.add_parser("claim", help="Claim one idle material")
    claim.add_argument("--material-id", type=int, required=True, help="Material to claim")
    claim.add_argument("--user-id", type=int, required=True, help="Claiming user id")

    import_ = subparsers.add_parser("import", help="Bulk-import materials from a JSON file")
    import_.add_argument("file", type=Path, help="JSON array of material rows")
    import_.add_argument("--user-id", type=int, required=True, help="Administrator user id")

    listing = subparsers.add_parser("list", help="List materials visible to a user")
    listing.add_argument("--user-id", type=int, required=True, help="Viewing user id")
    listing.add_argument("--category", type=str, help="Substring of the category")
    listing.add_argument("--identifier", type=str, help="Substring of the identifier")
    listing.add_argument(
        "--status",
        type=str,
        help="Exact status: idle or in_use",
    )
    listing.add_argument("--holder", type=str, help="Substring of the holder username")
    listing.add_argument("--holder-name", type=str, help="Substring of the holder display name")
    listing.add_argument(
        "--from",
        dest="used_from",
        type=str,
        help="ISO-8601 timestamp (UTC); only materials claimed at or after it",
    )
    listing.add_argument(
        "--to",
        dest="used_to",
        type=str,
        help="ISO-8601 timestamp (UTC); only materials claimed at or before it",
    )
    listing.add_argument(
        "--sort",
        choices=[sort.value for sort in MaterialSort],
        default=MaterialSort.CREATED_AT.value,
        help="Newest first by creation or by claim time",
    )
    listing.add_argument("--page", type=int, default=1, help="1-based page number")
    listing.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Items per page (defaults to config)",
    )

    categories = subparsers.add_parser("categories", help="List distinct categories")
    categories.add_argument("--status", type=str, help="Restrict to idle or in_use materials")

    user = subparsers.add_parser("user", help="User management commands")
    user_sub = user.add_subparsers(dest="user_command", required=True)
    user_create = user_sub.add_parser("create", help="Create a user")
    user_create.add_argument("--username", type=str, required=True, help="Login name")
    user_create.add_argument("--display-name", type=str, help="Optional display name")
    user_create.add_argument(
        "--admin",
        action="store_true",
        help="Grant the administrator role",
    )

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _parse_status(value: str | None) -> MaterialStatus | None:
    return MaterialStatus.parse(value) if value else None


def _build_query(args: argparse.Namespace) -> MaterialQuery:
    return MaterialQuery(
        category=args.category,
        identifier=args.identifier,
        status=_parse_status(args.status),
        holder=args.holder,
        holder_display_name=args.holder_name,
        used_from=_parse_iso_datetime(args.used_from) if args.used_from else None,
        used_to=_parse_iso_datetime(args.used_to) if args.used_to else None,
        sort=MaterialSort(args.sort),
        page=args.page,
        page_size=args.page_size or get_pool_config().page_size,
    )


def _format_page(page: ListingPage) -> str:
    lines = [f"page {page.page}/{max(page.total_pages, 1)} ({page.total} total)"]
    for view in page.items:
        holder = view.holder_display_name or view.holder or "-"
        claimed = view.claimed_at.isoformat() if view.claimed_at else "-"
        lines.append(
            f"{view.id}\t{view.category}\t{view.identifier}\t{view.status}\t{holder}\t{claimed}"
        )
    return "\n".join(lines)


def _run(pool: MaterialPool, args: argparse.Namespace, query: MaterialQuery | None) -> None:
    if args.command == "claim":
        result = pool.claim(args.material_id, user_id=args.user_id)
        log.info("Claimed material %s", result.material_id)
        sys.stdout.write(f"{result.identifier}\n")
    elif args.command == "import":
        summary = pool.import_rows(load_rows(args.file), user_id=args.user_id)
        sys.stdout.write(f"{summary.message()}\n")
    elif args.command == "list":
        page = pool.list_materials(query, user_id=args.user_id)
        sys.stdout.write(f"{_format_page(page)}\n")
    elif args.command == "categories":
        for category in pool.categories(_parse_status(args.status)):
            sys.stdout.write(f"{category}\n")
    elif args.command == "user" and args.user_command == "create":
        user = pool.create_user(
            args.username,
            display_name=args.display_name,
            role=Role.ADMIN if args.admin else Role.USER,
        )
        log.info("Created user %s", user.id)
        sys.stdout.write(f"{user.id}\n")
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    query: MaterialQuery | None = None
    try:
        configure_logging()
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "list":
            query = _build_query(parsed_args)
        elif parsed_args.command == "categories":
            _parse_status(parsed_args.status)
    except (ValueError, MaterialError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        with open_pool() as pool:
            _run(pool, parsed_args, query)
    except MaterialError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
