"""
CLI entry point for DNS Hub.

Every subcommand runs one session action against the backend and prints
its result as JSON on stdout. Errors go to stderr with exit status 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from pydantic import BaseModel

from dns_hub.client import DnsApiClient
from dns_hub.config import ConfigValidationError, add_config_arguments, load_config
from dns_hub.exceptions import DnsHubError
from dns_hub.logging_config import setup_logging
from dns_hub.models import RecordDraft
from dns_hub.preferences import JsonPreferenceStore
from dns_hub.selection import SelectionState
from dns_hub.session import Session
from dns_hub.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

    from dns_hub.config import Config
    from dns_hub.session import ZoneView

    Handler = Callable[[Session, argparse.Namespace], Awaitable[Any]]


logger = logging.getLogger(__name__)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list | tuple):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False))  # noqa: T201


# ========== Subcommand handlers ==========


def _selection_summary(session: Session) -> dict[str, Any]:
    selection = session.selection
    return {
        "provider": selection.provider,
        "credential": selection.credential,
        "capabilities": selection.current_capabilities,
    }


async def cmd_providers(session: Session, args: argparse.Namespace) -> Any:
    registry = session.selection.registry
    directory = session.selection.directory
    return [
        {
            "type": config.type,
            "name": config.name,
            "credentials": directory.count_by_provider(config.type),
            "capabilities": registry.capabilities_of(config.type),
        }
        for config in registry.sorted_providers()
    ]


async def cmd_credentials(session: Session, args: argparse.Namespace) -> Any:
    directory = session.selection.directory
    if args.provider:
        return directory.list_by_provider(args.provider)
    return list(directory)


async def cmd_select_provider(session: Session, args: argparse.Namespace) -> Any:
    provider = None if args.provider.lower() == "none" else args.provider
    if provider is not None and provider not in session.selection.registry:
        msg = f"Unknown provider: {provider!r}"
        raise ValueError(msg)
    session.select_provider(provider)
    return _selection_summary(session)


async def cmd_select_credential(session: Session, args: argparse.Namespace) -> Any:
    session.select_credential(args.credential)
    return _selection_summary(session)


async def cmd_zones(session: Session, args: argparse.Namespace) -> Any:
    listing = await session.refresh_zones() if args.refresh else await session.list_zones()
    return {
        "zones": listing.zones,
        "total": listing.total,
        "truncated": listing.truncated,
    }


async def _open(session: Session, args: argparse.Namespace, *, full: bool) -> ZoneView:
    view = session.open_zone(args.zone_id, args.credential_id)
    if full:
        await view.refresh()
    return view


async def cmd_zone(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=False)
    zone = await view.fetch_zone()
    if zone is None:
        msg = f"Zone not found: {args.zone_id}"
        raise DnsHubError(msg)
    return zone


async def cmd_records(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=False)
    await view.fetch_records()
    if args.page_size is not None:
        session.set_page_size(args.page_size)
    if args.page is not None:
        records = view.page(args.page)
    else:
        records = view.records if args.all else view.visible_records()
    return {
        "records": records,
        "pageSize": session.page_size,
        "total": view.total,
        "truncated": view.truncated,
        "capabilities": view.hints,
    }


async def cmd_lines(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=True)
    return {
        "lines": view.lines,
        "lineGroups": view.line_groups(),
        "minTTL": view.min_ttl,
        "ttlOptions": view.ttl_options(),
    }


def _draft_from_args(args: argparse.Namespace) -> RecordDraft:
    return RecordDraft(
        type=args.type.upper() if args.type else None,
        name=args.name,
        content=args.content,
        ttl=args.ttl,
        proxied=args.proxied,
        priority=args.priority,
        weight=args.weight,
        line=args.line,
        remark=args.remark,
    )


async def cmd_add_record(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=True)
    draft = _draft_from_args(args)
    draft = draft.model_copy(
        update={
            "type": view.effective_record_type(draft.type),
            "ttl": view.effective_ttl(draft.ttl),
        },
    )
    return await view.create_record(draft)


async def cmd_update_record(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=True)
    draft = _draft_from_args(args)
    if draft.ttl is not None:
        draft = draft.model_copy(update={"ttl": view.effective_ttl(draft.ttl)})
    return await view.update_record(args.record_id, draft)


async def cmd_delete_record(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=False)
    await view.delete_record(args.record_id)
    return {"deleted": args.record_id}


async def cmd_set_status(session: Session, args: argparse.Namespace) -> Any:
    view = await _open(session, args, full=False)
    enabled = args.status == "enable"
    await view.set_record_status(args.record_id, enabled)
    return {"recordId": args.record_id, "enabled": enabled}


# ========== Parser ==========


def _add_zone_arguments(parser: argparse.ArgumentParser, *, record: bool = False) -> None:
    parser.add_argument("zone_id", help="Provider zone id")
    if record:
        parser.add_argument("record_id", help="Provider record id")
    parser.add_argument(
        "--credential-id",
        type=int,
        dest="credential_id",
        default=None,
        help="Owning credential (defaults to the selected credential)",
    )


def _add_draft_arguments(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--type", default=None, help="Record type (e.g. A, MX)")
    parser.add_argument("--name", required=required, default=None, help='Host record (e.g. "www", "@")')
    parser.add_argument("--content", required=required, default=None, help="Record value")
    parser.add_argument("--ttl", type=int, default=None, help="TTL in seconds")
    parser.add_argument("--priority", type=int, default=None, help="MX/SRV priority")
    parser.add_argument("--weight", type=int, default=None, help="Routing weight")
    parser.add_argument("--line", default=None, help="Line code")
    parser.add_argument("--remark", default=None, help="Free-text remark")
    parser.add_argument(
        "--proxied",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Cloudflare proxy flag",
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line parser.

    Returns
    -------
    argparse.ArgumentParser
        Parser with the configuration options and every subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="dns-hub",
        description="DNS Hub - manage DNS records across providers through one backend",
    )
    add_config_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    sub = subparsers.add_parser("providers", help="List providers and their capabilities")
    sub.set_defaults(handler=cmd_providers)

    sub = subparsers.add_parser("credentials", help="List configured credentials")
    sub.add_argument("--provider", default=None, help="Only this provider's credentials")
    sub.set_defaults(handler=cmd_credentials)

    sub = subparsers.add_parser("select-provider", help='Select a provider ("none" clears)')
    sub.add_argument("provider")
    sub.set_defaults(handler=cmd_select_provider)

    sub = subparsers.add_parser("select-credential", help='Select a credential id or "all"')
    sub.add_argument("credential")
    sub.set_defaults(handler=cmd_select_credential)

    sub = subparsers.add_parser("zones", help="List zones of the current selection")
    sub.add_argument("--refresh", action="store_true", help="Drop the backend's zone cache first")
    sub.set_defaults(handler=cmd_zones)

    sub = subparsers.add_parser("zone", help="Show one zone")
    _add_zone_arguments(sub)
    sub.set_defaults(handler=cmd_zone)

    sub = subparsers.add_parser("records", help="List records of a zone")
    _add_zone_arguments(sub)
    sub.add_argument("--all", action="store_true", help="Include apex NS records")
    sub.add_argument("--page", type=int, default=None, help="Only this 1-based table page")
    sub.add_argument(
        "--page-size",
        type=int,
        dest="page_size",
        default=None,
        help="Remember this table page size (at least 20)",
    )
    sub.set_defaults(handler=cmd_records)

    sub = subparsers.add_parser("lines", help="List lines and TTL choices of a zone")
    _add_zone_arguments(sub)
    sub.set_defaults(handler=cmd_lines)

    sub = subparsers.add_parser("add-record", help="Create a record")
    _add_zone_arguments(sub)
    _add_draft_arguments(sub, required=True)
    sub.set_defaults(handler=cmd_add_record)

    sub = subparsers.add_parser("update-record", help="Update a record")
    _add_zone_arguments(sub, record=True)
    _add_draft_arguments(sub, required=False)
    sub.set_defaults(handler=cmd_update_record)

    sub = subparsers.add_parser("delete-record", help="Delete a record")
    _add_zone_arguments(sub, record=True)
    sub.set_defaults(handler=cmd_delete_record)

    sub = subparsers.add_parser("set-status", help="Enable or disable a record")
    _add_zone_arguments(sub, record=True)
    sub.add_argument("status", choices=["enable", "disable"])
    sub.set_defaults(handler=cmd_set_status)

    return parser


def build_session(config: Config) -> Session:
    """Wire a session from configuration."""
    transport = HttpxTransport(
        config.backend.base_url,
        token=config.backend.token,
        timeout=config.backend.timeout,
    )
    client = DnsApiClient(
        transport,
        records_page_size=config.paging.records_page_size,
        zones_page_size=config.paging.zones_page_size,
        max_pages=config.paging.max_pages,
    )
    return Session(
        client,
        JsonPreferenceStore(config.preferences.path_as_path),
        default_page_size=config.preferences.page_size,
    )


async def run(args: argparse.Namespace, config: Config) -> Any:
    """
    Run one subcommand.

    Raises
    ------
    DnsHubError
        If the session cannot be loaded or the action fails.
    """
    handler: Handler = args.handler
    async with build_session(config) as session:
        if session.selection.state is SelectionState.ERROR:
            raise DnsHubError(session.selection.error or "Failed to load credentials")
        return await handler(session, args)


def main(argv: list[str] | None = None) -> None:
    """
    Run the DNS Hub command line.

    Parse command-line arguments, load configuration, run the subcommand
    and print its result.
    """
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.logging)

    try:
        result = asyncio.run(run(args, config))
    except (DnsHubError, ValueError) as e:
        logger.debug("Command %s failed.", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    _print_json(result)


if __name__ == "__main__":
    main()
