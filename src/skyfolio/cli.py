"""skyfolio command line.

    skyfolio list locations
    skyfolio list sessions --location-id 7
    skyfolio objects Galaxy
    skyfolio submit answers.yaml

Exit codes: 0 success, 1 blocked step or failed request, 2 configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import httpx

from skyfolio import __version__
from skyfolio.catalog import CelestialCatalog
from skyfolio.core.auth import AuthContext, credentials_from_config
from skyfolio.core.config import ConfigResolver
from skyfolio.core.errors import ConfigError, SkyfolioError, WizardError
from skyfolio.core.events import EventBus
from skyfolio.core.log_bus import LogFileSink
from skyfolio.core.logging import apply_logging_level, get_logger, set_colors
from skyfolio.core.transport import ApiClient
from skyfolio.linking.gear import GearLinkStore
from skyfolio.linking.schema import LOCATION, SESSION
from skyfolio.linking.store import EntityLinkStore, LinkableEntity
from skyfolio.wizard.builder import build_observation_wizard
from skyfolio.wizard.definition import load_definition
from skyfolio.wizard.notifications import Notification, NotificationLog
from skyfolio.wizard.runner import load_answers, run_answers

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skyfolio", description="Observation upload wizard")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # Verbosity
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    verbosity.add_argument("-d", "--debug", action="store_true", help="Debug output (everything)")

    # Config
    parser.add_argument("--config", type=Path, help="User config file path")
    parser.add_argument("--base-url", help="API root, e.g. http://localhost:5000/api")
    parser.add_argument("--token", help="Bearer token (overrides api.token_file)")
    parser.add_argument("--wizard", type=Path, help="Wizard definition YAML file")
    parser.add_argument("--log-file", type=Path, help="Append log lines to this file")

    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List your locations, sessions or gear")
    list_cmd.add_argument("kind", choices=["locations", "sessions", "gear"])
    list_cmd.add_argument("--location-id", help="Only sessions at this location")

    objects_cmd = sub.add_parser("objects", help="List known celestial objects of a type")
    objects_cmd.add_argument("object_type", choices=CelestialCatalog.object_types())

    submit_cmd = sub.add_parser("submit", help="Run the wizard from an answers file")
    submit_cmd.add_argument("answers", type=Path, help="Answers YAML file")

    return parser


def cli_args_from(args: argparse.Namespace) -> dict[str, Any]:
    """Nest parsed flags the way ConfigResolver expects them."""
    cli_args: dict[str, Any] = {}

    level = None
    if args.quiet:
        level = "quiet"
    elif args.verbose:
        level = "verbose"
    elif args.debug:
        level = "debug"
    if level:
        cli_args.setdefault("logging", {})["level"] = level

    if args.base_url:
        cli_args.setdefault("api", {})["base_url"] = args.base_url
    if args.token:
        cli_args.setdefault("api", {})["token"] = args.token
    if args.wizard:
        cli_args.setdefault("wizard", {})["definition"] = str(args.wizard)
    if args.log_file:
        cli_args.setdefault("logging", {})["file"] = str(args.log_file)

    return cli_args


def _describe(entity: LinkableEntity) -> str:
    fields = ", ".join(f"{k}={v}" for k, v in entity.fields.items() if v not in (None, ""))
    return f"{entity.id}\t{fields}"


def _print_notification(item: Notification) -> None:
    stream = sys.stderr if item.severity in ("error", "warning") else sys.stdout
    print(f"[{item.severity}] {item.message}", file=stream)


async def _cmd_list(api: ApiClient, args: argparse.Namespace) -> int:
    auth = AuthContext(api)
    if args.kind == "gear":
        store: EntityLinkStore = GearLinkStore(api, auth)
    else:
        store = EntityLinkStore(LOCATION if args.kind == "locations" else SESSION, api, auth)

    filters = {"location_id": args.location_id} if args.location_id else None
    result = await store.list(filters)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return EXIT_FAILED

    for entity in store.entities:
        print(_describe(entity))
    if not store.entities:
        log.info(f"No {args.kind} found")
    return EXIT_OK


async def _cmd_objects(api: ApiClient, args: argparse.Namespace) -> int:
    names = await CelestialCatalog(api).objects_for(args.object_type)
    for name in names:
        print(name)
    return EXIT_OK


async def _cmd_submit(api: ApiClient, resolver: ConfigResolver, args: argparse.Namespace) -> int:
    answers = load_answers(args.answers)

    definitions = None
    definition_path = resolver.get("wizard.definition")
    if definition_path:
        definitions = load_definition(Path(str(definition_path)).expanduser())

    bus = EventBus()
    NotificationLog(bus, on_notify=_print_notification)
    wizard = build_observation_wizard(
        api,
        definitions=definitions,
        bus=bus,
        upload_path=str(resolver.get("api.upload_path", "/upload-image")),
    )

    outcome = await run_answers(wizard, answers, base_dir=args.answers.resolve().parent)
    if outcome.blocked_at is not None:
        log.verbose(f"stopped at step {outcome.blocked_at.value}")
    return EXIT_OK if outcome.success else EXIT_FAILED


async def _run(
    args: argparse.Namespace, resolver: ConfigResolver, client: httpx.AsyncClient | None
) -> int:
    api = ApiClient(resolver.resolve_base_url(), credentials_from_config(resolver), client)
    try:
        if args.command == "list":
            return await _cmd_list(api, args)
        if args.command == "objects":
            return await _cmd_objects(api, args)
        return await _cmd_submit(api, resolver, args)
    finally:
        if client is None:
            await api.aclose()


def main(argv: list[str] | None = None, *, client: httpx.AsyncClient | None = None) -> int:
    """Run the CLI.

    Args:
        argv: Arguments without the program name (sys.argv[1:] when None)
        client: Preconfigured httpx client; the caller keeps ownership

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    resolver = ConfigResolver(cli_args=cli_args_from(args), user_config_path=args.config)

    try:
        apply_logging_level(resolver.resolve_logging_level())
        set_colors(resolver.resolve_bool("logging.color"))
        log_file = resolver.get("logging.file")
        if not log_file:
            return asyncio.run(_run(args, resolver, client))
        with LogFileSink(Path(str(log_file)).expanduser()):
            return asyncio.run(_run(args, resolver, client))
    except (ConfigError, WizardError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except SkyfolioError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
