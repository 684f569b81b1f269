"""Command line entry point for the Alpaca API walkthrough."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from walkthrough.core.config import ConfigurationError, ModeAndCredentialResolver
from walkthrough.core.secrets import environment_snapshot, redact
from walkthrough.core.settings import AppSettings, load_settings, parse_symbols
from walkthrough.execution import client_factory
from walkthrough.execution.broker_client import BrokerClient
from walkthrough.utils.events import bind_log_context, log_event
from walkthrough.utils.logger import new_run_id, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def render_response(payload: Any) -> str:
    """Pretty-print an SDK response for humans."""
    try:
        return json.dumps(_to_plain(payload), indent=2, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(payload)


def _to_plain(payload: Any) -> Any:
    if hasattr(payload, "model_dump"):
        return payload.model_dump()
    if isinstance(payload, dict):
        return {str(key): _to_plain(value) for key, value in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_to_plain(item) for item in payload]
    return payload


def run_walkthrough(client: BrokerClient, settings: AppSettings) -> None:
    """Exercise the account, create-watchlist and list-watchlists endpoints in order."""
    watchlist = settings.watchlist
    log_event("walkthrough_started", mode=client.mode, watchlist=watchlist.name, symbols=watchlist.symbols)

    account = client.get_account()
    logger.info("Auth response:\n %s", render_response(account))

    # Result intentionally unused; only the follow-up listing is reported.
    client.create_watchlist(watchlist.name, watchlist.symbols)

    watchlists = client.get_watchlists()
    logger.info("Watchlist response:\n %s", render_response(watchlists))

    log_event("walkthrough_completed", mode=client.mode)
    logger.info("Done!")


def cmd_walkthrough(args: argparse.Namespace, settings: AppSettings, env: Mapping[str, str]) -> int:
    mode, credential = ModeAndCredentialResolver(env).resolve()
    bind_log_context(mode=mode.value)
    client = client_factory.build_trading_client(mode, credential)
    run_walkthrough(client, settings)
    return EXIT_OK


def cmd_check_config(args: argparse.Namespace, settings: AppSettings, env: Mapping[str, str]) -> int:
    mode, credential = ModeAndCredentialResolver(env).resolve()
    bind_log_context(mode=mode.value)
    log_event(
        "config_resolved",
        mode=mode.value,
        endpoint=credential.endpoint,
        key_id=redact(credential.id, visible=4),
        watchlist=settings.watchlist.name,
        symbols=settings.watchlist.symbols,
        log_dir=str(settings.logging.log_dir),
    )
    logger.info("Configuration OK for mode %s", mode.value)
    return EXIT_OK


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default="config.yaml", help="Optional YAML settings file (default: config.yaml)")
    common.add_argument("--log-format", choices=("text", "json"), help="Override the configured log format")
    common.add_argument("--log-level", help="Override the configured log level, e.g. DEBUG")
    return common


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Alpaca trading API walkthrough")
    subparsers = parser.add_subparsers(dest="command", required=True)
    common = _common_options()

    walkthrough = subparsers.add_parser(
        "walkthrough",
        parents=[common],
        help="Fetch the account, create a watchlist and list watchlists",
    )
    walkthrough.add_argument("--watchlist-name", help="Name of the watchlist to create")
    walkthrough.add_argument("--symbols", help="Comma-separated symbols for the watchlist, e.g. AAPL,SPHD,DIV")
    walkthrough.set_defaults(func=cmd_walkthrough)

    check = subparsers.add_parser(
        "check-config",
        parents=[common],
        help="Resolve mode and credentials without calling the API",
    )
    check.set_defaults(func=cmd_check_config)
    return parser


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    watchlist: Dict[str, Any] = {}
    logging_section: Dict[str, Any] = {}
    if getattr(args, "watchlist_name", None):
        watchlist["name"] = args.watchlist_name
    if getattr(args, "symbols", None):
        watchlist["symbols"] = parse_symbols(args.symbols)
    if args.log_format:
        logging_section["format"] = args.log_format
    if args.log_level:
        logging_section["level"] = args.log_level
    if watchlist:
        overrides["watchlist"] = watchlist
    if logging_section:
        overrides["logging"] = logging_section
    return overrides


def main(argv: Optional[Sequence[str]] = None, *, base_dir: Optional[Path] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    env = environment_snapshot()
    try:
        settings = load_settings(args.config, base_dir=base_dir, cli_overrides=_cli_overrides(args), env=env)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    run_id = new_run_id(args.command)
    setup_logging(settings.logging, run_type=args.command, run_id=run_id)
    bind_log_context(run_id=run_id)
    try:
        return args.func(args, settings, env)
    except ConfigurationError as exc:
        log_event("config_invalid", error=str(exc), error_type=type(exc).__name__)
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR


__all__ = ["build_parser", "main", "render_response", "run_walkthrough"]
