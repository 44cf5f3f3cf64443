# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""protoprobe CLI."""

from __future__ import annotations

import argparse
import logging

from rich.console import Console

from ..config import ProbeSettings, load_probe_settings
from ..errors import InvalidTargetError, ProbeFailedError
from ..log import setup_logging
from ..models import ProtocolId, Target
from ..runtime import ProtoProbe
from ..version import __version__
from .present import print_json, render_capabilities, render_outcomes

logger = logging.getLogger(__name__)

PROMPT = "Enter the website URL: "
EXIT_PROMPT = "Press [ENTER] to exit..."


def _protocol_arg(value: str) -> ProtocolId:
    try:
        return ProtocolId.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protoprobe",
        description="Probe which HTTP protocols (HTTP/3, HTTP/2, HTTP/1.1) an origin serves",
    )
    parser.add_argument("url", nargs="?", help="Target host or URL (https:// is assumed); prompted when omitted")
    parser.add_argument(
        "--protocol",
        type=_protocol_arg,
        help="Probe a single protocol (h3, h2, http/1.1) instead of all three",
    )
    parser.add_argument(
        "--best",
        action="store_true",
        help="Report only the best protocol that works; fails when none does",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly lines",
    )
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    parser.add_argument("--timeout", type=float, help="Per-probe timeout in seconds")
    parser.add_argument("--log-level", help="Logging level (default: PROTOPROBE_LOG_LEVEL or WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _read_target(url: str | None) -> str | None:
    if url:
        return url
    try:
        return input(PROMPT)
    except (EOFError, OSError) as exc:
        logger.error("Error reading input: %s", exc or type(exc).__name__)
        return None


def _wait_for_exit() -> None:
    # launched without arguments (e.g. double-clicked): keep the window open
    print(EXIT_PROMPT)
    try:
        input()
    except EOFError:
        pass


def _settings_from_args(args: argparse.Namespace) -> ProbeSettings:
    settings = load_probe_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False
    if args.timeout is not None and args.timeout > 0:
        settings.timeout = args.timeout
    return settings


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    interactive = args.url is None
    raw_target = _read_target(args.url)
    if raw_target is None:
        return 1
    try:
        target = Target.parse(raw_target)
    except InvalidTargetError as exc:
        logger.error("Invalid target: %s", exc)
        return 1

    console = Console(highlight=False)
    if not args.json:
        Console(stderr=True, highlight=False).print(f"HTTP Probe v{__version__}")

    prober = ProtoProbe(_settings_from_args(args))
    exit_code = 0
    if args.best:
        try:
            outcome = prober.fetch_best(target)
        except ProbeFailedError as exc:
            logger.error("%s: %s", target.url, exc)
            exit_code = 1
        else:
            if args.json:
                print_json(outcome)
            else:
                render_outcomes([outcome], console)
    elif args.protocol is not None:
        outcome = prober.probe(target, args.protocol)
        if args.json:
            print_json(outcome)
        else:
            render_outcomes([outcome], console)
    else:
        capabilities = prober.aggregate(target)
        if args.json:
            print_json(capabilities)
        else:
            render_capabilities(capabilities, console)

    if interactive and not args.json:
        _wait_for_exit()
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
