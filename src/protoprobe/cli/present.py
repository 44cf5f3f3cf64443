# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Terminal and JSON rendering of probe outcomes."""

from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console
from rich.text import Text

from ..models import CapabilitySet, OutcomeKind, ProbeOutcome


def _console(console: Console | None) -> Console:
    return console or Console(highlight=False)


def describe_protocol(outcome: ProbeOutcome) -> str:
    """Descriptive label of the negotiated protocol, annotated on downgrade."""
    if outcome.negotiated is None:
        return outcome.requested.label
    label = outcome.negotiated.label
    if outcome.downgraded:
        label += f" (Downgraded from {outcome.requested.short_name})"
    return label


def format_outcome(outcome: ProbeOutcome) -> Text:
    url = outcome.url
    if outcome.kind == OutcomeKind.SUCCESS:
        return Text.assemble(
            (url, "red"),
            ": ",
            (describe_protocol(outcome), "yellow"),
            " ",
            ("[" + " -> ".join(outcome.organizations) + "]", "green"),
            " ",
            (f"[{outcome.status_code}]", "cyan"),
            " ",
            (f"[{outcome.title or ''}]", "magenta"),
        )
    if outcome.kind == OutcomeKind.UNSUPPORTED:
        return Text(f"{url}: Protocol {outcome.requested.short_name} is not available for {url}", style="red")
    if outcome.kind == OutcomeKind.TIMED_OUT:
        return Text(f"{url}: Protocol {outcome.requested.short_name} timed out for {url}", style="red")
    return Text(
        f"Error fetching details for protocol {outcome.requested.short_name}: {outcome.error_message}",
        style="bold red",
    )


def format_summary(capabilities: CapabilitySet) -> Text:
    supported = ", ".join(protocol.short_name for protocol in capabilities.protocols) or "none"
    return Text.assemble(("Supported protocols: ", "bold"), (supported, "yellow"))


def render_outcomes(outcomes: list[ProbeOutcome], console: Console | None = None) -> None:
    out = _console(console)
    for outcome in outcomes:
        out.print(format_outcome(outcome), soft_wrap=True)


def render_capabilities(capabilities: CapabilitySet, console: Console | None = None) -> None:
    out = _console(console)
    render_outcomes(list(capabilities.outcomes), out)
    out.print(format_summary(capabilities), soft_wrap=True)


def print_json(data: Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


__all__ = [
    "describe_protocol",
    "format_outcome",
    "format_summary",
    "print_json",
    "render_capabilities",
    "render_outcomes",
]
