# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
protoprobe package entrypoint.

This package probes an origin over HTTP/3, HTTP/2 and HTTP/1.1 with
ALPN-pinned transports, reports which protocols actually answer, flags
downgrades introduced by intermediaries, and extracts the certificate
organizations and page title seen over each protocol.
"""

from .config import ProbeSettings, load_probe_settings
from .errors import ErrorCategory, InvalidTargetError, ProbeFailedError, UnknownProtocolError
from .http import build_transport
from .log import setup_logging
from .models import (
    PROTOCOL_PRIORITY,
    CapabilitySet,
    OutcomeKind,
    ProbeOutcome,
    ProtocolId,
    Target,
    is_downgraded,
)
from .probe import CapabilityAggregator, ProtocolProber, extract_title, organization_names
from .runtime import ProtoProbe
from .version import __version__

__all__ = [
    "PROTOCOL_PRIORITY",
    "CapabilityAggregator",
    "CapabilitySet",
    "ErrorCategory",
    "InvalidTargetError",
    "OutcomeKind",
    "ProbeFailedError",
    "ProbeOutcome",
    "ProbeSettings",
    "ProtoProbe",
    "ProtocolId",
    "ProtocolProber",
    "Target",
    "UnknownProtocolError",
    "__version__",
    "build_transport",
    "extract_title",
    "is_downgraded",
    "load_probe_settings",
    "organization_names",
    "setup_logging",
]
