# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for protoprobe."""

from .outcome import CapabilitySet, OutcomeKind, ProbeOutcome
from .protocol import PROTOCOL_PRIORITY, ProtocolId, is_downgraded
from .target import Target, coerce_target

__all__ = [
    "PROTOCOL_PRIORITY",
    "CapabilitySet",
    "OutcomeKind",
    "ProbeOutcome",
    "ProtocolId",
    "Target",
    "coerce_target",
    "is_downgraded",
]
