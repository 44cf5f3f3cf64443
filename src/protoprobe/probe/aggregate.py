# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Capability aggregation over the protocol priority list."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..errors import ProbeFailedError
from ..models import PROTOCOL_PRIORITY, CapabilitySet, ProbeOutcome, ProtocolId, Target, coerce_target
from .prober import ProtocolProber

logger = logging.getLogger(__name__)


class CapabilityAggregator:
    """Runs one probe per protocol, newest first, and folds the outcomes."""

    def __init__(
        self,
        prober: ProtocolProber | None = None,
        protocols: Iterable[ProtocolId] = PROTOCOL_PRIORITY,
    ):
        self.prober = prober or ProtocolProber()
        self.protocols = tuple(protocols)

    async def probe_all(self, target: Target | str) -> list[ProbeOutcome]:
        """Probe every protocol; failures are reported, never raised."""
        resolved = coerce_target(target)
        outcomes = []
        for protocol in self.protocols:
            outcomes.append(await self.prober.probe(resolved, protocol))
        return outcomes

    async def aggregate(self, target: Target | str) -> CapabilitySet:
        resolved = coerce_target(target)
        capabilities = CapabilitySet(target=resolved.url)
        for outcome in await self.probe_all(resolved):
            capabilities = capabilities.fold(outcome)
        logger.info(
            "Capabilities for %s: %s",
            resolved.url,
            ", ".join(protocol.short_name for protocol in capabilities.protocols) or "none",
        )
        return capabilities

    async def fetch_best(self, target: Target | str) -> ProbeOutcome:
        """Return the first successful probe in priority order."""
        resolved = coerce_target(target)
        for protocol in self.protocols:
            outcome = await self.prober.probe(resolved, protocol)
            if outcome.ok:
                return outcome
        raise ProbeFailedError("failed to connect with any protocol")


__all__ = ["CapabilityAggregator"]
