# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level synchronous facade over the async probing engine."""

from __future__ import annotations

import asyncio

from .config import ProbeSettings, load_probe_settings
from .http.transport import TransportFactory
from .models import CapabilitySet, ProbeOutcome, ProtocolId, Target, coerce_target
from .probe.aggregate import CapabilityAggregator
from .probe.prober import ProtocolProber


class ProtoProbe:
    """
    Convenience wrapper that wires one prober into the aggregator.

    Each call runs its probes sequentially on a fresh event loop, so callers
    never deal with asyncio. Probes own their connections; nothing is shared
    between calls.
    """

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        *,
        transport_factory: TransportFactory | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.prober = ProtocolProber(self.settings, transport_factory=transport_factory)
        self.aggregator = CapabilityAggregator(self.prober)

    def probe(self, target: Target | str, protocol: ProtocolId) -> ProbeOutcome:
        return asyncio.run(self.prober.probe(coerce_target(target), protocol))

    def probe_all(self, target: Target | str) -> list[ProbeOutcome]:
        return asyncio.run(self.aggregator.probe_all(coerce_target(target)))

    def aggregate(self, target: Target | str) -> CapabilitySet:
        return asyncio.run(self.aggregator.aggregate(coerce_target(target)))

    def fetch_best(self, target: Target | str) -> ProbeOutcome:
        return asyncio.run(self.aggregator.fetch_best(coerce_target(target)))
