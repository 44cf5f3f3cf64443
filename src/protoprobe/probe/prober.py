# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single-protocol probe."""

from __future__ import annotations

import logging

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..errors import categorize_exception, error_category_to_reason
from ..http.tls import peer_certificate_chain
from ..http.transport import TransportFactory, build_transport
from ..models import OutcomeKind, ProbeOutcome, ProtocolId, Target, coerce_target
from .certs import organization_names
from .title import aextract_title

logger = logging.getLogger(__name__)


def classify_failure(exc: BaseException) -> OutcomeKind:
    """Map a probe failure onto Unsupported, TimedOut or OtherFailure."""
    return OutcomeKind.from_category(categorize_exception(exc))


class ProtocolProber:
    """Issues one GET over a transport pinned to the requested protocol."""

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.transport_factory = transport_factory or build_transport

    async def probe(self, target: Target | str, requested: ProtocolId) -> ProbeOutcome:
        url = coerce_target(target).url
        try:
            outcome = await self._fetch(url, requested)
        except Exception as exc:  # noqa: BLE001
            category = categorize_exception(exc)
            outcome = ProbeOutcome.failure(
                requested,
                OutcomeKind.from_category(category),
                url=url,
                error_message=str(exc) or error_category_to_reason(category),
                error_type=type(exc).__name__,
                error_category=category,
            )
            logger.debug(
                "Probe %s over %s failed: %s (%s: %s)",
                url,
                requested.value,
                outcome.kind.value,
                category.value,
                exc,
            )
            return outcome

        logger.debug(
            "Probe %s over %s negotiated %s with status %s",
            url,
            requested.value,
            outcome.negotiated.value if outcome.negotiated else None,
            outcome.status_code,
        )
        return outcome

    async def _fetch(self, url: str, requested: ProtocolId) -> ProbeOutcome:
        transport = self.transport_factory(requested, self.settings)
        async with httpx.AsyncClient(
            transport=transport,
            timeout=self.settings.timeout,
            follow_redirects=False,
            headers={"User-Agent": self.settings.user_agent},
        ) as client:
            async with client.stream("GET", url) as response:
                negotiated = ProtocolId.from_http_version(response.http_version)
                organizations = organization_names(peer_certificate_chain(response))
                title = await aextract_title(response.aiter_bytes(), max_bytes=self.settings.max_body_bytes)
                return ProbeOutcome.success(
                    requested,
                    negotiated,
                    url=url,
                    status_code=response.status_code,
                    title=title,
                    organizations=organizations,
                )


__all__ = ["ProtocolProber", "classify_failure"]
