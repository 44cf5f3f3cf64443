# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe outcome and capability aggregate models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from ..errors import ErrorCategory
from .protocol import ProtocolId, is_downgraded


class OutcomeKind(str, Enum):
    SUCCESS = "SUCCESS"
    UNSUPPORTED = "UNSUPPORTED"
    TIMED_OUT = "TIMED_OUT"
    OTHER_FAILURE = "OTHER_FAILURE"

    @classmethod
    def from_category(cls, category: ErrorCategory) -> "OutcomeKind":
        """Collapse a diagnostic error category into a probe outcome kind."""
        if category == ErrorCategory.ALPN_MISMATCH:
            return cls.UNSUPPORTED
        if category == ErrorCategory.TIMEOUT:
            return cls.TIMED_OUT
        return cls.OTHER_FAILURE


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe against one protocol."""

    requested: ProtocolId
    kind: OutcomeKind
    url: str = ""
    negotiated: ProtocolId | None = None
    status_code: int | None = None
    title: str | None = None
    organizations: tuple[str, ...] = ()
    error_message: str | None = None
    error_type: str | None = None
    error_category: ErrorCategory | None = None

    def __post_init__(self) -> None:
        if self.kind == OutcomeKind.SUCCESS:
            if self.negotiated is None:
                raise ValueError("successful outcome requires a negotiated protocol")
            return
        if self.title is not None or self.organizations or self.negotiated is not None or self.status_code is not None:
            raise ValueError(f"{self.kind.value} outcome cannot carry response details")

    @classmethod
    def success(
        cls,
        requested: ProtocolId,
        negotiated: ProtocolId,
        *,
        url: str = "",
        status_code: int | None = None,
        title: str | None = None,
        organizations: tuple[str, ...] | list[str] = (),
    ) -> "ProbeOutcome":
        return cls(
            requested=requested,
            kind=OutcomeKind.SUCCESS,
            url=url,
            negotiated=negotiated,
            status_code=status_code,
            title=title,
            organizations=tuple(organizations),
        )

    @classmethod
    def failure(
        cls,
        requested: ProtocolId,
        kind: OutcomeKind,
        *,
        url: str = "",
        error_message: str | None = None,
        error_type: str | None = None,
        error_category: ErrorCategory | None = None,
    ) -> "ProbeOutcome":
        if kind == OutcomeKind.SUCCESS:
            raise ValueError("failure() requires a non-success kind")
        return cls(
            requested=requested,
            kind=kind,
            url=url,
            error_message=error_message,
            error_type=error_type,
            error_category=error_category,
        )

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def downgraded(self) -> bool:
        if self.negotiated is None:
            return False
        return is_downgraded(self.requested, self.negotiated)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requested": self.requested.value,
            "kind": self.kind.value,
            "url": self.url,
            "negotiated": self.negotiated.value if self.negotiated else None,
            "downgraded": self.downgraded,
            "status_code": self.status_code,
            "title": self.title,
            "organizations": list(self.organizations),
            "error_message": self.error_message,
            "error_type": self.error_type,
            "error_category": self.error_category.value if self.error_category else None,
        }


@dataclass(frozen=True)
class CapabilitySet:
    """Protocols confirmed for a target across one probing session."""

    target: str
    protocols: tuple[ProtocolId, ...] = ()
    organizations: tuple[str, ...] = ()
    outcomes: tuple[ProbeOutcome, ...] = field(default_factory=tuple)

    def fold(self, outcome: ProbeOutcome) -> "CapabilitySet":
        """
        Return a new set that accounts for ``outcome``.

        Successful probes add their negotiated protocol (not the requested one).
        Organization names are taken from the first outcome that has any and are
        never replaced afterwards. Failures are only recorded in ``outcomes``.
        """
        protocols = self.protocols
        organizations = self.organizations
        if outcome.ok and outcome.negotiated is not None:
            if outcome.negotiated not in protocols:
                protocols = protocols + (outcome.negotiated,)
            if not organizations and outcome.organizations:
                organizations = outcome.organizations
        return replace(
            self,
            protocols=protocols,
            organizations=organizations,
            outcomes=self.outcomes + (outcome,),
        )

    def supports(self, protocol: ProtocolId) -> bool:
        return protocol in self.protocols

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "protocols": [protocol.value for protocol in self.protocols],
            "organizations": list(self.organizations),
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


__all__ = ["CapabilitySet", "OutcomeKind", "ProbeOutcome"]
