# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Application protocol identifiers and downgrade detection."""

from __future__ import annotations

from enum import Enum

from ..errors import UnknownProtocolError


class ProtocolId(str, Enum):
    """Closed set of probed HTTP protocols, valued by their ALPN token."""

    HTTP3 = "h3"
    HTTP2 = "h2"
    HTTP1_1 = "http/1.1"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def short_name(self) -> str:
        return _SHORT_NAMES[self]

    @classmethod
    def from_http_version(cls, value: str | None) -> "ProtocolId":
        """Map a response's reported protocol onto the enum; unknown values are rejected."""
        key = str(value or "").strip().upper()
        try:
            return _HTTP_VERSIONS[key]
        except KeyError:
            raise UnknownProtocolError(f"unrecognized response protocol {value!r}") from None

    @classmethod
    def parse(cls, value: str) -> "ProtocolId":
        key = str(value or "").strip().lower()
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown protocol {value!r}") from None

    def __str__(self) -> str:
        return self.value


_LABELS = {
    ProtocolId.HTTP3: "HTTP/3 (QUIC)",
    ProtocolId.HTTP2: "HTTP/2 (TCP MULTIPLEXING)",
    ProtocolId.HTTP1_1: "HTTP/1.1 (TRADITIONAL)",
}

_SHORT_NAMES = {
    ProtocolId.HTTP3: "HTTP/3",
    ProtocolId.HTTP2: "HTTP/2",
    ProtocolId.HTTP1_1: "HTTP/1.1",
}

# HTTP/1.0 responses arrive over an http/1.1 ALPN session.
_HTTP_VERSIONS = {
    "HTTP/3": ProtocolId.HTTP3,
    "HTTP/2": ProtocolId.HTTP2,
    "HTTP/2.0": ProtocolId.HTTP2,
    "HTTP/1.1": ProtocolId.HTTP1_1,
    "HTTP/1.0": ProtocolId.HTTP1_1,
}

_ALIASES = {
    "h3": ProtocolId.HTTP3,
    "http3": ProtocolId.HTTP3,
    "http/3": ProtocolId.HTTP3,
    "3": ProtocolId.HTTP3,
    "h2": ProtocolId.HTTP2,
    "http2": ProtocolId.HTTP2,
    "http/2": ProtocolId.HTTP2,
    "2": ProtocolId.HTTP2,
    "http/1.1": ProtocolId.HTTP1_1,
    "http1.1": ProtocolId.HTTP1_1,
    "h1": ProtocolId.HTTP1_1,
    "1.1": ProtocolId.HTTP1_1,
}

# Newest first: the first success reflects the origin's best protocol.
PROTOCOL_PRIORITY: tuple[ProtocolId, ...] = (
    ProtocolId.HTTP3,
    ProtocolId.HTTP2,
    ProtocolId.HTTP1_1,
)


def is_downgraded(requested: ProtocolId, negotiated: ProtocolId) -> bool:
    """Return True when the negotiated protocol differs from the requested one."""
    return requested != negotiated


__all__ = ["PROTOCOL_PRIORITY", "ProtocolId", "is_downgraded"]
