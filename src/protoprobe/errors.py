# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from collections.abc import Iterator
from enum import Enum

import httpx


class ProtoProbeError(Exception):
    """Base class for protoprobe errors."""


class InvalidTargetError(ProtoProbeError, ValueError):
    """Raised when a target string cannot be turned into an https origin."""


class UnknownProtocolError(ProtoProbeError):
    """Raised when a response reports a protocol outside the probed set."""


class ProbeFailedError(ProtoProbeError):
    """Raised when no protocol could fetch the target."""


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    ALPN_MISMATCH = "ALPN_MISMATCH"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


ALPN_MISMATCH_MARKERS = (
    "unexpected alpn protocol",
    "no application protocol",
    "no_application_protocol",
)
IDLE_TIMEOUT_MARKERS = (
    "no recent network activity",
    "idle timeout",
)
_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _chain_message(exc: BaseException) -> str:
    return " | ".join(str(item) for item in _exception_chain(exc)).lower()


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map transport exceptions to ErrorCategory.

    ALPN rejections surface as TLS alerts wrapped in connect errors, so the
    message text of the whole cause chain is inspected before the type.
    """
    message = _chain_message(exc)
    chain = list(_exception_chain(exc))

    if any(marker in message for marker in ALPN_MISMATCH_MARKERS):
        return ErrorCategory.ALPN_MISMATCH

    if any(marker in message for marker in IDLE_TIMEOUT_MARKERS):
        return ErrorCategory.TIMEOUT
    if any(isinstance(item, (httpx.TimeoutException, TimeoutError)) for item in chain):
        return ErrorCategory.TIMEOUT

    if any(isinstance(item, (UnknownProtocolError, httpx.ProtocolError)) for item in chain):
        return ErrorCategory.PROTOCOL_ERROR

    if any(isinstance(item, (ssl.SSLError, ssl.CertificateError)) for item in chain) or "[ssl" in message:
        return ErrorCategory.SSL_ERROR

    if any(isinstance(item, (socket.gaierror, socket.herror)) for item in chain):
        return ErrorCategory.DNS_ERROR
    if any(marker in message for marker in _DNS_MARKERS):
        return ErrorCategory.DNS_ERROR

    if any(isinstance(item, (httpx.NetworkError, httpx.ProxyError, ConnectionError)) for item in chain):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "No recent network activity",
        ErrorCategory.ALPN_MISMATCH: "Protocol rejected during ALPN negotiation",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.PROTOCOL_ERROR: "Unexpected protocol behavior",
        ErrorCategory.UNKNOWN_ERROR: "Network error during probe",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Probe failed due to network error")


__all__ = [
    "ALPN_MISMATCH_MARKERS",
    "IDLE_TIMEOUT_MARKERS",
    "ErrorCategory",
    "InvalidTargetError",
    "ProbeFailedError",
    "ProtoProbeError",
    "UnknownProtocolError",
    "categorize_exception",
    "error_category_to_reason",
]
