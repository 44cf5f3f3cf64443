# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Protocol-pinned transport factory."""

from __future__ import annotations

import logging
import ssl
from collections.abc import Callable, Iterable
from typing import Any

import httpcore
import httpx

from ..config import ProbeSettings, load_probe_settings
from ..models import ProtocolId
from .h3 import Http3Transport
from .tls import pinned_ssl_context

logger = logging.getLogger(__name__)

TransportFactory = Callable[[ProtocolId, ProbeSettings], httpx.AsyncBaseTransport]


def alpn_accepted(expected: str, selected: str | None) -> bool:
    """
    Whether the protocol selected during the handshake matches the pinned one.

    A server that does not speak ALPN at all selects nothing, which means
    HTTP/1.1, so ``None`` is only acceptable for an http/1.1 pin.
    """
    if selected is None:
        return expected == ProtocolId.HTTP1_1.value
    return selected == expected


class _ALPNCheckedStream(httpcore.AsyncNetworkStream):
    """TCP stream whose TLS upgrade fails unless the pinned ALPN was selected."""

    def __init__(self, stream: httpcore.AsyncNetworkStream, expected: str):
        self._stream = stream
        self._expected = expected

    async def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        return await self._stream.read(max_bytes, timeout=timeout)

    async def write(self, buffer: bytes, timeout: float | None = None) -> None:
        await self._stream.write(buffer, timeout=timeout)

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.AsyncNetworkStream:
        tls_stream = await self._stream.start_tls(ssl_context, server_hostname=server_hostname, timeout=timeout)
        ssl_object = tls_stream.get_extra_info("ssl_object")
        selected = ssl_object.selected_alpn_protocol() if ssl_object is not None else None
        if not alpn_accepted(self._expected, selected):
            await tls_stream.aclose()
            logger.debug("Server %s selected ALPN %r instead of %r", server_hostname, selected, self._expected)
            raise httpcore.ConnectError(f"unexpected ALPN protocol {selected!r}; want {self._expected!r}")
        return tls_stream

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


class PinnedALPNBackend(httpcore.AsyncNetworkBackend):
    """httpcore network backend that checks the negotiated ALPN of every TLS stream."""

    def __init__(self, expected: str, backend: httpcore.AsyncNetworkBackend | None = None):
        self.expected = expected
        self._backend = backend or httpcore.AnyIOBackend()

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        stream = await self._backend.connect_tcp(
            host,
            port,
            timeout=timeout,
            local_address=local_address,
            socket_options=socket_options,
        )
        return _ALPNCheckedStream(stream, self.expected)

    async def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        stream = await self._backend.connect_unix_socket(path, timeout=timeout, socket_options=socket_options)
        return _ALPNCheckedStream(stream, self.expected)

    async def sleep(self, seconds: float) -> None:
        await self._backend.sleep(seconds)


class PinnedHTTPTransport(httpx.AsyncHTTPTransport):
    """
    TCP transport that can speak exactly one of HTTP/2 or HTTP/1.1.

    The ALPN offer carries a single token and the handshake is rejected with
    an "unexpected ALPN protocol" connect error when the server selects
    anything else, so there is no silent fallback between the two.
    """

    def __init__(self, protocol: ProtocolId, settings: ProbeSettings):
        if protocol == ProtocolId.HTTP3:
            raise ValueError("HTTP/3 is not carried over TCP")
        self.protocol = protocol
        http2 = protocol == ProtocolId.HTTP2
        ssl_context = pinned_ssl_context(protocol.value, verify=settings.verify_ssl)
        super().__init__(verify=ssl_context, http1=not http2, http2=http2, retries=0)
        self._pool = httpcore.AsyncConnectionPool(
            ssl_context=ssl_context,
            http1=not http2,
            http2=http2,
            retries=0,
            network_backend=PinnedALPNBackend(protocol.value),
        )


def build_transport(protocol: ProtocolId, settings: ProbeSettings | None = None) -> httpx.AsyncBaseTransport:
    """
    Build a transport that can only negotiate ``protocol``.

    QUIC implies h3, so the HTTP/3 transport needs no extra pinning.
    """
    settings = settings or load_probe_settings()
    if protocol == ProtocolId.HTTP3:
        return Http3Transport(settings)
    return PinnedHTTPTransport(protocol, settings)


__all__ = ["PinnedALPNBackend", "PinnedHTTPTransport", "TransportFactory", "alpn_accepted", "build_transport"]
