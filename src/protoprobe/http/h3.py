# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""aioquic-backed httpx transport that speaks HTTP/3 only."""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

import httpx
from aioquic.asyncio.client import connect
from aioquic.asyncio.protocol import QuicConnectionProtocol
from aioquic.h3.connection import H3_ALPN, H3Connection
from aioquic.h3.events import DataReceived, H3Event, HeadersReceived
from aioquic.quic.configuration import QuicConfiguration
from aioquic.quic.events import ConnectionTerminated, QuicEvent
from aioquic.quic.packet import QuicErrorCode

from ..config import ProbeSettings, load_probe_settings
from .tls import PEER_CERTIFICATES_EXTENSION

logger = logging.getLogger(__name__)

# TLS alert 120 (no_application_protocol) carried as a QUIC crypto error.
NO_APPLICATION_PROTOCOL = QuicErrorCode.CRYPTO_ERROR + 120
IDLE_TIMEOUT_MESSAGE = "timeout: no recent network activity"

_SKIPPED_REQUEST_HEADERS = {b"host", b"connection", b"keep-alive", b"transfer-encoding", b"upgrade", b"proxy-connection"}

StreamEvent = H3Event | ConnectionTerminated


class _H3ClientProtocol(QuicConnectionProtocol):
    """QUIC protocol that routes HTTP/3 events to per-stream queues."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._http = H3Connection(self._quic)
        self._streams: dict[int, asyncio.Queue[StreamEvent]] = {}
        self.terminated: ConnectionTerminated | None = None

    def open_request(self, request: httpx.Request) -> asyncio.Queue[StreamEvent]:
        stream_id = self._quic.get_next_available_stream_id()
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self._streams[stream_id] = queue

        headers = [
            (b":method", request.method.encode("ascii")),
            (b":scheme", request.url.raw_scheme),
            (b":authority", request.url.netloc),
            (b":path", request.url.raw_path),
        ]
        headers.extend(
            (name.lower(), value) for name, value in request.headers.raw if name.lower() not in _SKIPPED_REQUEST_HEADERS
        )
        self._http.send_headers(stream_id=stream_id, headers=headers, end_stream=True)
        self.transmit()
        return queue

    def peer_certificates(self) -> list[Any]:
        tls = getattr(self._quic, "tls", None)
        leaf = getattr(tls, "_peer_certificate", None)
        if leaf is None:
            return []
        return [leaf, *getattr(tls, "_peer_certificate_chain", [])]

    def quic_event_received(self, event: QuicEvent) -> None:
        if isinstance(event, ConnectionTerminated):
            self.terminated = event
            for queue in self._streams.values():
                queue.put_nowait(event)
            return
        for h3_event in self._http.handle_event(event):
            queue = self._streams.get(getattr(h3_event, "stream_id", -1))
            if queue is not None:
                queue.put_nowait(h3_event)


def _termination_error(event: ConnectionTerminated | None, request: httpx.Request) -> httpx.TransportError:
    if event is None:
        return httpx.ConnectError("QUIC handshake failed", request=request)
    reason = event.reason_phrase or ""
    if event.error_code == NO_APPLICATION_PROTOCOL:
        return httpx.ConnectError(f"no application protocol: {reason or 'h3 rejected'}", request=request)
    if "idle timeout" in reason.lower():
        return httpx.ConnectTimeout(IDLE_TIMEOUT_MESSAGE, request=request)
    return httpx.ConnectError(f"QUIC connection closed: {reason or 'no reason'} (0x{event.error_code:x})", request=request)


class _H3ResponseStream(httpx.AsyncByteStream):
    def __init__(
        self,
        queue: asyncio.Queue[StreamEvent],
        stack: AsyncExitStack,
        *,
        request: httpx.Request,
        timeout: float,
        ended: bool,
    ) -> None:
        self._queue = queue
        self._stack = stack
        self._request = request
        self._timeout = timeout
        self._ended = ended

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while not self._ended:
            event = await _next_event(self._queue, self._request, self._timeout)
            if isinstance(event, ConnectionTerminated):
                raise httpx.ReadError(f"QUIC connection closed mid-body: {event.reason_phrase}", request=self._request)
            if isinstance(event, DataReceived):
                self._ended = event.stream_ended
                if event.data:
                    yield event.data
            elif isinstance(event, HeadersReceived):
                # trailers
                self._ended = event.stream_ended

    async def aclose(self) -> None:
        await self._stack.aclose()


async def _next_event(queue: asyncio.Queue[StreamEvent], request: httpx.Request, timeout: float) -> StreamEvent:
    try:
        return await asyncio.wait_for(queue.get(), timeout)
    except asyncio.TimeoutError:
        raise httpx.ReadTimeout(IDLE_TIMEOUT_MESSAGE, request=request) from None


class Http3Transport(httpx.AsyncBaseTransport):
    """One QUIC connection per request; the connection closes with the response."""

    def __init__(self, settings: ProbeSettings | None = None):
        self.settings = settings or load_probe_settings()

    def build_configuration(self, host: str) -> QuicConfiguration:
        configuration = QuicConfiguration(
            is_client=True,
            alpn_protocols=H3_ALPN,
            idle_timeout=self.settings.timeout,
            server_name=host,
        )
        configuration.verify_mode = ssl.CERT_REQUIRED if self.settings.verify_ssl else ssl.CERT_NONE
        return configuration

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        port = request.url.port or 443
        timeout = self.settings.timeout
        created: list[_H3ClientProtocol] = []

        def create_protocol(*args: Any, **kwargs: Any) -> _H3ClientProtocol:
            protocol = _H3ClientProtocol(*args, **kwargs)
            created.append(protocol)
            return protocol

        stack = AsyncExitStack()
        try:
            protocol = await asyncio.wait_for(
                stack.enter_async_context(
                    connect(host, port, configuration=self.build_configuration(host), create_protocol=create_protocol)
                ),
                timeout,
            )
        except asyncio.TimeoutError:
            await stack.aclose()
            raise httpx.ConnectTimeout(IDLE_TIMEOUT_MESSAGE, request=request) from None
        except ConnectionError as exc:
            await stack.aclose()
            terminated = created[0].terminated if created else None
            raise _termination_error(terminated, request) from exc
        except OSError as exc:
            await stack.aclose()
            raise httpx.ConnectError(str(exc) or type(exc).__name__, request=request) from exc

        logger.debug("QUIC connection established to %s:%s", host, port)
        try:
            queue = protocol.open_request(request)
            while True:
                event = await _next_event(queue, request, timeout)
                if isinstance(event, ConnectionTerminated):
                    raise _termination_error(event, request)
                if isinstance(event, HeadersReceived):
                    break
        except BaseException:
            await stack.aclose()
            raise

        status_code = 0
        headers: list[tuple[bytes, bytes]] = []
        for name, value in event.headers:
            if name == b":status":
                status_code = int(value)
            elif not name.startswith(b":"):
                headers.append((name, value))

        return httpx.Response(
            status_code=status_code,
            headers=headers,
            stream=_H3ResponseStream(queue, stack, request=request, timeout=timeout, ended=event.stream_ended),
            extensions={
                "http_version": b"HTTP/3",
                PEER_CERTIFICATES_EXTENSION: protocol.peer_certificates(),
            },
        )


__all__ = ["Http3Transport", "IDLE_TIMEOUT_MESSAGE", "NO_APPLICATION_PROTOCOL"]
