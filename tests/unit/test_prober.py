# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import httpx
from helpers import ALPN_REJECTED, ScriptedOrigin, build_certificate, html_response

from protoprobe.errors import ErrorCategory
from protoprobe.models import OutcomeKind, ProtocolId, Target
from protoprobe.probe.prober import ProtocolProber, classify_failure


def _probe(prober, target, protocol):
    return asyncio.run(prober.probe(target, protocol))


def test_success_reports_status_title_and_organizations(settings):
    chain = [build_certificate(organizations=["Acme Corp"]), build_certificate()]
    origin = ScriptedOrigin({ProtocolId.HTTP2: html_response(version=b"HTTP/2", certificates=chain)})
    prober = ProtocolProber(settings, transport_factory=origin)

    outcome = _probe(prober, "example.com", ProtocolId.HTTP2)

    assert outcome.kind == OutcomeKind.SUCCESS
    assert outcome.requested == ProtocolId.HTTP2
    assert outcome.negotiated == ProtocolId.HTTP2
    assert outcome.downgraded is False
    assert outcome.status_code == 200
    assert outcome.title == "Example Domain"
    assert outcome.organizations == ("Acme Corp",)
    assert outcome.url == "https://example.com"
    assert origin.built == [ProtocolId.HTTP2]


def test_request_is_a_single_get_with_user_agent(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP1_1: html_response()})
    prober = ProtocolProber(settings, transport_factory=origin)

    _probe(prober, Target.parse("example.com/start"), ProtocolId.HTTP1_1)

    assert len(origin.requests) == 1
    _, request = origin.requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://example.com/start"
    assert request.headers["User-Agent"] == "protoprobe-tests/1.0"


def test_redirects_are_not_followed(settings):
    def redirect():
        return httpx.Response(301, headers={"Location": "https://www.example.com/"}, extensions={"http_version": b"HTTP/1.1"})

    origin = ScriptedOrigin({ProtocolId.HTTP1_1: redirect})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP1_1)

    assert outcome.ok
    assert outcome.status_code == 301
    assert outcome.title is None
    assert len(origin.requests) == 1


def test_intermediary_downgrade_is_detected(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP2: html_response(version=b"HTTP/1.1")})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP2)

    assert outcome.kind == OutcomeKind.SUCCESS
    assert outcome.requested == ProtocolId.HTTP2
    assert outcome.negotiated == ProtocolId.HTTP1_1
    assert outcome.downgraded is True


def test_alpn_rejection_is_unsupported(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP2: httpx.ConnectError(ALPN_REJECTED)})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP2)

    assert outcome.kind == OutcomeKind.UNSUPPORTED
    assert outcome.error_category == ErrorCategory.ALPN_MISMATCH
    assert outcome.title is None
    assert outcome.organizations == ()


def test_idle_timeout_is_timed_out(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP3: httpx.ConnectTimeout("timeout: no recent network activity")})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP3)

    assert outcome.kind == OutcomeKind.TIMED_OUT
    assert outcome.error_category == ErrorCategory.TIMEOUT


def test_other_failure_keeps_detail(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP1_1: httpx.ConnectError("[Errno 111] Connection refused")})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP1_1)

    assert outcome.kind == OutcomeKind.OTHER_FAILURE
    assert outcome.error_message == "[Errno 111] Connection refused"
    assert outcome.error_type == "ConnectError"
    assert outcome.error_category == ErrorCategory.CONNECTION_ERROR


def test_unknown_reported_protocol_is_other_failure(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP2: html_response(version=b"SPDY/3")})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP2)

    assert outcome.kind == OutcomeKind.OTHER_FAILURE
    assert outcome.error_category == ErrorCategory.PROTOCOL_ERROR
    assert "SPDY/3" in outcome.error_message


def test_missing_title_is_success_with_absent_title(settings):
    origin = ScriptedOrigin({ProtocolId.HTTP1_1: html_response("<html><body>no title</body></html>")})
    outcome = _probe(ProtocolProber(settings, transport_factory=origin), "example.com", ProtocolId.HTTP1_1)

    assert outcome.kind == OutcomeKind.SUCCESS
    assert outcome.title is None


class TrackingStream(httpx.AsyncByteStream):
    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


def test_body_read_error_is_other_failure_and_body_is_closed(settings):
    stream = TrackingStream([b"<html><head>"], error=httpx.ReadError("connection reset"))

    def factory(protocol, _settings):  # noqa: ARG001
        return httpx.MockTransport(
            lambda request: httpx.Response(200, stream=stream, extensions={"http_version": b"HTTP/1.1"})
        )

    outcome = _probe(ProtocolProber(settings, transport_factory=factory), "example.com", ProtocolId.HTTP1_1)

    assert outcome.kind == OutcomeKind.OTHER_FAILURE
    assert outcome.error_type == "ReadError"
    assert outcome.title is None
    assert stream.closed is True


def test_body_is_closed_after_early_title(settings):
    stream = TrackingStream([b"<title>Fast</title>", b"<p>never read</p>"])

    def factory(protocol, _settings):  # noqa: ARG001
        return httpx.MockTransport(
            lambda request: httpx.Response(200, stream=stream, extensions={"http_version": b"HTTP/1.1"})
        )

    outcome = _probe(ProtocolProber(settings, transport_factory=factory), "example.com", ProtocolId.HTTP1_1)

    assert outcome.title == "Fast"
    assert stream.closed is True


def test_classify_failure_kinds():
    assert classify_failure(httpx.ConnectError(ALPN_REJECTED)) == OutcomeKind.UNSUPPORTED
    assert classify_failure(httpx.ReadTimeout("read timed out")) == OutcomeKind.TIMED_OUT
    assert classify_failure(RuntimeError("timeout: no recent network activity")) == OutcomeKind.TIMED_OUT
    assert classify_failure(ValueError("boom")) == OutcomeKind.OTHER_FAILURE
