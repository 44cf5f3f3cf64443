# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""TLS helpers: ALPN-pinned contexts and peer certificate access."""

from __future__ import annotations

import ssl
from collections.abc import Iterable

import certifi
import httpx
from cryptography import x509

PEER_CERTIFICATES_EXTENSION = "peer_certificates"


class PinnedALPNContext(ssl.SSLContext):
    """
    SSLContext that advertises only its pinned ALPN protocols.

    httpcore calls ``set_alpn_protocols`` on the context it is given right
    before every handshake; the override keeps that call from widening the
    offer.
    """

    pinned_alpn: tuple[str, ...] = ()

    def set_alpn_protocols(self, alpn_protocols: Iterable[str]) -> None:
        super().set_alpn_protocols(list(self.pinned_alpn or alpn_protocols))


def pinned_ssl_context(alpn: str, *, verify: bool = True) -> PinnedALPNContext:
    """Build a client context whose ALPN offer is exactly ``[alpn]``."""
    context = PinnedALPNContext(ssl.PROTOCOL_TLS_CLIENT)
    context.load_verify_locations(cafile=certifi.where())
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    context.pinned_alpn = (alpn,)
    context.set_alpn_protocols([alpn])
    return context


def load_certificate(value: x509.Certificate | bytes) -> x509.Certificate:
    if isinstance(value, x509.Certificate):
        return value
    return x509.load_der_x509_certificate(bytes(value))


def peer_certificate_chain(response: httpx.Response) -> list[x509.Certificate]:
    """
    Return the peer certificate chain (leaf first) for a live response.

    HTTP/3 responses carry the chain in the ``peer_certificates`` extension.
    TCP responses expose the httpcore network stream, whose ``ssl_object``
    yields the unverified chain on Python 3.13+ and the leaf only before that.
    Must be called before the response is closed.
    """
    extensions = response.extensions or {}
    certificates = extensions.get(PEER_CERTIFICATES_EXTENSION)
    if certificates is not None:
        return [load_certificate(item) for item in certificates]

    stream = extensions.get("network_stream")
    if stream is None:
        return []
    ssl_object = stream.get_extra_info("ssl_object")
    if ssl_object is None:
        return []

    get_chain = getattr(ssl_object, "get_unverified_chain", None)
    if get_chain is not None:
        raw_chain = list(get_chain() or [])
    else:
        leaf = ssl_object.getpeercert(binary_form=True)
        raw_chain = [leaf] if leaf else []
    return [load_certificate(item) for item in raw_chain]


__all__ = [
    "PEER_CERTIFICATES_EXTENSION",
    "PinnedALPNContext",
    "load_certificate",
    "peer_certificate_chain",
    "pinned_ssl_context",
]
