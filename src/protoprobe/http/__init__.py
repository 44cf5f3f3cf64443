# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP transport exports."""

from .h3 import Http3Transport
from .tls import PinnedALPNContext, peer_certificate_chain, pinned_ssl_context
from .transport import TransportFactory, build_transport

__all__ = [
    "Http3Transport",
    "PinnedALPNContext",
    "TransportFactory",
    "build_transport",
    "peer_certificate_chain",
    "pinned_ssl_context",
]
