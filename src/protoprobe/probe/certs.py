# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Organization names from a TLS peer certificate chain."""

from __future__ import annotations

from collections.abc import Iterable

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..http.tls import load_certificate


def certificate_organizations(certificate: x509.Certificate | bytes) -> list[str]:
    cert = load_certificate(certificate)
    values = []
    for attribute in cert.subject.get_attributes_for_oid(NameOID.ORGANIZATION_NAME):
        value = attribute.value
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if value:
            values.append(value)
    return values


def organization_names(chain: Iterable[x509.Certificate | bytes] | None) -> list[str]:
    """One entry per certificate that declares an organization, joined with ", "."""
    names: list[str] = []
    for certificate in chain or ():
        organizations = certificate_organizations(certificate)
        if organizations:
            names.append(", ".join(organizations))
    return names


__all__ = ["certificate_organizations", "organization_names"]
