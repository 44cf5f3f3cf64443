# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from cryptography.hazmat.primitives.serialization import Encoding

from protoprobe.probe.certs import certificate_organizations, organization_names


def test_chain_with_one_organization(make_certificate):
    chain = [make_certificate(organizations=["Acme Corp"]), make_certificate()]
    assert organization_names(chain) == ["Acme Corp"]


def test_multiple_organizations_join_per_certificate(make_certificate):
    chain = [
        make_certificate("leaf.test", ["Example Inc", "Example Holdings"]),
        make_certificate("intermediate.test", ["Let's Encrypt"]),
    ]
    assert organization_names(chain) == ["Example Inc, Example Holdings", "Let's Encrypt"]


def test_empty_chain_and_none():
    assert organization_names([]) == []
    assert organization_names(None) == []


def test_chain_without_organizations(make_certificate):
    assert organization_names([make_certificate(), make_certificate()]) == []


def test_der_bytes_are_accepted(make_certificate):
    der = make_certificate(organizations=["DER Org"]).public_bytes(Encoding.DER)
    assert certificate_organizations(der) == ["DER Org"]
    assert organization_names([der]) == ["DER Org"]
