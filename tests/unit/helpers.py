# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import datetime

import httpx
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def build_certificate(common_name: str = "example.test", organizations=(), key=None) -> x509.Certificate:
    key = key or ec.generate_private_key(ec.SECP256R1())
    attributes = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    attributes.extend(x509.NameAttribute(NameOID.ORGANIZATION_NAME, org) for org in organizations)
    name = x509.Name(attributes)
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )


def write_certificate_files(directory, common_name: str = "localhost", organizations=()):
    """Write a self-signed certificate and its key as PEM files; return their paths."""
    key = ec.generate_private_key(ec.SECP256R1())
    certificate = build_certificate(common_name, organizations, key=key)
    certfile = directory / "cert.pem"
    keyfile = directory / "key.pem"
    certfile.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
    keyfile.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return str(certfile), str(keyfile)


class ScriptedOrigin:
    """
    Transport factory that answers each protocol from a script.

    Script values are either an ``httpx.Response`` factory or an exception
    instance to raise from the transport.
    """

    def __init__(self, script):
        self.script = dict(script)
        self.built = []
        self.requests = []

    def __call__(self, protocol, settings):  # noqa: ARG002
        self.built.append(protocol)
        action = self.script[protocol]

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append((protocol, request))
            if isinstance(action, BaseException):
                raise action
            return action()

        return httpx.MockTransport(handler)


def html_response(body: str = "<html><head><title>Example Domain</title></head></html>", *, version=b"HTTP/1.1", status=200, certificates=None):
    def factory() -> httpx.Response:
        extensions = {"http_version": version}
        if certificates is not None:
            extensions["peer_certificates"] = list(certificates)
        return httpx.Response(status, content=body.encode("utf-8"), extensions=extensions)

    return factory


ALPN_REJECTED = "[SSL: TLSV1_ALERT_NO_APPLICATION_PROTOCOL] tlsv1 alert no application protocol (_ssl.c:1000)"
