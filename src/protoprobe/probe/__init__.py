# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probing engine: title and certificate extraction, probes, aggregation."""

from .aggregate import CapabilityAggregator
from .certs import certificate_organizations, organization_names
from .prober import ProtocolProber, classify_failure
from .title import TitleScanner, aextract_title, extract_title

__all__ = [
    "CapabilityAggregator",
    "ProtocolProber",
    "TitleScanner",
    "aextract_title",
    "certificate_organizations",
    "classify_failure",
    "extract_title",
    "organization_names",
]
