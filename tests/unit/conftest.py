# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest
from helpers import build_certificate

from protoprobe.config import ProbeSettings


@pytest.fixture
def make_certificate():
    return build_certificate


@pytest.fixture
def settings():
    return ProbeSettings(timeout=1.0, user_agent="protoprobe-tests/1.0", max_body_bytes=64 * 1024)
