# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe target normalization."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from ..errors import InvalidTargetError

SECURE_SCHEME = "https://"
_INSECURE_SCHEME = "http://"


@dataclass(frozen=True)
class Target:
    """An origin URL that always carries the https scheme."""

    url: str

    @classmethod
    def parse(cls, raw: str | None) -> "Target":
        value = str(raw or "").strip()
        if not value:
            raise InvalidTargetError("empty target")

        lowered = value.lower()
        if lowered.startswith(SECURE_SCHEME):
            url = SECURE_SCHEME + value[len(SECURE_SCHEME) :]
        elif lowered.startswith(_INSECURE_SCHEME):
            url = SECURE_SCHEME + value[len(_INSECURE_SCHEME) :]
        else:
            url = SECURE_SCHEME + value

        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise InvalidTargetError(f"invalid target {raw!r}: {exc}") from exc
        if not parsed.host:
            raise InvalidTargetError(f"target {raw!r} has no host")
        return cls(url=url)

    def __str__(self) -> str:
        return self.url


def coerce_target(target: "Target | str") -> Target:
    if isinstance(target, Target):
        return target
    return Target.parse(target)


__all__ = ["SECURE_SCHEME", "Target", "coerce_target"]
