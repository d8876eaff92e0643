"""Canonical form for endpoint strings."""

from __future__ import annotations

from typing import Iterable

DEFAULT_SCHEME = "http://"
KNOWN_SCHEMES = ("http://", "https://")


def normalize(raw: str) -> str:
    """Trim ``raw`` and make sure it carries an explicit scheme.

    Blank input yields ``""``; callers drop it. Host and port are not
    validated, a malformed endpoint is passed through and fails later.
    """

    text = raw.strip()
    if not text:
        return ""
    if not text.startswith(KNOWN_SCHEMES):
        return DEFAULT_SCHEME + text
    return text


def normalize_lines(lines: Iterable[str]) -> dict[str, None]:
    """Return the de-duplicated normalized urls, keeping first-seen order."""

    desired: dict[str, None] = {}
    for line in lines:
        url = normalize(line)
        if url:
            desired.setdefault(url, None)
    return desired


__all__ = ["DEFAULT_SCHEME", "normalize", "normalize_lines"]
