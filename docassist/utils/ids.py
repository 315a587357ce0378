"""Time-prefixed identifiers for conversations and escalation tickets."""

from __future__ import annotations

import secrets
import string
import time

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def make_timestamped_id(prefix: str, suffix_length: int = 5) -> str:
    """Return ``<prefix>-<epoch ms>-<random suffix>``, e.g. ``conv-1718031234567-k3x9a``.

    Uniqueness is probabilistic: two ids minted in the same millisecond
    collide only if their suffixes match (1 in 36**5).
    """
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}-{millis}-{suffix}"
