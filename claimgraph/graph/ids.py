"""Node and edge id generators.

Every function that creates a node or edge takes an ``ids`` callable
(``prefix -> str``). The default is random and safe across processes;
``SequentialIds`` gives reproducible ids for tests and replays.
"""

from __future__ import annotations

import itertools
import uuid
from typing import Callable

IdGenerator = Callable[[str], str]


def uuid_ids(prefix: str) -> str:
    """Return ``<prefix>_<uuid4 hex>``."""
    return f"{prefix}_{uuid.uuid4().hex}"


class SequentialIds:
    """Deterministic ``<prefix>_<n>`` ids from one counter owned by the caller."""

    def __init__(self, start: int = 1, namespace: str = ""):
        self._counter = itertools.count(start)
        self.namespace = namespace

    def __call__(self, prefix: str) -> str:
        n = next(self._counter)
        if self.namespace:
            return f"{self.namespace}:{prefix}_{n}"
        return f"{prefix}_{n}"
