"""Object identifier generation for the manifest graph."""

from __future__ import annotations

import logging
import random
import string
from typing import Callable, Optional, Set

logger = logging.getLogger("l10nsync.graph.ids")

ID_ALPHABET = string.digits + string.ascii_uppercase
ID_LENGTH = 24


class IdGenerator:
    """Produce object IDs that are unique within one graph.

    Each character is a uniform random choice from ``ID_ALPHABET``. A
    candidate already used by the graph, or already handed out by this
    generator, is discarded and drawn again.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        length: int = ID_LENGTH,
        max_attempts: int = 64,
    ) -> None:
        self._rng = rng or random.SystemRandom()
        self._length = length
        self._max_attempts = max_attempts
        self._issued: Set[str] = set()

    def _candidate(self) -> str:
        return "".join(self._rng.choice(ID_ALPHABET) for _ in range(self._length))

    def new_id(self, in_use: Callable[[str], bool]) -> str:
        """Return a fresh ID for which ``in_use`` is false.

        Args:
            in_use: Predicate telling whether an ID is already taken.

        Returns:
            str: The new identifier.

        Raises:
            RuntimeError: If no free ID was found within ``max_attempts``.
        """
        for attempt in range(self._max_attempts):
            candidate = self._candidate()
            if candidate in self._issued or in_use(candidate):
                logger.debug("ID collision on attempt %d: %s", attempt + 1, candidate)
                continue
            self._issued.add(candidate)
            return candidate
        raise RuntimeError(
            f"Could not generate a unique object ID after {self._max_attempts} attempts"
        )
