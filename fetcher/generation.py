"""
Request generations: every report computation is tagged with a monotonically
increasing number, and a result is only accepted while its generation is the
latest one started.
"""

import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestGenerations:
    def __init__(self):
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def next(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, generation: int) -> bool:
        return generation == self._latest


class ReportSession(Generic[T]):
    """Holds the last accepted result of one kind of report."""

    def __init__(self):
        self.generations = RequestGenerations()
        self.result: Optional[T] = None

    async def run(self, compute: Callable[[int], Awaitable[T]]) -> Optional[T]:
        """
        Starts a new generation and awaits `compute(generation)`. Returns None and
        keeps the previous result when a newer generation started meanwhile.
        """
        generation = self.generations.next()
        result = await compute(generation)
        if not self.generations.is_current(generation):
            logger.debug("Discarding stale result of generation %s (latest %s)",
                         generation, self.generations.latest)
            return None
        self.result = result
        return result
