"""GenerationGate: one song job per user, and only with credits left."""

from contextlib import contextmanager
from typing import Callable, Iterator

from ..errors import AlreadyGenerating, QuotaExhausted
from ..logging_config import get_logger

logger = get_logger(__name__)


class GenerationGate:
    """Per-user lock set guarded by a credit check.

    acquire() contains no await, so under asyncio the check-and-insert runs
    as one step: two concurrent turns for the same user can never both pass.
    Different users never block each other.
    """

    def __init__(self, credits_of: Callable[[str], int]):
        self._credits_of = credits_of
        self._generating: set[str] = set()

    def acquire(self, user_id: str) -> None:
        """Enter the lock set or raise.

        Raises:
            AlreadyGenerating: a job for this user is in flight.
            QuotaExhausted: the user has no credits.
        """
        if user_id in self._generating:
            raise AlreadyGenerating(f"Generation already running for {user_id}")
        if self._credits_of(user_id) <= 0:
            raise QuotaExhausted(f"No credits left for {user_id}")

        self._generating.add(user_id)
        logger.debug("Generation lock acquired", extra={"user_id": user_id})

    def try_acquire(self, user_id: str) -> bool:
        """Non-blocking acquire. False if locked or out of credits."""
        try:
            self.acquire(user_id)
        except (AlreadyGenerating, QuotaExhausted):
            return False
        return True

    def release(self, user_id: str) -> None:
        """Leave the lock set. Unconditional."""
        self._generating.discard(user_id)
        logger.debug("Generation lock released", extra={"user_id": user_id})

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        """Acquire for the duration of the block, releasing on every exit."""
        self.acquire(user_id)
        try:
            yield
        finally:
            self.release(user_id)

    def is_generating(self, user_id: str) -> bool:
        return user_id in self._generating

    @property
    def active(self) -> frozenset[str]:
        return frozenset(self._generating)
