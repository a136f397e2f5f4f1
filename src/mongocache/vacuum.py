"""Probabilistic storage compaction after cache mutations."""

import logging
import random
from typing import Callable

logger = logging.getLogger(__name__)


class AutomaticVacuum:
    """Runs a compaction callable on a random subset of mutations.

    The factor tunes how often compaction happens:

    - 0: never
    - 1: after every mutation
    - N > 1: randomly, about once every N mutations

    Compaction is best effort. Any error it raises is logged and discarded so
    the mutation that triggered it keeps its own result.

    Examples:
        >>> calls = []
        >>> vacuum = AutomaticVacuum(1, lambda: calls.append(1))
        >>> vacuum.maybe_run()
        True
        >>> len(calls)
        1
    """

    def __init__(self, factor: int, compact: Callable[[], None]):
        if factor < 0:
            raise ValueError(f"Vacuum factor must be >= 0, got {factor}")
        self.factor = factor
        self._compact = compact

    @property
    def enabled(self) -> bool:
        return self.factor > 0

    def should_run(self) -> bool:
        """Draw a ticket in [1, factor]; compaction runs when it is 1."""
        if not self.enabled:
            return False
        return random.randint(1, self.factor) == 1

    def maybe_run(self) -> bool:
        """Compact if this mutation drew the winning ticket.

        Returns:
            True if compaction was attempted
        """
        if not self.should_run():
            return False

        logger.info("Running automatic cache vacuum")
        try:
            self._compact()
        except Exception as e:
            logger.warning(f"Automatic cache vacuum failed: {e}")
        return True
