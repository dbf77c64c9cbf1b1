"""Domain service: Supply Resolver.

Supply is read from the candidate directory on every call and never cached,
so availability always reflects the directory's current flags.
"""

from __future__ import annotations

import logging

from tms.domain.exceptions import UpstreamUnavailableError
from tms.domain.model.value_objects import SupplyKey
from tms.domain.repository.candidate_directory import CandidateDirectory

logger = logging.getLogger(__name__)


class SupplyResolver:

    def __init__(self, directory: CandidateDirectory) -> None:
        self._directory = directory

    def supply(self, key: SupplyKey) -> int:
        """Eligible candidates for ``key``.

        Directory failures propagate as UpstreamUnavailableError; they are
        never read as an empty pool.
        """
        count = self._directory.count_eligible(key)
        if not isinstance(count, int) or count < 0:
            raise UpstreamUnavailableError(
                f"Candidate directory returned an invalid count for {key}: {count!r}"
            )
        logger.debug("supply %s = %d", key, count)
        return count
