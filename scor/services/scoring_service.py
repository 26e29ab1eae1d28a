"""
Scoring service
Address validation, cache-first orchestration of fetch -> normalize -> score
"""
import logging
import re
from typing import Optional, Tuple

from scor.config import ADDRESS_PATTERN
from scor.credit_scorer import CreditScorer
from scor.data_aggregator import DataAggregator
from scor.exceptions import CacheUnavailable, InvalidSubjectFormat
from scor.models import RiskResult
from scor.services.cache_service import ResultCache

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(ADDRESS_PATTERN)


def validate_address(address: Optional[str]) -> str:
    """Return the trimmed, lower-cased address or raise InvalidSubjectFormat"""
    candidate = (address or "").strip()
    if not _ADDRESS_RE.match(candidate):
        raise InvalidSubjectFormat(address or "")
    return candidate.lower()


class ScoringService:
    """Handles data fetching, scoring and result caching"""

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        aggregator: Optional[DataAggregator] = None,
        scorer: Optional[CreditScorer] = None,
    ):
        self.cache = cache or ResultCache()
        self.aggregator = aggregator or DataAggregator()
        self.scorer = scorer or CreditScorer(clock=self.cache.clock)

    def _cached(self, subject: str) -> Optional[RiskResult]:
        try:
            return self.cache.get(subject)
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on read for %s, treating as miss: %s", subject, e)
            return None

    def _store(self, subject: str, result: RiskResult) -> None:
        try:
            self.cache.put(subject, result)
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on write for %s, result not cached: %s", subject, e)

    async def analyze(self, address: str) -> Tuple[RiskResult, bool]:
        """Analyze one subject; returns the result and whether it came from cache"""
        subject = validate_address(address)

        cached = self._cached(subject)
        if cached is not None:
            return cached, True

        logger.info("Analyzing address: %s", subject)
        account, prices = await self.aggregator.get_snapshots(subject, now=self.scorer.clock())
        result = self.scorer.calculate_score(subject, account, prices)

        self._store(subject, result)
        return result, False

    def clear_cache(self) -> int:
        try:
            return self.cache.invalidate_all()
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on clear: %s", e)
            return 0
