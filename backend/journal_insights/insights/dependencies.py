import asyncio
import logging
from typing import Dict, Iterable, Optional

from .stores import InsightStore

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Fetch the latest persisted payload of other insight types.

    A missing record is reported as ``None`` ("unavailable"). A read failure is
    logged and reported the same way, so a downstream type still generates
    with reduced context.
    """

    def __init__(self, insight_store: InsightStore):
        self.insight_store = insight_store

    async def resolve(self, identifiers: Iterable[str]) -> Dict[str, Optional[str]]:
        ordered = sorted(identifiers)
        if not ordered:
            return {}
        payloads = await asyncio.gather(*(self._fetch(identifier) for identifier in ordered))
        return dict(zip(ordered, payloads))

    async def _fetch(self, identifier: str) -> Optional[str]:
        try:
            record = await self.insight_store.latest(identifier)
        except Exception as e:
            logger.warning("Could not load dependency %s, continuing without it: %s", identifier, e)
            return None
        return record.payload if record else None
