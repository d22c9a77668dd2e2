"""
Rate limit counter repository. One instance per window; each window lives in
its own namespace (`ratelimit:hour:`, `ratelimit:day:`) and counters expire
with the window.
"""

from typing import Any, Dict, Optional

from adapters.record_store import BaseRecordStore
from entities.rate_limit import RateLimitCounter, RateLimitWindow
from repositories.base import KeyValueRepository


class RateLimitRepository(KeyValueRepository[RateLimitCounter]):

    def __init__(self, record_store: Optional[BaseRecordStore], window: RateLimitWindow):
        super().__init__(record_store, f"ratelimit:{window.name}:", ttl_seconds=window.duration_seconds)
        self.window = window

    @staticmethod
    def counter_id(client_id: str, window_index: int) -> str:
        return f"{client_id}:{window_index}"

    def _entity_id(self, entity: RateLimitCounter) -> str:
        return self.counter_id(entity.client_id, entity.window_index)

    def _serialize(self, entity: RateLimitCounter) -> Dict[str, Any]:
        return {
            "clientId": entity.client_id,
            "window": entity.window,
            "windowIndex": entity.window_index,
            "count": entity.count,
        }

    def _deserialize(self, data: Dict[str, Any]) -> RateLimitCounter:
        return RateLimitCounter(
            client_id=data["clientId"],
            window=data.get("window", self.window.name),
            window_index=int(data["windowIndex"]),
            count=int(data["count"]),
        )

    async def get_count(self, client_id: str, window_index: int) -> int:
        counter = await self.get_by_id(self.counter_id(client_id, window_index))
        return counter.count if counter else 0

    async def set_count(self, client_id: str, window_index: int, count: int) -> RateLimitCounter:
        counter = RateLimitCounter(
            client_id=client_id,
            window=self.window.name,
            window_index=window_index,
            count=count,
        )
        return await self.save(counter)
