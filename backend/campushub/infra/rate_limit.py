"""Fixed-window counters in Redis for per-user action budgets."""

from __future__ import annotations

import time
from typing import Optional

from campushub.infra.redis import redis_client


def _window_key(kind: str, actor_id: str, window_seconds: int, now: Optional[float]) -> tuple[str, int]:
	window = max(1, int(window_seconds))
	at = time.time() if now is None else now
	return f"rl:{kind}:{actor_id}:{int(at // window)}:{window}", window


async def allow(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> bool:
	"""Count one attempt and report whether it fits in the current window."""
	if limit <= 0:
		return False
	key, window = _window_key(kind, actor_id, window_seconds, now)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		count, _ = await pipe.execute()
	return int(count) <= limit

