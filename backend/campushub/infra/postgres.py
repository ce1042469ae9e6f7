"""Process-wide asyncpg pool."""

from __future__ import annotations

from typing import Optional

import asyncpg

from campushub.settings import settings

# Seconds before a single statement is abandoned
COMMAND_TIMEOUT = 10

_pool: Optional[asyncpg.pool.Pool] = None


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			command_timeout=COMMAND_TIMEOUT,
		)
	return _pool


async def get_pool() -> asyncpg.pool.Pool:
	"""Return the pool, creating it on first use outside the app lifespan (scripts)."""
	return _pool if _pool is not None else await init_pool()


async def close_pool() -> None:
	global _pool
	pool, _pool = _pool, None
	if pool is not None:
		await pool.close()
