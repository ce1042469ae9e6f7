"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

import asyncpg
from redis.exceptions import RedisError

from campushub.infra import postgres
from campushub.infra.redis import redis_client
from campushub.obs import metrics

LOGGER = logging.getLogger(__name__)

_REQUIRED_TABLES = (
	"users",
	"clubs",
	"clubmembers",
	"clubjoinrequests",
	"events",
	"eventregistration",
	"teams",
	"teammembers",
	"teamjoinrequest",
	"jobs",
	"jobapplication",
)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
	except (RedisError, OSError, asyncio.TimeoutError) as exc:
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc) or exc.__class__.__name__}
	latency = perf_counter() - start
	metrics.mark_redis(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	start = perf_counter()
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			await asyncio.wait_for(conn.execute("SELECT 1"), timeout=timeout)
			found = await conn.fetchval(
				"SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ANY($1::text[])",
				list(_REQUIRED_TABLES),
			)
	except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as exc:
		metrics.mark_postgres(False)
		LOGGER.warning("Postgres readiness query failed", exc_info=True)
		return {"ok": False, "error": str(exc) or exc.__class__.__name__}
	latency = perf_counter() - start
	metrics.mark_postgres(True, latency_seconds=latency)
	schema_ok = int(found or 0) >= len(_REQUIRED_TABLES)
	return {"ok": schema_ok, "latency_ms": round(latency * 1000, 2), "schema": "ok" if schema_ok else "missing_tables"}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state = await _redis_status()
	postgres_state = await _postgres_status()
	ok = bool(redis_state.get("ok") and postgres_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {"redis": redis_state, "postgres": postgres_state},
		},
	)
