"""Per-user rate limits for join requests and applications."""

from __future__ import annotations

from campushub.engagement.domain.exceptions import RateLimitedError
from campushub.infra import rate_limit
from campushub.obs import metrics as obs_metrics
from campushub.settings import settings

JOIN_REQUEST_KIND = "join_request"
APPLICATION_KIND = "job_application"


async def enforce(kind: str, user_id: str, *, limit: int) -> None:
	allowed = await rate_limit.allow(kind, user_id, limit=limit, window_seconds=settings.rate_limit_window_seconds)
	if not allowed:
		obs_metrics.inc_rate_limited(kind)
		raise RateLimitedError()


async def enforce_join_request(user_id: str) -> None:
	await enforce(JOIN_REQUEST_KIND, user_id, limit=settings.join_request_rate_limit)


async def enforce_application(user_id: str) -> None:
	await enforce(APPLICATION_KIND, user_id, limit=settings.application_rate_limit)
