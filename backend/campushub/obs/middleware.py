"""Request instrumentation: one metrics sample and one log line per request."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from campushub.obs import logging as obs_logging
from campushub.obs import metrics
from campushub.settings import settings

REQUEST_ID_ATTR = "request_id"

_http_logger = obs_logging.get_logger("http")


def _route_template(request: Request) -> str:
	"""Prefer the matched path template so metric labels stay bounded."""
	route = request.scope.get("route")
	return getattr(route, "path", None) or request.url.path


def _request_id(request: Request) -> str:
	rid = getattr(request.state, REQUEST_ID_ATTR, None)
	if not rid:
		rid = request.headers.get("X-Request-Id") or str(uuid4())
		setattr(request.state, REQUEST_ID_ATTR, rid)
	return rid


class ObservabilityMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not settings.obs_enabled:
			return await call_next(request)

		request_id = _request_id(request)
		tokens = obs_logging.bind_context(
			request_id=request_id,
			route=request.url.path,
			user_id=request.headers.get("X-User-Id") if settings.is_dev() else None,
			client_ip=request.client.host if request.client else None,
		)
		started = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
		except Exception:
			_http_logger.exception("http_request_error", extra={"method": request.method})
			raise
		finally:
			elapsed = time.perf_counter() - started
			template = _route_template(request)
			metrics.observe_request(template, request.method, status_code, elapsed)
			_http_logger.info(
				"http_request",
				extra={
					"status": status_code,
					"method": request.method,
					"latency_ms": round(elapsed * 1000, 3),
					"route_template": template,
				},
			)
			obs_logging.reset_context(tokens)

		response.headers.setdefault("X-Request-Id", request_id)
		return response


def install(app) -> None:
	app.add_middleware(ObservabilityMiddleware)
