"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campushub.api import ops
from campushub.api.errors import install_error_handlers
from campushub.api.middleware_request_id import RequestIdMiddleware
from campushub.engagement.api import router as engagement_router
from campushub.infra import postgres
from campushub.obs import init as obs_init
from campushub.settings import DEV_SECRET_KEY, settings

logger = logging.getLogger("campushub.startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.is_prod() and settings.secret_key == DEV_SECRET_KEY:
		raise RuntimeError("SECRET_KEY must be set in production")
	await postgres.init_pool()
	logger.info("startup_complete", extra={"environment": settings.environment})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="CampusHub API", lifespan=lifespan)

install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []
if "*" in allow_origins:
	# Credentialed requests cannot use a wildcard origin
	allow_origins = [origin for origin in allow_origins if origin != "*"] or ["http://localhost:3000"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)
app.add_middleware(RequestIdMiddleware)

app.include_router(ops.router, tags=["ops"])
app.include_router(engagement_router)
