"""Error translation helpers for the engagement API."""

from __future__ import annotations

from fastapi import HTTPException

from campushub.engagement.domain import exceptions


def to_http_error(exc: exceptions.EngagementError) -> HTTPException:
	"""Translate a domain exception to a FastAPI HTTP error."""
	headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, exceptions.NotAuthenticatedError) else None
	return HTTPException(status_code=exc.status_code, detail=exc.detail, headers=headers)
