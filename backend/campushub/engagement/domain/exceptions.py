"""Typed failures raised by the engagement workflows."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class EngagementError(Exception):
	"""Base class for workflow errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "engagement_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class AuthorizationError(EngagementError):
	"""Actor lacks the role or relationship the operation needs."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "not_authorized"


class NotAuthenticatedError(AuthorizationError):
	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "not_authenticated"


class NotFoundError(EngagementError):
	"""Referenced club/team/event/job/request is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ConflictError(EngagementError):
	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class DuplicateRequestError(ConflictError):
	"""A pending request or existing membership already covers the pair."""

	detail = "duplicate_request"


class CapacityError(ConflictError):
	"""Team is already at max_members."""

	detail = "team_at_capacity"


class InvariantViolationError(ConflictError):
	"""The change would leave a team without a leader."""

	detail = "invariant_violation"


class ValidationError(EngagementError):
	"""Raised for input rules FastAPI schema validation cannot express."""

	status_code = _HTTP_422
	detail = "validation_error"


class RateLimitedError(EngagementError):
	status_code = status.HTTP_429_TOO_MANY_REQUESTS
	detail = "rate_limited"


class StoreError(EngagementError):
	"""The entity store call failed; details are logged, not surfaced."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "store_unavailable"
