"""Authorization policies for engagement operations."""

from __future__ import annotations

from uuid import UUID

from campushub.engagement.domain import models
from campushub.engagement.domain.exceptions import AuthorizationError, NotAuthenticatedError
from campushub.infra.auth import AuthenticatedUser

PUBLISHER_ROLES = frozenset({models.UserRole.FACULTY, models.UserRole.ADMIN})


def user_role(user: AuthenticatedUser | None) -> models.UserRole:
	if user is None:
		raise NotAuthenticatedError()
	try:
		return models.UserRole(user.role)
	except ValueError as exc:
		raise AuthorizationError("unknown_role") from exc


def actor_id(user: AuthenticatedUser | None) -> UUID:
	"""Return the caller id as a UUID; malformed ids count as unauthenticated."""
	if user is None:
		raise NotAuthenticatedError()
	try:
		return UUID(str(user.id))
	except ValueError as exc:
		raise NotAuthenticatedError("invalid_user_id") from exc


def _known_user(user: AuthenticatedUser | None) -> AuthenticatedUser:
	user_role(user)
	return user


def is_platform_admin(user: AuthenticatedUser) -> bool:
	return _known_user(user).is_admin


def assert_can_create_club(user: AuthenticatedUser) -> None:
	if not is_platform_admin(user):
		raise AuthorizationError("admin_role_required")


def assert_can_publish(user: AuthenticatedUser) -> None:
	"""Events and jobs are posted by faculty and admins."""
	if not _known_user(user).has_role(*PUBLISHER_ROLES):
		raise AuthorizationError("faculty_or_admin_required")


def assert_club_admin(role: models.ClubRole | None) -> None:
	if role is not models.ClubRole.ADMIN:
		raise AuthorizationError("club_admin_required")


def assert_team_leader(role: models.TeamRole | None) -> None:
	if role is not models.TeamRole.LEADER:
		raise AuthorizationError("team_leader_required")


def assert_event_organizer(event: models.Event, user: AuthenticatedUser) -> None:
	if event.created_by == actor_id(user) or is_platform_admin(user):
		return
	raise AuthorizationError("event_organizer_required")


def assert_job_poster(job: models.Job, user: AuthenticatedUser) -> None:
	if job.company_id != actor_id(user):
		raise AuthorizationError("job_poster_required")
