"""Profile and dashboard reads for the signed-in user."""

from __future__ import annotations

from uuid import UUID

from campushub.engagement.domain import models, policies, repo as repo_module
from campushub.engagement.domain.exceptions import NotFoundError
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser
from campushub.obs.audit import log_workflow_event

URL_FIELDS = ("resume_link", "profile_pic")


class UsersService:
	def __init__(self, *, repository: repo_module.EngagementRepository | None = None) -> None:
		self.repo = repository or repo_module.EngagementRepository()

	async def _require_user(self, user_id: UUID) -> models.User:
		record = await self.repo.get_user(user_id)
		if record is None:
			raise NotFoundError("user_not_found")
		return record

	async def get_profile(self, user: AuthenticatedUser) -> dto.UserResponse:
		record = await self._require_user(policies.actor_id(user))
		return dto.UserResponse(**record.model_dump())

	async def get_user(self, user_id: UUID) -> dto.UserResponse:
		record = await self._require_user(user_id)
		return dto.UserResponse(**record.model_dump())

	async def update_profile(self, user: AuthenticatedUser, payload: dto.ProfileUpdateRequest) -> dto.UserResponse:
		changes = payload.model_dump(exclude_unset=True)
		if changes.get("name") is None:
			changes.pop("name", None)
		for key in URL_FIELDS:
			if changes.get(key) is not None:
				changes[key] = str(changes[key])
		record = await self.repo.update_user(policies.actor_id(user), changes)
		if record is None:
			raise NotFoundError("user_not_found")
		log_workflow_event("profile.updated", actor_id=user.id, extra={"fields": sorted(changes)})
		return dto.UserResponse(**record.model_dump())

	async def dashboard(self, user: AuthenticatedUser) -> dto.DashboardResponse:
		user_id = policies.actor_id(user)
		record = await self._require_user(user_id)
		registrations = await self.repo.list_user_registrations(user_id)
		clubs = await self.repo.list_user_clubs(user_id)
		teams = await self.repo.list_user_teams(user_id)
		applications = await self.repo.list_user_applications(user_id)
		return dto.DashboardResponse(
			user=dto.UserResponse(**record.model_dump()),
			registrations=[dto.RegistrationResponse(**item.model_dump()) for item in registrations],
			clubs=[dto.ClubMemberResponse(**item.model_dump()) for item in clubs],
			teams=[dto.TeamMemberResponse(**item.model_dump()) for item in teams],
			applications=[dto.ApplicationResponse(**item.model_dump()) for item in applications],
		)
