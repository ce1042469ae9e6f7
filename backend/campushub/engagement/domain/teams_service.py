"""Team formation for team-based events: requests, capacity and roles."""

from __future__ import annotations

from uuid import UUID

from campushub.engagement.domain import models, policies, repo as repo_module, throttle
from campushub.engagement.domain.exceptions import (
	CapacityError,
	ConflictError,
	DuplicateRequestError,
	InvariantViolationError,
	NotFoundError,
	ValidationError,
)
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser
from campushub.obs import metrics as obs_metrics
from campushub.obs.audit import log_workflow_event

TEAM_STATUS_FILTERS = {"all": None, "open": True, "closed": False}


class TeamsService:
	"""Membership changes that count members or leaders lock the team row first.

	Paths that can put a user into a team of an event (create, request, accept)
	lock the event row before any team row, which serializes the one team per
	event check.
	"""

	def __init__(self, *, repository: repo_module.EngagementRepository | None = None) -> None:
		self.repo = repository or repo_module.EngagementRepository()

	async def _lock_team(self, team_id: UUID, *, conn) -> models.Team:
		team = await self.repo.lock_team(team_id, conn=conn)
		if team is None:
			raise NotFoundError("team_not_found")
		return team

	async def _require_leader(self, team_id: UUID, user_id: UUID, *, conn=None) -> None:
		membership = await self.repo.get_team_member(team_id, user_id, conn=conn)
		policies.assert_team_leader(membership.role if membership else None)

	async def _assert_no_event_team(self, event_id: UUID, user_id: UUID, *, conn=None, allow: UUID | None = None) -> None:
		existing = await self.repo.find_event_team_for_user(event_id, user_id, conn=conn)
		if existing is not None and existing != allow:
			obs_metrics.inc_workflow_reject("team", "already_in_event_team")
			raise DuplicateRequestError("already_in_event_team")

	async def create_team(self, user: AuthenticatedUser, payload: dto.TeamCreateRequest) -> dto.TeamResponse:
		creator_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			event = await self.repo.lock_event(payload.event_id, conn=conn)
			if event is None:
				raise NotFoundError("event_not_found")
			if not event.is_team_based:
				raise ValidationError("event_not_team_based")
			if event.max_team_size is not None and payload.max_members > event.max_team_size:
				raise ValidationError("max_members_exceeds_event_limit")
			await self._assert_no_event_team(event.id, creator_id, conn=conn)
			team = await self.repo.create_team(
				event_id=event.id,
				name=payload.name,
				description=payload.description,
				skills_needed=payload.skills_needed,
				is_open=payload.is_open,
				max_members=payload.max_members,
				created_by=creator_id,
				conn=conn,
			)
			await self.repo.add_team_member(team.id, creator_id, role=models.TeamRole.LEADER, conn=conn)
		obs_metrics.inc_entity_created("team")
		log_workflow_event("team.created", actor_id=user.id, subject_id=str(team.id), extra={"event_id": str(event.id)})
		return dto.TeamResponse(**team.model_dump(exclude={"member_count"}), member_count=1)

	async def list_teams(
		self,
		event_id: UUID,
		*,
		status: str = "all",
		skill: str | None = None,
	) -> list[dto.TeamResponse]:
		if status not in TEAM_STATUS_FILTERS:
			raise ValidationError("invalid_status_filter")
		if await self.repo.get_event(event_id) is None:
			raise NotFoundError("event_not_found")
		teams = await self.repo.list_teams(
			event_id,
			is_open=TEAM_STATUS_FILTERS[status],
			skill=(skill or "").strip() or None,
		)
		return [dto.TeamResponse(**team.model_dump()) for team in teams]

	async def get_team(self, team_id: UUID) -> dto.TeamDetailResponse:
		team = await self.repo.get_team(team_id)
		if team is None:
			raise NotFoundError("team_not_found")
		members = await self.repo.list_team_members(team_id)
		return dto.TeamDetailResponse(
			**team.model_dump(),
			members=[dto.TeamMemberResponse(**member.model_dump()) for member in members],
		)

	async def update_team(
		self,
		user: AuthenticatedUser,
		team_id: UUID,
		payload: dto.TeamUpdateRequest,
	) -> dto.TeamResponse:
		changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
		async with self.repo.transaction() as conn:
			await self._lock_team(team_id, conn=conn)
			await self._require_leader(team_id, policies.actor_id(user), conn=conn)
			team = await self.repo.update_team(team_id, changes, conn=conn)
		if team is None:
			raise NotFoundError("team_not_found")
		log_workflow_event("team.updated", actor_id=user.id, subject_id=str(team_id), extra={"fields": sorted(changes)})
		return dto.TeamResponse(**team.model_dump())

	async def delete_team(self, user: AuthenticatedUser, team_id: UUID) -> None:
		"""Remove the team together with its memberships and join requests."""
		async with self.repo.transaction() as conn:
			await self._lock_team(team_id, conn=conn)
			await self._require_leader(team_id, policies.actor_id(user), conn=conn)
			await self.repo.delete_team(team_id, conn=conn)
		obs_metrics.inc_entity_deleted("team")
		log_workflow_event("team.deleted", actor_id=user.id, subject_id=str(team_id))

	async def request_to_join(self, user: AuthenticatedUser, team_id: UUID) -> dto.TeamJoinRequestResponse:
		user_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			team = await self.repo.get_team(team_id, conn=conn)
			if team is None:
				raise NotFoundError("team_not_found")
			await self.repo.lock_event(team.event_id, conn=conn)
			if not team.is_open:
				obs_metrics.inc_workflow_reject("team", "team_closed")
				raise ConflictError("team_closed")
			if await self.repo.get_team_member(team_id, user_id, conn=conn):
				obs_metrics.inc_workflow_reject("team", "already_member")
				raise DuplicateRequestError("already_member")
			await self._assert_no_event_team(team.event_id, user_id, conn=conn)
			if await self.repo.get_pending_team_request(team_id, user_id, conn=conn):
				obs_metrics.inc_workflow_reject("team", "request_already_pending")
				raise DuplicateRequestError("request_already_pending")
			await throttle.enforce_join_request(str(user_id))
			request = await self.repo.create_team_request(team_id, user_id, conn=conn)
		obs_metrics.inc_join_request("team")
		log_workflow_event("team.join_requested", actor_id=user.id, subject_id=str(team_id))
		return dto.TeamJoinRequestResponse(**request.model_dump())

	async def resolve_request(
		self,
		user: AuthenticatedUser,
		request_id: UUID,
		decision: models.Decision,
	) -> dto.TeamJoinRequestResponse:
		"""Accept or reject a pending team request.

		Accepting runs in one transaction holding the event row lock and then
		the team row lock: count the members, insert the membership, then mark
		the request accepted. A full team raises CapacityError and the request
		stays pending.
		"""
		actor = policies.actor_id(user)
		target = decision.resulting_status
		async with self.repo.transaction() as conn:
			request = await self.repo.get_team_request(request_id, conn=conn)
			if request is None:
				raise NotFoundError("request_not_found")
			unlocked = await self.repo.get_team(request.team_id, conn=conn)
			if unlocked is None:
				raise NotFoundError("team_not_found")
			await self.repo.lock_event(unlocked.event_id, conn=conn)
			team = await self._lock_team(request.team_id, conn=conn)
			request = await self.repo.get_team_request(request_id, for_update=True, conn=conn)
			if request is None:
				raise NotFoundError("request_not_found")
			await self._require_leader(team.id, actor, conn=conn)
			if request.status is not models.RequestStatus.PENDING:
				if request.status is target:
					return dto.TeamJoinRequestResponse(**request.model_dump())
				raise ConflictError("request_already_resolved")
			if decision is models.Decision.ACCEPT:
				existing = await self.repo.get_team_member(team.id, request.user_id, conn=conn)
				if existing is None:
					count = await self.repo.count_team_members(team.id, conn=conn)
					if count >= team.max_members:
						obs_metrics.inc_workflow_reject("team", "team_at_capacity")
						raise CapacityError()
					await self._assert_no_event_team(team.event_id, request.user_id, conn=conn, allow=team.id)
					await self.repo.add_team_member(team.id, request.user_id, role=models.TeamRole.MEMBER, conn=conn)
			resolved = await self.repo.set_team_request_status(request_id, status=target, resolved_by=actor, conn=conn)
		obs_metrics.inc_join_decision("team", decision.value)
		if decision is models.Decision.ACCEPT:
			obs_metrics.inc_membership_change("team", "joined")
		log_workflow_event(
			"team.request_resolved",
			actor_id=user.id,
			subject_id=str(request_id),
			extra={"team_id": str(team.id), "decision": decision.value},
		)
		return dto.TeamJoinRequestResponse(**resolved.model_dump())

	async def change_role(
		self,
		user: AuthenticatedUser,
		team_id: UUID,
		member_id: UUID,
		role: models.TeamRole,
	) -> dto.TeamMemberResponse:
		async with self.repo.transaction() as conn:
			await self._lock_team(team_id, conn=conn)
			await self._require_leader(team_id, policies.actor_id(user), conn=conn)
			target = await self.repo.get_team_member(team_id, member_id, conn=conn)
			if target is None:
				raise NotFoundError("member_not_found")
			if target.role is role:
				return dto.TeamMemberResponse(**target.model_dump())
			if target.role is models.TeamRole.LEADER:
				leaders = await self.repo.count_team_members(team_id, role=models.TeamRole.LEADER, conn=conn)
				if leaders <= 1:
					obs_metrics.inc_workflow_reject("team", "last_leader")
					raise InvariantViolationError("last_leader")
			updated = await self.repo.set_team_member_role(team_id, member_id, role=role, conn=conn)
		obs_metrics.inc_membership_change("team", f"role_{role.value}")
		log_workflow_event(
			"team.role_changed",
			actor_id=user.id,
			subject_id=str(member_id),
			extra={"team_id": str(team_id), "role": role.value},
		)
		return dto.TeamMemberResponse(**updated.model_dump())

	async def remove_member(self, user: AuthenticatedUser, team_id: UUID, member_id: UUID) -> None:
		actor = policies.actor_id(user)
		if member_id == actor:
			raise ValidationError("use_leave_team")
		async with self.repo.transaction() as conn:
			await self._lock_team(team_id, conn=conn)
			await self._require_leader(team_id, actor, conn=conn)
			if await self.repo.get_team_member(team_id, member_id, conn=conn) is None:
				raise NotFoundError("member_not_found")
			await self.repo.remove_team_member(team_id, member_id, conn=conn)
		obs_metrics.inc_membership_change("team", "removed")
		log_workflow_event("team.member_removed", actor_id=user.id, subject_id=str(member_id), extra={"team_id": str(team_id)})

	async def leave_team(self, user: AuthenticatedUser, team_id: UUID) -> None:
		"""Leave a team; the sole leader must promote someone or delete the team."""
		user_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			await self._lock_team(team_id, conn=conn)
			membership = await self.repo.get_team_member(team_id, user_id, conn=conn)
			if membership is None:
				raise NotFoundError("not_a_member")
			if membership.role is models.TeamRole.LEADER:
				leaders = await self.repo.count_team_members(team_id, role=models.TeamRole.LEADER, conn=conn)
				if leaders <= 1:
					obs_metrics.inc_workflow_reject("team", "sole_leader")
					raise InvariantViolationError("sole_leader_cannot_leave")
			await self.repo.remove_team_member(team_id, user_id, conn=conn)
		obs_metrics.inc_membership_change("team", "left")
		log_workflow_event("team.left", actor_id=user.id, subject_id=str(team_id))

	async def list_pending_requests(self, user: AuthenticatedUser | None, team_id: UUID) -> list[dto.TeamJoinRequestResponse]:
		"""Pending requests for team leaders; everyone else sees an empty list."""
		if await self.repo.get_team(team_id) is None:
			raise NotFoundError("team_not_found")
		if user is None:
			return []
		membership = await self.repo.get_team_member(team_id, policies.actor_id(user))
		if membership is None or membership.role is not models.TeamRole.LEADER:
			return []
		requests = await self.repo.list_pending_team_requests(team_id)
		return [dto.TeamJoinRequestResponse(**item.model_dump()) for item in requests]

	async def my_teams(self, user: AuthenticatedUser, *, event_id: UUID | None = None) -> list[dto.TeamMemberResponse]:
		memberships = await self.repo.list_user_teams(policies.actor_id(user), event_id=event_id)
		return [dto.TeamMemberResponse(**item.model_dump()) for item in memberships]

	async def my_requests(self, user: AuthenticatedUser, *, event_id: UUID | None = None) -> list[dto.TeamJoinRequestResponse]:
		requests = await self.repo.list_user_team_requests(policies.actor_id(user), event_id=event_id)
		return [dto.TeamJoinRequestResponse(**item.model_dump()) for item in requests]
