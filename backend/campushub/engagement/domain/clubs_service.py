"""Club membership workflow: creation, join requests and moderation."""

from __future__ import annotations

from uuid import UUID

from campushub.engagement.domain import models, policies, repo as repo_module, throttle
from campushub.engagement.domain.events_service import event_fields, validate_event_fields
from campushub.engagement.domain.exceptions import ConflictError, DuplicateRequestError, NotFoundError
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser
from campushub.obs import metrics as obs_metrics
from campushub.obs.audit import log_workflow_event


class ClubsService:
	"""Clubs have no capacity; admins approve members one request at a time."""

	def __init__(self, *, repository: repo_module.EngagementRepository | None = None) -> None:
		self.repo = repository or repo_module.EngagementRepository()

	async def _require_club(self, club_id: UUID, *, conn=None) -> models.Club:
		club = await self.repo.get_club(club_id, conn=conn)
		if club is None:
			raise NotFoundError("club_not_found")
		return club

	async def _club_role(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubRole | None:
		membership = await self.repo.get_club_member(club_id, user_id, conn=conn)
		return membership.role if membership else None

	async def create_club(self, user: AuthenticatedUser, payload: dto.ClubCreateRequest) -> dto.ClubResponse:
		policies.assert_can_create_club(user)
		creator_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			club = await self.repo.create_club(
				name=payload.name,
				description=payload.description,
				logo_url=str(payload.logo_url) if payload.logo_url is not None else None,
				created_by=creator_id,
				conn=conn,
			)
			await self.repo.add_club_member(club.id, creator_id, role=models.ClubRole.ADMIN, conn=conn)
		obs_metrics.inc_entity_created("club")
		log_workflow_event("club.created", actor_id=user.id, subject_id=str(club.id))
		return dto.ClubResponse(**club.model_dump(exclude={"member_count"}), member_count=1)

	async def list_clubs(self) -> list[dto.ClubResponse]:
		clubs = await self.repo.list_clubs()
		return [dto.ClubResponse(**club.model_dump()) for club in clubs]

	async def get_club(self, club_id: UUID) -> dto.ClubResponse:
		club = await self._require_club(club_id)
		return dto.ClubResponse(**club.model_dump())

	async def delete_club(self, user: AuthenticatedUser, club_id: UUID) -> None:
		async with self.repo.transaction() as conn:
			await self._require_club(club_id, conn=conn)
			if not policies.is_platform_admin(user):
				policies.assert_club_admin(await self._club_role(club_id, policies.actor_id(user), conn=conn))
			await self.repo.delete_club(club_id, conn=conn)
		obs_metrics.inc_entity_deleted("club")
		log_workflow_event("club.deleted", actor_id=user.id, subject_id=str(club_id))

	async def list_members(self, club_id: UUID) -> list[dto.ClubMemberResponse]:
		await self._require_club(club_id)
		members = await self.repo.list_club_members(club_id)
		return [dto.ClubMemberResponse(**member.model_dump()) for member in members]

	async def status(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubStatusResponse:
		user_id = policies.actor_id(user)
		await self._require_club(club_id)
		role = await self._club_role(club_id, user_id)
		latest = await self.repo.latest_club_request(club_id, user_id)
		return dto.ClubStatusResponse(
			club_id=club_id,
			is_member=role is not None,
			role=role,
			request_status=latest.status if latest else None,
		)

	async def request_to_join(self, user: AuthenticatedUser, club_id: UUID) -> dto.ClubJoinRequestResponse:
		user_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			await self._require_club(club_id, conn=conn)
			if await self.repo.get_club_member(club_id, user_id, conn=conn):
				obs_metrics.inc_workflow_reject("club", "already_member")
				raise DuplicateRequestError("already_member")
			if await self.repo.get_pending_club_request(club_id, user_id, conn=conn):
				obs_metrics.inc_workflow_reject("club", "request_already_pending")
				raise DuplicateRequestError("request_already_pending")
			await throttle.enforce_join_request(str(user_id))
			request = await self.repo.create_club_request(club_id, user_id, conn=conn)
		obs_metrics.inc_join_request("club")
		log_workflow_event("club.join_requested", actor_id=user.id, subject_id=str(club_id))
		return dto.ClubJoinRequestResponse(**request.model_dump())

	async def resolve_request(
		self,
		user: AuthenticatedUser,
		request_id: UUID,
		decision: models.Decision,
	) -> dto.ClubJoinRequestResponse:
		"""Accept or reject a pending request.

		The membership row is written before the status flips, both in one
		transaction. Repeating the same decision returns the stored request.
		"""
		actor = policies.actor_id(user)
		target = decision.resulting_status
		async with self.repo.transaction() as conn:
			request = await self.repo.get_club_request(request_id, for_update=True, conn=conn)
			if request is None:
				raise NotFoundError("request_not_found")
			await self._require_club(request.club_id, conn=conn)
			policies.assert_club_admin(await self._club_role(request.club_id, actor, conn=conn))
			if request.status is not models.RequestStatus.PENDING:
				if request.status is target:
					return dto.ClubJoinRequestResponse(**request.model_dump())
				raise ConflictError("request_already_resolved")
			if decision is models.Decision.ACCEPT:
				await self.repo.add_club_member(request.club_id, request.user_id, role=models.ClubRole.MEMBER, conn=conn)
			resolved = await self.repo.set_club_request_status(request_id, status=target, resolved_by=actor, conn=conn)
		obs_metrics.inc_join_decision("club", decision.value)
		if decision is models.Decision.ACCEPT:
			obs_metrics.inc_membership_change("club", "joined")
		log_workflow_event(
			"club.request_resolved",
			actor_id=user.id,
			subject_id=str(request_id),
			extra={"club_id": str(request.club_id), "decision": decision.value},
		)
		return dto.ClubJoinRequestResponse(**resolved.model_dump())

	async def list_pending_requests(self, user: AuthenticatedUser | None, club_id: UUID) -> list[dto.ClubJoinRequestResponse]:
		"""Pending requests for club admins; everyone else sees an empty list."""
		await self._require_club(club_id)
		if user is None:
			return []
		role = await self._club_role(club_id, policies.actor_id(user))
		if role is not models.ClubRole.ADMIN:
			return []
		requests = await self.repo.list_pending_club_requests(club_id)
		return [dto.ClubJoinRequestResponse(**item.model_dump()) for item in requests]

	async def list_club_events(self, club_id: UUID) -> list[dto.EventResponse]:
		club = await self._require_club(club_id)
		events = await self.repo.list_events(created_by=club.created_by, ascending=True)
		return [dto.EventResponse(**event.model_dump()) for event in events]

	async def create_club_event(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		payload: dto.EventCreateRequest,
	) -> dto.EventResponse:
		actor = policies.actor_id(user)
		fields = validate_event_fields(event_fields(payload))
		async with self.repo.transaction() as conn:
			await self._require_club(club_id, conn=conn)
			policies.assert_club_admin(await self._club_role(club_id, actor, conn=conn))
			event = await self.repo.create_event(created_by=actor, fields=fields, conn=conn)
		obs_metrics.inc_entity_created("event")
		log_workflow_event(
			"event.created",
			actor_id=user.id,
			subject_id=str(event.id),
			extra={"club_id": str(club_id)},
		)
		return dto.EventResponse(**event.model_dump())
