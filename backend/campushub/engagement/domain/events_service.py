"""Event publishing and registration flows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from campushub.engagement.domain import models, policies, repo as repo_module
from campushub.engagement.domain.exceptions import DuplicateRequestError, NotFoundError, ValidationError
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser
from campushub.obs import metrics as obs_metrics
from campushub.obs.audit import log_workflow_event
from campushub.settings import settings

EVENT_WINDOWS = ("all", "upcoming", "past")
NULLABLE_EVENT_FIELDS = frozenset({"type", "location", "max_team_size", "poster_url"})


def _now() -> datetime:
	return datetime.now(timezone.utc)


def as_aware(value: datetime) -> datetime:
	"""Treat naive datetimes from clients as UTC."""
	return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def event_fields(payload: dto.EventCreateRequest | dto.EventUpdateRequest, *, partial: bool = False) -> dict[str, Any]:
	fields = payload.model_dump(exclude_unset=partial)
	if partial:
		fields = {key: value for key, value in fields.items() if value is not None or key in NULLABLE_EVENT_FIELDS}
	if "poster_url" in fields:
		fields["poster_url"] = str(payload.poster_url) if payload.poster_url is not None else None
	for key in ("start_datetime", "end_datetime"):
		if fields.get(key) is not None:
			fields[key] = as_aware(fields[key])
	return fields


def validate_event_fields(fields: dict[str, Any]) -> dict[str, Any]:
	"""Check the schedule and team sizing of a complete field set.

	Non team-based events never keep a max_team_size.
	"""
	if fields["end_datetime"] <= fields["start_datetime"]:
		raise ValidationError("end_before_start")
	if fields.get("is_team_based"):
		if not fields.get("max_team_size"):
			raise ValidationError("max_team_size_required")
	else:
		fields["max_team_size"] = None
	return fields


class EventsService:
	"""Handles event CRUD and the registration state machine."""

	def __init__(self, *, repository: repo_module.EngagementRepository | None = None) -> None:
		self.repo = repository or repo_module.EngagementRepository()

	async def _require_event(self, event_id: UUID, *, conn=None, lock: bool = False) -> models.Event:
		if lock:
			event = await self.repo.lock_event(event_id, conn=conn)
		else:
			event = await self.repo.get_event(event_id, conn=conn)
		if event is None:
			raise NotFoundError("event_not_found")
		return event

	async def create_event(self, user: AuthenticatedUser, payload: dto.EventCreateRequest) -> dto.EventResponse:
		policies.assert_can_publish(user)
		fields = validate_event_fields(event_fields(payload))
		event = await self.repo.create_event(created_by=policies.actor_id(user), fields=fields)
		obs_metrics.inc_entity_created("event")
		log_workflow_event("event.created", actor_id=user.id, subject_id=str(event.id))
		return dto.EventResponse(**event.model_dump())

	async def list_events(
		self,
		*,
		q: str | None = None,
		when: str = "all",
		mode: models.EventMode | None = None,
		team_based: bool | None = None,
	) -> list[dto.EventResponse]:
		if when not in EVENT_WINDOWS:
			raise ValidationError("invalid_when")
		events = await self.repo.list_events(
			q=(q or "").strip() or None,
			when=when,
			mode=mode,
			team_based=team_based,
			now=_now(),
		)
		return [dto.EventResponse(**event.model_dump()) for event in events]

	async def get_event(self, event_id: UUID) -> dto.EventResponse:
		event = await self._require_event(event_id)
		return dto.EventResponse(**event.model_dump())

	async def update_event(
		self,
		user: AuthenticatedUser,
		event_id: UUID,
		payload: dto.EventUpdateRequest,
	) -> dto.EventResponse:
		changes = event_fields(payload, partial=True)
		async with self.repo.transaction() as conn:
			event = await self._require_event(event_id, conn=conn)
			policies.assert_event_organizer(event, user)
			merged = validate_event_fields({**event.model_dump(), **changes})
			changes["max_team_size"] = merged["max_team_size"]
			updated = await self.repo.update_event(event_id, changes, conn=conn)
		if updated is None:
			raise NotFoundError("event_not_found")
		log_workflow_event("event.updated", actor_id=user.id, subject_id=str(event_id), extra={"fields": sorted(changes)})
		return dto.EventResponse(**updated.model_dump())

	async def delete_event(self, user: AuthenticatedUser, event_id: UUID) -> None:
		async with self.repo.transaction() as conn:
			event = await self._require_event(event_id, conn=conn, lock=True)
			policies.assert_event_organizer(event, user)
			await self.repo.delete_event(event_id, conn=conn)
		obs_metrics.inc_entity_deleted("event")
		log_workflow_event("event.deleted", actor_id=user.id, subject_id=str(event_id))

	# --- Registration -----------------------------------------------------

	async def register(self, user: AuthenticatedUser, event_id: UUID) -> dto.RegistrationResponse:
		user_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			await self._require_event(event_id, conn=conn)
			if await self.repo.get_registration(event_id, user_id, conn=conn):
				raise DuplicateRequestError("already_registered")
			registration = await self.repo.create_registration(event_id, user_id, conn=conn)
		obs_metrics.inc_event_registration("registered")
		log_workflow_event("registration.created", actor_id=user.id, subject_id=str(event_id))
		return dto.RegistrationResponse(**registration.model_dump())

	async def cancel_registration(self, user: AuthenticatedUser, event_id: UUID) -> None:
		user_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			event = await self._require_event(event_id, conn=conn)
			registration = await self.repo.get_registration(event_id, user_id, conn=conn)
			if registration is None:
				raise NotFoundError("registration_not_found")
			if registration.status is models.RegistrationStatus.ATTENDED:
				raise ValidationError("already_attended")
			if not settings.allow_cancel_after_event_start and _now() >= event.start_datetime:
				raise ValidationError("event_already_started")
			await self.repo.delete_registration(event_id, user_id, conn=conn)
		obs_metrics.inc_event_registration("cancelled")
		log_workflow_event("registration.cancelled", actor_id=user.id, subject_id=str(event_id))

	async def mark_attended(
		self,
		user: AuthenticatedUser,
		event_id: UUID,
		participant_id: UUID,
	) -> dto.RegistrationResponse:
		async with self.repo.transaction() as conn:
			event = await self._require_event(event_id, conn=conn)
			policies.assert_event_organizer(event, user)
			registration = await self.repo.get_registration(event_id, participant_id, conn=conn)
			if registration is None:
				raise NotFoundError("registration_not_found")
			if registration.status is not models.RegistrationStatus.ATTENDED:
				registration = await self.repo.set_registration_status(
					event_id,
					participant_id,
					status=models.RegistrationStatus.ATTENDED,
					conn=conn,
				)
				obs_metrics.inc_event_registration("attended")
				log_workflow_event(
					"registration.attended",
					actor_id=user.id,
					subject_id=str(event_id),
					extra={"participant_id": str(participant_id)},
				)
		return dto.RegistrationResponse(**registration.model_dump())

	async def list_participants(self, user: AuthenticatedUser, event_id: UUID) -> list[dto.RegistrationResponse]:
		event = await self._require_event(event_id)
		policies.assert_event_organizer(event, user)
		registrations = await self.repo.list_registrations(event_id)
		return [dto.RegistrationResponse(**item.model_dump()) for item in registrations]

	async def registration_status(self, user: AuthenticatedUser, event_id: UUID) -> dto.RegistrationStatusResponse:
		await self._require_event(event_id)
		registration = await self.repo.get_registration(event_id, policies.actor_id(user))
		return dto.RegistrationStatusResponse(
			event_id=event_id,
			registered=registration is not None,
			status=registration.status if registration else None,
		)
