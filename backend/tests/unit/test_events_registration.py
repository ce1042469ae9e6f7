from __future__ import annotations

from datetime import timedelta

import pytest

from campushub.engagement.domain import models
from campushub.engagement.domain.events_service import EventsService
from campushub.engagement.domain.exceptions import (
	AuthorizationError,
	DuplicateRequestError,
	NotFoundError,
	ValidationError,
)
from campushub.engagement.schemas import dto
from campushub.settings import settings


@pytest.mark.asyncio
async def test_students_cannot_publish_events(repo, as_actor, event_payload):
	student = repo.add_user()
	service = EventsService(repository=repo)

	with pytest.raises(AuthorizationError) as exc:
		await service.create_event(as_actor(student), dto.EventCreateRequest(**event_payload()))

	assert exc.value.detail == "faculty_or_admin_required"


@pytest.mark.asyncio
async def test_create_event_validates_schedule(repo, as_actor, event_payload):
	faculty = repo.add_user(role="faculty")
	service = EventsService(repository=repo)
	base = event_payload()

	with pytest.raises(ValidationError) as exc:
		await service.create_event(
			as_actor(faculty),
			dto.EventCreateRequest(**{**base, "end_datetime": base["start_datetime"] - timedelta(hours=1)}),
		)
	assert exc.value.detail == "end_before_start"

	with pytest.raises(ValidationError) as exc:
		await service.create_event(as_actor(faculty), dto.EventCreateRequest(**{**base, "is_team_based": True}))
	assert exc.value.detail == "max_team_size_required"


@pytest.mark.asyncio
async def test_non_team_event_drops_team_size(repo, as_actor, event_payload):
	faculty = repo.add_user(role="faculty")
	service = EventsService(repository=repo)

	event = await service.create_event(as_actor(faculty), dto.EventCreateRequest(**event_payload(max_team_size=5)))

	assert event.is_team_based is False
	assert event.max_team_size is None


@pytest.mark.asyncio
async def test_register_twice_is_duplicate(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id, team_based=False)
	service = EventsService(repository=repo)

	registration = await service.register(as_actor(student), event.id)
	with pytest.raises(DuplicateRequestError) as exc:
		await service.register(as_actor(student), event.id)

	assert registration.status is models.RegistrationStatus.REGISTERED
	assert exc.value.detail == "already_registered"


@pytest.mark.asyncio
async def test_cancel_registration(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id, team_based=False)
	service = EventsService(repository=repo)
	await service.register(as_actor(student), event.id)

	await service.cancel_registration(as_actor(student), event.id)

	status = await service.registration_status(as_actor(student), event.id)
	assert status.registered is False
	with pytest.raises(NotFoundError):
		await service.cancel_registration(as_actor(student), event.id)


@pytest.mark.asyncio
async def test_cancel_after_start_respects_setting(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id, team_based=False, starts_in=timedelta(hours=-1))
	service = EventsService(repository=repo)
	await service.register(as_actor(student), event.id)

	settings.allow_cancel_after_event_start = False
	with pytest.raises(ValidationError) as exc:
		await service.cancel_registration(as_actor(student), event.id)
	assert exc.value.detail == "event_already_started"

	settings.allow_cancel_after_event_start = True
	await service.cancel_registration(as_actor(student), event.id)
	assert await repo.get_registration(event.id, student.id) is None


@pytest.mark.asyncio
async def test_mark_attended_is_organizer_only_and_idempotent(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id, team_based=False)
	service = EventsService(repository=repo)
	await service.register(as_actor(student), event.id)

	with pytest.raises(AuthorizationError):
		await service.mark_attended(as_actor(student), event.id, student.id)

	first = await service.mark_attended(as_actor(organizer), event.id, student.id)
	second = await service.mark_attended(as_actor(organizer), event.id, student.id)

	assert first.status is models.RegistrationStatus.ATTENDED
	assert second == first
	with pytest.raises(ValidationError) as exc:
		await service.cancel_registration(as_actor(student), event.id)
	assert exc.value.detail == "already_attended"


@pytest.mark.asyncio
async def test_platform_admin_sees_participants(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	admin = repo.add_user(role="admin")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id, team_based=False)
	service = EventsService(repository=repo)
	await service.register(as_actor(student), event.id)

	participants = await service.list_participants(as_actor(admin), event.id)

	assert [item.user_id for item in participants] == [student.id]


@pytest.mark.asyncio
async def test_update_event_revalidates_merged_fields(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	event = repo.add_event(created_by=organizer.id, team_based=False)
	service = EventsService(repository=repo)

	with pytest.raises(ValidationError):
		await service.update_event(as_actor(organizer), event.id, dto.EventUpdateRequest(is_team_based=True))

	updated = await service.update_event(
		as_actor(organizer),
		event.id,
		dto.EventUpdateRequest(is_team_based=True, max_team_size=3),
	)
	assert updated.max_team_size == 3


@pytest.mark.asyncio
async def test_delete_event_removes_teams_and_registrations(repo, as_actor):
	organizer = repo.add_user(role="faculty")
	student = repo.add_user()
	event = repo.add_event(created_by=organizer.id)
	service = EventsService(repository=repo)
	await service.register(as_actor(student), event.id)
	team = await repo.create_team(
		event_id=event.id,
		name="Team",
		description="",
		skills_needed=[],
		is_open=True,
		max_members=3,
		created_by=student.id,
	)
	await repo.add_team_member(team.id, student.id, role=models.TeamRole.LEADER)

	await service.delete_event(as_actor(organizer), event.id)

	assert repo.registrations == {}
	assert repo.teams == {}
	assert repo.team_members == {}
	with pytest.raises(NotFoundError):
		await service.get_event(event.id)


@pytest.mark.asyncio
async def test_list_events_rejects_unknown_window(repo):
	service = EventsService(repository=repo)

	with pytest.raises(ValidationError) as exc:
		await service.list_events(when="someday")

	assert exc.value.detail == "invalid_when"
