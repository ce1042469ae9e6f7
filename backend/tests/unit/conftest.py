from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest

from campushub.engagement.domain import models
from campushub.engagement.domain.exceptions import DuplicateRequestError
from campushub.infra.auth import AuthenticatedUser


def _now() -> datetime:
	return datetime.now(timezone.utc)


class InMemoryRepository:
	"""Dict-backed stand-in for EngagementRepository used by service tests."""

	def __init__(self) -> None:
		self.users: dict[UUID, models.User] = {}
		self.clubs: dict[UUID, models.Club] = {}
		self.club_members: dict[tuple[UUID, UUID], models.ClubMember] = {}
		self.club_requests: dict[UUID, models.ClubJoinRequest] = {}
		self.events: dict[UUID, models.Event] = {}
		self.registrations: dict[tuple[UUID, UUID], models.EventRegistration] = {}
		self.teams: dict[UUID, models.Team] = {}
		self.team_members: dict[tuple[UUID, UUID], models.TeamMember] = {}
		self.team_requests: dict[UUID, models.TeamJoinRequest] = {}
		self.jobs: dict[UUID, models.Job] = {}
		self.applications: dict[UUID, models.JobApplication] = {}
		self.transactions = 0
		self.locked_teams: list[UUID] = []
		self.locked_events: list[UUID] = []

	@asynccontextmanager
	async def transaction(self):
		self.transactions += 1
		yield None

	# --- Seeding helpers ---------------------------------------------------

	def add_user(self, *, role: str = "student", name: str = "Student") -> models.User:
		user = models.User(
			id=uuid4(),
			name=name,
			email=f"{uuid4().hex[:8]}@campus.test",
			role=models.UserRole(role),
			created_at=_now(),
		)
		self.users[user.id] = user
		return user

	def add_event(self, *, created_by: UUID, team_based: bool = True, max_team_size: int | None = 4, starts_in: timedelta = timedelta(days=7)) -> models.Event:
		start = _now() + starts_in
		event = models.Event(
			id=uuid4(),
			title="Hack Night",
			start_datetime=start,
			end_datetime=start + timedelta(hours=3),
			mode=models.EventMode.OFFLINE,
			is_team_based=team_based,
			max_team_size=max_team_size if team_based else None,
			created_by=created_by,
			created_at=_now(),
		)
		self.events[event.id] = event
		return event

	# --- Users -------------------------------------------------------------

	async def get_user(self, user_id: UUID, *, conn=None) -> models.User | None:
		return self.users.get(user_id)

	async def update_user(self, user_id: UUID, fields, *, conn=None) -> models.User | None:
		user = self.users.get(user_id)
		if user is None:
			return None
		updated = user.model_copy(update=dict(fields))
		self.users[user_id] = updated
		return updated

	# --- Clubs -------------------------------------------------------------

	async def create_club(self, *, name, description, logo_url, created_by, conn=None) -> models.Club:
		club = models.Club(
			id=uuid4(),
			name=name,
			description=description,
			logo_url=logo_url,
			created_by=created_by,
			created_at=_now(),
		)
		self.clubs[club.id] = club
		return club

	def _club_with_count(self, club: models.Club) -> models.Club:
		count = sum(1 for (club_id, _) in self.club_members if club_id == club.id)
		return club.model_copy(update={"member_count": count})

	async def get_club(self, club_id: UUID, *, conn=None) -> models.Club | None:
		club = self.clubs.get(club_id)
		return self._club_with_count(club) if club else None

	async def list_clubs(self) -> list[models.Club]:
		return [self._club_with_count(club) for club in self.clubs.values()]

	async def delete_club(self, club_id: UUID, *, conn=None) -> None:
		self.clubs.pop(club_id, None)
		for key in [key for key in self.club_members if key[0] == club_id]:
			del self.club_members[key]
		for key in [key for key, item in self.club_requests.items() if item.club_id == club_id]:
			del self.club_requests[key]

	async def get_club_member(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubMember | None:
		return self.club_members.get((club_id, user_id))

	async def add_club_member(self, club_id: UUID, user_id: UUID, *, role: models.ClubRole, conn=None) -> bool:
		if (club_id, user_id) in self.club_members:
			return False
		self.club_members[(club_id, user_id)] = models.ClubMember(
			id=uuid4(),
			club_id=club_id,
			user_id=user_id,
			role=role,
			joined_at=_now(),
		)
		return True

	async def list_club_members(self, club_id: UUID) -> list[models.ClubMember]:
		return [member for (cid, _), member in self.club_members.items() if cid == club_id]

	async def list_user_clubs(self, user_id: UUID) -> list[models.ClubMember]:
		return [member for (_, uid), member in self.club_members.items() if uid == user_id]

	async def create_club_request(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubJoinRequest:
		if await self.get_pending_club_request(club_id, user_id):
			raise DuplicateRequestError("request_already_pending")
		request = models.ClubJoinRequest(
			id=uuid4(),
			club_id=club_id,
			user_id=user_id,
			status=models.RequestStatus.PENDING,
			requested_at=_now(),
		)
		self.club_requests[request.id] = request
		return request

	async def get_club_request(self, request_id: UUID, *, for_update: bool = False, conn=None):
		return self.club_requests.get(request_id)

	async def get_pending_club_request(self, club_id: UUID, user_id: UUID, *, conn=None):
		for request in self.club_requests.values():
			if request.club_id == club_id and request.user_id == user_id and request.status is models.RequestStatus.PENDING:
				return request
		return None

	async def latest_club_request(self, club_id: UUID, user_id: UUID):
		matches = [r for r in self.club_requests.values() if r.club_id == club_id and r.user_id == user_id]
		return max(matches, key=lambda r: r.requested_at) if matches else None

	async def set_club_request_status(self, request_id: UUID, *, status, resolved_by, conn=None):
		request = self.club_requests[request_id].model_copy(
			update={"status": status, "resolved_by": resolved_by, "resolved_at": _now()}
		)
		self.club_requests[request_id] = request
		return request

	async def list_pending_club_requests(self, club_id: UUID):
		return [
			r for r in self.club_requests.values() if r.club_id == club_id and r.status is models.RequestStatus.PENDING
		]

	# --- Events ------------------------------------------------------------

	async def create_event(self, *, created_by: UUID, fields, conn=None) -> models.Event:
		event = models.Event(id=uuid4(), created_by=created_by, created_at=_now(), **dict(fields))
		self.events[event.id] = event
		return event

	async def get_event(self, event_id: UUID, *, conn=None) -> models.Event | None:
		return self.events.get(event_id)

	async def lock_event(self, event_id: UUID, *, conn) -> models.Event | None:
		self.locked_events.append(event_id)
		return self.events.get(event_id)

	async def update_event(self, event_id: UUID, fields, *, conn=None) -> models.Event | None:
		event = self.events.get(event_id)
		if event is None:
			return None
		updated = event.model_copy(update=dict(fields))
		self.events[event_id] = updated
		return updated

	async def delete_event(self, event_id: UUID, *, conn=None) -> None:
		self.events.pop(event_id, None)
		for key in [key for key in self.registrations if key[0] == event_id]:
			del self.registrations[key]
		for team_id in [team.id for team in self.teams.values() if team.event_id == event_id]:
			await self.delete_team(team_id)

	async def list_events(self, *, q=None, when="all", mode=None, team_based=None, created_by=None, ascending=False, now=None):
		events = list(self.events.values())
		if created_by is not None:
			events = [event for event in events if event.created_by == created_by]
		if q:
			events = [event for event in events if q.lower() in event.title.lower()]
		if mode is not None:
			events = [event for event in events if event.mode is mode]
		if team_based is not None:
			events = [event for event in events if event.is_team_based is team_based]
		return sorted(events, key=lambda event: event.start_datetime, reverse=not ascending)

	async def get_registration(self, event_id: UUID, user_id: UUID, *, conn=None):
		return self.registrations.get((event_id, user_id))

	async def create_registration(self, event_id: UUID, user_id: UUID, *, conn=None):
		if (event_id, user_id) in self.registrations:
			raise DuplicateRequestError("already_registered")
		registration = models.EventRegistration(
			id=uuid4(),
			event_id=event_id,
			user_id=user_id,
			status=models.RegistrationStatus.REGISTERED,
			registered_at=_now(),
		)
		self.registrations[(event_id, user_id)] = registration
		return registration

	async def delete_registration(self, event_id: UUID, user_id: UUID, *, conn=None) -> None:
		self.registrations.pop((event_id, user_id), None)

	async def set_registration_status(self, event_id: UUID, user_id: UUID, *, status, conn=None):
		registration = self.registrations[(event_id, user_id)].model_copy(update={"status": status})
		self.registrations[(event_id, user_id)] = registration
		return registration

	async def list_registrations(self, event_id: UUID):
		return [item for (eid, _), item in self.registrations.items() if eid == event_id]

	async def list_user_registrations(self, user_id: UUID):
		return [item for (_, uid), item in self.registrations.items() if uid == user_id]

	# --- Teams -------------------------------------------------------------

	async def create_team(self, *, event_id, name, description, skills_needed, is_open, max_members, created_by, conn=None):
		team = models.Team(
			id=uuid4(),
			event_id=event_id,
			name=name,
			description=description,
			skills_needed=list(skills_needed),
			is_open=is_open,
			max_members=max_members,
			created_by=created_by,
			created_at=_now(),
		)
		self.teams[team.id] = team
		return team

	def _team_with_count(self, team: models.Team) -> models.Team:
		count = sum(1 for (team_id, _) in self.team_members if team_id == team.id)
		return team.model_copy(update={"member_count": count})

	async def get_team(self, team_id: UUID, *, conn=None) -> models.Team | None:
		team = self.teams.get(team_id)
		return self._team_with_count(team) if team else None

	async def lock_team(self, team_id: UUID, *, conn) -> models.Team | None:
		self.locked_teams.append(team_id)
		return self.teams.get(team_id)

	async def update_team(self, team_id: UUID, fields, *, conn=None):
		team = self.teams.get(team_id)
		if team is None:
			return None
		self.teams[team_id] = team.model_copy(update=dict(fields))
		return await self.get_team(team_id)

	async def delete_team(self, team_id: UUID, *, conn=None) -> None:
		self.teams.pop(team_id, None)
		for key in [key for key in self.team_members if key[0] == team_id]:
			del self.team_members[key]
		for key in [key for key, item in self.team_requests.items() if item.team_id == team_id]:
			del self.team_requests[key]

	async def list_teams(self, event_id: UUID, *, is_open=None, skill=None):
		teams = [team for team in self.teams.values() if team.event_id == event_id]
		if is_open is not None:
			teams = [team for team in teams if team.is_open is is_open]
		if skill:
			teams = [team for team in teams if any(skill.lower() in item.lower() for item in team.skills_needed)]
		return [self._team_with_count(team) for team in teams]

	async def get_team_member(self, team_id: UUID, user_id: UUID, *, conn=None):
		return self.team_members.get((team_id, user_id))

	async def list_team_members(self, team_id: UUID, *, conn=None):
		members = [member for (tid, _), member in self.team_members.items() if tid == team_id]
		return sorted(members, key=lambda member: member.role is not models.TeamRole.LEADER)

	async def count_team_members(self, team_id: UUID, *, role=None, conn=None) -> int:
		return sum(
			1
			for (tid, _), member in self.team_members.items()
			if tid == team_id and (role is None or member.role is role)
		)

	async def add_team_member(self, team_id: UUID, user_id: UUID, *, role, conn=None) -> bool:
		if (team_id, user_id) in self.team_members:
			return False
		self.team_members[(team_id, user_id)] = models.TeamMember(
			id=uuid4(),
			team_id=team_id,
			user_id=user_id,
			role=role,
			joined_at=_now(),
			event_id=self.teams[team_id].event_id,
		)
		return True

	async def set_team_member_role(self, team_id: UUID, user_id: UUID, *, role, conn=None):
		member = self.team_members[(team_id, user_id)].model_copy(update={"role": role})
		self.team_members[(team_id, user_id)] = member
		return member

	async def remove_team_member(self, team_id: UUID, user_id: UUID, *, conn=None) -> None:
		self.team_members.pop((team_id, user_id), None)

	async def find_event_team_for_user(self, event_id: UUID, user_id: UUID, *, conn=None) -> UUID | None:
		for (team_id, uid) in self.team_members:
			if uid == user_id and self.teams[team_id].event_id == event_id:
				return team_id
		return None

	async def list_user_teams(self, user_id: UUID, *, event_id=None):
		return [
			member
			for (_, uid), member in self.team_members.items()
			if uid == user_id and (event_id is None or member.event_id == event_id)
		]

	async def create_team_request(self, team_id: UUID, user_id: UUID, *, conn=None):
		if await self.get_pending_team_request(team_id, user_id):
			raise DuplicateRequestError("request_already_pending")
		request = models.TeamJoinRequest(
			id=uuid4(),
			team_id=team_id,
			user_id=user_id,
			status=models.RequestStatus.PENDING,
			requested_at=_now(),
		)
		self.team_requests[request.id] = request
		return request

	async def get_team_request(self, request_id: UUID, *, for_update: bool = False, conn=None):
		return self.team_requests.get(request_id)

	async def get_pending_team_request(self, team_id: UUID, user_id: UUID, *, conn=None):
		for request in self.team_requests.values():
			if request.team_id == team_id and request.user_id == user_id and request.status is models.RequestStatus.PENDING:
				return request
		return None

	async def set_team_request_status(self, request_id: UUID, *, status, resolved_by, conn=None):
		request = self.team_requests[request_id].model_copy(
			update={"status": status, "resolved_by": resolved_by, "resolved_at": _now()}
		)
		self.team_requests[request_id] = request
		return request

	async def list_pending_team_requests(self, team_id: UUID):
		return [
			r for r in self.team_requests.values() if r.team_id == team_id and r.status is models.RequestStatus.PENDING
		]

	async def list_user_team_requests(self, user_id: UUID, *, event_id=None):
		return [
			r
			for r in self.team_requests.values()
			if r.user_id == user_id and (event_id is None or self.teams[r.team_id].event_id == event_id)
		]

	# --- Jobs --------------------------------------------------------------

	async def create_job(self, *, company_id: UUID, fields, conn=None) -> models.Job:
		job = models.Job(id=uuid4(), company_id=company_id, created_at=_now(), **dict(fields))
		self.jobs[job.id] = job
		return job

	async def get_job(self, job_id: UUID, *, conn=None):
		return self.jobs.get(job_id)

	async def update_job(self, job_id: UUID, fields, *, conn=None):
		job = self.jobs.get(job_id)
		if job is None:
			return None
		self.jobs[job_id] = job.model_copy(update=dict(fields))
		return self.jobs[job_id]

	async def delete_job(self, job_id: UUID, *, conn=None) -> None:
		self.jobs.pop(job_id, None)
		for key in [key for key, item in self.applications.items() if item.job_id == job_id]:
			del self.applications[key]

	async def list_jobs(self, *, job_type=None):
		return [job for job in self.jobs.values() if job_type is None or job.type is job_type]

	async def create_application(self, *, job_id, applicant_id, resume_link, cover_letter, conn=None):
		application = models.JobApplication(
			id=uuid4(),
			job_id=job_id,
			applicant_id=applicant_id,
			resume_link=resume_link,
			cover_letter=cover_letter,
			status=models.ApplicationStatus.APPLIED,
			applied_at=_now(),
		)
		self.applications[application.id] = application
		return application

	async def get_application(self, application_id: UUID, *, conn=None):
		return self.applications.get(application_id)

	async def get_user_application(self, job_id: UUID, applicant_id: UUID, *, conn=None):
		for application in self.applications.values():
			if application.job_id == job_id and application.applicant_id == applicant_id:
				return application
		return None

	async def set_application_status(self, application_id: UUID, *, status, conn=None):
		application = self.applications.get(application_id)
		if application is None:
			return None
		self.applications[application_id] = application.model_copy(update={"status": status})
		return self.applications[application_id]

	async def list_applications(self, job_id: UUID):
		return [item for item in self.applications.values() if item.job_id == job_id]

	async def list_user_applications(self, user_id: UUID):
		return [item for item in self.applications.values() if item.applicant_id == user_id]


def actor(user: models.User) -> AuthenticatedUser:
	return AuthenticatedUser(id=str(user.id), role=user.role.value, name=user.name)


@pytest.fixture
def repo() -> InMemoryRepository:
	return InMemoryRepository()


@pytest.fixture
def as_actor():
	return actor


@pytest.fixture
def event_payload():
	def _build(**overrides: Any) -> dict[str, Any]:
		start = _now() + timedelta(days=3)
		payload = {
			"title": "Robotics Demo Day",
			"start_datetime": start,
			"end_datetime": start + timedelta(hours=2),
			"mode": "offline",
		}
		payload.update(overrides)
		return payload

	return _build
