"""Pydantic schemas for the engagement API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from campushub.engagement.domain.models import (
	ApplicationStatus,
	ClubRole,
	Decision,
	EventMode,
	JobType,
	RegistrationStatus,
	RequestStatus,
	TeamRole,
	UserRole,
)


# --- Users ---------------------------------------------------------------


class ProfileUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, min_length=1, max_length=120)
	dept: Optional[str] = Field(default=None, max_length=120)
	year: Optional[str] = Field(default=None, max_length=20)
	bio: Optional[str] = Field(default=None, max_length=2000)
	skills: Optional[List[str]] = Field(default=None, max_length=50)
	resume_link: Optional[HttpUrl] = None
	profile_pic: Optional[HttpUrl] = None


class UserResponse(BaseModel):
	id: UUID
	name: str
	email: str
	role: UserRole
	dept: Optional[str] = None
	year: Optional[str] = None
	bio: Optional[str] = None
	skills: List[str] = Field(default_factory=list)
	resume_link: Optional[str] = None
	profile_pic: Optional[str] = None
	created_at: datetime


# --- Clubs ---------------------------------------------------------------


class ClubCreateRequest(BaseModel):
	name: str = Field(..., min_length=2, max_length=120)
	description: str = Field(default="", max_length=4000)
	logo_url: Optional[HttpUrl] = None


class ClubResponse(BaseModel):
	id: UUID
	name: str
	description: str
	logo_url: Optional[str] = None
	created_by: UUID
	created_at: datetime
	member_count: int = 0


class ClubMemberResponse(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	role: ClubRole
	joined_at: datetime
	user_name: Optional[str] = None
	club_name: Optional[str] = None


class ClubJoinRequestResponse(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	status: RequestStatus
	requested_at: datetime
	resolved_at: Optional[datetime] = None
	resolved_by: Optional[UUID] = None
	user_name: Optional[str] = None


class ClubStatusResponse(BaseModel):
	"""The caller's relationship to one club."""

	club_id: UUID
	is_member: bool
	role: Optional[ClubRole] = None
	request_status: Optional[RequestStatus] = None


class DecisionRequest(BaseModel):
	decision: Decision


# --- Events --------------------------------------------------------------


class EventCreateRequest(BaseModel):
	title: str = Field(..., min_length=2, max_length=200)
	description: str = Field(default="", max_length=8000)
	type: Optional[str] = Field(default=None, max_length=40)
	start_datetime: datetime
	end_datetime: datetime
	location: Optional[str] = Field(default=None, max_length=200)
	mode: EventMode = EventMode.OFFLINE
	is_team_based: bool = False
	max_team_size: Optional[int] = Field(default=None, ge=1, le=100)
	poster_url: Optional[HttpUrl] = None


class EventUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=2, max_length=200)
	description: Optional[str] = Field(default=None, max_length=8000)
	type: Optional[str] = Field(default=None, max_length=40)
	start_datetime: Optional[datetime] = None
	end_datetime: Optional[datetime] = None
	location: Optional[str] = Field(default=None, max_length=200)
	mode: Optional[EventMode] = None
	is_team_based: Optional[bool] = None
	max_team_size: Optional[int] = Field(default=None, ge=1, le=100)
	poster_url: Optional[HttpUrl] = None


class EventResponse(BaseModel):
	id: UUID
	title: str
	description: str
	type: Optional[str] = None
	start_datetime: datetime
	end_datetime: datetime
	location: Optional[str] = None
	mode: EventMode
	is_team_based: bool
	max_team_size: Optional[int] = None
	poster_url: Optional[str] = None
	created_by: UUID
	created_at: datetime


class RegistrationResponse(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	status: RegistrationStatus
	registered_at: datetime
	user_name: Optional[str] = None
	user_email: Optional[str] = None
	event_title: Optional[str] = None
	event_start: Optional[datetime] = None


class RegistrationStatusResponse(BaseModel):
	event_id: UUID
	registered: bool
	status: Optional[RegistrationStatus] = None


# --- Teams ---------------------------------------------------------------


class TeamCreateRequest(BaseModel):
	event_id: UUID
	name: str = Field(..., min_length=2, max_length=120)
	description: str = Field(default="", max_length=4000)
	max_members: int = Field(..., ge=1, le=100)
	skills_needed: List[str] = Field(default_factory=list, max_length=30)
	is_open: bool = True


class TeamUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, min_length=2, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	is_open: Optional[bool] = None
	skills_needed: Optional[List[str]] = Field(default=None, max_length=30)


class TeamMemberResponse(BaseModel):
	id: UUID
	team_id: UUID
	user_id: UUID
	role: TeamRole
	joined_at: datetime
	user_name: Optional[str] = None
	team_name: Optional[str] = None
	event_id: Optional[UUID] = None


class TeamResponse(BaseModel):
	id: UUID
	event_id: UUID
	name: str
	description: str
	skills_needed: List[str]
	is_open: bool
	max_members: int
	created_by: UUID
	created_at: datetime
	member_count: int = 0


class TeamDetailResponse(TeamResponse):
	members: List[TeamMemberResponse] = Field(default_factory=list)


class TeamJoinRequestResponse(BaseModel):
	id: UUID
	team_id: UUID
	user_id: UUID
	status: RequestStatus
	requested_at: datetime
	resolved_at: Optional[datetime] = None
	resolved_by: Optional[UUID] = None
	user_name: Optional[str] = None
	team_name: Optional[str] = None


class RoleChangeRequest(BaseModel):
	role: TeamRole


# --- Jobs ----------------------------------------------------------------


class JobCreateRequest(BaseModel):
	title: str = Field(..., min_length=2, max_length=200)
	description: str = Field(default="", max_length=8000)
	type: JobType
	location: Optional[str] = Field(default=None, max_length=200)
	salary: Optional[str] = Field(default=None, max_length=80)
	eligibility: Optional[str] = Field(default=None, max_length=2000)
	deadline: datetime


class JobUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=2, max_length=200)
	description: Optional[str] = Field(default=None, max_length=8000)
	type: Optional[JobType] = None
	location: Optional[str] = Field(default=None, max_length=200)
	salary: Optional[str] = Field(default=None, max_length=80)
	eligibility: Optional[str] = Field(default=None, max_length=2000)
	deadline: Optional[datetime] = None


class JobResponse(BaseModel):
	id: UUID
	title: str
	description: str
	type: JobType
	location: Optional[str] = None
	salary: Optional[str] = None
	eligibility: Optional[str] = None
	deadline: datetime
	company_id: UUID
	created_at: datetime


class ApplicationCreateRequest(BaseModel):
	resume_link: HttpUrl
	cover_letter: Optional[str] = Field(default=None, max_length=8000)


class ApplicationStatusUpdateRequest(BaseModel):
	status: ApplicationStatus


class ApplicationResponse(BaseModel):
	id: UUID
	job_id: UUID
	applicant_id: UUID
	resume_link: str
	cover_letter: Optional[str] = None
	status: ApplicationStatus
	applied_at: datetime
	applicant_name: Optional[str] = None
	job_title: Optional[str] = None


# --- Dashboard -----------------------------------------------------------


class DashboardResponse(BaseModel):
	user: UserResponse
	registrations: List[RegistrationResponse] = Field(default_factory=list)
	clubs: List[ClubMemberResponse] = Field(default_factory=list)
	teams: List[TeamMemberResponse] = Field(default_factory=list)
	applications: List[ApplicationResponse] = Field(default_factory=list)
