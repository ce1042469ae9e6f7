"""Domain models for campus engagement entities."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
	STUDENT = "student"
	FACULTY = "faculty"
	ADMIN = "admin"


class ClubRole(str, Enum):
	MEMBER = "member"
	ADMIN = "admin"


class TeamRole(str, Enum):
	MEMBER = "member"
	LEADER = "leader"


class RequestStatus(str, Enum):
	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"


class Decision(str, Enum):
	ACCEPT = "accept"
	REJECT = "reject"

	@property
	def resulting_status(self) -> RequestStatus:
		return RequestStatus.ACCEPTED if self is Decision.ACCEPT else RequestStatus.REJECTED


class RegistrationStatus(str, Enum):
	REGISTERED = "registered"
	ATTENDED = "attended"


class EventMode(str, Enum):
	ONLINE = "online"
	OFFLINE = "offline"
	HYBRID = "hybrid"


class JobType(str, Enum):
	INTERNSHIP = "internship"
	FULL_TIME = "full-time"
	PART_TIME = "part-time"
	CONTRACT = "contract"


class ApplicationStatus(str, Enum):
	APPLIED = "applied"
	REVIEWED = "reviewed"
	INTERVIEW = "interview"
	OFFERED = "offered"
	REJECTED = "rejected"


class User(BaseModel):
	id: UUID
	name: str
	email: str
	role: UserRole = Field(validation_alias="user_type")
	dept: Optional[str] = None
	year: Optional[str] = None
	bio: Optional[str] = None
	skills: list[str] = Field(default_factory=list)
	resume_link: Optional[str] = None
	profile_pic: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class Club(BaseModel):
	id: UUID
	name: str
	description: str = ""
	logo_url: Optional[str] = None
	created_by: UUID
	created_at: datetime
	member_count: int = 0

	model_config = ConfigDict(from_attributes=True)


class ClubMember(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	role: ClubRole
	joined_at: datetime
	user_name: Optional[str] = None
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class ClubJoinRequest(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	status: RequestStatus
	requested_at: datetime
	resolved_at: Optional[datetime] = None
	resolved_by: Optional[UUID] = None
	user_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class Event(BaseModel):
	id: UUID
	title: str
	description: str = ""
	type: Optional[str] = None
	start_datetime: datetime
	end_datetime: datetime
	location: Optional[str] = None
	mode: EventMode
	is_team_based: bool = False
	max_team_size: Optional[int] = None
	poster_url: Optional[str] = None
	created_by: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class EventRegistration(BaseModel):
	id: UUID
	event_id: UUID
	user_id: UUID
	status: RegistrationStatus
	registered_at: datetime
	user_name: Optional[str] = None
	user_email: Optional[str] = None
	event_title: Optional[str] = None
	event_start: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)


class Team(BaseModel):
	id: UUID
	event_id: UUID
	name: str
	description: str = ""
	skills_needed: list[str] = Field(default_factory=list)
	is_open: bool = True
	max_members: int
	created_by: UUID
	created_at: datetime
	member_count: int = 0

	model_config = ConfigDict(from_attributes=True)


class TeamMember(BaseModel):
	id: UUID
	team_id: UUID
	user_id: UUID
	role: TeamRole
	joined_at: datetime
	user_name: Optional[str] = None
	team_name: Optional[str] = None
	event_id: Optional[UUID] = None

	model_config = ConfigDict(from_attributes=True)


class TeamJoinRequest(BaseModel):
	id: UUID
	team_id: UUID
	user_id: UUID
	status: RequestStatus
	requested_at: datetime
	resolved_at: Optional[datetime] = None
	resolved_by: Optional[UUID] = None
	user_name: Optional[str] = None
	team_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class Job(BaseModel):
	id: UUID
	title: str
	description: str = ""
	type: JobType
	location: Optional[str] = None
	salary: Optional[str] = None
	eligibility: Optional[str] = None
	deadline: datetime
	company_id: UUID
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class JobApplication(BaseModel):
	id: UUID
	job_id: UUID
	applicant_id: UUID
	resume_link: str
	cover_letter: Optional[str] = None
	status: ApplicationStatus
	applied_at: datetime
	applicant_name: Optional[str] = None
	job_title: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)
