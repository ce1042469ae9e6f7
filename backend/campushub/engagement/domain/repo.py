"""Async repository for the engagement tables."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Mapping, Optional
from uuid import UUID, uuid4

import asyncpg

from campushub.engagement.domain import models
from campushub.engagement.domain.exceptions import DuplicateRequestError, StoreError
from campushub.infra.postgres import get_pool

logger = logging.getLogger(__name__)

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

USER_PROFILE_COLUMNS = ("name", "dept", "year", "bio", "skills", "resume_link", "profile_pic")
EVENT_COLUMNS = (
	"title",
	"description",
	"type",
	"start_datetime",
	"end_datetime",
	"location",
	"mode",
	"is_team_based",
	"max_team_size",
	"poster_url",
)
TEAM_COLUMNS = ("name", "description", "is_open", "skills_needed")
JOB_COLUMNS = ("title", "description", "type", "location", "salary", "eligibility", "deadline")

_TEAM_SELECT = """
	SELECT t.*, (SELECT COUNT(*) FROM teammembers m WHERE m.team_id = t.id) AS member_count
	FROM teams t
"""

_CLUB_SELECT = """
	SELECT c.*, (SELECT COUNT(*) FROM clubmembers m WHERE m.club_id = c.id) AS member_count
	FROM clubs c
"""


def _plain(value: Any) -> Any:
	if isinstance(value, UUID):
		return str(value)
	if isinstance(value, Enum):
		return value.value
	return value


def _set_clause(fields: Mapping[str, Any], allowed: tuple[str, ...], *, start: int = 2) -> tuple[str, list[Any]]:
	"""Build `col=$n, ...` for the allowed keys present in fields."""
	parts: list[str] = []
	values: list[Any] = []
	for column in allowed:
		if column not in fields:
			continue
		values.append(_plain(fields[column]))
		parts.append(f"{column}=${start + len(values) - 1}")
	return ", ".join(parts), values


class EngagementRepository:
	"""Thin data-access layer around asyncpg."""

	@asynccontextmanager
	async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
		"""Yield a connection inside one database transaction."""
		try:
			pool = await get_pool()
			async with pool.acquire() as conn:
				async with conn.transaction():
					yield conn
		except _STORE_ERRORS as exc:
			logger.error("store_error", exc_info=True)
			raise StoreError() from exc

	@asynccontextmanager
	async def _connection(self, conn: Optional[asyncpg.Connection] = None) -> AsyncIterator[asyncpg.Connection]:
		if conn is not None:
			yield conn
			return
		try:
			pool = await get_pool()
			async with pool.acquire() as acquired:
				yield acquired
		except _STORE_ERRORS as exc:
			logger.error("store_error", exc_info=True)
			raise StoreError() from exc

	# --- Users ------------------------------------------------------------

	async def get_user(self, user_id: UUID, *, conn=None) -> models.User | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow("SELECT * FROM users WHERE id=$1", str(user_id))
		return models.User.model_validate(dict(record)) if record else None

	async def update_user(self, user_id: UUID, fields: Mapping[str, Any], *, conn=None) -> models.User | None:
		assignments, values = _set_clause(fields, USER_PROFILE_COLUMNS)
		if not assignments:
			return await self.get_user(user_id, conn=conn)
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				f"UPDATE users SET {assignments} WHERE id=$1 RETURNING *",
				str(user_id),
				*values,
			)
		return models.User.model_validate(dict(record)) if record else None

	# --- Clubs ------------------------------------------------------------

	async def create_club(
		self,
		*,
		name: str,
		description: str,
		logo_url: str | None,
		created_by: UUID,
		conn=None,
	) -> models.Club:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				INSERT INTO clubs (id, name, description, logo_url, created_by)
				VALUES ($1, $2, $3, $4, $5)
				RETURNING *
				""",
				str(uuid4()),
				name,
				description,
				logo_url,
				str(created_by),
			)
		return models.Club.model_validate(dict(record))

	async def get_club(self, club_id: UUID, *, conn=None) -> models.Club | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(f"{_CLUB_SELECT} WHERE c.id=$1", str(club_id))
		return models.Club.model_validate(dict(record)) if record else None

	async def list_clubs(self) -> list[models.Club]:
		async with self._connection() as c:
			rows = await c.fetch(f"{_CLUB_SELECT} ORDER BY c.created_at DESC")
		return [models.Club.model_validate(dict(row)) for row in rows]

	async def delete_club(self, club_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute("DELETE FROM clubjoinrequests WHERE club_id=$1", str(club_id))
			await c.execute("DELETE FROM clubmembers WHERE club_id=$1", str(club_id))
			await c.execute("DELETE FROM clubs WHERE id=$1", str(club_id))

	async def get_club_member(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubMember | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM clubmembers WHERE club_id=$1 AND user_id=$2",
				str(club_id),
				str(user_id),
			)
		return models.ClubMember.model_validate(dict(record)) if record else None

	async def add_club_member(self, club_id: UUID, user_id: UUID, *, role: models.ClubRole, conn=None) -> bool:
		"""Insert the membership unless one already exists; True when inserted."""
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				INSERT INTO clubmembers (id, club_id, user_id, role)
				VALUES ($1, $2, $3, $4)
				ON CONFLICT (club_id, user_id) DO NOTHING
				RETURNING id
				""",
				str(uuid4()),
				str(club_id),
				str(user_id),
				role.value,
			)
		return record is not None

	async def list_club_members(self, club_id: UUID) -> list[models.ClubMember]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT m.*, u.name AS user_name
				FROM clubmembers m JOIN users u ON u.id = m.user_id
				WHERE m.club_id=$1
				ORDER BY m.role ASC, m.joined_at ASC
				""",
				str(club_id),
			)
		return [models.ClubMember.model_validate(dict(row)) for row in rows]

	async def list_user_clubs(self, user_id: UUID) -> list[models.ClubMember]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT m.*, c.name AS club_name
				FROM clubmembers m JOIN clubs c ON c.id = m.club_id
				WHERE m.user_id=$1
				ORDER BY m.joined_at DESC
				""",
				str(user_id),
			)
		return [models.ClubMember.model_validate(dict(row)) for row in rows]

	async def create_club_request(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubJoinRequest:
		async with self._connection(conn) as c:
			try:
				record = await c.fetchrow(
					"""
					INSERT INTO clubjoinrequests (id, club_id, user_id, status)
					VALUES ($1, $2, $3, 'pending')
					RETURNING *
					""",
					str(uuid4()),
					str(club_id),
					str(user_id),
				)
			except asyncpg.UniqueViolationError as exc:
				raise DuplicateRequestError("request_already_pending") from exc
		return models.ClubJoinRequest.model_validate(dict(record))

	async def get_club_request(self, request_id: UUID, *, for_update: bool = False, conn=None) -> models.ClubJoinRequest | None:
		lock = " FOR UPDATE" if for_update else ""
		async with self._connection(conn) as c:
			record = await c.fetchrow(f"SELECT * FROM clubjoinrequests WHERE id=$1{lock}", str(request_id))
		return models.ClubJoinRequest.model_validate(dict(record)) if record else None

	async def get_pending_club_request(self, club_id: UUID, user_id: UUID, *, conn=None) -> models.ClubJoinRequest | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM clubjoinrequests WHERE club_id=$1 AND user_id=$2 AND status='pending'",
				str(club_id),
				str(user_id),
			)
		return models.ClubJoinRequest.model_validate(dict(record)) if record else None

	async def latest_club_request(self, club_id: UUID, user_id: UUID) -> models.ClubJoinRequest | None:
		async with self._connection() as c:
			record = await c.fetchrow(
				"""
				SELECT * FROM clubjoinrequests
				WHERE club_id=$1 AND user_id=$2
				ORDER BY requested_at DESC
				LIMIT 1
				""",
				str(club_id),
				str(user_id),
			)
		return models.ClubJoinRequest.model_validate(dict(record)) if record else None

	async def set_club_request_status(
		self,
		request_id: UUID,
		*,
		status: models.RequestStatus,
		resolved_by: UUID,
		conn=None,
	) -> models.ClubJoinRequest:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				UPDATE clubjoinrequests
				SET status=$2, resolved_by=$3, resolved_at=NOW()
				WHERE id=$1
				RETURNING *
				""",
				str(request_id),
				status.value,
				str(resolved_by),
			)
		return models.ClubJoinRequest.model_validate(dict(record))

	async def list_pending_club_requests(self, club_id: UUID) -> list[models.ClubJoinRequest]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT r.*, u.name AS user_name
				FROM clubjoinrequests r JOIN users u ON u.id = r.user_id
				WHERE r.club_id=$1 AND r.status='pending'
				ORDER BY r.requested_at ASC
				""",
				str(club_id),
			)
		return [models.ClubJoinRequest.model_validate(dict(row)) for row in rows]

	# --- Events -----------------------------------------------------------

	async def create_event(self, *, created_by: UUID, fields: Mapping[str, Any], conn=None) -> models.Event:
		columns = [column for column in EVENT_COLUMNS if column in fields]
		placeholders = ", ".join(f"${idx}" for idx in range(3, len(columns) + 3))
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				f"""
				INSERT INTO events (id, created_by, {", ".join(columns)})
				VALUES ($1, $2, {placeholders})
				RETURNING *
				""",
				str(uuid4()),
				str(created_by),
				*[_plain(fields[column]) for column in columns],
			)
		return models.Event.model_validate(dict(record))

	async def get_event(self, event_id: UUID, *, conn=None) -> models.Event | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow("SELECT * FROM events WHERE id=$1", str(event_id))
		return models.Event.model_validate(dict(record)) if record else None

	async def lock_event(self, event_id: UUID, *, conn) -> models.Event | None:
		"""Take the event row lock that serializes team membership changes for the event."""
		record = await conn.fetchrow("SELECT * FROM events WHERE id=$1 FOR UPDATE", str(event_id))
		return models.Event.model_validate(dict(record)) if record else None

	async def update_event(self, event_id: UUID, fields: Mapping[str, Any], *, conn=None) -> models.Event | None:
		assignments, values = _set_clause(fields, EVENT_COLUMNS)
		if not assignments:
			return await self.get_event(event_id, conn=conn)
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				f"UPDATE events SET {assignments} WHERE id=$1 RETURNING *",
				str(event_id),
				*values,
			)
		return models.Event.model_validate(dict(record)) if record else None

	async def delete_event(self, event_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute(
				"DELETE FROM teamjoinrequest WHERE team_id IN (SELECT id FROM teams WHERE event_id=$1)",
				str(event_id),
			)
			await c.execute(
				"DELETE FROM teammembers WHERE team_id IN (SELECT id FROM teams WHERE event_id=$1)",
				str(event_id),
			)
			await c.execute("DELETE FROM teams WHERE event_id=$1", str(event_id))
			await c.execute("DELETE FROM eventregistration WHERE event_id=$1", str(event_id))
			await c.execute("DELETE FROM events WHERE id=$1", str(event_id))

	async def list_events(
		self,
		*,
		q: str | None = None,
		when: str = "all",
		mode: models.EventMode | None = None,
		team_based: bool | None = None,
		created_by: UUID | None = None,
		ascending: bool = False,
		now: datetime | None = None,
	) -> list[models.Event]:
		clauses: list[str] = []
		params: list[Any] = []
		if q:
			params.append(f"%{q}%")
			clauses.append(f"(title ILIKE ${len(params)} OR description ILIKE ${len(params)})")
		if when in ("upcoming", "past"):
			params.append(now)
			op = ">=" if when == "upcoming" else "<"
			clauses.append(f"start_datetime {op} ${len(params)}")
		if mode is not None:
			params.append(mode.value)
			clauses.append(f"mode=${len(params)}")
		if team_based is not None:
			params.append(team_based)
			clauses.append(f"is_team_based=${len(params)}")
		if created_by is not None:
			params.append(str(created_by))
			clauses.append(f"created_by=${len(params)}")
		where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
		order = "ASC" if ascending else "DESC"
		async with self._connection() as c:
			rows = await c.fetch(f"SELECT * FROM events {where} ORDER BY start_datetime {order}", *params)
		return [models.Event.model_validate(dict(row)) for row in rows]

	async def get_registration(self, event_id: UUID, user_id: UUID, *, conn=None) -> models.EventRegistration | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM eventregistration WHERE event_id=$1 AND user_id=$2",
				str(event_id),
				str(user_id),
			)
		return models.EventRegistration.model_validate(dict(record)) if record else None

	async def create_registration(self, event_id: UUID, user_id: UUID, *, conn=None) -> models.EventRegistration:
		async with self._connection(conn) as c:
			try:
				record = await c.fetchrow(
					"""
					INSERT INTO eventregistration (id, event_id, user_id, status)
					VALUES ($1, $2, $3, 'registered')
					RETURNING *
					""",
					str(uuid4()),
					str(event_id),
					str(user_id),
				)
			except asyncpg.UniqueViolationError as exc:
				raise DuplicateRequestError("already_registered") from exc
		return models.EventRegistration.model_validate(dict(record))

	async def delete_registration(self, event_id: UUID, user_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute(
				"DELETE FROM eventregistration WHERE event_id=$1 AND user_id=$2",
				str(event_id),
				str(user_id),
			)

	async def set_registration_status(
		self,
		event_id: UUID,
		user_id: UUID,
		*,
		status: models.RegistrationStatus,
		conn=None,
	) -> models.EventRegistration | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				UPDATE eventregistration SET status=$3
				WHERE event_id=$1 AND user_id=$2
				RETURNING *
				""",
				str(event_id),
				str(user_id),
				status.value,
			)
		return models.EventRegistration.model_validate(dict(record)) if record else None

	async def list_registrations(self, event_id: UUID) -> list[models.EventRegistration]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT r.*, u.name AS user_name, u.email AS user_email
				FROM eventregistration r JOIN users u ON u.id = r.user_id
				WHERE r.event_id=$1
				ORDER BY r.registered_at ASC
				""",
				str(event_id),
			)
		return [models.EventRegistration.model_validate(dict(row)) for row in rows]

	async def list_user_registrations(self, user_id: UUID) -> list[models.EventRegistration]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT r.*, e.title AS event_title, e.start_datetime AS event_start
				FROM eventregistration r JOIN events e ON e.id = r.event_id
				WHERE r.user_id=$1
				ORDER BY e.start_datetime DESC
				""",
				str(user_id),
			)
		return [models.EventRegistration.model_validate(dict(row)) for row in rows]

	# --- Teams ------------------------------------------------------------

	async def create_team(
		self,
		*,
		event_id: UUID,
		name: str,
		description: str,
		skills_needed: list[str],
		is_open: bool,
		max_members: int,
		created_by: UUID,
		conn=None,
	) -> models.Team:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				INSERT INTO teams (id, event_id, name, description, skills_needed, is_open, max_members, created_by)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
				RETURNING *
				""",
				str(uuid4()),
				str(event_id),
				name,
				description,
				list(skills_needed),
				is_open,
				max_members,
				str(created_by),
			)
		return models.Team.model_validate(dict(record))

	async def get_team(self, team_id: UUID, *, conn=None) -> models.Team | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(f"{_TEAM_SELECT} WHERE t.id=$1", str(team_id))
		return models.Team.model_validate(dict(record)) if record else None

	async def lock_team(self, team_id: UUID, *, conn) -> models.Team | None:
		"""Take the team row lock; member counts must be read after this returns."""
		record = await conn.fetchrow("SELECT * FROM teams WHERE id=$1 FOR UPDATE", str(team_id))
		return models.Team.model_validate(dict(record)) if record else None

	async def update_team(self, team_id: UUID, fields: Mapping[str, Any], *, conn=None) -> models.Team | None:
		assignments, values = _set_clause(fields, TEAM_COLUMNS)
		async with self._connection(conn) as c:
			if assignments:
				await c.execute(f"UPDATE teams SET {assignments} WHERE id=$1", str(team_id), *values)
			return await self.get_team(team_id, conn=c)

	async def delete_team(self, team_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute("DELETE FROM teamjoinrequest WHERE team_id=$1", str(team_id))
			await c.execute("DELETE FROM teammembers WHERE team_id=$1", str(team_id))
			await c.execute("DELETE FROM teams WHERE id=$1", str(team_id))

	async def list_teams(
		self,
		event_id: UUID,
		*,
		is_open: bool | None = None,
		skill: str | None = None,
	) -> list[models.Team]:
		clauses = ["t.event_id=$1"]
		params: list[Any] = [str(event_id)]
		if is_open is not None:
			params.append(is_open)
			clauses.append(f"t.is_open=${len(params)}")
		if skill:
			params.append(f"%{skill}%")
			clauses.append(f"EXISTS (SELECT 1 FROM unnest(t.skills_needed) s WHERE s ILIKE ${len(params)})")
		async with self._connection() as c:
			rows = await c.fetch(
				f"{_TEAM_SELECT} WHERE {' AND '.join(clauses)} ORDER BY t.created_at DESC",
				*params,
			)
		return [models.Team.model_validate(dict(row)) for row in rows]

	async def get_team_member(self, team_id: UUID, user_id: UUID, *, conn=None) -> models.TeamMember | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM teammembers WHERE team_id=$1 AND user_id=$2",
				str(team_id),
				str(user_id),
			)
		return models.TeamMember.model_validate(dict(record)) if record else None

	async def list_team_members(self, team_id: UUID, *, conn=None) -> list[models.TeamMember]:
		async with self._connection(conn) as c:
			rows = await c.fetch(
				"""
				SELECT m.*, u.name AS user_name
				FROM teammembers m JOIN users u ON u.id = m.user_id
				WHERE m.team_id=$1
				ORDER BY m.role ASC, m.joined_at ASC
				""",
				str(team_id),
			)
		return [models.TeamMember.model_validate(dict(row)) for row in rows]

	async def count_team_members(self, team_id: UUID, *, role: models.TeamRole | None = None, conn=None) -> int:
		async with self._connection(conn) as c:
			if role is None:
				value = await c.fetchval("SELECT COUNT(*) FROM teammembers WHERE team_id=$1", str(team_id))
			else:
				value = await c.fetchval(
					"SELECT COUNT(*) FROM teammembers WHERE team_id=$1 AND role=$2",
					str(team_id),
					role.value,
				)
		return int(value or 0)

	async def add_team_member(self, team_id: UUID, user_id: UUID, *, role: models.TeamRole, conn=None) -> bool:
		"""Insert the membership unless one already exists; True when inserted."""
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				INSERT INTO teammembers (id, team_id, user_id, role)
				VALUES ($1, $2, $3, $4)
				ON CONFLICT (team_id, user_id) DO NOTHING
				RETURNING id
				""",
				str(uuid4()),
				str(team_id),
				str(user_id),
				role.value,
			)
		return record is not None

	async def set_team_member_role(
		self,
		team_id: UUID,
		user_id: UUID,
		*,
		role: models.TeamRole,
		conn=None,
	) -> models.TeamMember | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"UPDATE teammembers SET role=$3 WHERE team_id=$1 AND user_id=$2 RETURNING *",
				str(team_id),
				str(user_id),
				role.value,
			)
		return models.TeamMember.model_validate(dict(record)) if record else None

	async def remove_team_member(self, team_id: UUID, user_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute(
				"DELETE FROM teammembers WHERE team_id=$1 AND user_id=$2",
				str(team_id),
				str(user_id),
			)

	async def find_event_team_for_user(self, event_id: UUID, user_id: UUID, *, conn=None) -> UUID | None:
		async with self._connection(conn) as c:
			value = await c.fetchval(
				"""
				SELECT t.id FROM teams t JOIN teammembers m ON m.team_id = t.id
				WHERE t.event_id=$1 AND m.user_id=$2
				LIMIT 1
				""",
				str(event_id),
				str(user_id),
			)
		return UUID(str(value)) if value is not None else None

	async def list_user_teams(self, user_id: UUID, *, event_id: UUID | None = None) -> list[models.TeamMember]:
		params: list[Any] = [str(user_id)]
		event_clause = ""
		if event_id is not None:
			params.append(str(event_id))
			event_clause = "AND t.event_id=$2"
		async with self._connection() as c:
			rows = await c.fetch(
				f"""
				SELECT m.*, t.name AS team_name, t.event_id AS event_id
				FROM teammembers m JOIN teams t ON t.id = m.team_id
				WHERE m.user_id=$1 {event_clause}
				ORDER BY m.joined_at DESC
				""",
				*params,
			)
		return [models.TeamMember.model_validate(dict(row)) for row in rows]

	async def create_team_request(self, team_id: UUID, user_id: UUID, *, conn=None) -> models.TeamJoinRequest:
		async with self._connection(conn) as c:
			try:
				record = await c.fetchrow(
					"""
					INSERT INTO teamjoinrequest (id, team_id, user_id, status)
					VALUES ($1, $2, $3, 'pending')
					RETURNING *
					""",
					str(uuid4()),
					str(team_id),
					str(user_id),
				)
			except asyncpg.UniqueViolationError as exc:
				raise DuplicateRequestError("request_already_pending") from exc
		return models.TeamJoinRequest.model_validate(dict(record))

	async def get_team_request(self, request_id: UUID, *, for_update: bool = False, conn=None) -> models.TeamJoinRequest | None:
		lock = " FOR UPDATE" if for_update else ""
		async with self._connection(conn) as c:
			record = await c.fetchrow(f"SELECT * FROM teamjoinrequest WHERE id=$1{lock}", str(request_id))
		return models.TeamJoinRequest.model_validate(dict(record)) if record else None

	async def get_pending_team_request(self, team_id: UUID, user_id: UUID, *, conn=None) -> models.TeamJoinRequest | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM teamjoinrequest WHERE team_id=$1 AND user_id=$2 AND status='pending'",
				str(team_id),
				str(user_id),
			)
		return models.TeamJoinRequest.model_validate(dict(record)) if record else None

	async def set_team_request_status(
		self,
		request_id: UUID,
		*,
		status: models.RequestStatus,
		resolved_by: UUID,
		conn=None,
	) -> models.TeamJoinRequest:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"""
				UPDATE teamjoinrequest
				SET status=$2, resolved_by=$3, resolved_at=NOW()
				WHERE id=$1
				RETURNING *
				""",
				str(request_id),
				status.value,
				str(resolved_by),
			)
		return models.TeamJoinRequest.model_validate(dict(record))

	async def list_pending_team_requests(self, team_id: UUID) -> list[models.TeamJoinRequest]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT r.*, u.name AS user_name
				FROM teamjoinrequest r JOIN users u ON u.id = r.user_id
				WHERE r.team_id=$1 AND r.status='pending'
				ORDER BY r.requested_at ASC
				""",
				str(team_id),
			)
		return [models.TeamJoinRequest.model_validate(dict(row)) for row in rows]

	async def list_user_team_requests(self, user_id: UUID, *, event_id: UUID | None = None) -> list[models.TeamJoinRequest]:
		params: list[Any] = [str(user_id)]
		event_clause = ""
		if event_id is not None:
			params.append(str(event_id))
			event_clause = "AND t.event_id=$2"
		async with self._connection() as c:
			rows = await c.fetch(
				f"""
				SELECT r.*, t.name AS team_name
				FROM teamjoinrequest r JOIN teams t ON t.id = r.team_id
				WHERE r.user_id=$1 {event_clause}
				ORDER BY r.requested_at DESC
				""",
				*params,
			)
		return [models.TeamJoinRequest.model_validate(dict(row)) for row in rows]

	# --- Jobs -------------------------------------------------------------

	async def create_job(self, *, company_id: UUID, fields: Mapping[str, Any], conn=None) -> models.Job:
		columns = [column for column in JOB_COLUMNS if column in fields]
		placeholders = ", ".join(f"${idx}" for idx in range(3, len(columns) + 3))
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				f"""
				INSERT INTO jobs (id, company_id, {", ".join(columns)})
				VALUES ($1, $2, {placeholders})
				RETURNING *
				""",
				str(uuid4()),
				str(company_id),
				*[_plain(fields[column]) for column in columns],
			)
		return models.Job.model_validate(dict(record))

	async def get_job(self, job_id: UUID, *, conn=None) -> models.Job | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow("SELECT * FROM jobs WHERE id=$1", str(job_id))
		return models.Job.model_validate(dict(record)) if record else None

	async def update_job(self, job_id: UUID, fields: Mapping[str, Any], *, conn=None) -> models.Job | None:
		assignments, values = _set_clause(fields, JOB_COLUMNS)
		if not assignments:
			return await self.get_job(job_id, conn=conn)
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				f"UPDATE jobs SET {assignments} WHERE id=$1 RETURNING *",
				str(job_id),
				*values,
			)
		return models.Job.model_validate(dict(record)) if record else None

	async def delete_job(self, job_id: UUID, *, conn=None) -> None:
		async with self._connection(conn) as c:
			await c.execute("DELETE FROM jobapplication WHERE job_id=$1", str(job_id))
			await c.execute("DELETE FROM jobs WHERE id=$1", str(job_id))

	async def list_jobs(self, *, job_type: models.JobType | None = None) -> list[models.Job]:
		async with self._connection() as c:
			if job_type is None:
				rows = await c.fetch("SELECT * FROM jobs ORDER BY created_at DESC")
			else:
				rows = await c.fetch("SELECT * FROM jobs WHERE type=$1 ORDER BY created_at DESC", job_type.value)
		return [models.Job.model_validate(dict(row)) for row in rows]

	async def create_application(
		self,
		*,
		job_id: UUID,
		applicant_id: UUID,
		resume_link: str,
		cover_letter: str | None,
		conn=None,
	) -> models.JobApplication:
		async with self._connection(conn) as c:
			try:
				record = await c.fetchrow(
					"""
					INSERT INTO jobapplication (id, job_id, applicant_id, resume_link, cover_letter, status)
					VALUES ($1, $2, $3, $4, $5, 'applied')
					RETURNING *
					""",
					str(uuid4()),
					str(job_id),
					str(applicant_id),
					resume_link,
					cover_letter,
				)
			except asyncpg.UniqueViolationError as exc:
				raise DuplicateRequestError("already_applied") from exc
		return models.JobApplication.model_validate(dict(record))

	async def get_application(self, application_id: UUID, *, conn=None) -> models.JobApplication | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow("SELECT * FROM jobapplication WHERE id=$1", str(application_id))
		return models.JobApplication.model_validate(dict(record)) if record else None

	async def get_user_application(self, job_id: UUID, applicant_id: UUID, *, conn=None) -> models.JobApplication | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"SELECT * FROM jobapplication WHERE job_id=$1 AND applicant_id=$2",
				str(job_id),
				str(applicant_id),
			)
		return models.JobApplication.model_validate(dict(record)) if record else None

	async def set_application_status(
		self,
		application_id: UUID,
		*,
		status: models.ApplicationStatus,
		conn=None,
	) -> models.JobApplication | None:
		async with self._connection(conn) as c:
			record = await c.fetchrow(
				"UPDATE jobapplication SET status=$2 WHERE id=$1 RETURNING *",
				str(application_id),
				status.value,
			)
		return models.JobApplication.model_validate(dict(record)) if record else None

	async def list_applications(self, job_id: UUID) -> list[models.JobApplication]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT a.*, u.name AS applicant_name
				FROM jobapplication a JOIN users u ON u.id = a.applicant_id
				WHERE a.job_id=$1
				ORDER BY a.applied_at DESC
				""",
				str(job_id),
			)
		return [models.JobApplication.model_validate(dict(row)) for row in rows]

	async def list_user_applications(self, applicant_id: UUID) -> list[models.JobApplication]:
		async with self._connection() as c:
			rows = await c.fetch(
				"""
				SELECT a.*, j.title AS job_title
				FROM jobapplication a JOIN jobs j ON j.id = a.job_id
				WHERE a.applicant_id=$1
				ORDER BY a.applied_at DESC
				""",
				str(applicant_id),
			)
		return [models.JobApplication.model_validate(dict(row)) for row in rows]
