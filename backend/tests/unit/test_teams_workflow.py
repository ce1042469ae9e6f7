from __future__ import annotations

import pytest

from campushub.engagement.domain import models
from campushub.engagement.domain.exceptions import (
	AuthorizationError,
	CapacityError,
	ConflictError,
	DuplicateRequestError,
	InvariantViolationError,
	NotFoundError,
	ValidationError,
)
from campushub.engagement.domain.teams_service import TeamsService
from campushub.engagement.schemas import dto
from campushub.settings import settings


async def _team(repo, as_actor, leader, *, max_members=2, max_team_size=4, **extra):
	organizer = repo.add_user(role="faculty")
	event = repo.add_event(created_by=organizer.id, max_team_size=max_team_size)
	service = TeamsService(repository=repo)
	payload = dto.TeamCreateRequest(event_id=event.id, name="Rustaceans", max_members=max_members, **extra)
	team = await service.create_team(as_actor(leader), payload)
	return service, event, team


@pytest.mark.asyncio
async def test_create_team_adds_leader(repo, as_actor):
	leader = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)

	assert team.member_count == 1
	membership = await repo.get_team_member(team.id, leader.id)
	assert membership.role is models.TeamRole.LEADER


@pytest.mark.asyncio
async def test_create_team_requires_team_based_event(repo, as_actor):
	leader = repo.add_user()
	event = repo.add_event(created_by=leader.id, team_based=False)
	service = TeamsService(repository=repo)

	with pytest.raises(ValidationError) as exc:
		await service.create_team(as_actor(leader), dto.TeamCreateRequest(event_id=event.id, name="Solo", max_members=3))

	assert exc.value.detail == "event_not_team_based"


@pytest.mark.asyncio
async def test_max_members_cannot_exceed_event_limit(repo, as_actor):
	leader = repo.add_user()
	event = repo.add_event(created_by=leader.id, max_team_size=3)
	service = TeamsService(repository=repo)

	with pytest.raises(ValidationError) as exc:
		await service.create_team(as_actor(leader), dto.TeamCreateRequest(event_id=event.id, name="Big", max_members=5))

	assert exc.value.detail == "max_members_exceeds_event_limit"


@pytest.mark.asyncio
async def test_one_team_per_event(repo, as_actor):
	leader = repo.add_user()
	service, event, _ = await _team(repo, as_actor, leader)

	with pytest.raises(DuplicateRequestError) as exc:
		await service.create_team(as_actor(leader), dto.TeamCreateRequest(event_id=event.id, name="Second", max_members=2))

	assert exc.value.detail == "already_in_event_team"


@pytest.mark.asyncio
async def test_accept_at_capacity_keeps_request_pending(repo, as_actor):
	leader = repo.add_user()
	first = repo.add_user()
	second = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader, max_members=2)

	req_one = await service.request_to_join(as_actor(first), team.id)
	req_two = await service.request_to_join(as_actor(second), team.id)
	accepted = await service.resolve_request(as_actor(leader), req_one.id, models.Decision.ACCEPT)

	with pytest.raises(CapacityError):
		await service.resolve_request(as_actor(leader), req_two.id, models.Decision.ACCEPT)

	assert accepted.status is models.RequestStatus.ACCEPTED
	assert await repo.count_team_members(team.id) == 2
	assert repo.team_requests[req_two.id].status is models.RequestStatus.PENDING
	assert team.id in repo.locked_teams


@pytest.mark.asyncio
async def test_reject_at_capacity_is_allowed(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader, max_members=1)
	request = await service.request_to_join(as_actor(student), team.id)

	resolved = await service.resolve_request(as_actor(leader), request.id, models.Decision.REJECT)

	assert resolved.status is models.RequestStatus.REJECTED


@pytest.mark.asyncio
async def test_only_leader_resolves_requests(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	outsider = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	request = await service.request_to_join(as_actor(student), team.id)

	with pytest.raises(AuthorizationError) as exc:
		await service.resolve_request(as_actor(outsider), request.id, models.Decision.ACCEPT)

	assert exc.value.detail == "team_leader_required"


@pytest.mark.asyncio
async def test_closed_team_rejects_requests(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader, is_open=False)

	with pytest.raises(ConflictError) as exc:
		await service.request_to_join(as_actor(student), team.id)

	assert exc.value.detail == "team_closed"


@pytest.mark.asyncio
async def test_member_of_other_team_cannot_request(repo, as_actor):
	leader = repo.add_user()
	other_leader = repo.add_user()
	service, event, team = await _team(repo, as_actor, leader)
	await service.create_team(
		as_actor(other_leader),
		dto.TeamCreateRequest(event_id=event.id, name="Other", max_members=2),
	)

	with pytest.raises(DuplicateRequestError) as exc:
		await service.request_to_join(as_actor(other_leader), team.id)

	assert exc.value.detail == "already_in_event_team"


@pytest.mark.asyncio
async def test_demoting_last_leader_is_rejected(repo, as_actor):
	leader = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)

	with pytest.raises(InvariantViolationError) as exc:
		await service.change_role(as_actor(leader), team.id, leader.id, models.TeamRole.MEMBER)

	assert exc.value.detail == "last_leader"
	membership = await repo.get_team_member(team.id, leader.id)
	assert membership.role is models.TeamRole.LEADER


@pytest.mark.asyncio
async def test_promote_then_demote_former_leader(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	request = await service.request_to_join(as_actor(student), team.id)
	await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	promoted = await service.change_role(as_actor(leader), team.id, student.id, models.TeamRole.LEADER)
	demoted = await service.change_role(as_actor(student), team.id, leader.id, models.TeamRole.MEMBER)

	assert promoted.role is models.TeamRole.LEADER
	assert demoted.role is models.TeamRole.MEMBER
	assert await repo.count_team_members(team.id, role=models.TeamRole.LEADER) == 1


@pytest.mark.asyncio
async def test_sole_leader_cannot_leave(repo, as_actor):
	leader = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)

	with pytest.raises(InvariantViolationError) as exc:
		await service.leave_team(as_actor(leader), team.id)

	assert exc.value.detail == "sole_leader_cannot_leave"


@pytest.mark.asyncio
async def test_member_can_leave(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	request = await service.request_to_join(as_actor(student), team.id)
	await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	await service.leave_team(as_actor(student), team.id)

	assert await repo.get_team_member(team.id, student.id) is None


@pytest.mark.asyncio
async def test_remove_member_rules(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	request = await service.request_to_join(as_actor(student), team.id)
	await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	with pytest.raises(ValidationError) as exc:
		await service.remove_member(as_actor(leader), team.id, leader.id)
	assert exc.value.detail == "use_leave_team"

	with pytest.raises(AuthorizationError):
		await service.remove_member(as_actor(student), team.id, leader.id)

	await service.remove_member(as_actor(leader), team.id, student.id)
	assert await repo.get_team_member(team.id, student.id) is None


@pytest.mark.asyncio
async def test_delete_team_cascades(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	pending = await service.request_to_join(as_actor(student), team.id)

	await service.delete_team(as_actor(leader), team.id)

	assert repo.team_members == {}
	assert repo.team_requests == {}
	with pytest.raises(NotFoundError):
		await service.get_team(team.id)
	with pytest.raises(NotFoundError):
		await service.request_to_join(as_actor(student), team.id)
	with pytest.raises(NotFoundError):
		await service.resolve_request(as_actor(leader), pending.id, models.Decision.ACCEPT)


@pytest.mark.asyncio
async def test_list_teams_filters(repo, as_actor):
	leader = repo.add_user()
	other = repo.add_user()
	service, event, team = await _team(repo, as_actor, leader, skills_needed=["Rust", "Embedded"])
	await service.create_team(
		as_actor(other),
		dto.TeamCreateRequest(event_id=event.id, name="Closed", max_members=2, is_open=False),
	)

	open_teams = await service.list_teams(event.id, status="open")
	rust_teams = await service.list_teams(event.id, skill="rust")

	assert [item.id for item in open_teams] == [team.id]
	assert [item.id for item in rust_teams] == [team.id]
	with pytest.raises(ValidationError):
		await service.list_teams(event.id, status="archived")


@pytest.mark.asyncio
async def test_pending_requests_hidden_from_members(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	await service.request_to_join(as_actor(student), team.id)

	assert len(await service.list_pending_requests(as_actor(leader), team.id)) == 1
	assert await service.list_pending_requests(as_actor(student), team.id) == []
	assert await service.list_pending_requests(None, team.id) == []


@pytest.mark.asyncio
async def test_repeated_team_accept_is_idempotent(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader, max_members=3)
	request = await service.request_to_join(as_actor(student), team.id)

	first = await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)
	second = await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	assert first.status is models.RequestStatus.ACCEPTED
	assert second.status is models.RequestStatus.ACCEPTED
	assert second.id == first.id
	assert await repo.count_team_members(team.id) == 2
	with pytest.raises(ConflictError) as exc:
		await service.resolve_request(as_actor(leader), request.id, models.Decision.REJECT)
	assert exc.value.detail == "request_already_resolved"


@pytest.mark.asyncio
async def test_duplicate_team_request_rejected(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	await service.request_to_join(as_actor(student), team.id)

	with pytest.raises(DuplicateRequestError) as exc:
		await service.request_to_join(as_actor(student), team.id)

	assert exc.value.detail == "request_already_pending"
	pending = [item for item in repo.team_requests.values() if item.user_id == student.id]
	assert len(pending) == 1


@pytest.mark.asyncio
async def test_non_leader_cannot_change_role(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	request = await service.request_to_join(as_actor(student), team.id)
	await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	with pytest.raises(AuthorizationError) as exc:
		await service.change_role(as_actor(student), team.id, student.id, models.TeamRole.LEADER)

	assert exc.value.detail == "team_leader_required"
	membership = await repo.get_team_member(team.id, student.id)
	assert membership.role is models.TeamRole.MEMBER


@pytest.mark.asyncio
async def test_event_row_locked_before_team_membership_changes(repo, as_actor):
	leader = repo.add_user()
	student = repo.add_user()
	service, event, team = await _team(repo, as_actor, leader)
	assert repo.locked_events == [event.id]

	request = await service.request_to_join(as_actor(student), team.id)
	await service.resolve_request(as_actor(leader), request.id, models.Decision.ACCEPT)

	assert repo.locked_events == [event.id, event.id, event.id]
	assert repo.locked_teams == [team.id]


@pytest.mark.asyncio
async def test_rejected_team_request_does_not_use_budget(repo, as_actor, monkeypatch):
	monkeypatch.setattr(settings, "join_request_rate_limit", 1)
	leader = repo.add_user()
	student = repo.add_user()
	service, _, team = await _team(repo, as_actor, leader)
	await service.request_to_join(as_actor(student), team.id)

	with pytest.raises(DuplicateRequestError):
		await service.request_to_join(as_actor(student), team.id)
	with pytest.raises(DuplicateRequestError):
		await service.request_to_join(as_actor(leader), team.id)
	with pytest.raises(DuplicateRequestError):
		await service.request_to_join(as_actor(leader), team.id)
