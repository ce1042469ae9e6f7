"""Team endpoints: formation, join requests, roles and membership."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from campushub.engagement.api._errors import to_http_error
from campushub.engagement.domain.exceptions import EngagementError
from campushub.engagement.domain.teams_service import TeamsService
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["teams"])
_service = TeamsService()


@router.get("/events/{event_id}/teams", response_model=list[dto.TeamResponse])
async def list_teams_endpoint(
	event_id: UUID,
	team_status: str = Query(default="all", alias="status", pattern="^(all|open|closed)$"),
	skill: Optional[str] = Query(default=None, max_length=60),
) -> list[dto.TeamResponse]:
	try:
		return await _service.list_teams(event_id, status=team_status, skill=skill)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/teams", response_model=dto.TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team_endpoint(
	payload: dto.TeamCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.TeamResponse:
	try:
		return await _service.create_team(auth_user, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/teams/mine", response_model=list[dto.TeamMemberResponse])
async def my_teams_endpoint(
	event_id: Optional[UUID] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.TeamMemberResponse]:
	try:
		return await _service.my_teams(auth_user, event_id=event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/teams/requests/mine", response_model=list[dto.TeamJoinRequestResponse])
async def my_team_requests_endpoint(
	event_id: Optional[UUID] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.TeamJoinRequestResponse]:
	try:
		return await _service.my_requests(auth_user, event_id=event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/teams/join-requests/{request_id}/decision", response_model=dto.TeamJoinRequestResponse)
async def resolve_team_request_endpoint(
	request_id: UUID,
	payload: dto.DecisionRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.TeamJoinRequestResponse:
	try:
		return await _service.resolve_request(auth_user, request_id, payload.decision)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/teams/{team_id}", response_model=dto.TeamDetailResponse)
async def get_team_endpoint(team_id: UUID) -> dto.TeamDetailResponse:
	try:
		return await _service.get_team(team_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/teams/{team_id}", response_model=dto.TeamResponse)
async def update_team_endpoint(
	team_id: UUID,
	payload: dto.TeamUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.TeamResponse:
	try:
		return await _service.update_team(auth_user, team_id, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_endpoint(
	team_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.delete_team(auth_user, team_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
	"/teams/{team_id}/join-requests",
	response_model=dto.TeamJoinRequestResponse,
	status_code=status.HTTP_201_CREATED,
)
async def request_team_join_endpoint(
	team_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.TeamJoinRequestResponse:
	try:
		return await _service.request_to_join(auth_user, team_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/teams/{team_id}/join-requests", response_model=list[dto.TeamJoinRequestResponse])
async def list_team_requests_endpoint(
	team_id: UUID,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> list[dto.TeamJoinRequestResponse]:
	try:
		return await _service.list_pending_requests(auth_user, team_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/teams/{team_id}/members/{user_id}", response_model=dto.TeamMemberResponse)
async def change_role_endpoint(
	team_id: UUID,
	user_id: UUID,
	payload: dto.RoleChangeRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.TeamMemberResponse:
	try:
		return await _service.change_role(auth_user, team_id, user_id, payload.role)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/teams/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member_endpoint(
	team_id: UUID,
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.remove_member(auth_user, team_id, user_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/teams/{team_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_team_endpoint(
	team_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.leave_team(auth_user, team_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
