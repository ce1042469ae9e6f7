"""Club endpoints: directory, membership and join-request moderation."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from campushub.engagement.api._errors import to_http_error
from campushub.engagement.domain.clubs_service import ClubsService
from campushub.engagement.domain.exceptions import EngagementError
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["clubs"])
_service = ClubsService()


@router.get("/clubs", response_model=list[dto.ClubResponse])
async def list_clubs_endpoint() -> list[dto.ClubResponse]:
	try:
		return await _service.list_clubs()
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/clubs", response_model=dto.ClubResponse, status_code=status.HTTP_201_CREATED)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubResponse:
	try:
		return await _service.create_club(auth_user, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/clubs/join-requests/{request_id}/decision", response_model=dto.ClubJoinRequestResponse)
async def resolve_club_request_endpoint(
	request_id: UUID,
	payload: dto.DecisionRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubJoinRequestResponse:
	try:
		return await _service.resolve_request(auth_user, request_id, payload.decision)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}", response_model=dto.ClubResponse)
async def get_club_endpoint(club_id: UUID) -> dto.ClubResponse:
	try:
		return await _service.get_club(club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.delete_club(auth_user, club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/clubs/{club_id}/members", response_model=list[dto.ClubMemberResponse])
async def list_club_members_endpoint(club_id: UUID) -> list[dto.ClubMemberResponse]:
	try:
		return await _service.list_members(club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/status", response_model=dto.ClubStatusResponse)
async def club_status_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubStatusResponse:
	try:
		return await _service.status(auth_user, club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/clubs/{club_id}/join-requests",
	response_model=dto.ClubJoinRequestResponse,
	status_code=status.HTTP_201_CREATED,
)
async def request_club_join_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubJoinRequestResponse:
	try:
		return await _service.request_to_join(auth_user, club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/join-requests", response_model=list[dto.ClubJoinRequestResponse])
async def list_club_requests_endpoint(
	club_id: UUID,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> list[dto.ClubJoinRequestResponse]:
	try:
		return await _service.list_pending_requests(auth_user, club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/events", response_model=list[dto.EventResponse])
async def list_club_events_endpoint(club_id: UUID) -> list[dto.EventResponse]:
	try:
		return await _service.list_club_events(club_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/events", response_model=dto.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_club_event_endpoint(
	club_id: UUID,
	payload: dto.EventCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.create_club_event(auth_user, club_id, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
