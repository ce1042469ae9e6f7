"""Event endpoints: publishing, listing and registration."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from campushub.engagement.api._errors import to_http_error
from campushub.engagement.domain.events_service import EventsService
from campushub.engagement.domain.exceptions import EngagementError
from campushub.engagement.domain.models import EventMode
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["events"])
_service = EventsService()


@router.get("/events", response_model=list[dto.EventResponse])
async def list_events_endpoint(
	q: Optional[str] = Query(default=None, max_length=100),
	when: str = Query(default="all", pattern="^(all|upcoming|past)$"),
	mode: Optional[EventMode] = Query(default=None),
	team_based: Optional[bool] = Query(default=None),
) -> list[dto.EventResponse]:
	try:
		return await _service.list_events(q=q, when=when, mode=mode, team_based=team_based)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/events", response_model=dto.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
	payload: dto.EventCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.create_event(auth_user, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/events/{event_id}", response_model=dto.EventResponse)
async def get_event_endpoint(event_id: UUID) -> dto.EventResponse:
	try:
		return await _service.get_event(event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/events/{event_id}", response_model=dto.EventResponse)
async def update_event_endpoint(
	event_id: UUID,
	payload: dto.EventUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.EventResponse:
	try:
		return await _service.update_event(auth_user, event_id, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
	event_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.delete_event(auth_user, event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/events/{event_id}/registration", response_model=dto.RegistrationStatusResponse)
async def registration_status_endpoint(
	event_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.RegistrationStatusResponse:
	try:
		return await _service.registration_status(auth_user, event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post(
	"/events/{event_id}/registration",
	response_model=dto.RegistrationResponse,
	status_code=status.HTTP_201_CREATED,
)
async def register_endpoint(
	event_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.RegistrationResponse:
	try:
		return await _service.register(auth_user, event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/events/{event_id}/registration", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_registration_endpoint(
	event_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.cancel_registration(auth_user, event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/events/{event_id}/participants", response_model=list[dto.RegistrationResponse])
async def list_participants_endpoint(
	event_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.RegistrationResponse]:
	try:
		return await _service.list_participants(auth_user, event_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/events/{event_id}/participants/{user_id}/attended", response_model=dto.RegistrationResponse)
async def mark_attended_endpoint(
	event_id: UUID,
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.RegistrationResponse:
	try:
		return await _service.mark_attended(auth_user, event_id, user_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
