"""Profile and dashboard endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from campushub.engagement.api._errors import to_http_error
from campushub.engagement.domain.exceptions import EngagementError
from campushub.engagement.domain.users_service import UsersService
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["users"])
_service = UsersService()


@router.get("/me", response_model=dto.UserResponse)
async def get_profile_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> dto.UserResponse:
	try:
		return await _service.get_profile(auth_user)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/me", response_model=dto.UserResponse)
async def update_profile_endpoint(
	payload: dto.ProfileUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.UserResponse:
	try:
		return await _service.update_profile(auth_user, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/me/dashboard", response_model=dto.DashboardResponse)
async def dashboard_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> dto.DashboardResponse:
	try:
		return await _service.dashboard(auth_user)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/users/{user_id}", response_model=dto.UserResponse)
async def get_user_endpoint(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.UserResponse:
	try:
		return await _service.get_user(user_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
