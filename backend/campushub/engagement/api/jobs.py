"""Job board endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from campushub.engagement.api._errors import to_http_error
from campushub.engagement.domain.exceptions import EngagementError
from campushub.engagement.domain.jobs_service import JobsService
from campushub.engagement.domain.models import JobType
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["jobs"])
_service = JobsService()


@router.get("/jobs", response_model=list[dto.JobResponse])
async def list_jobs_endpoint(job_type: Optional[JobType] = Query(default=None, alias="type")) -> list[dto.JobResponse]:
	try:
		return await _service.list_jobs(job_type=job_type)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.post("/jobs", response_model=dto.JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job_endpoint(
	payload: dto.JobCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JobResponse:
	try:
		return await _service.create_job(auth_user, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/jobs/applications/mine", response_model=list[dto.ApplicationResponse])
async def my_applications_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ApplicationResponse]:
	try:
		return await _service.my_applications(auth_user)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/jobs/applications/{application_id}", response_model=dto.ApplicationResponse)
async def update_application_status_endpoint(
	application_id: UUID,
	payload: dto.ApplicationStatusUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ApplicationResponse:
	try:
		return await _service.update_application_status(auth_user, application_id, payload.status)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/jobs/{job_id}", response_model=dto.JobResponse)
async def get_job_endpoint(job_id: UUID) -> dto.JobResponse:
	try:
		return await _service.get_job(job_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.patch("/jobs/{job_id}", response_model=dto.JobResponse)
async def update_job_endpoint(
	job_id: UUID,
	payload: dto.JobUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.JobResponse:
	try:
		return await _service.update_job(auth_user, job_id, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job_endpoint(
	job_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	try:
		await _service.delete_job(auth_user, job_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
	"/jobs/{job_id}/applications",
	response_model=dto.ApplicationResponse,
	status_code=status.HTTP_201_CREATED,
)
async def apply_endpoint(
	job_id: UUID,
	payload: dto.ApplicationCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ApplicationResponse:
	try:
		return await _service.apply(auth_user, job_id, payload)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


@router.get("/jobs/{job_id}/applications", response_model=list[dto.ApplicationResponse])
async def list_applications_endpoint(
	job_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[dto.ApplicationResponse]:
	try:
		return await _service.list_applications(auth_user, job_id)
	except EngagementError as exc:
		raise to_http_error(exc) from exc


__all__ = ["router"]
