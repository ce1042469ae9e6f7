"""Job postings and applications."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from campushub.engagement.domain import models, policies, repo as repo_module, throttle
from campushub.engagement.domain.events_service import as_aware
from campushub.engagement.domain.exceptions import DuplicateRequestError, NotFoundError, ValidationError
from campushub.engagement.schemas import dto
from campushub.infra.auth import AuthenticatedUser
from campushub.obs import metrics as obs_metrics
from campushub.obs.audit import log_workflow_event

NULLABLE_JOB_FIELDS = frozenset({"location", "salary", "eligibility"})


def _job_fields(payload: dto.JobCreateRequest | dto.JobUpdateRequest, *, partial: bool = False) -> dict[str, Any]:
	fields = payload.model_dump(exclude_unset=partial)
	if partial:
		fields = {key: value for key, value in fields.items() if value is not None or key in NULLABLE_JOB_FIELDS}
	if fields.get("deadline") is not None:
		fields["deadline"] = as_aware(fields["deadline"])
	return fields


class JobsService:
	def __init__(self, *, repository: repo_module.EngagementRepository | None = None) -> None:
		self.repo = repository or repo_module.EngagementRepository()

	async def _require_job(self, job_id: UUID, *, conn=None) -> models.Job:
		job = await self.repo.get_job(job_id, conn=conn)
		if job is None:
			raise NotFoundError("job_not_found")
		return job

	async def create_job(self, user: AuthenticatedUser, payload: dto.JobCreateRequest) -> dto.JobResponse:
		policies.assert_can_publish(user)
		job = await self.repo.create_job(company_id=policies.actor_id(user), fields=_job_fields(payload))
		obs_metrics.inc_entity_created("job")
		log_workflow_event("job.created", actor_id=user.id, subject_id=str(job.id))
		return dto.JobResponse(**job.model_dump())

	async def list_jobs(self, *, job_type: models.JobType | None = None) -> list[dto.JobResponse]:
		jobs = await self.repo.list_jobs(job_type=job_type)
		return [dto.JobResponse(**job.model_dump()) for job in jobs]

	async def get_job(self, job_id: UUID) -> dto.JobResponse:
		job = await self._require_job(job_id)
		return dto.JobResponse(**job.model_dump())

	async def update_job(self, user: AuthenticatedUser, job_id: UUID, payload: dto.JobUpdateRequest) -> dto.JobResponse:
		changes = _job_fields(payload, partial=True)
		async with self.repo.transaction() as conn:
			job = await self._require_job(job_id, conn=conn)
			policies.assert_job_poster(job, user)
			updated = await self.repo.update_job(job_id, changes, conn=conn)
		if updated is None:
			raise NotFoundError("job_not_found")
		log_workflow_event("job.updated", actor_id=user.id, subject_id=str(job_id), extra={"fields": sorted(changes)})
		return dto.JobResponse(**updated.model_dump())

	async def delete_job(self, user: AuthenticatedUser, job_id: UUID) -> None:
		async with self.repo.transaction() as conn:
			job = await self._require_job(job_id, conn=conn)
			policies.assert_job_poster(job, user)
			await self.repo.delete_job(job_id, conn=conn)
		obs_metrics.inc_entity_deleted("job")
		log_workflow_event("job.deleted", actor_id=user.id, subject_id=str(job_id))

	async def apply(
		self,
		user: AuthenticatedUser,
		job_id: UUID,
		payload: dto.ApplicationCreateRequest,
	) -> dto.ApplicationResponse:
		applicant_id = policies.actor_id(user)
		async with self.repo.transaction() as conn:
			job = await self._require_job(job_id, conn=conn)
			if datetime.now(timezone.utc) > job.deadline:
				raise ValidationError("job_deadline_passed")
			if await self.repo.get_user_application(job_id, applicant_id, conn=conn):
				obs_metrics.inc_workflow_reject("job", "already_applied")
				raise DuplicateRequestError("already_applied")
			await throttle.enforce_application(str(applicant_id))
			application = await self.repo.create_application(
				job_id=job_id,
				applicant_id=applicant_id,
				resume_link=str(payload.resume_link),
				cover_letter=payload.cover_letter,
				conn=conn,
			)
		obs_metrics.inc_job_application("applied")
		log_workflow_event("job.applied", actor_id=user.id, subject_id=str(job_id))
		return dto.ApplicationResponse(**application.model_dump())

	async def my_applications(self, user: AuthenticatedUser) -> list[dto.ApplicationResponse]:
		applications = await self.repo.list_user_applications(policies.actor_id(user))
		return [dto.ApplicationResponse(**item.model_dump()) for item in applications]

	async def list_applications(self, user: AuthenticatedUser, job_id: UUID) -> list[dto.ApplicationResponse]:
		job = await self._require_job(job_id)
		policies.assert_job_poster(job, user)
		applications = await self.repo.list_applications(job_id)
		return [dto.ApplicationResponse(**item.model_dump()) for item in applications]

	async def update_application_status(
		self,
		user: AuthenticatedUser,
		application_id: UUID,
		status: models.ApplicationStatus,
	) -> dto.ApplicationResponse:
		async with self.repo.transaction() as conn:
			application = await self.repo.get_application(application_id, conn=conn)
			if application is None:
				raise NotFoundError("application_not_found")
			job = await self._require_job(application.job_id, conn=conn)
			policies.assert_job_poster(job, user)
			updated = await self.repo.set_application_status(application_id, status=status, conn=conn)
		if updated is None:
			raise NotFoundError("application_not_found")
		obs_metrics.inc_job_application(status.value)
		log_workflow_event(
			"job.application_status",
			actor_id=user.id,
			subject_id=str(application_id),
			extra={"status": status.value},
		)
		return dto.ApplicationResponse(**updated.model_dump())
