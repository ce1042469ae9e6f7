"""Audit trail for membership and workflow decisions."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from campushub.obs.logging import get_logger

audit_logger = get_logger("audit")


def log_workflow_event(
	event: str,
	*,
	actor_id: str,
	subject_id: Optional[str] = None,
	extra: Optional[Mapping[str, Any]] = None,
) -> None:
	"""Emit one audit line for a state-changing workflow operation."""
	payload: dict[str, Any] = {
		"event": event,
		"actor_id": str(actor_id),
		"subject_id": str(subject_id) if subject_id is not None else None,
	}
	if extra:
		payload.update(extra)
	filtered = {key: value for key, value in payload.items() if value is not None}
	audit_logger.info("workflow_event", extra=filtered)
