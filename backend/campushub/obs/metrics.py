"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"campushub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"campushub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

AUTH_FAILURES = Counter(
	"campushub_auth_failures_total",
	"Requests rejected while resolving the caller",
	["reason"],
)

JOIN_REQUESTS = Counter(
	"campushub_join_requests_total",
	"Join requests submitted",
	["scope"],
)

JOIN_DECISIONS = Counter(
	"campushub_join_decisions_total",
	"Join request decisions applied",
	["scope", "decision"],
)

WORKFLOW_REJECTS = Counter(
	"campushub_workflow_rejects_total",
	"Workflow operations refused by a rule",
	["scope", "reason"],
)

MEMBERSHIP_CHANGES = Counter(
	"campushub_membership_changes_total",
	"Membership mutations by scope and action",
	["scope", "action"],
)

EVENT_REGISTRATIONS = Counter(
	"campushub_event_registrations_total",
	"Event registration changes",
	["action"],
)

ENTITIES_CREATED = Counter(
	"campushub_entities_created_total",
	"Clubs, teams, events and jobs created",
	["kind"],
)

ENTITIES_DELETED = Counter(
	"campushub_entities_deleted_total",
	"Clubs, teams, events and jobs deleted",
	["kind"],
)

JOB_APPLICATIONS = Counter(
	"campushub_job_applications_total",
	"Job application changes",
	["action"],
)

RATE_LIMITED = Counter(
	"campushub_rate_limited_total",
	"Operations refused by the rate limiter",
	["kind"],
)

REDIS_UP = Gauge("campushub_redis_up", "Redis reachability (1 = up)")
POSTGRES_UP = Gauge("campushub_postgres_up", "Postgres reachability (1 = up)")
REDIS_LATENCY = Histogram("campushub_redis_ping_seconds", "Redis ping latency")
POSTGRES_LATENCY = Histogram("campushub_postgres_ping_seconds", "Postgres ping latency")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def auth_failed(reason: str) -> None:
	AUTH_FAILURES.labels(reason=reason).inc()


def inc_join_request(scope: str) -> None:
	JOIN_REQUESTS.labels(scope=scope).inc()


def inc_join_decision(scope: str, decision: str) -> None:
	JOIN_DECISIONS.labels(scope=scope, decision=decision).inc()


def inc_workflow_reject(scope: str, reason: str) -> None:
	WORKFLOW_REJECTS.labels(scope=scope, reason=reason).inc()


def inc_membership_change(scope: str, action: str) -> None:
	MEMBERSHIP_CHANGES.labels(scope=scope, action=action).inc()


def inc_event_registration(action: str) -> None:
	EVENT_REGISTRATIONS.labels(action=action).inc()


def inc_entity_created(kind: str) -> None:
	ENTITIES_CREATED.labels(kind=kind).inc()


def inc_entity_deleted(kind: str) -> None:
	ENTITIES_DELETED.labels(kind=kind).inc()


def inc_job_application(action: str) -> None:
	JOB_APPLICATIONS.labels(action=action).inc()


def inc_rate_limited(kind: str) -> None:
	RATE_LIMITED.labels(kind=kind).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
