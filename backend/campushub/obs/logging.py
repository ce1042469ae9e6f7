"""JSON logging with request-scoped context and field redaction."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from campushub.settings import settings

_LOGGER_NAME = "campushub"

# context key -> (var, key written to the log payload)
_CONTEXT: Dict[str, tuple[ContextVar[Optional[str]], str]] = {
	"request_id": (ContextVar("obs_request_id", default=None), "request_id"),
	"route": (ContextVar("obs_route", default=None), "route"),
	"user_id": (ContextVar("obs_user_id", default=None), "user_id"),
	"client_ip": (ContextVar("obs_client_ip", default=None), "ip"),
}

_REDACT_MARKERS = ("token", "secret", "authorization", "password", "email", "cover_letter", "resume", "body")
_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

# Attributes every LogRecord carries; anything else arrived through `extra=`
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def bind_context(**values: Optional[str]) -> Dict[str, Token]:
	"""Bind request fields (request_id, route, user_id, client_ip); returns reset tokens."""
	tokens: Dict[str, Token] = {}
	for key, value in values.items():
		if value is None:
			continue
		var, _ = _CONTEXT[key]
		tokens[key] = var.set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for key, token in tokens.items():
		_CONTEXT[key][0].reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT["request_id"][0].get()


def _clip(value: Any) -> Any:
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING_LENGTH else value[:_MAX_STRING_LENGTH] + "…"
	if isinstance(value, dict):
		items = list(value.items())
		clipped = {key: _redact(key, nested) for key, nested in items[:_MAX_COLLECTION_ITEMS]}
		if len(items) > _MAX_COLLECTION_ITEMS:
			clipped["…"] = f"+{len(items) - _MAX_COLLECTION_ITEMS} keys"
		return clipped
	if isinstance(value, (list, tuple, set)):
		values = [_clip(item) for item in value]
		return values if len(values) <= _MAX_COLLECTION_ITEMS else values[:_MAX_COLLECTION_ITEMS] + ["…"]
	return value


def _redact(key: str, value: Any) -> Any:
	if any(marker in key.lower() for marker in _REDACT_MARKERS):
		return "[redacted]"
	return _clip(value)


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for var, field in _CONTEXT.values():
			bound = var.get()
			if bound:
				payload[field] = bound
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _STANDARD_ATTRS and key not in payload:
				payload[key] = _redact(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at obs_log_sampling_rate_info; audit lines always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or record.name.startswith(f"{_LOGGER_NAME}.audit"):
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	"""Loggers live under the `campushub.` namespace."""
	if not name or name == _LOGGER_NAME:
		return logging.getLogger(_LOGGER_NAME)
	if name.startswith(f"{_LOGGER_NAME}."):
		return logging.getLogger(name)
	return logging.getLogger(f"{_LOGGER_NAME}.{name}")
