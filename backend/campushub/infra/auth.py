"""Authentication helpers for FastAPI endpoints.

The identity provider issues an HS256 access token. Clients present it either
as a Bearer header or in the session cookie. Development builds also accept
plain `X-User-*` headers so local tools can act as any user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError

from campushub.infra import jwt as jwt_helper
from campushub.obs import metrics as obs_metrics
from campushub.settings import settings

USER_ROLES = ("student", "faculty", "admin")


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: str = "student"
	name: Optional[str] = None
	session_id: Optional[str] = None

	@property
	def is_admin(self) -> bool:
		return self.role == "admin"

	def has_role(self, *roles: str) -> bool:
		return self.role in roles


_bearer_scheme = HTTPBearer(auto_error=False)


def _normalise_role(value: object) -> str:
	role = str(value or "").strip().lower()
	if role not in USER_ROLES:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_role")
	return role


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode an access token and return the user it names.

	Requires issuer/audience to match and the sub, role, exp and iat claims.
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except InvalidTokenError:
		obs_metrics.auth_failed("invalid_token")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	name = payload.get("name")
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=sub,
		role=_normalise_role(payload.get("role")),
		name=str(name) if name is not None else None,
		session_id=str(session_id).strip() if session_id is not None else None,
	)


def _resolve_user(
	request: Request,
	credentials: Optional[HTTPAuthorizationCredentials],
	x_user_id: Optional[str],
	x_user_role: Optional[str],
) -> Optional[AuthenticatedUser]:
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	cookie_token = request.cookies.get(settings.session_cookie_name)
	if cookie_token:
		return verify_access_jwt(cookie_token)

	# Local tooling only
	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id, role=_normalise_role(x_user_role or "student"))
	return None


async def get_current_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user or fail with 401."""
	user = _resolve_user(request, credentials, x_user_id, x_user_role)
	if user is None:
		obs_metrics.auth_failed("missing_credentials")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="not_authenticated")
	return user


async def get_optional_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Like get_current_user but anonymous callers resolve to None."""
	return _resolve_user(request, credentials, x_user_id, x_user_role)

