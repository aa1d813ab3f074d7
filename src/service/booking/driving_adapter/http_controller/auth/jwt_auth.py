"""
Bearer token authentication (stateless, no DB query).

Tokens are issued by the identity service; this service only verifies them and
rebuilds the caller from the claims: ``sub`` (user id), ``role`` and, for
sellers, ``store_id``.
"""

from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any, Dict, Optional
from uuid import UUID

import attrs
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from src.platform.exception.exceptions import AuthenticationError


class UserRole(StrEnum):
    BUYER = 'buyer'
    SELLER = 'seller'


@attrs.frozen
class AuthenticatedUser:
    id: UUID
    role: UserRole
    store_id: Optional[UUID] = None


class JwtAuth:
    def __init__(self, *, secret: str, algorithm: str = 'HS256') -> None:
        self.secret = secret
        self.algorithm = algorithm

    def create_jwt_token(
        self, user: AuthenticatedUser, *, expires_in: timedelta = timedelta(days=7)
    ) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            'sub': str(user.id),
            'role': str(user.role),
            'iat': now,
            'exp': now + expires_in,
        }
        if user.store_id is not None:
            payload['store_id'] = str(user.store_id)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise AuthenticationError('Invalid token')

    def get_current_user_info_from_jwt(self, token: Optional[str]) -> AuthenticatedUser:
        if not token:
            raise AuthenticationError('Not authenticated')

        payload = self.decode_jwt_token(token)
        try:
            store_id = payload.get('store_id')
            return AuthenticatedUser(
                id=UUID(payload['sub']),
                role=UserRole(payload['role']),
                store_id=UUID(store_id) if store_id else None,
            )
        except (KeyError, ValueError):
            raise AuthenticationError('Invalid token')


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    jwt_auth: JwtAuth = request.app.state.container.jwt_auth()
    return jwt_auth.get_current_user_info_from_jwt(
        credentials.credentials if credentials else None
    )
