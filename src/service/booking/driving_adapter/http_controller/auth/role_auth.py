from uuid import UUID

from fastapi import Depends

from src.platform.exception.exceptions import ForbiddenError
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import (
    AuthenticatedUser,
    UserRole,
    get_current_user,
)


class RoleAuthStrategy:
    @staticmethod
    def is_buyer(user: AuthenticatedUser) -> bool:
        return user.role == UserRole.BUYER

    @staticmethod
    def is_seller(user: AuthenticatedUser) -> bool:
        return user.role == UserRole.SELLER and user.store_id is not None


async def require_buyer(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    if not RoleAuthStrategy.is_buyer(current_user):
        raise ForbiddenError('Only buyers can perform this action')
    return current_user


async def require_seller(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    if not RoleAuthStrategy.is_seller(current_user):
        raise ForbiddenError('Only sellers with a store can perform this action')
    return current_user


async def require_seller_store(
    current_user: AuthenticatedUser = Depends(require_seller),
) -> UUID:
    """Store the authenticated seller acts for."""
    if current_user.store_id is None:
        raise ForbiddenError('Only sellers with a store can perform this action')
    return current_user.store_id
