from datetime import timedelta

import jwt
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import AuthenticationError, ForbiddenError
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import (
    AuthenticatedUser,
    JwtAuth,
    UserRole,
)
from src.service.booking.driving_adapter.http_controller.auth.role_auth import (
    RoleAuthStrategy,
    require_seller_store,
)


@pytest.fixture
def auth() -> JwtAuth:
    return JwtAuth(secret='test_secret_key')


@pytest.mark.unit
class TestJwtAuth:
    def test_seller_claims_round_trip(self, auth):
        seller = AuthenticatedUser(id=uuid7(), role=UserRole.SELLER, store_id=uuid7())

        decoded = auth.get_current_user_info_from_jwt(auth.create_jwt_token(seller))

        assert decoded == seller

    def test_buyer_token_has_no_store(self, auth):
        buyer = AuthenticatedUser(id=uuid7(), role=UserRole.BUYER)

        payload = auth.decode_jwt_token(auth.create_jwt_token(buyer))

        assert payload['sub'] == str(buyer.id)
        assert payload['role'] == 'buyer'
        assert 'store_id' not in payload

    def test_missing_token(self, auth):
        with pytest.raises(AuthenticationError, match='Not authenticated'):
            auth.get_current_user_info_from_jwt(None)

    def test_wrong_secret(self, auth):
        token = JwtAuth(secret='another_secret').create_jwt_token(
            AuthenticatedUser(id=uuid7(), role=UserRole.BUYER)
        )

        with pytest.raises(AuthenticationError, match='Invalid token'):
            auth.get_current_user_info_from_jwt(token)

    def test_expired(self, auth):
        token = auth.create_jwt_token(
            AuthenticatedUser(id=uuid7(), role=UserRole.BUYER), expires_in=timedelta(minutes=-1)
        )

        with pytest.raises(AuthenticationError):
            auth.get_current_user_info_from_jwt(token)

    def test_unknown_role(self, auth):
        token = jwt.encode({'sub': str(uuid7()), 'role': 'admin'}, 'test_secret_key')

        with pytest.raises(AuthenticationError, match='Invalid token'):
            auth.get_current_user_info_from_jwt(token)


@pytest.mark.unit
class TestRoleAuthStrategy:
    def test_roles(self):
        buyer = AuthenticatedUser(id=uuid7(), role=UserRole.BUYER)
        seller = AuthenticatedUser(id=uuid7(), role=UserRole.SELLER, store_id=uuid7())
        storeless = AuthenticatedUser(id=uuid7(), role=UserRole.SELLER)

        assert RoleAuthStrategy.is_buyer(buyer)
        assert not RoleAuthStrategy.is_buyer(seller)
        assert RoleAuthStrategy.is_seller(seller)
        assert not RoleAuthStrategy.is_seller(storeless)

    @pytest.mark.asyncio
    async def test_seller_store_dependency(self):
        store_id = uuid7()
        seller = AuthenticatedUser(id=uuid7(), role=UserRole.SELLER, store_id=store_id)
        storeless = AuthenticatedUser(id=uuid7(), role=UserRole.SELLER)

        assert await require_seller_store(seller) == store_id
        with pytest.raises(ForbiddenError):
            await require_seller_store(storeless)
