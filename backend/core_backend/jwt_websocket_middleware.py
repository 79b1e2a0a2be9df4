"""
JWT WebSocket Authentication Middleware for Django Channels.

Kitchen displays authenticate with the same access tokens the REST API issues.
The token is read from the ``token`` query parameter or the ``access_token``
cookie. Without a valid token the user already in the scope (session auth or
AnonymousUser) is left alone.
"""
import logging
from urllib.parse import parse_qs

from channels.auth import AuthMiddlewareStack
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        if scope["type"] == "websocket":
            user = await self.get_user_from_jwt(scope)
            if user is not None:
                scope["user"] = user
        return await super().__call__(scope, receive, send)

    @staticmethod
    def get_raw_token(scope):
        query = parse_qs(scope.get("query_string", b"").decode("utf-8"))
        if query.get("token"):
            return query["token"][0]

        headers = dict(scope.get("headers", []))
        cookie_header = headers.get(b"cookie", b"").decode("utf-8")
        for cookie in cookie_header.split(";"):
            key, _, value = cookie.strip().partition("=")
            if key == ACCESS_TOKEN_COOKIE and value:
                return value
        return None

    async def get_user_from_jwt(self, scope):
        raw_token = self.get_raw_token(scope)
        if not raw_token:
            return None

        try:
            token = AccessToken(raw_token)
        except TokenError as e:
            logger.warning(f"Rejected WebSocket token: {e}")
            return None

        user_id = token.get(api_settings.USER_ID_CLAIM)
        if user_id is None:
            logger.warning("JWT payload missing user id claim")
            return None

        return await self._load_user(user_id)

    @database_sync_to_async
    def _load_user(self, user_id):
        User = get_user_model()
        try:
            user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id}, is_active=True)
        except User.DoesNotExist:
            logger.warning(f"User {user_id} from JWT not found")
            return None
        logger.info(f"WebSocket authenticated: user_id={user.pk}")
        return user


def JWTAuthMiddlewareStack(inner):
    """Session auth first, then let a bearer token take precedence."""
    return AuthMiddlewareStack(JWTAuthMiddleware(inner))
