import logging
from django.conf import settings
from rest_framework import HTTP_HEADER_ENCODING
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger('backend.core')


class CookieJWTAuthentication(JWTAuthentication):
    """
    JWT authentication reading the token from the auth cookie first and the
    ``Authorization: Bearer`` header second.

    A stale cookie is ignored and the header is tried instead. With no header
    the request is anonymous, so public endpoints keep working and protected
    ones answer 401 through the permission check.
    """

    def authenticate(self, request):
        raw_token = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
        if not raw_token:
            return super().authenticate(request)

        try:
            validated_token = self.get_validated_token(raw_token.encode(HTTP_HEADER_ENCODING))
            return self.get_user(validated_token), validated_token
        except AuthenticationFailed as e:
            logger.debug(f"Ignoring invalid auth cookie, trying the Authorization header: {str(e)}")
            return super().authenticate(request)


def issue_auth_token(user):
    """Create a signed access token carrying the user's role"""
    token = AccessToken.for_user(user)
    token['email'] = user.email
    token['role'] = user.role
    return str(token)


def set_auth_cookie(response, token):
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=int(settings.AUTH_TOKEN_LIFETIME.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        path='/',
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path='/', samesite=settings.AUTH_COOKIE_SAMESITE)
    return response
