"""Signed one-hour tokens used by the forgot/reset password flow"""
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import Token


class ResetTokenError(Exception):
    pass


def password_fingerprint(user):
    """Short digest of the current password hash; changes when the password does"""
    return (user.password or '')[-12:]


class PasswordResetToken(Token):
    token_type = 'password_reset'
    lifetime = settings.PASSWORD_RESET_TOKEN_LIFETIME

    @classmethod
    def for_user(cls, user):
        token = super().for_user(user)
        token['email'] = user.email
        token['pwd'] = password_fingerprint(user)
        return token


def read_reset_token(raw_token):
    """
    Decode a password reset token.

    Returns the user id claim. Raises ResetTokenError with a user-facing
    message when the token is expired or invalid.
    """
    try:
        token = PasswordResetToken(raw_token)
    except TokenError:
        try:
            unverified = PasswordResetToken(raw_token, verify=False)
        except TokenError:
            raise ResetTokenError('Invalid reset token')
        exp = unverified.payload.get('exp')
        if exp and datetime.fromtimestamp(exp, tz=dt_timezone.utc) < datetime.now(tz=dt_timezone.utc):
            raise ResetTokenError('Reset token has expired')
        raise ResetTokenError('Invalid reset token')
    return token[api_settings.USER_ID_CLAIM], token.get('pwd')
